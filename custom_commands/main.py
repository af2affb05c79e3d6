"""Custom commands entry point."""
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

import click
from dotenv import load_dotenv

from custom_commands.claude import AgentLoop
from custom_commands.commands import SessionMode, open_catalog, resolve_text
from custom_commands.config.settings import load_config
from custom_commands.exceptions import CommandNotFoundError

logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.WARNING,
)
logger = logging.getLogger(__name__)


@click.group()
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None,
              help="Config file (default ~/.codex/custom-commands.yaml).")
@click.option("-v", "--verbose", is_flag=True, help="Log at INFO level.")
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, verbose: bool) -> None:
    """Discover and run custom slash commands."""
    load_dotenv()
    if verbose:
        logging.getLogger().setLevel(logging.INFO)
    ctx.obj = load_config(config_path)


@cli.command("exec")
@click.argument("text")
@click.option("--cwd", type=click.Path(path_type=Path), default=None, help="Project directory.")
@click.option("--dry-run", is_flag=True, help="Print the invocation directive instead of running it.")
@click.pass_obj
def exec_cmd(config, text: str, cwd: Path | None, dry_run: bool) -> None:
    """Run one `/name args` invocation non-interactively."""
    catalog = open_catalog(config, cwd, mode=SessionMode.EXEC)
    try:
        directive = resolve_text(catalog.snapshot, text)
    except CommandNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if directive is None:
        click.echo("Error: expected a slash command like `/name args`", err=True)
        sys.exit(2)

    if dry_run:
        click.echo(json.dumps(directive.to_dict(), indent=2))
        return

    agent = AgentLoop(config, cwd=catalog.workdir)
    result = asyncio.run(agent.run_turn(directive))
    if result.skipped_model:
        click.echo(f"/{directive.command_name} recorded (model invocation disabled)")
    else:
        click.echo(result.text)


@cli.command("list")
@click.option("--cwd", type=click.Path(path_type=Path), default=None, help="Project directory.")
@click.pass_obj
def list_cmd(config, cwd: Path | None) -> None:
    """List custom commands and skipped entries."""
    registry = open_catalog(config, cwd, mode=SessionMode.EXEC).snapshot

    for record in registry.records:
        hint = f" {record.metadata.argument_hint}" if record.metadata.argument_hint else ""
        label = record.source.value
        if record.display_scope_label:
            label += f":{record.display_scope_label}"
        click.echo(f"/{record.name}{hint}  {record.description}  ({label})")

    for error in registry.errors:
        click.echo(f"skipped {error.location}: {error.reason}", err=True)


@cli.command("bot")
@click.pass_obj
def bot_cmd(config) -> None:
    """Run the interactive Telegram session."""
    from custom_commands.bot.application import create_application

    token = os.getenv("TELEGRAM_BOT_TOKEN")
    if not token:
        logger.error("TELEGRAM_BOT_TOKEN environment variable required")
        sys.exit(1)
    config.telegram_token = token

    app = create_application(config)
    logging.getLogger().setLevel(logging.INFO)
    logger.info("Custom commands bot starting...")
    # run_polling() manages its own event loop
    app.run_polling()


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
