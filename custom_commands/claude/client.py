"""Claude SDK agent loop driven by invocation directives."""
import logging
from dataclasses import dataclass, field
from pathlib import Path

from claude_agent_sdk import (
    AssistantMessage,
    ClaudeAgentOptions,
    ClaudeSDKClient,
    ResultMessage,
    TextBlock,
)

from custom_commands.commands.models import InvocationDirective
from custom_commands.config.settings import Config

logger = logging.getLogger(__name__)


@dataclass
class TranscriptEntry:
    """One recorded message."""

    role: str  # "user" or "assistant"
    text: str
    command: str | None = None


@dataclass
class Transcript:
    """Messages recorded during a session."""

    entries: list[TranscriptEntry] = field(default_factory=list)

    def record_user(self, text: str, command: str | None = None) -> None:
        self.entries.append(TranscriptEntry(role="user", text=text, command=command))

    def record_assistant(self, text: str) -> None:
        self.entries.append(TranscriptEntry(role="assistant", text=text))


@dataclass
class TurnResult:
    """Outcome of one agent turn."""

    text: str
    skipped_model: bool = False
    cost_usd: float = 0.0


def create_agent_options(
    config: Config,
    directive: InvocationDirective,
    cwd: Path | str,
) -> ClaudeAgentOptions:
    """Build ClaudeAgentOptions for a command invocation.

    A directive with a tool set limits the agent to exactly those tools
    and pre-approves them; an empty set leaves the agent with no tools.
    Without tool metadata the SDK defaults apply.

    Args:
        config: Application configuration.
        directive: Resolved invocation; its tool set and model override
            take precedence over configured defaults.
        cwd: Working directory for the agent.

    Returns:
        Configured ClaudeAgentOptions.
    """
    tools = sorted(directive.allowed_tools) if directive.allowed_tools is not None else None
    return ClaudeAgentOptions(
        permission_mode=config.claude.permission_mode,
        max_turns=config.claude.max_turns,
        max_budget_usd=config.claude.max_budget_usd,
        cwd=str(cwd),
        tools=tools,
        allowed_tools=list(tools or []),
        model=directive.model_override or config.claude.model,
    )


class AgentLoop:
    """Runs invocation directives against Claude."""

    def __init__(
        self,
        config: Config,
        cwd: Path | str,
        transcript: Transcript | None = None,
    ):
        self.config = config
        self.cwd = cwd
        self.transcript = transcript if transcript is not None else Transcript()

    async def run_turn(self, directive: InvocationDirective) -> TurnResult:
        """Record the user message and, unless skipped, query the model.

        A directive with ``skip_model`` completes right after the user
        message is recorded.
        """
        self.transcript.record_user(directive.expanded_body, command=directive.command_name)

        if directive.skip_model:
            logger.info(f"/{directive.command_name}: model invocation disabled, turn complete")
            return TurnResult(text="", skipped_model=True)

        options = create_agent_options(self.config, directive, self.cwd)
        parts: list[str] = []
        cost = 0.0

        async with ClaudeSDKClient(options=options) as client:
            await client.query(directive.expanded_body)
            async for message in client.receive_response():
                if isinstance(message, AssistantMessage):
                    for block in message.content:
                        if isinstance(block, TextBlock):
                            parts.append(block.text)
                elif isinstance(message, ResultMessage):
                    if message.total_cost_usd:
                        cost += message.total_cost_usd

        text = "".join(parts)
        self.transcript.record_assistant(text)
        return TurnResult(text=text, cost_usd=cost)
