"""Claude integration module."""
from .client import (
    AgentLoop,
    Transcript,
    TranscriptEntry,
    TurnResult,
    create_agent_options,
)

__all__ = [
    "AgentLoop",
    "Transcript",
    "TranscriptEntry",
    "TurnResult",
    "create_agent_options",
]
