"""Models for conversation transcripts sent to the chat-completions API."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

__all__: list[str] = ["Message", "Role"]


class Role(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """One turn of a conversation.

    Attributes:
        role (Role): Who produced the turn.
        content (str): The turn text.
    """

    role: Role
    content: str

    def to_payload(self) -> dict[str, str]:
        """Return the ``{"role", "content"}`` mapping used in request bodies."""
        return {"role": str(self.role), "content": self.content}
