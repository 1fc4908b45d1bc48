from __future__ import annotations

from typing import TYPE_CHECKING

from core.query.engine import build_user_content
from models.message_models import Message, Role
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging

__all__: list[str] = ["ConversationSession"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class ConversationSession:
    """The transcript of the current reading conversation.

    A session starts with ``reset`` for each top-level task and grows by one user turn and
    one assistant turn per follow-up. Turns are kept in call order without de-duplication.
    The transcript lives in memory only.
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []

    @property
    def messages(self) -> list[Message]:
        """A copy of the transcript."""
        return list(self._messages)

    @property
    def last_message(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    @property
    def is_active(self) -> bool:
        return bool(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def reset(self, selected_text: str, prompt_text: str, system_prompt: str) -> None:
        """Start a new conversation about ``selected_text``.

        Args:
            selected_text (str): The text the reader selected.
            prompt_text (str): The task prompt applied to it.
            system_prompt (str): The system turn placed first.
        """
        self._messages = [
            Message(Role.SYSTEM, system_prompt),
            Message(Role.USER, build_user_content(prompt_text, selected_text)),
        ]
        logger.debug("Conversation reset")

    def append_user(self, content: str) -> None:
        self._messages.append(Message(Role.USER, content))
        logger.debug("Appended user turn (%d turns)", len(self._messages))

    def append_assistant(self, content: str) -> None:
        self._messages.append(Message(Role.ASSISTANT, content))
        logger.debug("Appended assistant turn (%d turns)", len(self._messages))

    def clear(self) -> None:
        self._messages = []

    def as_payload(self) -> list[dict[str, str]]:
        """Return the transcript as the ``messages`` list of a request body."""
        return [message.to_payload() for message in self._messages]
