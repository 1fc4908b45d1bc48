"""Conversation state carried across follow-up queries."""

from __future__ import annotations

from core.conversation.session import ConversationSession

__all__: list[str] = ["ConversationSession"]
