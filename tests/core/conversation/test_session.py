from __future__ import annotations

from core.conversation.session import ConversationSession
from models.message_models import Message, Role


def test_new_session_is_empty() -> None:
    session = ConversationSession()

    assert session.is_active is False
    assert session.last_message is None
    assert session.messages == []


def test_reset_then_append_user() -> None:
    session = ConversationSession()

    session.reset("T", "P", "S")
    session.append_user("Q")

    assert session.messages == [
        Message(Role.SYSTEM, "S"),
        Message(Role.USER, "P\n\nText: T"),
        Message(Role.USER, "Q"),
    ]


def test_reset_replaces_previous_transcript() -> None:
    session = ConversationSession()
    session.reset("first", "Explain", "S")
    session.append_user("follow up")
    session.append_assistant("answer")

    session.reset("second", "Summarize", "S")

    assert len(session) == 2
    assert session.last_message == Message(Role.USER, "Summarize\n\nText: second")


def test_appends_keep_order_without_deduplication() -> None:
    session = ConversationSession()
    session.reset("T", "P", "S")

    session.append_user("same")
    session.append_user("same")
    session.append_assistant("reply")

    assert [m.role for m in session.messages] == [Role.SYSTEM, Role.USER, Role.USER, Role.USER, Role.ASSISTANT]


def test_messages_returns_copy() -> None:
    session = ConversationSession()
    session.reset("T", "P", "S")

    session.messages.append(Message(Role.USER, "sneaky"))

    assert len(session) == 2


def test_as_payload_and_clear() -> None:
    session = ConversationSession()
    session.reset("T", "P", "S")

    assert session.as_payload() == [
        {"role": "system", "content": "S"},
        {"role": "user", "content": "P\n\nText: T"},
    ]

    session.clear()

    assert session.is_active is False
