"""
Conversation identity.

A conversation between two users is identified by a key derived from the
two user identifiers alone, so either participant can address it without a
lookup and a second row for the same pair can never be created.

Usage:
    from chat.identity import conversation_key, parse_conversation_key

    key = conversation_key(alice.id, bob.id)   # same as conversation_key(bob.id, alice.id)
    first_id, second_id = parse_conversation_key(key)
"""

from __future__ import annotations

from core.exceptions import ValidationError

KEY_SEPARATOR = "_"


def _identifier(user_or_id) -> str:
    return str(getattr(user_or_id, "pk", user_or_id))


def conversation_key(first, second) -> str:
    """
    Return the conversation key for two users.

    Accepts user instances or identifiers. The identifiers are compared as
    strings and joined smaller-first, which makes the result independent of
    argument order.
    """
    a, b = _identifier(first), _identifier(second)
    if a < b:
        return f"{a}{KEY_SEPARATOR}{b}"
    return f"{b}{KEY_SEPARATOR}{a}"


def parse_conversation_key(key: str) -> tuple[int, int]:
    """
    Split a conversation key into its two participant ids, in key order.

    Raises:
        ValidationError: INVALID_CONVERSATION_KEY when the key is not the
            canonical key of two distinct users
    """
    parts = key.split(KEY_SEPARATOR) if isinstance(key, str) else []
    if (
        len(parts) != 2
        or not all(part.isdigit() and str(int(part)) == part for part in parts)
        or parts[0] == parts[1]
        or conversation_key(parts[0], parts[1]) != key
    ):
        raise ValidationError(
            "Conversation key is malformed",
            error_code="INVALID_CONVERSATION_KEY",
            details={"key": key},
        )
    return int(parts[0]), int(parts[1])
