"""
@mention parsing against a group roster.

A token is ``@`` followed by letters, digits, dots, underscores or hyphens.
A member matches a token (case-insensitively) when:
    - their display name equals the token, or
    - their email local part equals the token, or
    - their email starts with the token.

Used by the send endpoint when the client does not supply mentioned ids.
Ids produced here, like client-supplied ids, are still re-validated against
membership by GroupMessageService.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from chat.constants import MENTION_CONFIG

if TYPE_CHECKING:
    from collections.abc import Iterable

    from authentication.models import User

MENTION_RE = re.compile(MENTION_CONFIG.PATTERN)


def extract_mention_tokens(content: str) -> list[str]:
    """Tokens after each '@', lower-cased, in order, without duplicates."""
    tokens = []
    for token in MENTION_RE.findall(content or ""):
        token = token.lower()
        if token not in tokens:
            tokens.append(token)
    return tokens


def member_matches_token(user: User, token: str) -> bool:
    email = user.email.lower()
    profile = getattr(user, "profile", None)
    display_name = (profile.display_name if profile else "").lower()
    return (
        display_name == token
        or email.split("@")[0] == token
        or email.startswith(token)
    )


def resolve_mentions(content: str, members: Iterable[User]) -> list:
    """
    Ids of the members named in ``content``.

    Each token names at most one member: the first match in roster order.
    The result keeps token order and contains no duplicates.
    """
    tokens = extract_mention_tokens(content)
    if not tokens:
        return []

    members = list(members)
    resolved = []
    for token in tokens:
        match = next((user for user in members if member_matches_token(user, token)), None)
        if match is not None and match.pk not in resolved:
            resolved.append(match.pk)
    return resolved[: MENTION_CONFIG.MAX_MENTIONS_PER_MESSAGE]
