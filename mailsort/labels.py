"""System versus user-defined categories.

A category is a *system* category when its name is one of the mailbox
folders or provider-internal labels below. The match is exact and
case-sensitive: ``"Inbox"`` and ``"INBOX"`` are both reserved, ``"inbox"``
is not. Everything else is a custom category created by the user.
"""

from collections.abc import Iterable, Sequence
from typing import Protocol, TypeVar, Union


class _Named(Protocol):
    name: str


CategoryLike = TypeVar("CategoryLike", bound=Union[str, _Named])


# Folder names as shown to the user
MAILBOX_LABELS = frozenset({
    "Inbox",
    "Sent",
    "Drafts",
    "Spam",
    "Trash",
    "Important",
    "Starred",
    "All Mail",
    "Chats",
})

# Provider label identifiers
PROVIDER_LABELS = frozenset({
    "INBOX",
    "SENT",
    "DRAFT",
    "SPAM",
    "TRASH",
    "IMPORTANT",
    "STARRED",
    "UNREAD",
    "CHAT",
    "CATEGORY_PERSONAL",
    "CATEGORY_SOCIAL",
    "CATEGORY_PROMOTIONS",
    "CATEGORY_UPDATES",
    "CATEGORY_FORUMS",
})

# Colour-coded star and superstar labels
STAR_LABELS = frozenset({
    "YELLOW_STAR",
    "ORANGE_STAR",
    "RED_STAR",
    "PURPLE_STAR",
    "BLUE_STAR",
    "GREEN_STAR",
    "RED_BANG",
    "ORANGE_GUILLEMET",
    "YELLOW_BANG",
    "GREEN_CHECK",
    "BLUE_INFO",
    "PURPLE_QUESTION",
})

SYSTEM_CATEGORY_NAMES = MAILBOX_LABELS | PROVIDER_LABELS | STAR_LABELS


def is_system_category(name: str) -> bool:
    """Return True if ``name`` is a reserved system category name."""
    return name in SYSTEM_CATEGORY_NAMES


def _name_of(category: str | _Named) -> str:
    return category if isinstance(category, str) else category.name


def system_categories(categories: Iterable[CategoryLike]) -> list[CategoryLike]:
    """Return the system categories, preserving input order.

    Accepts category objects with a ``name`` attribute or plain names.
    """
    return [c for c in categories if is_system_category(_name_of(c))]


def custom_categories(categories: Iterable[CategoryLike]) -> list[CategoryLike]:
    """Return the user-defined categories, preserving input order."""
    return [c for c in categories if not is_system_category(_name_of(c))]


def category_name(categories: Sequence[_Named], category_id: int | None) -> str:
    """Look up the name of ``category_id`` in ``categories``.

    Returns an empty string for a missing id or an unknown category.
    """
    if category_id is None:
        return ""
    for category in categories:
        if getattr(category, "id", None) == category_id:
            return category.name
    return ""
