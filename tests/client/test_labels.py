"""Unit tests for system/custom category classification."""

import pytest

from mailsort.labels import (
    SYSTEM_CATEGORY_NAMES,
    category_name,
    custom_categories,
    is_system_category,
    system_categories,
)
from mailsort.models import Category


def make_category(category_id: int, name: str) -> Category:
    return Category(id=category_id, account_id=1, name=name)


class TestIsSystemCategory:
    """Tests for is_system_category."""

    @pytest.mark.parametrize(
        "name",
        ["INBOX", "Inbox", "SPAM", "CATEGORY_PROMOTIONS", "YELLOW_STAR", "All Mail", "UNREAD"],
    )
    def test_reserved_names(self, name) -> None:
        assert is_system_category(name)

    @pytest.mark.parametrize("name", ["inbox", "Work", "Receipts", "", "INBOX ", "spam"])
    def test_other_names_are_custom(self, name) -> None:
        """Matching is exact and case-sensitive."""
        assert not is_system_category(name)


class TestPartition:
    """system_categories and custom_categories split a list without loss."""

    def test_partition_of_names(self) -> None:
        names = ["Work", "INBOX", "Receipts", "Spam", "inbox", "STARRED"]

        system = system_categories(names)
        custom = custom_categories(names)

        assert system == ["INBOX", "Spam", "STARRED"]
        assert custom == ["Work", "Receipts", "inbox"]
        assert set(system).isdisjoint(custom)
        assert sorted(system + custom) == sorted(names)

    def test_partition_of_category_objects(self) -> None:
        categories = [make_category(1, "Work"), make_category(2, "SENT"), make_category(3, "Travel")]

        assert [c.id for c in system_categories(categories)] == [2]
        assert [c.id for c in custom_categories(categories)] == [1, 3]

    def test_category_is_system_property(self) -> None:
        assert make_category(1, "TRASH").is_system
        assert not make_category(2, "Newsletters").is_system

    def test_all_reserved_names_are_system(self) -> None:
        assert custom_categories(sorted(SYSTEM_CATEGORY_NAMES)) == []


class TestCategoryName:
    """Tests for category_name lookups."""

    def test_known_id(self) -> None:
        categories = [make_category(1, "Work"), make_category(2, "Travel")]
        assert category_name(categories, 2) == "Travel"

    def test_unknown_or_missing_id(self) -> None:
        categories = [make_category(1, "Work")]
        assert category_name(categories, 9) == ""
        assert category_name(categories, None) == ""
