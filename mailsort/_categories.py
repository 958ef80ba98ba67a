"""Categories sub-client for the mailsort API.

This module provides CategoriesClient and AsyncCategoriesClient for the
per-account category endpoints (/accounts/{id}/categories/*).

This is an internal module. Import from `mailsort` instead.
"""

from typing import Any

from mailsort._base import AsyncBaseClient, BaseClient
from mailsort.models import Category


def _path(account_id: int) -> str:
    return f"/accounts/{account_id}/categories"


def _parse_categories(data: dict | None) -> list[Category]:
    return [Category(**item) for item in (data or {}).get("categories") or []]


def _create_body(name: str, description: str | None) -> dict[str, Any]:
    name = name.strip()
    if not name:
        raise ValueError("Category name must not be empty")
    return {"name": name, "description": (description or "").strip()}


def _parse_created(data: Any) -> Category:
    # Some backend versions wrap the created object
    if isinstance(data, dict) and isinstance(data.get("category"), dict):
        data = data["category"]
    return Category(**data)


class CategoriesClient(BaseClient):
    """Synchronous client for category endpoints.

    Example:
        with MailsortClient() as client:
            created = client.categories.create(1, "Receipts", "Shop orders")
            client.categories.delete(1, created.id)
    """

    def list(self, account_id: int) -> list[Category]:
        """List an account's categories, system and custom alike.

        Args:
            account_id: The owning account.

        Returns:
            The account's categories in server order.

        Raises:
            APIError: If the request fails.
        """
        return _parse_categories(self._http.get(_path(account_id)))

    def create(self, account_id: int, name: str, description: str | None = None) -> Category:
        """Create a custom category (and the matching mailbox label).

        Args:
            account_id: The owning account.
            name: Category name; surrounding whitespace is stripped.
            description: Optional description.

        Returns:
            The created category.

        Raises:
            ValueError: If the name is blank.
            ConflictError: If a category with that name already exists.
            APIError: If the request fails.
        """
        data = self._http.post(_path(account_id), json=_create_body(name, description))
        return _parse_created(data)

    def delete(self, account_id: int, category_id: int) -> None:
        """Delete a category.

        Raises:
            NotFoundError: If the category does not belong to the account.
            APIError: If the request fails.
        """
        self._http.delete(f"{_path(account_id)}/{category_id}")


class AsyncCategoriesClient(AsyncBaseClient):
    """Asynchronous client for category endpoints."""

    async def list(self, account_id: int) -> list[Category]:
        """List an account's categories, system and custom alike."""
        return _parse_categories(await self._http.get(_path(account_id)))

    async def create(
        self, account_id: int, name: str, description: str | None = None
    ) -> Category:
        """Create a custom category (and the matching mailbox label).

        Raises:
            ValueError: If the name is blank.
            ConflictError: If a category with that name already exists.
            APIError: If the request fails.
        """
        data = await self._http.post(_path(account_id), json=_create_body(name, description))
        return _parse_created(data)

    async def delete(self, account_id: int, category_id: int) -> None:
        """Delete a category."""
        await self._http.delete(f"{_path(account_id)}/{category_id}")
