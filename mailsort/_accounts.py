"""Accounts sub-client for the mailsort API.

This module provides AccountsClient and AsyncAccountsClient for the
account endpoints (/accounts/*) and session logout (/auth/logout).

This is an internal module. Import from `mailsort` instead.
"""

from mailsort._base import AsyncBaseClient, BaseClient
from mailsort.models import Account


def _parse_accounts(data: dict | None) -> list[Account]:
    return [Account(**item) for item in (data or {}).get("accounts") or []]


class AccountsClient(BaseClient):
    """Synchronous client for account endpoints (/accounts/*).

    Example:
        with MailsortClient() as client:
            for account in client.accounts.list():
                print(account.email)
    """

    _BASE_PATH = "/accounts"

    def list(self) -> list[Account]:
        """List the accounts connected to the current session.

        Returns:
            Connected accounts, in server order.

        Raises:
            AuthenticationError: If the session has expired.
            APIError: If the request fails.
        """
        return _parse_accounts(self._http.get(self._BASE_PATH))

    def delete(self, account_id: int) -> None:
        """Disconnect an account and drop its emails and categories.

        Args:
            account_id: The account to remove.

        Raises:
            NotFoundError: If the account does not exist.
            APIError: If the request fails.
        """
        self._http.delete(f"{self._BASE_PATH}/{account_id}")

    def logout(self) -> None:
        """End the current session."""
        self._http.post("/auth/logout")


class AsyncAccountsClient(AsyncBaseClient):
    """Asynchronous client for account endpoints (/accounts/*).

    Example:
        async with AsyncMailsortClient() as client:
            accounts = await client.accounts.list()
    """

    _BASE_PATH = "/accounts"

    async def list(self) -> list[Account]:
        """List the accounts connected to the current session.

        Returns:
            Connected accounts, in server order.

        Raises:
            AuthenticationError: If the session has expired.
            APIError: If the request fails.
        """
        return _parse_accounts(await self._http.get(self._BASE_PATH))

    async def delete(self, account_id: int) -> None:
        """Disconnect an account and drop its emails and categories."""
        await self._http.delete(f"{self._BASE_PATH}/{account_id}")

    async def logout(self) -> None:
        """End the current session."""
        await self._http.post("/auth/logout")
