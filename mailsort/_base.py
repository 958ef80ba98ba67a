"""Shared base for the accounts, categories and emails sub-clients.

Sub-clients hold no state beyond the transport owned by their parent
``MailsortClient`` or ``AsyncMailsortClient``; closing the parent closes it.
"""

from typing import Generic, TypeVar

from mailsort._http import AsyncHTTPClient, HTTPClient

HTTPT = TypeVar("HTTPT", HTTPClient, AsyncHTTPClient)


class SubClient(Generic[HTTPT]):
    def __init__(self, http_client: HTTPT) -> None:
        self._http = http_client


BaseClient = SubClient[HTTPClient]
AsyncBaseClient = SubClient[AsyncHTTPClient]
