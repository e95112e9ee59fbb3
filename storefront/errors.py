"""Exceptions surfaced by the storefront API."""
from __future__ import annotations


class StorefrontError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class SearchUnavailableError(StorefrontError):
    """The search engine was selected for a request but the call failed."""

    status_code = 503


class ProductNotFoundError(StorefrontError):
    status_code = 404
