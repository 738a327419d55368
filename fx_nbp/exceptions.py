"""Exception hierarchy for the fx_nbp package.

Client-input errors subclass :class:`ValueError` so callers that only care
about bad arguments can keep catching the builtin.
"""

from __future__ import annotations


class FxNbpError(Exception):
    """Base exception for all fx_nbp errors."""


class ParseError(FxNbpError, ValueError):
    """Raised when an upstream payload carries a malformed date or number."""


class UnsupportedCurrencyError(FxNbpError, ValueError):
    """Raised when a caller asks for a currency outside the allow-list."""


class NoDataError(FxNbpError, LookupError):
    """Raised when the provider returns zero tables for a requested date."""


class InvalidDateError(FxNbpError, ValueError):
    """Raised for malformed date or month selectors."""


class StorageError(FxNbpError, RuntimeError):
    """Raised when the persistence layer fails to read or commit."""


class ProviderError(FxNbpError, RuntimeError):
    """Raised when the upstream provider cannot be reached."""


__all__ = [
    "FxNbpError",
    "InvalidDateError",
    "NoDataError",
    "ParseError",
    "ProviderError",
    "StorageError",
    "UnsupportedCurrencyError",
]
