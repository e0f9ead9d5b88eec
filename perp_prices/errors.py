"""Exception types raised by the price pipeline."""

from __future__ import annotations

from typing import Optional


class PriceFeedError(Exception):
    """Base class for all price pipeline errors."""


class FetchError(PriceFeedError):
    """The ``metaAndAssetCtxs`` request failed or returned an unusable payload.

    Covers transport failures, non-2xx statuses, bodies that are not JSON and
    top-level shapes other than ``[{"universe": [...]}, [...]]``.
    """

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class FormatError(PriceFeedError, ValueError):
    """A numeric field from the feed could not be parsed as a decimal."""

    def __init__(self, field: str, value: object) -> None:
        super().__init__(f"Cannot parse {field}={value!r} as a decimal")
        self.field = field
        self.value = value
