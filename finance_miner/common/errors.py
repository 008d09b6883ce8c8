"""
Error taxonomy for finance-miner.

Every failure raised by the package derives from `MinerError`, so the driver can
separate "this run cannot continue" from programming errors with a single
``except`` clause. Recoverability is decided by the caller, not by the error:
the same `TransportError` is fatal for the catalog document and merely skips
one emitent during profile resolution.

Hierarchy
---------
    MinerError
    ├── TransportError          network / protocol failure reaching a URL
    ├── HttpStatusError         non-2xx response (keeps the response)
    ├── EncodingError           legacy-encoding decode failure
    ├── ExtractionError         data region could not be extracted
    │   ├── BlockNotFoundError  pattern did not match or capture is unusable
    │   │   ├── RegionNotFoundError   zero regions where one was required
    │   │   └── RegionUnreadableError region present but no capture parsed
    │   └── AmbiguousRegionError      several regions where one was required
    ├── LiteralShapeError       parsed literal has the wrong shape
    └── ConfigError             configuration is missing required keys
"""

from __future__ import annotations

from typing import Optional

from requests import Response


class MinerError(Exception):
    """Base class for all finance-miner failures."""


class TransportError(MinerError):
    """Raised when a URL cannot be reached (connection, timeout, protocol)."""

    def __init__(self, url: str, message: str) -> None:
        super().__init__(f"Cannot fetch {url}: {message}")
        self.url = url


class HttpStatusError(MinerError):
    """Raised for a non-2xx response; the response is kept for diagnostics."""

    def __init__(self, response: Response) -> None:
        super().__init__(
            f"HTTP request unsuccessful: {response.status_code} for {response.url}"
        )
        self.response = response

    @property
    def status_code(self) -> int:
        return int(self.response.status_code)

    @property
    def url(self) -> str:
        return str(self.response.url)


class EncodingError(MinerError):
    """Raised when response bytes cannot be decoded with the configured codec."""


class ExtractionError(MinerError):
    """Raised when an embedded data region cannot be extracted."""


class BlockNotFoundError(ExtractionError):
    """Raised when the searched block is absent or cannot be parsed."""

    def __init__(self, details: str) -> None:
        super().__init__(f"Data not found in document: {details}")
        self.details = details


class RegionNotFoundError(BlockNotFoundError):
    """Raised when a pattern required to match exactly once matched nothing."""

    def __init__(self, label: str) -> None:
        super().__init__(f"no region matched for {label}")
        self.label = label


class RegionUnreadableError(BlockNotFoundError):
    """Raised when a required region matched but none of its captures parsed."""

    def __init__(self, label: str) -> None:
        super().__init__(f"region for {label} is present but cannot be parsed")
        self.label = label


class AmbiguousRegionError(ExtractionError):
    """Raised when a pattern required to match exactly once matched several times."""

    def __init__(self, label: str, count: int) -> None:
        super().__init__(f"Expected one region for {label}, found {count}")
        self.label = label
        self.count = count


class LiteralShapeError(MinerError):
    """Raised when a parsed literal does not have the expected container type."""

    def __init__(self, label: str, expected: str, actual: Optional[object]) -> None:
        super().__init__(
            f"Literal for {label} should be {expected}, got {type(actual).__name__}"
        )
        self.label = label
        self.expected = expected


class ConfigError(MinerError):
    """Raised when configuration is missing required keys."""


__all__ = [
    "MinerError",
    "TransportError",
    "HttpStatusError",
    "EncodingError",
    "ExtractionError",
    "BlockNotFoundError",
    "RegionNotFoundError",
    "RegionUnreadableError",
    "AmbiguousRegionError",
    "LiteralShapeError",
    "ConfigError",
]
