"""Exception types.

Provider errors are raised by source adapters and turned into per-source
failure reasons by the aggregator. ``SystemicFailure`` and
``PersistenceError`` reach the caller.
"""


class ReadingError(Exception):
    """Base class for all Daily Reading errors."""


class ProviderError(ReadingError):
    """A source adapter could not produce a section."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(message)
        self.source = source
        self.message = message

    def __str__(self) -> str:
        return f"{self.source}: {self.message}"


class ProviderFetchError(ProviderError):
    """Non-success status or transport failure from a provider."""


class ProviderParseError(ProviderError):
    """Provider answered, but the payload had an unexpected shape."""


class NoCandidatesError(ProviderError):
    """Provider answered, but nothing usable survived normalization."""


class SystemicFailure(ReadingError):
    """Every enabled source failed; no bundle can be built."""

    def __init__(self, reasons: dict[str, str]) -> None:
        super().__init__("all sources failed")
        self.reasons = dict(reasons)

    def __str__(self) -> str:
        detail = ", ".join(f"{k}={v}" for k, v in self.reasons.items())
        return f"all sources failed ({detail})" if detail else "all sources failed"


class PersistenceError(ReadingError):
    """Reading or writing a local store failed."""
