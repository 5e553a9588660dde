"""Standardized exception hierarchy for extraction, packaging and delivery."""

from __future__ import annotations

from typing import Any, Optional


class KindlePostError(Exception):
    """Base exception for kindlepost failures."""

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
        recoverable: bool = True,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.source = source
        self.recoverable = recoverable
        self.context = context or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [self.message]
        if self.source:
            parts.append(f"[source={self.source}]")
        if self.context:
            parts.append(f"context={self.context}")
        return " ".join(parts)


class NetworkError(KindlePostError):
    """Network-related failures (connection errors, non-success HTTP status)."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, **kwargs: Any) -> None:
        kwargs.setdefault("recoverable", True)
        self.status_code = status_code
        super().__init__(message, **kwargs)


class ParsingError(KindlePostError):
    """Malformed input: unparseable URLs, invalid JSON payloads."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("recoverable", False)
        super().__init__(message, **kwargs)


class ExtractionError(KindlePostError):
    """No usable content could be extracted."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("recoverable", False)
        super().__init__(message, **kwargs)


class NotFoundError(ExtractionError):
    """The remote API reported the requested post as missing."""


class ConversionError(KindlePostError):
    """The external document compiler is unavailable or failed."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("recoverable", False)
        super().__init__(message, **kwargs)


class ConfigurationError(KindlePostError):
    """Configuration or setup issues (non-recoverable by default)."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("recoverable", False)
        super().__init__(message, **kwargs)


class DeliveryError(KindlePostError):
    """Delivery transport failures."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("recoverable", True)
        super().__init__(message, **kwargs)


class AuthenticationError(DeliveryError):
    """The delivery transport rejected the sender credentials."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        kwargs.setdefault("recoverable", False)
        super().__init__(message, **kwargs)
