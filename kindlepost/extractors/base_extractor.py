"""
Abstract base class for all extractors.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import requests

from kindlepost.config import Config
from kindlepost.extractors.models import NormalizedDocument
from kindlepost.utils import get_logger
from kindlepost.utils.errors import NetworkError


class BaseExtractor(ABC):
    """
    Abstract base class that all extractors must inherit from.

    Provides common functionality:
    - A lazily created HTTP session (or one supplied by the caller)
    - GET requests that turn transport failures into NetworkError
    - Status checks that carry the HTTP status code
    - Context-manager support for releasing an owned session

    Extractors never retry: a failed fetch ends the extraction.
    """

    # Subclasses must define these
    name: str = "base"
    display_name: str = "Base Extractor"

    # Headers sent with every request made by this extractor
    default_headers: dict[str, str] = {}

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[int] = None,
    ) -> None:
        """
        Initialize the extractor.

        Args:
            session: HTTP session to reuse; one is created on demand otherwise
            timeout: Per-request timeout in seconds (defaults to Config.REQUEST_TIMEOUT)
        """
        self.timeout = timeout or Config.REQUEST_TIMEOUT
        self.logger = get_logger(f"extractors.{self.name}")
        self._session = session
        self._owns_session = session is None

    @property
    def session(self) -> requests.Session:
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update(self.default_headers)
        return self._session

    def close(self) -> None:
        """Close the HTTP session if this extractor created it."""
        if self._session is not None and self._owns_session:
            self._session.close()
            self._session = None

    def __enter__(self) -> BaseExtractor:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @classmethod
    def can_handle(cls, url: str) -> bool:
        """Whether this extractor should be used for ``url``."""
        return False

    def _get(self, url: str, headers: Optional[dict[str, str]] = None) -> requests.Response:
        """Perform a GET request, wrapping transport failures in NetworkError."""
        request_headers = dict(self.default_headers)
        if headers:
            request_headers.update(headers)
        try:
            return self.session.get(url, headers=request_headers, timeout=self.timeout)
        except requests.RequestException as exc:
            raise NetworkError(
                f"GET request failed for {url}: {exc}",
                source=self.name,
                context={"url": url},
            ) from exc

    def _check_status(self, response: requests.Response, label: str = "HTTP error!") -> None:
        """Raise NetworkError carrying the status code on a non-2xx response."""
        if not response.ok:
            raise NetworkError(
                f"{label} status: {response.status_code}",
                status_code=response.status_code,
                source=self.name,
                context={"url": response.url},
            )

    @abstractmethod
    def extract(self, url: str) -> NormalizedDocument:
        """
        Fetch ``url`` and return its normalized content.

        Raises:
            KindlePostError subclasses on any failure.
        """
