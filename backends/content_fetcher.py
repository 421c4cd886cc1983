"""Content fetcher backends for Kythe and the local filesystem."""

import base64
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import requests

from core.errors import ContentFetchError

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT = 30.0


class AbstractContentFetcher(ABC):
    """Abstract base class for content fetchers."""

    @abstractmethod
    def get_content(self, ticket: str, timeout: Optional[float] = None) -> bytes:
        """Get the raw content of a file.

        Args:
            ticket: Reference to the file
            timeout: Optional number of seconds to wait for the content

        Returns:
            File content

        Raises:
            ContentFetchError: If the content cannot be retrieved
        """
        pass


class KytheContentFetcher(AbstractContentFetcher):
    """Kythe xrefs service content fetcher implementation."""

    def __init__(self, endpoint: str, timeout: float = DEFAULT_FETCH_TIMEOUT) -> None:
        """Initialize Kythe content fetcher.

        Args:
            endpoint: Kythe HTTP server base URL
            timeout: Default request timeout in seconds
        """
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        """HTTP session of the calling thread, created on first use."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
        return session

    def get_content(self, ticket: str, timeout: Optional[float] = None) -> bytes:
        """Get source text through a decorations request for a single file."""
        logger.debug(f"Fetching source text for {ticket}")
        body = {
            "location": {"ticket": ticket, "kind": "FILE"},
            "source_text": True,
            "references": False,
        }
        try:
            response = self.session.post(
                f"{self.endpoint}/decorations",
                json=body,
                timeout=timeout if timeout is not None else self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except (requests.exceptions.RequestException, ValueError) as exc:
            raise ContentFetchError(f"Decorations request failed: {exc}") from exc

        if not isinstance(payload, dict):
            raise ContentFetchError(
                f"Decorations request failed: expected a JSON object, got {type(payload).__name__}"
            )
        source_text = payload.get("source_text", "")
        if not isinstance(source_text, str):
            raise ContentFetchError(
                f"Decorations request failed: source_text is {type(source_text).__name__}, "
                "expected a base64 string"
            )
        try:
            return base64.b64decode(source_text, validate=True)
        except ValueError as exc:
            raise ContentFetchError(f"Decorations request failed: {exc}") from exc


class FilesystemContentFetcher(AbstractContentFetcher):
    """Reads file content directly from disk."""

    def __init__(self, root: Optional[str] = None) -> None:
        """Initialize filesystem content fetcher.

        Args:
            root: Optional directory that tickets are resolved against
        """
        self.root = Path(root) if root else None

    def get_content(self, ticket: str, timeout: Optional[float] = None) -> bytes:
        path = Path(ticket)
        if self.root is not None:
            path = self.root / ticket.lstrip("/")
        try:
            return path.read_bytes()
        except OSError as exc:
            raise ContentFetchError(f"Reading {ticket} failed: {exc}") from exc


class ContentFetcherFactory:
    """Factory for creating content fetchers."""

    @staticmethod
    def create_fetcher(backend: str, **kwargs) -> AbstractContentFetcher:
        """Create a content fetcher for the given backend.

        Args:
            backend: Backend name ('kythe' or 'filesystem')
            **kwargs: Backend-specific configuration

        Returns:
            Content fetcher instance

        Raises:
            ValueError: If backend is not supported
        """
        backend = backend.lower()
        if backend == "kythe":
            return KytheContentFetcher(
                endpoint=kwargs.get("endpoint", ""),
                timeout=kwargs.get("timeout", DEFAULT_FETCH_TIMEOUT),
            )
        elif backend == "filesystem":
            return FilesystemContentFetcher(root=kwargs.get("root"))
        else:
            raise ValueError(f"Unsupported backend: {backend}")
