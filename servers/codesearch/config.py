"""Configuration for the code search server."""

import os
from typing import Optional

from dotenv import load_dotenv

from backends.index import get_index_path
from core.service import MAX_SNIPPETS_PER_FILE

load_dotenv()


class ServerConfig:
    """Server configuration."""

    def __init__(self) -> None:
        """Initialize server configuration from environment variables."""
        self.http_host = os.getenv("HTTP_HOST", "0.0.0.0")
        self.http_port = int(os.getenv("HTTP_PORT", "8080"))

        self.index_path = os.getenv("CODESEARCH_INDEX") or str(get_index_path())
        self.max_snippets = int(os.getenv("MAX_SNIPPETS_PER_FILE", str(MAX_SNIPPETS_PER_FILE)))
        self.search_timeout: Optional[float] = None
        if os.getenv("SEARCH_TIMEOUT"):
            self.search_timeout = float(os.environ["SEARCH_TIMEOUT"])

        # Tracing configuration (optional)
        self.tracing_enabled = os.getenv("TRACING_ENABLED", "false").lower() == "true"
        if self.tracing_enabled:
            self.otlp_endpoint = self._get_required_env("OTEL_EXPORTER_OTLP_ENDPOINT")
        else:
            self.otlp_endpoint = ""

        self.content_backend = self._get_required_env("CONTENT_BACKEND").lower()
        self.content_fetch_timeout = float(os.getenv("CONTENT_FETCH_TIMEOUT", "30"))
        self.kythe_endpoint = ""
        self.content_root = ""
        if self.content_backend == "kythe":
            self.kythe_endpoint = self._get_required_env("KYTHE_ENDPOINT")
        elif self.content_backend == "filesystem":
            self.content_root = os.getenv("CONTENT_ROOT", "")
        else:
            raise ValueError(
                "Invalid option for CONTENT_BACKEND. Valid options are [kythe|filesystem] "
            )

    @staticmethod
    def _get_required_env(key: str) -> str:
        """Get required environment variable or raise descriptive error."""
        value = os.getenv(key)
        if not value:
            raise ValueError(f"Required environment variable {key} is not set")
        return value
