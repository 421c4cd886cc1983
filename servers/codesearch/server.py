"""Code search HTTP server."""

import logging

import uvicorn
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from backends.content_fetcher import AbstractContentFetcher, ContentFetcherFactory
from backends.index import CodesearchIndex
from core.service import LocalSearchService
from servers.codesearch.app import create_app
from servers.codesearch.config import ServerConfig

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class TelemetryManager:
    """Telemetry manager exporting spans over OTLP."""

    def __init__(self, config: ServerConfig) -> None:
        """Initialize telemetry manager."""
        self.config = config
        self._setup_telemetry()

    def _setup_telemetry(self) -> None:
        """Setup telemetry."""
        if not self.config.tracing_enabled:
            return

        trace_provider = TracerProvider(resource=Resource.create({"service.name": "codesearch"}))
        trace_provider.add_span_processor(
            BatchSpanProcessor(
                OTLPSpanExporter(endpoint=f"{self.config.otlp_endpoint.rstrip('/')}/v1/traces")
            )
        )
        trace.set_tracer_provider(trace_provider)
        logger.info(f"Exporting traces to {self.config.otlp_endpoint}")


def build_service(config: ServerConfig) -> LocalSearchService:
    """Open the index and content service and wire up the search service."""
    index = CodesearchIndex(config.index_path)
    logger.info(f"Indexed paths: {', '.join(index.paths()) or '(none)'}")

    content_fetcher_kwargs = {
        "endpoint": config.kythe_endpoint,
        "timeout": config.content_fetch_timeout,
        "root": config.content_root or None,
    }
    content_fetcher: AbstractContentFetcher = ContentFetcherFactory.create_fetcher(
        backend=config.content_backend, **content_fetcher_kwargs
    )
    logger.info(f"Using {config.content_backend} content fetcher backend")

    return LocalSearchService(index, content_fetcher, max_snippets=config.max_snippets)


def main() -> None:
    """Main entry point."""
    config = ServerConfig()
    TelemetryManager(config)

    try:
        app = create_app(build_service(config), timeout=config.search_timeout)
        logger.info(f"Starting Code Search server on {config.http_host}:{config.http_port}...")
        uvicorn.run(app, host=config.http_host, port=config.http_port)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt (CTRL+C)")
    except Exception as exc:
        logger.error(f"Server error: {exc}")
        raise
    finally:
        logger.info("Server has shut down.")


if __name__ == "__main__":
    main()
