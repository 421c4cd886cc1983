"""HTTP JSON endpoint for code search."""

import logging
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse

from core.errors import CodeSearchError
from core.models import SearchReply, SearchRequest
from core.service import AbstractSearchService

logger = logging.getLogger(__name__)


def create_app(service: AbstractSearchService, timeout: Optional[float] = None) -> FastAPI:
    """Create the HTTP application serving /codesearch.

    Args:
        service: Search service answering requests
        timeout: Optional per-request deadline in seconds

    Returns:
        FastAPI application
    """
    app = FastAPI(title="Code Search")

    @app.exception_handler(RequestValidationError)
    async def bad_request(request: Request, exc: RequestValidationError) -> PlainTextResponse:
        return PlainTextResponse(str(exc), status_code=400)

    @app.post("/codesearch", response_model=SearchReply)
    def codesearch(req: SearchRequest):
        """Search for a regular expression in the indexed files."""
        start = time.monotonic()
        try:
            return service.search(req, timeout=timeout)
        except CodeSearchError as exc:
            logger.error(f"Search failed: {exc}")
            return PlainTextResponse(str(exc), status_code=500)
        finally:
            logger.info(f"codesearch.CodeSearch:\t{time.monotonic() - start:.6f}s")

    return app
