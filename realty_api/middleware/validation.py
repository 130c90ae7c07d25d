"""
Request middleware: body size ceiling, request ids and request logging.
"""

from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import logging
import time
import uuid

from realty_api.services.error_handler import ErrorHandlerService
from realty_api.utils.exceptions import BadRequestError, PayloadTooLargeError

logger = logging.getLogger(__name__)

BODY_METHODS = ("POST", "PUT", "PATCH")


class ValidationMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request preprocessing.
    Rejects oversized bodies before they reach a handler, tags every response with
    X-Request-ID and optionally logs each request.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_request_size: int = 50 * 1024 * 1024,  # 50MB
        enable_request_logging: bool = True
    ):
        super().__init__(app)
        self.max_request_size = max_request_size
        self.enable_request_logging = enable_request_logging

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process request through validation middleware.

        Args:
            request: FastAPI request object
            call_next: Next middleware/handler in chain

        Returns:
            Response object
        """
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        start_time = time.time()

        try:
            await self._validate_request_size(request)
        except (BadRequestError, PayloadTooLargeError) as exc:
            response = ErrorHandlerService.handle_api_exception(exc, request)
            response.headers["X-Request-ID"] = request_id
            return response

        if self.enable_request_logging:
            logger.info(f"Request [{request_id}]: {request.method} {request.url.path}")

        response = await call_next(request)

        if self.enable_request_logging:
            processing_time = time.time() - start_time
            logger.info(
                f"Response [{request_id}]: {response.status_code} "
                f"{request.method} {request.url.path} in {processing_time:.3f}s"
            )

        response.headers["X-Request-ID"] = request_id
        return response

    async def _validate_request_size(self, request: Request) -> None:
        """
        Validate request content length.

        Bodies sent without a content-length header (chunked transfer) are
        counted as they stream in and cached on the request for the handler.

        Raises:
            PayloadTooLargeError: If request size exceeds limit
            BadRequestError: If the header is not a number
        """
        content_length = request.headers.get("content-length")
        if not content_length:
            if request.method in BODY_METHODS:
                await self._read_limited_body(request)
            return

        try:
            size = int(content_length)
        except ValueError:
            raise BadRequestError("Invalid content-length header")

        if size > self.max_request_size:
            raise PayloadTooLargeError(size, self.max_request_size)

    async def _read_limited_body(self, request: Request) -> None:
        chunks = []
        size = 0
        async for chunk in request.stream():
            size += len(chunk)
            if size > self.max_request_size:
                raise PayloadTooLargeError(size, self.max_request_size)
            chunks.append(chunk)

        # Same cache Request.body() fills; replayed to the downstream app
        request._body = b"".join(chunks)
