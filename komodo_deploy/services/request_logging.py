"""Request logging hooks for the Komodo HTTP client."""

import time

import httpx

from komodo_deploy.utils.logging import get_logger

logger = get_logger(__name__)

PREVIEW_CHARS = 200
SECRET_HEADERS = {"x-api-secret", "authorization"}


class RequestLogger:
    """httpx event hooks that log outbound Komodo requests.

    Installed per client instance through ``KomodoClient.request_logging()``.
    """

    def __init__(self, preview_chars: int = PREVIEW_CHARS):
        self.preview_chars = preview_chars
        self.requests = 0
        self._started: dict[int, float] = {}

    @staticmethod
    def mask_headers(headers: httpx.Headers) -> dict[str, str]:
        masked = {}
        for name, value in headers.items():
            lowered = name.lower()
            if lowered in SECRET_HEADERS:
                masked[name] = "***"
            elif lowered == "x-api-key":
                masked[name] = f"{value[:8]}..."
            else:
                masked[name] = value
        return masked

    async def on_request(self, request: httpx.Request) -> None:
        self.requests += 1
        self._started[id(request)] = time.perf_counter()
        logger.info(
            "request.started",
            url=str(request.url),
            method=request.method,
            headers=self.mask_headers(request.headers),
        )

    async def on_response(self, response: httpx.Response) -> None:
        await response.aread()
        started = self._started.pop(id(response.request), None)
        duration_ms = (time.perf_counter() - started) * 1000 if started else None

        logger.info(
            "request.completed",
            url=str(response.request.url),
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2) if duration_ms is not None else None,
            preview=f"{response.text[: self.preview_chars]}...",
        )
