"""HTTP client the UI uses to talk to the resume JSON API."""

import logging
from typing import Any

import httpx

from resume_analyzer.errors import AppError, ErrorCategory
from resume_analyzer.services.retry import retry_async

logger = logging.getLogger(__name__)

NETWORK_MESSAGE = "Unable to reach the server. Please check your connection."

_CATEGORIES = {category.status_code: category for category in ErrorCategory}


class ApiError(AppError):
    """Failure envelope returned by the API, or a transport failure."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.http_status = status_code
        if status_code is None:
            self.category = ErrorCategory.SERVICE_UNAVAILABLE
        else:
            self.category = _CATEGORIES.get(status_code, ErrorCategory.INTERNAL)


class ApiClient:
    """Thin async wrapper over the resume API.

    Read calls (list, get, stats) are retried on transient failures;
    uploads and deletes are sent once.
    """

    def __init__(
        self,
        base_url: str,
        transport: httpx.AsyncBaseTransport | None = None,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 120.0,
    ):
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self._client = httpx.AsyncClient(
            base_url=base_url,
            transport=transport,
            timeout=timeout,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            logger.warning(f"API {method} {url} failed: {e}")
            raise ApiError(NETWORK_MESSAGE) from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not response.is_success or not body.get("success", False):
            message = body.get("message") or f"Request failed ({response.status_code})"
            raise ApiError(message, response.status_code)
        return body

    async def _read(self, url: str) -> dict:
        return await retry_async(
            lambda: self._request("GET", url),
            attempts=self.retry_attempts,
            delay=self.retry_delay,
        )

    async def list_resumes(self) -> list[dict]:
        body = await self._read("/api/resumes")
        return body.get("data") or []

    async def get_resume(self, resume_id: int | str) -> dict:
        body = await self._read(f"/api/resumes/{resume_id}")
        return body["data"]

    async def get_stats(self) -> dict:
        body = await self._read("/api/resumes/stats")
        return body.get("data") or {}

    async def upload_resume(
        self,
        file_name: str,
        data: bytes,
        content_type: str = "application/pdf",
    ) -> dict:
        body = await self._request(
            "POST",
            "/api/resumes/upload",
            files={"resume": (file_name, data, content_type)},
        )
        return body["data"]

    async def delete_resume(self, resume_id: int | str) -> str:
        body = await self._request("DELETE", f"/api/resumes/{resume_id}")
        return body.get("message", "")

    async def is_reachable(self) -> bool:
        """Probe ``/health``; online only when it answers 200."""
        try:
            response = await self._client.get("/health")
        except httpx.TransportError:
            return False
        return response.status_code == 200
