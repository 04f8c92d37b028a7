"""Async client for the Gemini generateContent REST API."""

import asyncio
import logging

import httpx

from resume_analyzer.config import Settings
from resume_analyzer.errors import (
    AIRateLimited,
    AITimeout,
    AIUnavailable,
    MalformedAIResponse,
)

logger = logging.getLogger(__name__)

CONFIGURATION_MESSAGE = "AI service configuration error. Please contact support."
QUOTA_MESSAGE = (
    "AI service temporarily unavailable due to usage limits. Please try again later."
)


def _error_details(response: httpx.Response) -> tuple[str | None, set[str]]:
    """Pull ``error.status`` and detail reasons out of a Google API error body."""
    try:
        error = response.json().get("error", {})
        reasons = {
            detail.get("reason")
            for detail in error.get("details", [])
            if isinstance(detail, dict) and detail.get("reason")
        }
        return error.get("status"), reasons
    except (ValueError, AttributeError):
        return None, set()


class GeminiClient:
    """Async client for Gemini.

    Sends one prompt per call and returns the model's text. Every failure is
    raised as a typed AI error; no call is retried here.
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Gemini client.

        Args:
            settings: Application settings (API key, model, timeout)
            transport: Optional httpx transport, used by tests
        """
        self.api_key = settings.google_api_key
        self.base_url = settings.gemini_base_url.rstrip("/")
        self.model = settings.gemini_model
        self.timeout = settings.ai_timeout
        self.json_mode = settings.ai_json_mode
        self.generation_config = {
            "temperature": settings.ai_temperature,
            "topK": settings.ai_top_k,
            "topP": settings.ai_top_p,
            "maxOutputTokens": settings.ai_max_output_tokens,
        }
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _request_body(self, prompt: str) -> dict:
        generation_config = dict(self.generation_config)
        if self.json_mode:
            generation_config["responseMimeType"] = "application/json"
        return {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }

    async def generate(self, prompt: str) -> str:
        """Call generateContent and return the concatenated candidate text.

        Args:
            prompt: Prompt for the model

        Returns:
            Generated text response from the model

        Raises:
            AIUnavailable: Missing key, rejected key, quota or service failure
            AIRateLimited: Gemini answered 429
            AITimeout: No answer within ai_timeout seconds
            MalformedAIResponse: Response carried no candidate text
        """
        if not self.is_configured:
            raise AIUnavailable(CONFIGURATION_MESSAGE)

        url = f"{self.base_url}/models/{self.model}:generateContent"
        try:
            async with asyncio.timeout(self.timeout):
                async with httpx.AsyncClient(transport=self._transport) as client:
                    response = await client.post(
                        url,
                        headers={"x-goog-api-key": self.api_key},
                        json=self._request_body(prompt),
                        timeout=self.timeout,
                    )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.error(f"Gemini request timed out after {self.timeout}s")
            raise AITimeout()
        except httpx.HTTPError as e:
            logger.error(f"Gemini transport error: {e}")
            raise AIUnavailable()

        self._raise_for_status(response)

        try:
            data = response.json()
            parts = data["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts)
        except (ValueError, KeyError, IndexError, TypeError, AttributeError):
            logger.error(f"Unexpected Gemini response body: {response.text[:500]}")
            raise MalformedAIResponse("AI did not return a valid JSON response.")

        if not text.strip():
            raise MalformedAIResponse("AI did not return a valid JSON response.")
        return text

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return

        logger.error(
            f"Gemini API error {response.status_code}: {response.text[:500]}"
        )
        status, reasons = _error_details(response)
        if response.status_code == 429:
            raise AIRateLimited()
        if (
            response.status_code in (401, 403)
            or status in ("UNAUTHENTICATED", "PERMISSION_DENIED")
            or "API_KEY_INVALID" in reasons
        ):
            raise AIUnavailable(CONFIGURATION_MESSAGE)
        if status == "RESOURCE_EXHAUSTED":
            raise AIUnavailable(QUOTA_MESSAGE)
        raise AIUnavailable()

    async def health(self) -> dict:
        """Report configuration status without spending a model call."""
        if not self.is_configured:
            return {"status": "unhealthy", "message": "Google AI API key not configured"}
        return {"status": "configured", "model": self.model}
