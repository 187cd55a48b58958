"""
Dispatcher Handlers - Classifier inference calls.

This module performs the outbound request to a hosted classification model
and turns every way that request can go wrong into a ModelClientError:

- ModelTransportError: connection failure, protocol error, timeout
- MalformedUpstreamResponse: the endpoint did not answer with JSON
- UpstreamModelError: the inference API reported an error in its body

Key components:
- ModelClient: async client with a lazily created, pooled httpx.AsyncClient
- get_model_client(): process-wide client built from settings
"""

import asyncio
import logging
from typing import Any

import httpx

from postguard.config import get_settings
from postguard.exceptions import (
    MalformedUpstreamResponse,
    ModelTransportError,
    UpstreamModelError,
)

logger = logging.getLogger(__name__)


def _is_json_content_type(content_type: str) -> bool:
    """Accept application/json and structured-syntax suffixes such as +json."""
    media_type = content_type.split(";", 1)[0].strip().lower()
    return media_type == "application/json" or media_type.endswith("+json")


class ModelClient:
    """
    Client for hosted text classification endpoints.

    One call, one attempt: there is no retry here. Each call is bounded by
    the configured timeout, after which it fails as a transport error.

    The credential is passed in explicitly so callers (and tests) never
    depend on process environment.

    Usage:
        client = ModelClient(api_key="hf_...", timeout=10.0)
        raw = await client.classify(endpoint, "text to classify")
        await client.aclose()
    """

    def __init__(
        self,
        api_key: str | None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key or None
        self._timeout = timeout
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    @property
    def has_credential(self) -> bool:
        """Whether a non-empty API key was supplied."""
        return self._api_key is not None

    @property
    def http(self) -> httpx.AsyncClient:
        """
        Get the underlying HTTP client (lazy initialization).

        Returns:
            httpx.AsyncClient shared by every call made through this client.
        """
        if self._http is None:
            self._http = httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
            )
            logger.debug("Initialized inference HTTP client")
        return self._http

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

    async def classify(self, endpoint: str, text: str) -> Any:
        """
        Submit text to a classification endpoint.

        Args:
            endpoint: URL of the hosted model.
            text: Payload to classify; may be empty.

        Returns:
            The decoded JSON body, shape unspecified.

        Raises:
            ModelTransportError: The request did not complete.
            MalformedUpstreamResponse: The body is not JSON.
            UpstreamModelError: The body carries an error field, or the
                status is not successful.
        """
        # httpx timeouts are per phase; wait_for bounds the whole call
        try:
            response = await asyncio.wait_for(
                self.http.post(
                    endpoint,
                    headers=self._headers(),
                    json={"inputs": text},
                ),
                timeout=self._timeout,
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            raise ModelTransportError(
                f"Request timed out after {self._timeout}s", endpoint
            ) from e
        except httpx.HTTPError as e:
            raise ModelTransportError(f"Request failed: {e}", endpoint) from e

        content_type = response.headers.get("content-type", "")
        if not _is_json_content_type(content_type):
            raise MalformedUpstreamResponse(endpoint, response.text, content_type)

        try:
            result = response.json()
        except ValueError as e:
            raise MalformedUpstreamResponse(
                endpoint, response.text, content_type
            ) from e

        if isinstance(result, dict) and result.get("error"):
            raise UpstreamModelError(
                endpoint, str(result["error"]), response.status_code
            )

        if response.is_error:
            raise UpstreamModelError(
                endpoint,
                f"HTTP {response.status_code}",
                response.status_code,
            )

        return result

    async def aclose(self) -> None:
        """Close the pooled HTTP client if one was created."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None


# Global client instance (singleton pattern)
_client: ModelClient | None = None


def get_model_client() -> ModelClient:
    """
    Get the global model client instance.

    Built on first use from the current settings.

    Returns:
        The singleton ModelClient instance.
    """
    global _client
    if _client is None:
        settings = get_settings()
        api_key = (
            settings.moderation_api_key.get_secret_value()
            if settings.moderation_api_key
            else None
        )
        _client = ModelClient(api_key=api_key, timeout=settings.model_timeout_seconds)
    return _client
