"""Hugging Face hosted inference clients for image and mesh generation."""

import base64
import logging
from typing import Any, Optional

import httpx

from .config import GeneratorSettings
from .errors import (
    MalformedResponse,
    RemoteServiceRejected,
    RemoteServiceTimeout,
    RemoteServiceUnavailable,
)

logger = logging.getLogger(__name__)

# Ask the hosted API to load cold models instead of failing fast
INFERENCE_OPTIONS = {"wait_for_model": True, "use_cache": False}


class HuggingFaceClient:
    """Thin async client for a single hosted inference endpoint.

    Transport failures, timeouts and non-success statuses are translated into
    the generation error taxonomy so callers never see raw httpx exceptions.
    """

    def __init__(
        self,
        endpoint: str,
        api_token: str = "",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            endpoint: Full inference URL
            api_token: Bearer token; requests are sent unauthenticated when empty
            timeout: Per-request ceiling in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self.endpoint = endpoint
        self.api_token = api_token
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, endpoint: str, settings: GeneratorSettings, **kwargs: Any):
        return cls(
            endpoint=endpoint,
            api_token=settings.api_token,
            timeout=settings.timeout_seconds,
            **kwargs,
        )

    def _headers(self, content_type: str = "application/json") -> dict:
        headers = {"Content-Type": content_type}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    async def _post(self, **kwargs: Any) -> httpx.Response:
        """POST to the endpoint and map failures to the error taxonomy."""
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                transport=self.transport,
            ) as client:
                response = await client.post(self.endpoint, **kwargs)
        except httpx.TimeoutException as e:
            raise RemoteServiceTimeout(f"{self.endpoint} timed out after {self.timeout}s") from e
        except httpx.RequestError as e:
            raise RemoteServiceUnavailable(f"{self.endpoint} unreachable: {e}") from e

        if response.status_code >= 400:
            raise RemoteServiceRejected(
                f"{self.endpoint} answered {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        if not response.content:
            raise MalformedResponse(f"{self.endpoint} returned an empty body")
        return response


class HuggingFaceTextToImage(HuggingFaceClient):
    """Text-to-image diffusion endpoint."""

    async def generate(self, prompt: str, params: Optional[dict] = None) -> bytes:
        """Generate an image; returns the raw image bytes."""
        logger.debug(f"Text-to-image request to {self.endpoint}: {prompt[:200]}...")
        response = await self._post(
            headers=self._headers(),
            json={
                "inputs": prompt,
                "parameters": params or {},
                "options": INFERENCE_OPTIONS,
            },
        )
        return response.content


class HuggingFaceImageTo3D(HuggingFaceClient):
    """Image-conditioned 3D reconstruction endpoint."""

    async def generate(self, image_bytes: bytes, params: Optional[dict] = None) -> bytes:
        """Reconstruct a mesh from an image; returns the raw mesh payload."""
        logger.debug(f"Image-to-3D request to {self.endpoint} ({len(image_bytes)} bytes)")
        response = await self._post(
            headers=self._headers(),
            json={
                "inputs": base64.b64encode(image_bytes).decode("utf-8"),
                "parameters": params or {},
                "options": INFERENCE_OPTIONS,
            },
        )
        return response.content


class HuggingFaceImageDescriber(HuggingFaceClient):
    """Image captioning endpoint."""

    async def describe(self, image_bytes: bytes) -> str:
        """Caption an image; returns the generated text."""
        response = await self._post(
            headers=self._headers("application/octet-stream"),
            content=image_bytes,
        )
        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponse(f"{self.endpoint} returned non-JSON caption") from e

        if isinstance(payload, list) and payload and isinstance(payload[0], dict):
            text = payload[0].get("generated_text")
            if isinstance(text, str) and text.strip():
                return text.strip()
        raise MalformedResponse(f"{self.endpoint} returned no caption: {str(payload)[:200]}")
