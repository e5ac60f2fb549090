"""Tests for hosted inference clients and generator settings."""

import base64
import json

import httpx
import pytest

from text2mesh.services.config import (
    DESCRIPTION_MODEL,
    MESH_MODEL,
    PRIMARY_IMAGE_MODEL,
    GeneratorSettings,
    model_endpoint,
)
from text2mesh.services.errors import (
    GenerationServiceError,
    MalformedResponse,
    RemoteServiceRejected,
    RemoteServiceTimeout,
    RemoteServiceUnavailable,
)
from text2mesh.services.huggingface import (
    INFERENCE_OPTIONS,
    HuggingFaceImageDescriber,
    HuggingFaceImageTo3D,
    HuggingFaceTextToImage,
)

ENDPOINT = "https://inference.test/models/some-model"


def _transport(handler):
    return httpx.MockTransport(handler)


class TestGeneratorSettings:
    """Environment driven configuration."""

    def test_defaults(self, monkeypatch):
        for name in (
            "HUGGING_FACE_API_TOKEN",
            "TEXT2MESH_PRIMARY_IMAGE_ENDPOINT",
            "TEXT2MESH_MESH_ENDPOINT",
            "TEXT2MESH_TIMEOUT_MS",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = GeneratorSettings.from_env()
        assert settings.api_token == ""
        assert settings.primary_image_endpoint == model_endpoint(PRIMARY_IMAGE_MODEL)
        assert settings.mesh_endpoint == model_endpoint(MESH_MODEL)
        assert settings.description_endpoint.endswith(DESCRIPTION_MODEL)
        assert settings.timeout_ms == 60000
        assert settings.timeout_seconds == 60.0
        assert not settings.is_remote_configured()

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("HUGGING_FACE_API_TOKEN", "hf_test")
        monkeypatch.setenv("TEXT2MESH_MESH_ENDPOINT", "http://localhost:9000/mesh")
        monkeypatch.setenv("TEXT2MESH_TIMEOUT_MS", "2500")

        settings = GeneratorSettings.from_env()
        assert settings.is_remote_configured()
        assert settings.mesh_endpoint == "http://localhost:9000/mesh"
        assert settings.timeout_seconds == 2.5

    def test_client_from_settings(self):
        settings = GeneratorSettings(api_token="hf_abc", timeout_ms=1500)
        client = HuggingFaceTextToImage.from_settings(ENDPOINT, settings)
        assert client.endpoint == ENDPOINT
        assert client.api_token == "hf_abc"
        assert client.timeout == 1.5


class TestTextToImage:
    """Text-to-image client."""

    @pytest.mark.asyncio
    async def test_request_shape(self):
        """Prompt, parameters and options are posted as JSON with a bearer token."""
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, content=b"\x89PNG fake")

        client = HuggingFaceTextToImage(ENDPOINT, api_token="hf_x", transport=_transport(handler))
        data = await client.generate("a vase", {"num_inference_steps": 30})

        assert data == b"\x89PNG fake"
        assert seen["auth"] == "Bearer hf_x"
        assert seen["body"]["inputs"] == "a vase"
        assert seen["body"]["parameters"] == {"num_inference_steps": 30}
        assert seen["body"]["options"] == INFERENCE_OPTIONS

    @pytest.mark.asyncio
    async def test_no_token_no_auth_header(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, content=b"img")

        client = HuggingFaceTextToImage(ENDPOINT, transport=_transport(handler))
        await client.generate("a vase")
        assert seen["auth"] is None

    @pytest.mark.asyncio
    async def test_rejected_status(self):
        def handler(request):
            return httpx.Response(503, text="Model is currently loading")

        client = HuggingFaceTextToImage(ENDPOINT, transport=_transport(handler))
        with pytest.raises(RemoteServiceRejected) as exc_info:
            await client.generate("a vase")
        assert exc_info.value.status_code == 503
        assert exc_info.value.error_type == "rejected"

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = HuggingFaceTextToImage(ENDPOINT, transport=_transport(handler))
        with pytest.raises(RemoteServiceUnavailable) as exc_info:
            await client.generate("a vase")
        assert exc_info.value.error_type == "unavailable"

    @pytest.mark.asyncio
    async def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        client = HuggingFaceTextToImage(ENDPOINT, transport=_transport(handler))
        with pytest.raises(RemoteServiceTimeout):
            await client.generate("a vase")

    @pytest.mark.asyncio
    async def test_empty_body(self):
        def handler(request):
            return httpx.Response(200, content=b"")

        client = HuggingFaceTextToImage(ENDPOINT, transport=_transport(handler))
        with pytest.raises(MalformedResponse):
            await client.generate("a vase")

    def test_errors_share_base(self):
        for cls in (RemoteServiceRejected, RemoteServiceTimeout, MalformedResponse):
            assert issubclass(cls, GenerationServiceError)


class TestImageTo3D:
    """Image-to-3D client."""

    @pytest.mark.asyncio
    async def test_image_is_base64(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, content=b"v 0 0 0\n")

        client = HuggingFaceImageTo3D(ENDPOINT, transport=_transport(handler))
        data = await client.generate(b"image-bytes", {"format": "obj"})

        assert data == b"v 0 0 0\n"
        assert base64.b64decode(seen["body"]["inputs"]) == b"image-bytes"
        assert seen["body"]["parameters"] == {"format": "obj"}


class TestImageDescriber:
    """Captioning client."""

    @pytest.mark.asyncio
    async def test_caption(self):
        seen = {}

        def handler(request):
            seen["content_type"] = request.headers.get("Content-Type")
            seen["body"] = request.content
            return httpx.Response(200, json=[{"generated_text": " a wooden chair "}])

        client = HuggingFaceImageDescriber(ENDPOINT, transport=_transport(handler))
        assert await client.describe(b"png") == "a wooden chair"
        assert seen["content_type"] == "application/octet-stream"
        assert seen["body"] == b"png"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {"error": "bad"},
            [],
            [{"generated_text": "   "}],
            [{"label": "chair"}],
        ],
    )
    async def test_unusable_caption(self, payload):
        def handler(request):
            return httpx.Response(200, json=payload)

        client = HuggingFaceImageDescriber(ENDPOINT, transport=_transport(handler))
        with pytest.raises(MalformedResponse):
            await client.describe(b"png")

    @pytest.mark.asyncio
    async def test_non_json_caption(self):
        def handler(request):
            return httpx.Response(200, content=b"not json")

        client = HuggingFaceImageDescriber(ENDPOINT, transport=_transport(handler))
        with pytest.raises(MalformedResponse):
            await client.describe(b"png")
