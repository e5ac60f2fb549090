"""Tests for the preview image stage and its placeholder fallback."""

import asyncio
import io
from unittest.mock import AsyncMock

import pytest
from PIL import Image

from text2mesh.pipeline.chain import UNEXPECTED_ERROR, FallbackChain, Stage
from text2mesh.pipeline.image_stage import (
    PRIMARY_IMAGE_PARAMS,
    SECONDARY_IMAGE_PARAMS,
    ImageStage,
    decode_raster,
    enhance_image_prompt,
    enhance_prompt,
)
from text2mesh.pipeline.placeholder import (
    EXCERPT_LENGTH,
    placeholder_image,
    prompt_excerpt,
    render_placeholder_svg,
)
from text2mesh.pipeline.types import ImageTier
from text2mesh.services.config import DEFAULT_TIMEOUT_SECONDS
from text2mesh.services.errors import (
    MalformedResponse,
    RemoteServiceRejected,
    RemoteServiceUnavailable,
)


def _png_bytes(size=(8, 8)):
    buffer = io.BytesIO()
    Image.new("RGB", size, (200, 40, 40)).save(buffer, format="PNG")
    return buffer.getvalue()


def _service(result=None, error=None):
    service = AsyncMock()
    if error is not None:
        service.generate.side_effect = error
    else:
        service.generate.return_value = result
    return service


class TestPlaceholder:
    """Deterministic SVG placeholder."""

    def test_excerpt_is_first_twenty_characters(self):
        prompt = "an extremely long description of a teapot"
        svg = render_placeholder_svg(prompt)
        assert prompt[:EXCERPT_LENGTH] + "..." in svg
        assert prompt[: EXCERPT_LENGTH + 1] not in svg

    def test_short_prompt_kept_whole(self):
        assert "vase..." in render_placeholder_svg("vase")

    def test_markup_is_escaped(self):
        svg = render_placeholder_svg("<b>bold</b> & co")
        assert "<b>" not in svg
        assert "&lt;b&gt;" in svg

    def test_deterministic(self):
        assert placeholder_image("a chair") == placeholder_image("a chair")

    def test_placeholder_tier_and_type(self):
        image = placeholder_image("a chair")
        assert image.tier == ImageTier.PLACEHOLDER
        assert image.is_placeholder
        assert image.content_type == "image/svg+xml"
        assert image.extension == "svg"
        assert image.data.startswith(b"<svg")

    def test_whitespace_collapsed(self):
        assert prompt_excerpt("  a\n\nchair  ") == "a chair"


class TestPromptDecoration:
    """Prompt enhancement helpers."""

    def test_image_prompt_embeds_prompt(self):
        text = enhance_image_prompt("a red car")
        assert text.startswith("professional 3D concept art of a red car")

    def test_enhance_prompt_appends_hints(self):
        text = enhance_prompt("a red car")
        assert text.startswith("a red car, ")
        assert "highly detailed 3D model" in text
        assert "precise craftsmanship" in text


class TestDecodeRaster:
    """Raster validation via Pillow."""

    def test_png(self):
        image = decode_raster(_png_bytes(), ImageTier.PRIMARY)
        assert image.content_type == "image/png"
        assert image.extension == "png"

    def test_garbage(self):
        with pytest.raises(MalformedResponse):
            decode_raster(b"{\"error\": \"loading\"}", ImageTier.PRIMARY)


class TestImageStage:
    """Tier demotion."""

    @pytest.mark.asyncio
    async def test_primary_success(self):
        png = _png_bytes()
        primary = _service(png)
        secondary = _service(png)

        outcome = await ImageStage(primary, secondary).run("a red car")

        assert outcome.value.tier == ImageTier.PRIMARY
        assert outcome.value.data == png
        assert outcome.failures == ()
        secondary.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_primary_parameters(self):
        primary = _service(_png_bytes())
        await ImageStage(primary).run("a red car")

        prompt, params = primary.generate.call_args.args
        assert "a red car" in prompt
        assert params["width"] == PRIMARY_IMAGE_PARAMS["width"] == 1024
        assert params["num_inference_steps"] == 50
        assert "negative_prompt" in params
        assert 0 <= params["seed"] <= 999999

    @pytest.mark.asyncio
    async def test_primary_failure_uses_secondary(self):
        primary = _service(error=RemoteServiceRejected("503", status_code=503))
        secondary = _service(_png_bytes())

        outcome = await ImageStage(primary, secondary).run("a red car")

        assert outcome.value.tier == ImageTier.SECONDARY
        assert outcome.failures == (("primary", "rejected"),)
        _, params = secondary.generate.call_args.args
        assert params == SECONDARY_IMAGE_PARAMS

    @pytest.mark.asyncio
    async def test_malformed_primary_uses_secondary(self):
        primary = _service(b"not an image")
        secondary = _service(_png_bytes())

        outcome = await ImageStage(primary, secondary).run("a red car")

        assert outcome.value.tier == ImageTier.SECONDARY
        assert outcome.failures == (("primary", "malformed"),)

    @pytest.mark.asyncio
    async def test_both_fail_gives_placeholder(self):
        prompt = "a beautifully carved wooden chess set"
        primary = _service(error=RemoteServiceUnavailable("down"))
        secondary = _service(error=RemoteServiceUnavailable("down"))

        image = await ImageStage(primary, secondary).generate_image(prompt)

        assert image.tier == ImageTier.PLACEHOLDER
        assert image.content_type == "image/svg+xml"
        assert prompt[:20].encode("utf-8") in image.data

    @pytest.mark.asyncio
    async def test_no_services_gives_placeholder(self):
        outcome = await ImageStage().run("a vase")
        assert outcome.value.is_placeholder
        assert outcome.stage == "placeholder"
        assert not outcome.demoted

    @pytest.mark.asyncio
    async def test_slow_primary_times_out(self):
        async def slow(prompt, params):
            await asyncio.sleep(5)
            return _png_bytes()

        primary = AsyncMock()
        primary.generate.side_effect = slow
        secondary = _service(_png_bytes())

        outcome = await ImageStage(primary, secondary, timeout=0.05).run("a vase")

        assert outcome.value.tier == ImageTier.SECONDARY
        assert outcome.failures == (("primary", "timeout"),)

    @pytest.mark.asyncio
    async def test_connection_errors_give_placeholder(self):
        """Raw network errors from a service demote like service errors."""
        primary = _service(error=ConnectionError("reset by peer"))
        secondary = _service(error=ConnectionError("reset by peer"))

        outcome = await ImageStage(primary, secondary).run("a red car")

        assert outcome.value.tier == ImageTier.PLACEHOLDER
        assert outcome.failures == (("primary", "unexpected"), ("secondary", "unexpected"))

    @pytest.mark.asyncio
    async def test_connection_error_falls_through_to_secondary(self):
        primary = _service(error=OSError("network unreachable"))
        secondary = _service(_png_bytes())

        image = await ImageStage(primary, secondary).generate_image("a red car")

        assert image.tier == ImageTier.SECONDARY
        secondary.generate.assert_awaited_once()

    def test_default_timeout_ceiling(self):
        """Stages built without settings still carry a ceiling."""
        assert ImageStage().timeout == DEFAULT_TIMEOUT_SECONDS == 60.0
        assert ImageStage(timeout=None).timeout is None


class TestFallbackChain:
    """Generic chain behaviour."""

    @pytest.mark.asyncio
    async def test_unexpected_error_demotes_to_next_tier(self):
        """Exceptions outside the service taxonomy still demote."""

        class Broken(Stage):
            name = "broken"

            async def attempt(self, payload):
                raise RuntimeError("bug")

        class Working(Stage):
            name = "working"

            async def attempt(self, payload):
                return f"ok:{payload}"

        class Terminal(Stage):
            name = "terminal"

            async def attempt(self, payload):
                return payload

        outcome = await FallbackChain([Broken(), Working()], Terminal()).run("x")

        assert outcome.value == "ok:x"
        assert outcome.stage == "working"
        assert outcome.failures == (("broken", UNEXPECTED_ERROR),)

    @pytest.mark.asyncio
    async def test_cancellation_is_not_a_tier_failure(self):
        class Cancelled(Stage):
            name = "cancelled"

            async def attempt(self, payload):
                raise asyncio.CancelledError()

        class Terminal(Stage):
            name = "terminal"

            async def attempt(self, payload):
                return payload

        with pytest.raises(asyncio.CancelledError):
            await FallbackChain([Cancelled()], Terminal()).run("x")

    @pytest.mark.asyncio
    async def test_each_stage_attempted_once(self):
        calls = []

        class Failing(Stage):
            def __init__(self, name):
                self.name = name

            async def attempt(self, payload):
                calls.append(self.name)
                raise RemoteServiceUnavailable("down")

        class Terminal(Stage):
            name = "terminal"

            async def attempt(self, payload):
                return "fallback"

        outcome = await FallbackChain([Failing("a"), Failing("b")], Terminal()).run("x")

        assert calls == ["a", "b"]
        assert outcome.value == "fallback"
        assert outcome.stage == "terminal"
        assert outcome.demoted
