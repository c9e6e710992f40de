# -*- coding: utf-8 -*-
import asyncio
import io
import shutil

import pytest
from PIL import Image, ImageOps

from image_optimizer.compression import manager as manager_module
from image_optimizer.compression.format import CompressionMode, MediaType
from image_optimizer.compression.manager import CompressionManager
from image_optimizer.compression.strategy import (
    CompressionStrategy,
    JpegLosslessStrategy,
    JpegtranStrategy,
    PngLosslessStrategy,
)
from image_optimizer.config import OptimizerConfig
from image_optimizer.exceptions import (
    CompressionError,
    ExternalToolError,
    UnsupportedFormatError,
)
from image_optimizer.hash_calculator import HashCalculator

from tests.conftest import encode, make_image

JPEG_LOSSLESS = (MediaType.JPEG, CompressionMode.LOSSLESS)
JPEG_LOSSY = (MediaType.JPEG, CompressionMode.LOSSY)
PNG_LOSSLESS = (MediaType.PNG, CompressionMode.LOSSLESS)


class ReplacingStrategy(CompressionStrategy):
    def __init__(self, key, replacement: bytes):
        self.media_type, self.mode = key
        self.replacement = replacement

    async def compress(self, content, config):
        return self.replacement


def test_unknown_combination_raises():
    manager = CompressionManager()

    with pytest.raises(UnsupportedFormatError):
        asyncio.run(manager.compress(b"data", MediaType.PNG, CompressionMode.LOSSY))
    with pytest.raises(UnsupportedFormatError):
        asyncio.run(manager.compress(b"data", MediaType.UNSUPPORTED, CompressionMode.LOSSLESS))


def test_default_engines():
    manager = CompressionManager()

    assert isinstance(manager._select_strategy(*PNG_LOSSLESS), PngLosslessStrategy)


def test_external_tool_engines():
    manager = CompressionManager(OptimizerConfig({"use_external_tools": True}))

    assert isinstance(manager._select_strategy(*JPEG_LOSSLESS), JpegtranStrategy)


def test_jpegtran_preferred_when_installed(monkeypatch):
    monkeypatch.setattr(manager_module.shutil, "which", lambda name: "/usr/bin/jpegtran")

    manager = CompressionManager()

    assert isinstance(manager._select_strategy(*JPEG_LOSSLESS), JpegtranStrategy)


def test_pillow_jpeg_reencode_is_not_accepted_as_lossless(monkeypatch):
    monkeypatch.setattr(manager_module.shutil, "which", lambda name: None)
    content = encode(make_image(), "JPEG", quality=90)
    manager = CompressionManager()

    assert isinstance(manager._select_strategy(*JPEG_LOSSLESS), JpegLosslessStrategy)
    assert asyncio.run(manager.compress_jpeg_losslessly(content)) is None


@pytest.mark.skipif(shutil.which("jpegtran") is None, reason="jpegtran not installed")
def test_jpegtran_output_keeps_pixels():
    content = encode(make_image(), "JPEG", quality=90)

    result = asyncio.run(CompressionManager().compress_jpeg_losslessly(content))

    assert result is not None
    assert HashCalculator().is_pixel_identical(content, result)


def test_png_losslessly_keeps_pixels():
    img = make_image()
    content = encode(img, "PNG", compress_level=0)

    result = asyncio.run(CompressionManager().compress_png_losslessly(content))

    assert len(result) < len(content)
    with Image.open(io.BytesIO(result)) as optimized:
        assert optimized.tobytes() == img.tobytes()


def test_lossless_candidate_with_changed_pixels_is_dropped():
    img = make_image()
    manager = CompressionManager()
    manager._strategies[PNG_LOSSLESS] = ReplacingStrategy(
        PNG_LOSSLESS, encode(ImageOps.invert(img), "PNG")
    )

    assert asyncio.run(manager.compress_png_losslessly(encode(img, "PNG"))) is None


def test_lossless_verification_can_be_disabled():
    img = make_image()
    replacement = encode(ImageOps.invert(img), "PNG")
    manager = CompressionManager(OptimizerConfig({"verify_lossless": False}))
    manager._strategies[PNG_LOSSLESS] = ReplacingStrategy(PNG_LOSSLESS, replacement)

    assert asyncio.run(manager.compress_png_losslessly(encode(img, "PNG"))) == replacement


def test_lossy_candidate_of_a_different_picture_fails():
    img = make_image()
    manager = CompressionManager()
    manager._strategies[JPEG_LOSSY] = ReplacingStrategy(
        JPEG_LOSSY, encode(ImageOps.invert(img), "JPEG", quality=85)
    )

    with pytest.raises(CompressionError):
        asyncio.run(manager.compress_jpeg_lossy(encode(img, "JPEG", quality=98)))


def test_lossy_candidate_of_the_same_picture_passes():
    content = encode(make_image(), "JPEG", quality=98)

    result = asyncio.run(CompressionManager().compress_jpeg_lossy(content))

    assert result is not None
    assert len(result) < len(content)


def test_manager_reused_across_event_loops():
    manager = CompressionManager(OptimizerConfig({"max_concurrent_jobs": 1}))
    content = encode(make_image(), "PNG", compress_level=0)

    async def compress_all():
        return await asyncio.gather(
            *(manager.compress_png_losslessly(content) for _ in range(3))
        )

    for _ in range(2):
        results = asyncio.run(compress_all())
        assert all(result is not None for result in results)


def test_svg_losslessly():
    result = asyncio.run(
        CompressionManager().compress_svg_losslessly(b"<svg>\n  <!-- c -->\n  <g/>\n</svg>")
    )

    assert result == b"<svg><g/></svg>"


def test_missing_external_tool():
    manager = CompressionManager(
        OptimizerConfig({"use_external_tools": True, "optipng_path": "/nonexistent/optipng"})
    )

    with pytest.raises(ExternalToolError):
        asyncio.run(manager.compress_png_losslessly(encode(make_image(), "PNG")))
