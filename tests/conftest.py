# -*- coding: utf-8 -*-
import io
from typing import Dict, List, Optional, Tuple, Union

import pytest
from PIL import Image

from image_optimizer.compression.format import CompressionMode, MediaType
from image_optimizer.models import AssetRecord

Key = Tuple[MediaType, CompressionMode]


class FakeCodec:
    """按 (格式, 模式) 返回预设结果的压缩引擎"""

    def __init__(self, results: Dict[Key, Union[bytes, None, Exception]]):
        self.results = results
        self.calls: List[Tuple[bytes, MediaType, CompressionMode]] = []

    async def compress(
        self, content: bytes, media_type: MediaType, mode: CompressionMode
    ) -> Optional[bytes]:
        self.calls.append((content, media_type, mode))
        result = self.results.get((media_type, mode))
        if isinstance(result, Exception):
            raise result
        return result


def make_image(size=(256, 256)) -> Image.Image:
    gradient = Image.linear_gradient("L").resize(size)
    noise = Image.effect_noise(size, 48)
    return Image.merge("RGB", (gradient, noise, gradient.transpose(Image.Transpose.ROTATE_90)))


def encode(img: Image.Image, fmt: str, **kwargs) -> bytes:
    output = io.BytesIO()
    img.save(output, format=fmt, **kwargs)
    return output.getvalue()


@pytest.fixture
def jpeg_entry():
    return AssetRecord(
        url="http://example.com/photo.jpg",
        content_type="image/jpeg",
        is_image=True,
        body=b"\xff" * 10000,
    )


@pytest.fixture
def png_entry():
    return AssetRecord(
        url="http://example.com/logo.png",
        content_type="image/png",
        is_image=True,
        body=b"\x89" * 10000,
    )


@pytest.fixture
def svg_entry():
    return AssetRecord(
        url="http://example.com/icon.svg",
        content_type="image/svg+xml",
        is_image=True,
        is_svg=True,
        body="<svg>" + " " * 4000 + "</svg>",
    )
