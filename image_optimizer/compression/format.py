# -*- coding: utf-8 -*-
"""
资源类型枚举和分类工具
"""

from enum import Enum

from image_optimizer.models import AssetRecord


class MediaType(Enum):
    """可优化的资源类型"""

    JPEG = "jpeg"
    PNG = "png"
    SVG = "svg"
    UNSUPPORTED = "unsupported"

    @property
    def is_textual(self) -> bool:
        return self is MediaType.SVG

    @property
    def body_encoding(self) -> str:
        """文本形式的内容还原为字节时使用的编码"""
        return "utf-8" if self.is_textual else "latin-1"


class CompressionMode(Enum):
    """压缩模式"""

    LOSSLESS = "lossless"
    LOSSY = "lossy"


def classify(entry: AssetRecord) -> MediaType:
    """
    判断资源类型

    按 JPEG、PNG、SVG 的固定顺序匹配，先匹配者优先，
    因此同时标记为SVG且类型为 image/jpeg 的资源按 JPEG 处理。

    Args:
        entry: 资源记录

    Returns:
        资源类型，不可优化时返回 MediaType.UNSUPPORTED
    """
    if not entry.is_image:
        return MediaType.UNSUPPORTED

    if entry.content_type == "image/jpeg":
        return MediaType.JPEG

    if entry.content_type == "image/png":
        return MediaType.PNG

    if entry.is_svg:
        return MediaType.SVG

    return MediaType.UNSUPPORTED


def can_be_optimized(entry: AssetRecord) -> bool:
    """资源类型是否可以优化"""
    return classify(entry) is not MediaType.UNSUPPORTED
