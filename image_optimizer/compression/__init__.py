# -*- coding: utf-8 -*-
"""
压缩策略模块 - 统一的图片压缩管理

提供统一的压缩接口，按资源类型和压缩模式选择压缩引擎。
"""

from image_optimizer.compression.manager import CompressionManager
from image_optimizer.compression.config import CompressionConfig
from image_optimizer.compression.format import CompressionMode, MediaType, classify
from image_optimizer.compression.strategy import (
    CompressionStrategy,
    ExternalToolStrategy,
    JpegLosslessStrategy,
    JpegLossyStrategy,
    PngLosslessStrategy,
    SvgLosslessStrategy,
)

__all__ = [
    "CompressionManager",
    "CompressionConfig",
    "CompressionMode",
    "MediaType",
    "classify",
    "CompressionStrategy",
    "ExternalToolStrategy",
    "JpegLosslessStrategy",
    "JpegLossyStrategy",
    "PngLosslessStrategy",
    "SvgLosslessStrategy",
]
