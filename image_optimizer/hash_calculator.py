# -*- coding: utf-8 -*-
"""
图片比对模块，用于校验压缩结果
"""

import io
import logging

import imagehash
from PIL import Image

from image_optimizer.exceptions import HashCalculationError

logger = logging.getLogger(__name__)


class HashCalculator:
    """哈希计算器"""

    def calculate_perceptual_hash(self, content: bytes) -> imagehash.ImageHash:
        """
        计算感知哈希

        Args:
            content: 图片内容

        Returns:
            phash 值
        """
        try:
            with Image.open(io.BytesIO(content)) as img:
                img.load()
                return imagehash.phash(img)
        except Exception as e:
            logger.error(f"计算感知哈希失败: {e}")
            raise HashCalculationError(f"计算感知哈希失败: {e}") from e

    def is_same_image(self, original: bytes, candidate: bytes, tolerance: int) -> bool:
        """
        判断压缩结果与原图是否为同一张图片

        Args:
            original: 原图内容
            candidate: 压缩结果
            tolerance: 允许的汉明距离

        Returns:
            是否为同一张图片
        """
        distance = self.calculate_perceptual_hash(original) - self.calculate_perceptual_hash(
            candidate
        )
        if distance > tolerance:
            logger.debug(f"压缩结果与原图差异过大，汉明距离: {distance}, 阈值: {tolerance}")
            return False
        return True

    def is_pixel_identical(self, original: bytes, candidate: bytes) -> bool:
        """
        判断两张图片解码后的像素是否完全一致

        Args:
            original: 原图内容
            candidate: 压缩结果

        Returns:
            像素是否完全一致
        """
        try:
            with Image.open(io.BytesIO(original)) as a, Image.open(io.BytesIO(candidate)) as b:
                if a.size != b.size:
                    return False
                if a.mode != b.mode:
                    a, b = a.convert("RGBA"), b.convert("RGBA")
                return a.tobytes() == b.tobytes()
        except Exception as e:
            logger.error(f"比较像素失败: {e}")
            raise HashCalculationError(f"比较像素失败: {e}") from e
