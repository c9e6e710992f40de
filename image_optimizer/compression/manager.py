# -*- coding: utf-8 -*-
"""
压缩管理器模块
"""

import asyncio
import logging
import shutil
import time
import weakref
from typing import Dict, List, Optional, Tuple

from image_optimizer.compression.config import CompressionConfig
from image_optimizer.compression.format import CompressionMode, MediaType
from image_optimizer.compression.strategy import (
    CompressionStrategy,
    JpegLosslessStrategy,
    JpegLossyStrategy,
    JpegoptimStrategy,
    JpegtranStrategy,
    OptipngStrategy,
    PngLosslessStrategy,
    SvgLosslessStrategy,
)
from image_optimizer.config import OptimizerConfig
from image_optimizer.exceptions import CompressionError, UnsupportedFormatError
from image_optimizer.hash_calculator import HashCalculator

logger = logging.getLogger(__name__)

StrategyKey = Tuple[MediaType, CompressionMode]


class CompressionManager:
    """统一压缩管理器，负责选择压缩引擎并执行压缩"""

    def __init__(self, config: Optional[OptimizerConfig] = None):
        """
        初始化压缩管理器

        Args:
            config: 优化器配置对象
        """
        self.config = config if config is not None else OptimizerConfig()
        self.compression_config = CompressionConfig.from_optimizer_config(self.config)
        self.hash_calculator = HashCalculator()
        # 信号量绑定事件循环，每个循环各自一个
        self._semaphores = weakref.WeakKeyDictionary()

        strategies = self._create_strategies()
        self._strategies: Dict[StrategyKey, CompressionStrategy] = {
            (s.media_type, s.mode): s for s in strategies
        }

        logger.debug(
            f"压缩管理器初始化完成，引擎: {', '.join(s.name for s in strategies)}"
        )

    def _create_strategies(self) -> List[CompressionStrategy]:
        """
        初始化压缩策略

        jpegtran 是真正无损的JPEG引擎，未启用外部工具时只要能找到它也优先使用。
        """
        config = self.compression_config
        if config.use_external_tools:
            return [
                JpegtranStrategy(),
                JpegoptimStrategy(),
                OptipngStrategy(),
                SvgLosslessStrategy(),
            ]

        if shutil.which(config.jpegtran_path):
            jpeg_lossless: CompressionStrategy = JpegtranStrategy()
        else:
            logger.debug("未找到 jpegtran，JPEG无损压缩使用Pillow重新编码")
            jpeg_lossless = JpegLosslessStrategy()

        return [
            jpeg_lossless,
            JpegLossyStrategy(),
            PngLosslessStrategy(),
            SvgLosslessStrategy(),
        ]

    def _get_semaphore(self) -> asyncio.Semaphore:
        loop = asyncio.get_running_loop()
        semaphore = self._semaphores.get(loop)
        if semaphore is None:
            semaphore = asyncio.Semaphore(self.compression_config.max_concurrent_jobs)
            self._semaphores[loop] = semaphore
        return semaphore

    async def compress(
        self, content: bytes, media_type: MediaType, mode: CompressionMode
    ) -> Optional[bytes]:
        """
        统一压缩接口

        Args:
            content: 原始内容
            media_type: 资源类型
            mode: 压缩模式

        Returns:
            压缩后的内容，没有可用结果（包括无损结果像素不一致）时返回 None

        Raises:
            UnsupportedFormatError: 没有对应的压缩引擎
            CompressionError: 压缩失败或有损结果与原图差异过大
        """
        strategy = self._select_strategy(media_type, mode)

        logger.debug(f"开始 {media_type.value} {mode.value} 压缩 ({strategy.name})")
        start_time = time.monotonic()

        async with self._get_semaphore():
            result = await strategy.compress(content, self.compression_config)

        if result is not None and media_type in (MediaType.JPEG, MediaType.PNG):
            result = await self._verify(content, result, mode)

        elapsed_ms = (time.monotonic() - start_time) * 1000
        logger.debug(f"{media_type.value} 压缩耗时 {elapsed_ms:.0f} ms")
        return result

    async def compress_jpeg_losslessly(self, content: bytes) -> Optional[bytes]:
        return await self.compress(content, MediaType.JPEG, CompressionMode.LOSSLESS)

    async def compress_jpeg_lossy(self, content: bytes) -> Optional[bytes]:
        return await self.compress(content, MediaType.JPEG, CompressionMode.LOSSY)

    async def compress_png_losslessly(self, content: bytes) -> Optional[bytes]:
        return await self.compress(content, MediaType.PNG, CompressionMode.LOSSLESS)

    async def compress_svg_losslessly(self, content: bytes) -> Optional[bytes]:
        return await self.compress(content, MediaType.SVG, CompressionMode.LOSSLESS)

    def _select_strategy(
        self, media_type: MediaType, mode: CompressionMode
    ) -> CompressionStrategy:
        """
        根据格式和模式选择压缩策略

        Args:
            media_type: 资源类型
            mode: 压缩模式

        Returns:
            压缩策略对象
        """
        strategy = self._strategies.get((media_type, mode))
        if strategy is None:
            raise UnsupportedFormatError(
                f"没有可用的压缩引擎: {media_type.value} {mode.value}"
            )
        return strategy

    async def _verify(
        self, original: bytes, candidate: bytes, mode: CompressionMode
    ) -> Optional[bytes]:
        """
        校验位图压缩结果

        无损结果必须与原图像素完全一致，否则丢弃；
        有损结果的感知哈希差异超过阈值时视为压缩失败。
        """
        config = self.compression_config

        if mode is CompressionMode.LOSSLESS:
            if not config.verify_lossless:
                return candidate
            identical = await asyncio.to_thread(
                self.hash_calculator.is_pixel_identical, original, candidate
            )
            if not identical:
                logger.debug("无损压缩结果像素与原图不一致，丢弃")
                return None
            return candidate

        if config.verify_lossy:
            same = await asyncio.to_thread(
                self.hash_calculator.is_same_image,
                original,
                candidate,
                config.lossy_hash_tolerance,
            )
            if not same:
                raise CompressionError("有损压缩结果与原图差异过大")
        return candidate
