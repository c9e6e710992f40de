# -*- coding: utf-8 -*-
"""
图片优化模块：判断资源是否值得重新压缩，并记录压缩前后的大小
"""

import asyncio
import logging
from typing import Iterable, List, Optional, Protocol, Tuple

from image_optimizer.compression.format import CompressionMode, MediaType, classify
from image_optimizer.compression.manager import CompressionManager
from image_optimizer.config import OptimizerConfig
from image_optimizer.models import (
    AssetRecord,
    OptimizationReport,
    StageOutcome,
    StageResult,
    encode_body,
)
from image_optimizer.policy import StagePipeline

logger = logging.getLogger(__name__)

# 每种格式依次执行的压缩轮次，每一轮都压缩原始内容
STAGE_PLAN = {
    MediaType.JPEG: (CompressionMode.LOSSLESS, CompressionMode.LOSSY),
    MediaType.PNG: (CompressionMode.LOSSLESS,),
    MediaType.SVG: (CompressionMode.LOSSLESS,),
}


class Codec(Protocol):
    """压缩引擎接口"""

    async def compress(
        self, content: bytes, media_type: MediaType, mode: CompressionMode
    ) -> Optional[bytes]:
        ...


class ImageOptimizer:
    """图片优化器"""

    def __init__(
        self,
        config: Optional[OptimizerConfig] = None,
        manager: Optional[Codec] = None,
    ):
        """
        初始化图片优化器

        Args:
            config: 优化器配置
            manager: 压缩引擎，默认使用 CompressionManager
        """
        self.config = config if config is not None else OptimizerConfig()
        self.manager = manager if manager is not None else CompressionManager(self.config)

    async def optimize(self, entry: AssetRecord) -> AssetRecord:
        """
        尝试优化资源，任何内部错误都不会抛出

        Args:
            entry: 资源记录

        Returns:
            同一个资源记录，有压缩结果被接受时附带 optimization 子记录
        """
        report = await self.run(entry)
        return report.entry

    async def optimize_many(self, entries: Iterable[AssetRecord]) -> List[AssetRecord]:
        """并发优化多个互相独立的资源"""
        return list(await asyncio.gather(*(self.optimize(entry) for entry in entries)))

    async def run(self, entry: AssetRecord) -> OptimizationReport:
        """
        优化资源并返回完整的诊断结果

        Args:
            entry: 资源记录

        Returns:
            优化结果，包含整体结果原因和每一轮的诊断信息
        """
        media_type = classify(entry)

        if not entry.has_body:
            logger.debug(f"没有可用内容，跳过优化: {entry.url}")
            return OptimizationReport(entry, media_type, StageOutcome.NO_BODY)

        if media_type is MediaType.UNSUPPORTED:
            logger.debug(f"文件类型 {entry.content_type} 不是可优化的图片: {entry.url}")
            return OptimizationReport(entry, media_type, StageOutcome.UNSUPPORTED_FORMAT)

        try:
            raw = encode_body(entry.body, media_type.body_encoding)
        except UnicodeError as e:
            logger.warning(f"无法还原 {entry.url} 的原始内容: {e}")
            return OptimizationReport(entry, media_type, StageOutcome.CODEC_FAILURE)

        original_size = (
            entry.uncompressed_size if entry.uncompressed_size is not None else len(raw)
        )
        logger.debug(f"尝试优化 {entry.url}，类型 {media_type.value}，当前大小 {original_size} 字节")

        pipeline = StagePipeline(original_size)
        stages: List[StageResult] = []
        optimized_text: Optional[str] = None

        for mode in STAGE_PLAN[media_type]:
            stage, text = await self._run_stage(raw, media_type, mode)
            if pipeline.advance(mode, stage.candidate_size):
                stage.outcome = StageOutcome.ACCEPTED
                if text is not None:
                    optimized_text = text
            stages.append(stage)

        record = pipeline.finish()
        if pipeline.accepted:
            if media_type is MediaType.SVG:
                record.body_after_optimization = optimized_text
            entry.optimization = record

        return OptimizationReport(
            entry, media_type, _overall_outcome(stages), record, stages
        )

    async def _run_stage(
        self, raw: bytes, media_type: MediaType, mode: CompressionMode
    ) -> Tuple[StageResult, Optional[str]]:
        """
        执行一轮压缩

        Returns:
            (本轮诊断信息, SVG压缩后的文本)
        """
        try:
            candidate = await self.manager.compress(raw, media_type, mode)
            text = candidate.decode("utf-8") if candidate and media_type.is_textual else None
        except Exception as e:
            logger.warning(f"{media_type.value} {mode.value} 压缩失败: {e}")
            return StageResult(mode, StageOutcome.CODEC_FAILURE, error=str(e)), None

        if not candidate:
            logger.debug(f"{media_type.value} {mode.value} 压缩没有结果")
            return StageResult(mode, StageOutcome.NO_RESULT), None

        logger.debug(f"{media_type.value} {mode.value} 压缩完成，新大小 {len(candidate)} 字节")
        return StageResult(mode, StageOutcome.INSUFFICIENT_GAIN, len(candidate)), text


def _overall_outcome(stages: List[StageResult]) -> StageOutcome:
    outcomes = {stage.outcome for stage in stages}
    for outcome in (
        StageOutcome.ACCEPTED,
        StageOutcome.INSUFFICIENT_GAIN,
        StageOutcome.CODEC_FAILURE,
    ):
        if outcome in outcomes:
            return outcome
    return StageOutcome.NO_RESULT
