# -*- coding: utf-8 -*-
"""
压缩收益判断与多轮压缩结果选择策略
"""

import logging
from enum import Enum
from typing import Optional

from image_optimizer.compression.format import CompressionMode
from image_optimizer.exceptions import ImageOptimizerError
from image_optimizer.models import OptimizationRecord, OptimizationStatus

logger = logging.getLogger(__name__)

# 超过2KB，或超过20%且不少于100字节，才认为值得保留
GAIN_ABSOLUTE_THRESHOLD = 2048
GAIN_RATIO_THRESHOLD = 0.2
GAIN_MINIMUM_BYTES = 100


def gain_is_enough(old_size: int, new_size: int) -> bool:
    """
    判断压缩收益是否足够

    Args:
        old_size: 原始大小（字节）
        new_size: 压缩后大小（字节）

    Returns:
        是否接受压缩结果
    """
    if old_size <= 0:
        return False

    gain = old_size - new_size
    ratio = gain / old_size
    return gain > GAIN_ABSOLUTE_THRESHOLD or (
        ratio > GAIN_RATIO_THRESHOLD and gain > GAIN_MINIMUM_BYTES
    )


class PipelineState(Enum):
    """单个资源的压缩流程状态"""

    INIT = "init"
    LOSSLESS_DONE = "lossless_done"
    LOSSY_DONE = "lossy_done"


class StagePipeline:
    """
    多轮压缩的状态机：INIT -> LOSSLESS_DONE -> LOSSY_DONE

    每一轮都和原始大小比较。有损结果只有在无损结果未被接受、
    或严格更小时才成为最佳结果，相等时保留无损结果。
    """

    def __init__(self, original_size: int):
        """
        初始化压缩流程

        Args:
            original_size: 原始资源大小（字节）
        """
        self.original_size = original_size
        self.state = PipelineState.INIT
        self.record = OptimizationRecord()

    def advance(self, mode: CompressionMode, new_size: Optional[int]) -> bool:
        """
        完成一轮压缩并推进状态

        Args:
            mode: 本轮压缩模式
            new_size: 候选结果大小，没有候选结果时为 None

        Returns:
            本轮结果是否被接受
        """
        if mode is CompressionMode.LOSSLESS:
            self._transition(PipelineState.INIT, PipelineState.LOSSLESS_DONE)
            return new_size is not None and self._accept_lossless(new_size)

        self._transition(PipelineState.LOSSLESS_DONE, PipelineState.LOSSY_DONE)
        return new_size is not None and self._accept_lossy(new_size)

    def finish(self) -> OptimizationRecord:
        """
        结束流程

        Returns:
            优化子记录，没有任何一轮被接受时状态为 REJECTED
        """
        if self.record.status is OptimizationStatus.NOT_ATTEMPTED:
            self.record.status = OptimizationStatus.REJECTED
        return self.record

    @property
    def accepted(self) -> bool:
        return self.record.status is OptimizationStatus.ACCEPTED

    def _transition(self, expected: PipelineState, target: PipelineState) -> None:
        if self.state is not expected:
            raise ImageOptimizerError(
                f"无效的压缩流程状态转换: {self.state.value} -> {target.value}"
            )
        self.state = target

    def _accept_lossless(self, new_size: int) -> bool:
        if not gain_is_enough(self.original_size, new_size):
            return False

        self.record.lossless = self.record.optimized = new_size
        self.record.status = OptimizationStatus.ACCEPTED
        self._log_gain(new_size)
        return True

    def _accept_lossy(self, new_size: int) -> bool:
        if not gain_is_enough(self.original_size, new_size):
            return False

        if not self.accepted or new_size < self.record.lossless:
            self.record.optimized = new_size

        self.record.lossy = new_size
        self.record.status = OptimizationStatus.ACCEPTED
        self._log_gain(new_size)
        return True

    def _log_gain(self, new_size: int) -> None:
        gain = self.original_size - new_size
        logger.info(
            f"文件缩小 {gain} 字节 (-{round(gain * 100 / self.original_size)}%)"
        )
