# -*- coding: utf-8 -*-
"""
资源记录与优化结果数据模型
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Union

if TYPE_CHECKING:
    from image_optimizer.compression.format import CompressionMode, MediaType


def encode_body(body: Union[bytes, str], encoding: str) -> bytes:
    """
    将资源内容转换为原始字节

    文本形式的二进制内容按 latin-1 还原，SVG 文本按 utf-8 编码。

    Args:
        body: 资源内容
        encoding: 文本内容使用的编码

    Returns:
        原始字节
    """
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    return body.encode(encoding)


class OptimizationStatus(Enum):
    """优化状态"""

    NOT_ATTEMPTED = "not_attempted"
    REJECTED = "rejected"  # 已尝试，没有任何一轮被接受
    ACCEPTED = "accepted"  # 至少一轮被接受，optimized 为最佳大小


class StageOutcome(Enum):
    """单轮压缩（或整体）的结果原因"""

    ACCEPTED = "accepted"
    INSUFFICIENT_GAIN = "insufficient_gain"
    NO_RESULT = "no_result"
    CODEC_FAILURE = "codec_failure"
    NO_BODY = "no_body"
    UNSUPPORTED_FORMAT = "unsupported_format"


@dataclass
class OptimizationRecord:
    """附加在资源上的优化子记录"""

    lossless: Optional[int] = None
    lossy: Optional[int] = None
    optimized: Optional[int] = None
    status: OptimizationStatus = OptimizationStatus.NOT_ATTEMPTED
    body_after_optimization: Optional[str] = None

    @property
    def is_optimized(self) -> Optional[bool]:
        """
        兼容旧的三态标记：接受过压缩结果时为 False（说明资源还能更小），
        否则为 None（未知）
        """
        if self.status is OptimizationStatus.ACCEPTED:
            return False
        return None

    @property
    def best_size(self) -> Optional[int]:
        if self.status is OptimizationStatus.ACCEPTED:
            return self.optimized
        return None


@dataclass
class AssetRecord:
    """调用方提供的资源记录"""

    url: str
    content_type: Optional[str] = None
    is_image: bool = False
    is_svg: bool = False
    body: Optional[Union[bytes, str]] = None
    uncompressed_size: Optional[int] = None  # 未提供时按优化时还原的原始字节数计算
    optimization: Optional[OptimizationRecord] = None

    @property
    def has_body(self) -> bool:
        return self.body is not None and len(self.body) > 0


@dataclass
class StageResult:
    """单轮压缩的诊断信息"""

    mode: "CompressionMode"
    outcome: StageOutcome
    candidate_size: Optional[int] = None
    error: Optional[str] = None


@dataclass
class OptimizationReport:
    """一次优化调用的完整结果"""

    entry: AssetRecord
    media_type: "MediaType"
    outcome: StageOutcome
    record: Optional[OptimizationRecord] = None
    stages: List[StageResult] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.outcome is StageOutcome.ACCEPTED
