"""
网页图片资源优化核心模块
"""

from image_optimizer.compression.format import (
    CompressionMode,
    MediaType,
    can_be_optimized,
    classify,
)
from image_optimizer.config import OptimizerConfig
from image_optimizer.exceptions import (
    ImageOptimizerError,
    CompressionError,
    ExternalToolError,
    UnsupportedFormatError,
    ConfigError,
    HashCalculationError,
)
from image_optimizer.models import (
    AssetRecord,
    OptimizationRecord,
    OptimizationReport,
    OptimizationStatus,
    StageOutcome,
    StageResult,
)
from image_optimizer.optimizer import ImageOptimizer
from image_optimizer.policy import gain_is_enough

__all__ = [
    "AssetRecord",
    "CompressionMode",
    "ImageOptimizer",
    "MediaType",
    "OptimizationRecord",
    "OptimizationReport",
    "OptimizationStatus",
    "OptimizerConfig",
    "StageOutcome",
    "StageResult",
    "can_be_optimized",
    "classify",
    "gain_is_enough",
    "ImageOptimizerError",
    "CompressionError",
    "ExternalToolError",
    "UnsupportedFormatError",
    "ConfigError",
    "HashCalculationError",
]
