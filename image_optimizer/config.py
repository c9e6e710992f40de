# -*- coding: utf-8 -*-
"""
配置管理模块
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from image_optimizer.exceptions import ConfigError

logger = logging.getLogger(__name__)


class OptimizerConfig:
    """优化器配置包装类，提供统一的配置访问接口"""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        初始化配置

        Args:
            config: 调用方传入的配置字典
        """
        self.config = config if config is not None else {}

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "OptimizerConfig":
        """
        从JSON文件加载配置

        Args:
            path: 配置文件路径

        Returns:
            配置对象

        Raises:
            ConfigError: 文件无法读取或内容不是JSON对象
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"读取配置文件失败 {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"配置文件必须是JSON对象: {path}")

        logger.debug(f"已加载配置文件: {path}")
        return cls(data)

    def get(self, key: str, default: Any = None) -> Any:
        """
        获取配置值

        Args:
            key: 配置键
            default: 默认值

        Returns:
            配置值
        """
        return self.config.get(key, default)

    def _get_int(self, key: str, default: int, minimum: int, maximum: int) -> int:
        value = self.get(key, default)
        if isinstance(value, bool) or not isinstance(value, int):
            raise ConfigError(f"配置项 {key} 必须是整数，当前值: {value!r}")
        if not minimum <= value <= maximum:
            raise ConfigError(
                f"配置项 {key} 超出范围 [{minimum}, {maximum}]，当前值: {value}"
            )
        return value

    # JPEG配置
    @property
    def max_jpeg_quality(self) -> int:
        """有损压缩的JPEG质量上限 (1-100)"""
        return self._get_int("max_jpeg_quality", 85, 1, 100)

    @property
    def jpeg_progressive(self) -> bool:
        """是否输出渐进式JPEG"""
        return bool(self.get("jpeg_progressive", False))

    # PNG配置
    @property
    def png_optimization_level(self) -> int:
        """optipng 优化级别 (0-7)"""
        return self._get_int("png_optimization_level", 1, 0, 7)

    @property
    def png_compress_level(self) -> int:
        """Pillow PNG压缩级别 (0-9)"""
        return self._get_int("png_compress_level", 9, 0, 9)

    # SVG配置
    @property
    def svg_remove_comments(self) -> bool:
        """是否移除SVG注释"""
        return bool(self.get("svg_remove_comments", True))

    @property
    def svg_remove_metadata(self) -> bool:
        """是否移除SVG的 metadata 元素"""
        return bool(self.get("svg_remove_metadata", True))

    @property
    def svg_remove_editor_data(self) -> bool:
        """是否移除Inkscape/Sodipodi等编辑器数据"""
        return bool(self.get("svg_remove_editor_data", True))

    @property
    def svg_strip_whitespace(self) -> bool:
        """是否移除元素之间的空白文本"""
        return bool(self.get("svg_strip_whitespace", True))

    # 外部工具配置
    @property
    def use_external_tools(self) -> bool:
        """是否使用 jpegtran/jpegoptim/optipng 外部工具"""
        return bool(self.get("use_external_tools", False))

    @property
    def jpegtran_path(self) -> str:
        """jpegtran 可执行文件"""
        return self.get("jpegtran_path", "jpegtran")

    @property
    def jpegoptim_path(self) -> str:
        """jpegoptim 可执行文件"""
        return self.get("jpegoptim_path", "jpegoptim")

    @property
    def optipng_path(self) -> str:
        """optipng 可执行文件"""
        return self.get("optipng_path", "optipng")

    @property
    def external_tool_timeout(self) -> float:
        """外部工具超时时间（秒）"""
        value = self.get("external_tool_timeout", 30)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ConfigError(f"配置项 external_tool_timeout 必须是正数，当前值: {value!r}")
        return float(value)

    # 并发与校验配置
    @property
    def max_concurrent_jobs(self) -> int:
        """同时进行的压缩任务上限"""
        return self._get_int("max_concurrent_jobs", 4, 1, 256)

    @property
    def verify_lossless(self) -> bool:
        """是否要求无损压缩结果与原图像素完全一致"""
        return bool(self.get("verify_lossless", True))

    @property
    def verify_lossy(self) -> bool:
        """是否用感知哈希校验有损压缩结果"""
        return bool(self.get("verify_lossy", True))

    @property
    def lossy_hash_tolerance(self) -> int:
        """有损校验允许的感知哈希汉明距离"""
        return self._get_int("lossy_hash_tolerance", 10, 0, 64)
