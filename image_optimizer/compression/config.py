# -*- coding: utf-8 -*-
"""
压缩配置模块
"""

from dataclasses import dataclass

from image_optimizer.config import OptimizerConfig


@dataclass
class CompressionConfig:
    """统一压缩配置"""

    # JPEG参数
    max_jpeg_quality: int  # 有损压缩质量上限
    jpeg_progressive: bool  # 是否输出渐进式JPEG

    # PNG参数
    png_optimization_level: int  # optipng 优化级别
    png_compress_level: int  # Pillow 压缩级别

    # SVG参数
    svg_remove_comments: bool
    svg_remove_metadata: bool
    svg_remove_editor_data: bool
    svg_strip_whitespace: bool

    # 外部工具参数
    use_external_tools: bool
    jpegtran_path: str
    jpegoptim_path: str
    optipng_path: str
    external_tool_timeout: float

    # 校验与并发
    verify_lossless: bool
    verify_lossy: bool
    lossy_hash_tolerance: int
    max_concurrent_jobs: int

    @staticmethod
    def from_optimizer_config(config: OptimizerConfig) -> "CompressionConfig":
        """
        从优化器配置创建压缩配置

        Args:
            config: 优化器配置对象

        Returns:
            压缩配置对象
        """
        return CompressionConfig(
            # JPEG参数
            max_jpeg_quality=config.max_jpeg_quality,
            jpeg_progressive=config.jpeg_progressive,
            # PNG参数
            png_optimization_level=config.png_optimization_level,
            png_compress_level=config.png_compress_level,
            # SVG参数
            svg_remove_comments=config.svg_remove_comments,
            svg_remove_metadata=config.svg_remove_metadata,
            svg_remove_editor_data=config.svg_remove_editor_data,
            svg_strip_whitespace=config.svg_strip_whitespace,
            # 外部工具参数
            use_external_tools=config.use_external_tools,
            jpegtran_path=config.jpegtran_path,
            jpegoptim_path=config.jpegoptim_path,
            optipng_path=config.optipng_path,
            external_tool_timeout=config.external_tool_timeout,
            # 校验与并发
            verify_lossless=config.verify_lossless,
            verify_lossy=config.verify_lossy,
            lossy_hash_tolerance=config.lossy_hash_tolerance,
            max_concurrent_jobs=config.max_concurrent_jobs,
        )
