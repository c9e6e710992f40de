# -*- coding: utf-8 -*-
"""
图片优化异常定义
"""


class ImageOptimizerError(Exception):
    """图片优化基础异常类"""
    pass


class CompressionError(ImageOptimizerError):
    """图片压缩异常"""
    pass


class ExternalToolError(CompressionError):
    """外部压缩工具执行异常"""
    pass


class UnsupportedFormatError(ImageOptimizerError):
    """没有可用压缩引擎的格式/模式组合"""
    pass


class ConfigError(ImageOptimizerError):
    """配置值无效"""
    pass


class HashCalculationError(ImageOptimizerError):
    """哈希计算异常"""
    pass
