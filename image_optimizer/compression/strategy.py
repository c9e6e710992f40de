# -*- coding: utf-8 -*-
"""
压缩策略模块
"""

import asyncio
import io
import logging
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from lxml import etree
from PIL import Image

from image_optimizer.compression.config import CompressionConfig
from image_optimizer.compression.format import CompressionMode, MediaType
from image_optimizer.exceptions import CompressionError, ExternalToolError

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
EDITOR_NAMESPACES = (
    "http://www.inkscape.org/namespaces/inkscape",
    "http://sodipodi.sourceforge.net/DTD/sodipodi-0.dtd",
)
# 这些元素内的空白属于内容，不能移除
TEXT_CONTENT_TAGS = {"text", "tspan", "textPath", "title", "desc", "style", "script"}

# IJG 标准亮度量化表，用于估算JPEG质量
STANDARD_LUMINANCE_TABLE = (
    16, 11, 10, 16, 24, 40, 51, 61,
    12, 12, 14, 19, 26, 58, 60, 55,
    14, 13, 16, 24, 40, 57, 69, 56,
    14, 17, 22, 29, 51, 87, 80, 62,
    18, 22, 37, 56, 68, 109, 103, 77,
    24, 35, 55, 64, 81, 104, 113, 92,
    49, 64, 78, 87, 103, 121, 120, 101,
    72, 92, 95, 98, 112, 100, 103, 99,
)


class CompressionStrategy(ABC):
    """压缩策略基类"""

    media_type: MediaType
    mode: CompressionMode

    @property
    def name(self) -> str:
        return f"{self.media_type.value}-{self.mode.value}"

    @abstractmethod
    async def compress(
        self, content: bytes, config: CompressionConfig
    ) -> Optional[bytes]:
        """
        执行压缩

        Args:
            content: 原始内容
            config: 压缩配置

        Returns:
            压缩后的内容，没有可用结果时返回 None

        Raises:
            CompressionError: 压缩失败
        """
        pass


class PillowStrategy(CompressionStrategy):
    """基于Pillow的位图压缩策略"""

    pil_format: str

    async def compress(
        self, content: bytes, config: CompressionConfig
    ) -> Optional[bytes]:
        """压缩位图（异步包装器）"""
        # 将同步的PIL操作放到线程池中执行
        return await asyncio.to_thread(self._compress_sync, content, config)

    def _compress_sync(
        self, content: bytes, config: CompressionConfig
    ) -> Optional[bytes]:
        try:
            with Image.open(io.BytesIO(content)) as img:
                if img.format != self.pil_format:
                    raise CompressionError(
                        f"内容格式为 {img.format}，期望 {self.pil_format}"
                    )
                if getattr(img, "is_animated", False):
                    logger.debug(f"{self.name}: 动图跳过压缩")
                    return None

                output = io.BytesIO()
                if not self._encode(img, output, config):
                    return None

            result = output.getvalue()
            logger.debug(f"{self.name} 压缩完成: {len(content)} -> {len(result)} 字节")
            return result

        except CompressionError:
            raise
        except Exception as e:
            logger.error(f"{self.name} 压缩失败: {e}")
            raise CompressionError(f"{self.name} 压缩失败: {e}") from e

    @abstractmethod
    def _encode(
        self, img: Image.Image, output: io.BytesIO, config: CompressionConfig
    ) -> bool:
        """编码到 output，返回 False 表示不需要压缩"""
        pass

    def _metadata_kwargs(self, img: Image.Image) -> dict:
        kwargs: dict = {}
        for key in ("icc_profile", "exif"):
            value = img.info.get(key)
            if value:
                kwargs[key] = value
        return kwargs


class JpegLosslessStrategy(PillowStrategy):
    """
    JPEG无损压缩的Pillow实现：保留量化表重新编码并优化霍夫曼表

    重新编码通常会改变像素，结果只有在与原图像素完全一致时才会被管理器采用。
    """

    media_type = MediaType.JPEG
    mode = CompressionMode.LOSSLESS
    pil_format = "JPEG"

    def _encode(
        self, img: Image.Image, output: io.BytesIO, config: CompressionConfig
    ) -> bool:
        img.save(
            output,
            format="JPEG",
            quality="keep",
            subsampling="keep",
            optimize=True,
            progressive=config.jpeg_progressive,
            **self._metadata_kwargs(img),
        )
        return True


class JpegLossyStrategy(PillowStrategy):
    """JPEG有损压缩：质量高于上限时按上限重新编码"""

    media_type = MediaType.JPEG
    mode = CompressionMode.LOSSY
    pil_format = "JPEG"

    def _encode(
        self, img: Image.Image, output: io.BytesIO, config: CompressionConfig
    ) -> bool:
        quality = estimate_jpeg_quality(img)
        if quality is not None and quality <= config.max_jpeg_quality:
            logger.debug(
                f"JPEG质量约为 {quality}，未超过上限 {config.max_jpeg_quality}，跳过有损压缩"
            )
            return False

        if img.mode not in ("RGB", "L", "CMYK"):
            img = img.convert("RGB")

        img.save(
            output,
            format="JPEG",
            quality=config.max_jpeg_quality,
            optimize=True,
            progressive=config.jpeg_progressive,
            **self._metadata_kwargs(img),
        )
        return True


class PngLosslessStrategy(PillowStrategy):
    """PNG无损压缩"""

    media_type = MediaType.PNG
    mode = CompressionMode.LOSSLESS
    pil_format = "PNG"

    def _encode(
        self, img: Image.Image, output: io.BytesIO, config: CompressionConfig
    ) -> bool:
        # 透明度和ICC配置由Pillow从 img.info 中沿用
        img.save(
            output,
            format="PNG",
            optimize=True,
            compress_level=config.png_compress_level,
        )
        return True


def estimate_jpeg_quality(img: Image.Image) -> Optional[int]:
    """
    根据亮度量化表估算JPEG质量（IJG缩放公式的逆运算）

    Args:
        img: 已打开的JPEG图片

    Returns:
        估算的质量 (1-100)，没有量化表时返回 None
    """
    tables = getattr(img, "quantization", None)
    if not tables or 0 not in tables:
        return None

    scale = sum(tables[0]) * 100 / sum(STANDARD_LUMINANCE_TABLE)
    if scale <= 0:
        return 100
    if scale <= 100:
        quality = (200 - scale) / 2
    else:
        quality = 5000 / scale
    return max(1, min(100, round(quality)))


class SvgLosslessStrategy(CompressionStrategy):
    """SVG无损压缩：移除注释、元数据、编辑器数据和多余空白"""

    media_type = MediaType.SVG
    mode = CompressionMode.LOSSLESS

    async def compress(
        self, content: bytes, config: CompressionConfig
    ) -> Optional[bytes]:
        """压缩SVG（异步包装器）"""
        return await asyncio.to_thread(self._compress_sync, content, config)

    def _compress_sync(
        self, content: bytes, config: CompressionConfig
    ) -> Optional[bytes]:
        try:
            parser = etree.XMLParser(
                remove_comments=config.svg_remove_comments,
                remove_pis=True,
                resolve_entities=False,
                no_network=True,
            )
            root = etree.fromstring(content, parser)
            if etree.QName(root).localname != "svg":
                raise CompressionError(f"根元素不是svg: {root.tag}")

            if config.svg_remove_metadata:
                for el in list(root.iter(f"{{{SVG_NS}}}metadata")):
                    _remove_element(el)

            if config.svg_remove_editor_data:
                _remove_editor_data(root)

            if config.svg_strip_whitespace:
                _strip_blank_text(root)

            etree.cleanup_namespaces(root)
            result = etree.tostring(root, encoding="utf-8", xml_declaration=False)
            logger.debug(f"SVG压缩完成: {len(content)} -> {len(result)} 字节")
            return result

        except CompressionError:
            raise
        except Exception as e:
            logger.error(f"SVG压缩失败: {e}")
            raise CompressionError(f"SVG压缩失败: {e}") from e


def _remove_element(el) -> None:
    """移除元素，同时保留其后的文本"""
    parent = el.getparent()
    if parent is None:
        return
    if el.tail and el.tail.strip():
        previous = el.getprevious()
        if previous is not None:
            previous.tail = (previous.tail or "") + el.tail
        else:
            parent.text = (parent.text or "") + el.tail
    parent.remove(el)


def _remove_editor_data(root) -> None:
    for el in list(root.iter()):
        if not isinstance(el.tag, str):
            continue
        if etree.QName(el).namespace in EDITOR_NAMESPACES:
            _remove_element(el)
            continue
        for attr in list(el.attrib):
            if attr.startswith("{") and etree.QName(attr).namespace in EDITOR_NAMESPACES:
                del el.attrib[attr]


def _inside_text_content(el) -> bool:
    while el is not None:
        if isinstance(el.tag, str) and etree.QName(el).localname in TEXT_CONTENT_TAGS:
            return True
        el = el.getparent()
    return False


def _strip_blank_text(root) -> None:
    for el in root.iter():
        if el.text and not el.text.strip() and not _inside_text_content(el):
            el.text = None
        if el.tail and not el.tail.strip() and not _inside_text_content(el.getparent()):
            el.tail = None


class ExternalToolStrategy(CompressionStrategy):
    """调用外部压缩工具的策略基类"""

    suffix: str
    reads_stdout = False

    @abstractmethod
    def build_args(
        self, config: CompressionConfig, src: str, dst: str
    ) -> List[str]:
        """构造命令行参数"""
        pass

    async def compress(
        self, content: bytes, config: CompressionConfig
    ) -> Optional[bytes]:
        with tempfile.TemporaryDirectory(prefix="image_optimizer_") as tmp_dir:
            src = Path(tmp_dir) / f"input{self.suffix}"
            dst = Path(tmp_dir) / f"output{self.suffix}"
            await asyncio.to_thread(src.write_bytes, content)

            args = self.build_args(config, str(src), str(dst))
            stdout = await self._run(args, config.external_tool_timeout)

            if self.reads_stdout:
                result = stdout
            else:
                result = await asyncio.to_thread(_read_if_exists, dst)

        if not result:
            logger.debug(f"{args[0]} 没有输出结果")
            return None

        logger.debug(f"{args[0]} 压缩完成: {len(content)} -> {len(result)} 字节")
        return result

    async def _run(self, args: List[str], timeout: float) -> bytes:
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            logger.error(f"无法启动外部工具 {args[0]}: {e}")
            raise ExternalToolError(f"无法启动外部工具 {args[0]}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise ExternalToolError(f"外部工具 {args[0]} 超时 ({timeout}s)") from e
        finally:
            # 超时或任务被取消时子进程仍在运行，临时目录删除前必须结束它
            if proc.returncode is None:
                try:
                    proc.kill()
                except ProcessLookupError:
                    pass
                await proc.wait()

        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            logger.error(f"外部工具 {args[0]} 退出码 {proc.returncode}: {message}")
            raise ExternalToolError(
                f"外部工具 {args[0]} 退出码 {proc.returncode}: {message}"
            )
        return stdout


def _read_if_exists(path: Path) -> bytes:
    if not path.exists():
        return b""
    return path.read_bytes()


class JpegtranStrategy(ExternalToolStrategy):
    """jpegtran 无损压缩"""

    media_type = MediaType.JPEG
    mode = CompressionMode.LOSSLESS
    suffix = ".jpg"

    def build_args(self, config: CompressionConfig, src: str, dst: str) -> List[str]:
        args = [config.jpegtran_path, "-copy", "none", "-optimize"]
        if config.jpeg_progressive:
            args.append("-progressive")
        return args + ["-outfile", dst, src]


class JpegoptimStrategy(ExternalToolStrategy):
    """jpegoptim 有损压缩"""

    media_type = MediaType.JPEG
    mode = CompressionMode.LOSSY
    suffix = ".jpg"
    reads_stdout = True

    def build_args(self, config: CompressionConfig, src: str, dst: str) -> List[str]:
        return [
            config.jpegoptim_path,
            f"--max={config.max_jpeg_quality}",
            "--strip-all",
            "--stdout",
            src,
        ]


class OptipngStrategy(ExternalToolStrategy):
    """optipng 无损压缩"""

    media_type = MediaType.PNG
    mode = CompressionMode.LOSSLESS
    suffix = ".png"

    def build_args(self, config: CompressionConfig, src: str, dst: str) -> List[str]:
        return [
            config.optipng_path,
            f"-o{config.png_optimization_level}",
            "-quiet",
            "-out",
            dst,
            src,
        ]
