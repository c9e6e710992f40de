# -*- coding: utf-8 -*-
from image_optimizer.compression.format import MediaType, can_be_optimized, classify
from image_optimizer.models import AssetRecord


def _entry(**kwargs):
    return AssetRecord(url="http://example.com/a", **kwargs)


def test_classify_jpeg_and_png():
    assert classify(_entry(is_image=True, content_type="image/jpeg")) is MediaType.JPEG
    assert classify(_entry(is_image=True, content_type="image/png")) is MediaType.PNG


def test_classify_jpeg_wins_over_svg_flag():
    entry = _entry(is_image=True, is_svg=True, content_type="image/jpeg")
    assert classify(entry) is MediaType.JPEG


def test_classify_svg_flag_ignores_content_type():
    entry = _entry(is_image=True, is_svg=True, content_type="text/plain")
    assert classify(entry) is MediaType.SVG


def test_classify_requires_image_flag():
    assert classify(_entry(content_type="image/jpeg")) is MediaType.UNSUPPORTED
    assert classify(_entry(is_svg=True)) is MediaType.UNSUPPORTED


def test_classify_other_types():
    assert classify(_entry(is_image=True, content_type="image/gif")) is MediaType.UNSUPPORTED
    assert classify(_entry(content_type="text/html")) is MediaType.UNSUPPORTED
    assert not can_be_optimized(_entry(content_type="text/html"))
    assert can_be_optimized(_entry(is_image=True, content_type="image/png"))


def test_record_construction_does_not_encode_body():
    entry = _entry(content_type="text/html", body="<p>日本語</p>")

    assert entry.uncompressed_size is None
    assert _entry(body=b"abc", uncompressed_size=10).uncompressed_size == 10
