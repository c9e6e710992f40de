# -*- coding: utf-8 -*-
import json

import pytest

from image_optimizer.compression.config import CompressionConfig
from image_optimizer.config import OptimizerConfig
from image_optimizer.exceptions import ConfigError


def test_defaults():
    config = CompressionConfig.from_optimizer_config(OptimizerConfig())

    assert config.max_jpeg_quality == 85
    assert config.png_optimization_level == 1
    assert config.use_external_tools is False
    assert config.verify_lossless is True
    assert config.max_concurrent_jobs == 4
    assert config.external_tool_timeout == 30.0


def test_overrides():
    config = OptimizerConfig({"max_jpeg_quality": 70, "jpeg_progressive": True})

    assert config.max_jpeg_quality == 70
    assert config.jpeg_progressive is True


@pytest.mark.parametrize(
    "key,value",
    [
        ("max_jpeg_quality", 0),
        ("max_jpeg_quality", 101),
        ("max_jpeg_quality", "85"),
        ("png_optimization_level", 8),
        ("max_concurrent_jobs", True),
        ("external_tool_timeout", -1),
    ],
)
def test_invalid_values(key, value):
    config = OptimizerConfig({key: value})

    with pytest.raises(ConfigError):
        CompressionConfig.from_optimizer_config(config)


def test_from_json_file(tmp_path):
    path = tmp_path / "optimizer.json"
    path.write_text(json.dumps({"max_jpeg_quality": 75}), encoding="utf-8")

    assert OptimizerConfig.from_json_file(path).max_jpeg_quality == 75


def test_from_json_file_errors(tmp_path):
    with pytest.raises(ConfigError):
        OptimizerConfig.from_json_file(tmp_path / "missing.json")

    path = tmp_path / "list.json"
    path.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ConfigError):
        OptimizerConfig.from_json_file(path)
