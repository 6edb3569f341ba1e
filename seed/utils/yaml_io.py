"""YAML 文件读取工具

配置文件 (seed.yml) 与 YAML 清单共用同一个入口，
统一 encoding="utf-8"、空值保护和错误转换。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from seed.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

# YAML 文件最大大小限制 (10MB)，防止误把大文件当配置读入
MAX_YAML_SIZE = 10 * 1024 * 1024


def load_yaml(path: str | Path) -> dict[str, Any]:
    """安全读取 YAML 文件

    参数:
        path: YAML 文件路径

    返回:
        dict: 解析后的字典。文件不存在、为空、或顶层不是字典时返回空字典

    异常:
        ConfigError: 文件过大、YAML 格式错误或无法读取

    示例:
        >>> cfg = load_yaml("seed.yml")
        >>> vendor = cfg.get("vendor_dir", "vendor")
    """
    p = Path(path)
    if not p.exists():
        return {}

    file_size = p.stat().st_size
    if file_size > MAX_YAML_SIZE:
        raise ConfigError(
            f"YAML 文件过大: {p} ({file_size} 字节), "
            f"超过限制 {MAX_YAML_SIZE} 字节"
        )

    try:
        with open(p, encoding="utf-8") as f:
            result = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error("解析 YAML 文件失败: %s, 错误: %s", path, e)
        raise ConfigError(f"YAML 格式错误: {path}: {e}") from e
    except OSError as e:
        logger.error("读取文件失败: %s, 错误: %s", path, e)
        raise ConfigError(f"无法读取文件: {path}: {e}") from e

    if result is None:
        return {}
    if not isinstance(result, dict):
        logger.warning(
            "%s 内容不是字典类型 (实际类型: %s)，返回空字典",
            path, type(result).__name__,
        )
        return {}
    return result
