"""依赖清单加载

职责:
- 从 Seedfile（每行一个包标识）或 YAML 清单加载有序的依赖列表
- 读取 YAML 清单中的 package 段（发布时的默认包标识）

YAML 清单支持两种写法:

    package:
      organization: acme
      name: toolkit
      version: v1.2.0
      dependencies:
        - github.com/acme/log@v2
        - goseed.io/acme/util

    dependencies:
      - acme/log@v2
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from seed.core.exceptions import ConfigError
from seed.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yml", ".yaml")
COMMENT_PREFIX = "#"


def load_manifest(path: str | Path) -> list[str]:
    """按清单顺序返回原始包标识列表（不做解析）"""
    p = Path(path)
    if not p.is_file():
        raise ConfigError(f"清单文件不存在: {p}")

    if p.suffix in YAML_SUFFIXES:
        deps = _yaml_dependencies(p)
    else:
        deps = _line_dependencies(p)
    logger.info("已加载 %d 个依赖: %s", len(deps), p)
    return deps


def load_package_meta(path: str | Path) -> dict[str, Any]:
    """读取 YAML 清单中的 package 段，非 YAML 清单返回空字典"""
    p = Path(path)
    if p.suffix not in YAML_SUFFIXES:
        return {}
    package = load_yaml(p).get("package") or {}
    if not isinstance(package, dict):
        raise ConfigError(f"package 段必须是映射: {p}")
    return package


def _yaml_dependencies(p: Path) -> list[str]:
    data = load_yaml(p)
    package = data.get("package") or {}
    deps = package.get("dependencies") if isinstance(package, dict) else None
    if deps is None:
        deps = data.get("dependencies") or []
    if not isinstance(deps, list) or not all(isinstance(d, str) for d in deps):
        raise ConfigError(f"dependencies 必须是字符串列表: {p}")
    return [d.strip() for d in deps if d.strip()]


def _line_dependencies(p: Path) -> list[str]:
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"无法读取清单: {p}: {e}") from e
    deps = []
    for line in text.splitlines():
        line = line.strip()
        if line and not line.startswith(COMMENT_PREFIX):
            deps.append(line)
    return deps
