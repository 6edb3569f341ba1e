"""集中配置管理

替代各模块散落的 DEFAULT_* 常量，提供统一的配置入口。
支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from seed.core.exceptions import ConfigError
from seed.utils.yaml_io import load_yaml

if TYPE_CHECKING:
    from seed.core.dep.models import SyncFilter

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "seed.yml"

DEFAULT_INCLUDE_MARKERS = [
    ".go", ".s", ".c", ".h", ".md",
    "LICENSE", "go.mod", "go.sum", "Seedfile",
]
DEFAULT_EXCLUDE_DIRS = [
    ".git", ".hg", ".svn", "vendor", ".github", ".circleci", ".gitlab",
]


@dataclass
class Config:
    """全局配置"""

    # 目录
    seedfile: str = "Seedfile"
    vendor_dir: str = "vendor"
    cache_dir: str = ".seed/cache"
    mirror_dir: str = ".seed/mirrors"
    work_dir: str = ".seed/work"

    # 来源
    default_host: str = "github.com"
    registry_domains: list[str] = field(default_factory=lambda: ["goseed.io"])
    default_branch: str = "master"
    vcs_url_template: str = "https://{host}/{organization}/{name}.git"

    # 同步过滤
    include_markers: list[str] = field(
        default_factory=lambda: list(DEFAULT_INCLUDE_MARKERS),
    )
    exclude_dirs: list[str] = field(
        default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS),
    )

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        for name in ("registry_domains", "include_markers", "exclude_dirs"):
            value = getattr(self, name)
            if not isinstance(value, list) or not all(
                isinstance(v, str) and v for v in value
            ):
                raise ConfigError(f"配置项 {name} 必须是非空字符串列表: {value!r}")
        if not self.default_branch:
            raise ConfigError("配置项 default_branch 不能为空")

    @classmethod
    def from_file(cls, path: str = DEFAULT_CONFIG_FILE) -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        return cfg

    def sync_filter(self) -> SyncFilter:
        """按当前配置构造同步过滤器（安装与发布共用）"""
        from seed.core.dep.models import SyncFilter
        return SyncFilter(
            include_markers=frozenset(self.include_markers),
            exclude_dirs=frozenset(self.exclude_dirs),
        )

    def to_dict(self) -> dict:
        from dataclasses import asdict
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = DEFAULT_CONFIG_FILE) -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
