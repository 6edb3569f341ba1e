"""依赖包数据模型

数据类:
- SourceKind: 来源类型（VCS / 制品仓库）
- PackageSpec: 解析后的包标识
- CacheEntry: 本地缓存条目
- SyncFilter / SyncStats: 目录同步的过滤规则与统计
- PackageResult / BatchReport: 单包结果与批量安装报告
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from pathlib import Path

# 制品仓库来源未指定版本时使用的哨兵值
LATEST = "latest"


class SourceKind(str, enum.Enum):
    """包的来源类型"""

    VCS = "vcs"
    REGISTRY = "registry"


@dataclass(frozen=True)
class PackageSpec:
    """单个依赖包标识

    version 为空表示标识中没有 @version，由 SourceResolver 按来源类型补默认值。
    defaulted 标记版本是补全得到的：VCS 来源此时取镜像的默认分支（HEAD），
    version 只是占位，拉取后替换为实际分支名。
    """

    raw: str
    host: str
    organization: str
    name: str
    version: str = ""
    kind: SourceKind | None = None
    defaulted: bool = False

    @property
    def resolved(self) -> bool:
        return self.kind is not None and bool(self.version)

    @property
    def path(self) -> str:
        return f"{self.host}/{self.organization}/{self.name}"

    def with_resolution(
        self, kind: SourceKind, version: str, defaulted: bool = False,
    ) -> PackageSpec:
        return replace(self, kind=kind, version=version, defaulted=defaulted)

    def with_version(self, version: str) -> PackageSpec:
        return replace(self, version=version)

    def __str__(self) -> str:
        return f"{self.path}@{self.version}" if self.version else self.path


@dataclass(frozen=True)
class CacheEntry:
    """本地缓存条目"""

    key: str
    archive_path: Path
    present: bool


@dataclass(frozen=True)
class SyncFilter:
    """目录同步过滤规则

    include_markers: 以 "." 开头的按文件名后缀匹配，其余按完整文件名匹配
    exclude_dirs: 任意层级都不进入的目录名
    """

    include_markers: frozenset[str]
    exclude_dirs: frozenset[str]

    def includes(self, filename: str) -> bool:
        for marker in self.include_markers:
            if marker.startswith("."):
                if filename.endswith(marker):
                    return True
            elif filename == marker:
                return True
        return False

    def excludes_dir(self, dirname: str) -> bool:
        return dirname in self.exclude_dirs


@dataclass
class SyncStats:
    """一次目录同步的统计"""

    copied: int = 0
    skipped: int = 0
    skipped_links: int = 0
    pruned_dirs: int = 0


@dataclass
class PackageResult:
    """批量安装中单个包的结果"""

    raw: str
    status: str = "pending"  # "installed", "failed"
    stage: str = ""          # 失败所在阶段: "parse", "fetch", "sync"
    spec: PackageSpec | None = None
    destination: Path | None = None
    error_code: str = ""
    message: str = ""
    stats: SyncStats | None = None

    @property
    def ok(self) -> bool:
        return self.status == "installed"


@dataclass
class BatchReport:
    """批量安装报告，按清单顺序保存每个包的结果"""

    results: list[PackageResult] = field(default_factory=list)

    @property
    def succeeded(self) -> list[PackageResult]:
        return [r for r in self.results if r.ok]

    @property
    def failed(self) -> list[PackageResult]:
        return [r for r in self.results if not r.ok]

    @property
    def ok(self) -> bool:
        return not self.failed

    def summary(self) -> str:
        text = f"{len(self.succeeded)} 成功, {len(self.failed)} 失败"
        if self.failed:
            text += " (" + ", ".join(r.raw for r in self.failed) + ")"
        return text
