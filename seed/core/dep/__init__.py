"""依赖拉取与 vendor 模块

- parser.py: 包标识解析
- resolver.py: 来源类型判定与缺省版本
- fetcher.py: VCS / 制品仓库两种拉取策略
- cache.py: 本地制品缓存（读取 + 发布）
- sync.py: 带过滤的目录同步
- planner.py: vendor 目标路径
- manifest.py: Seedfile / YAML 清单加载
"""

from seed.core.dep.cache import LocalCache
from seed.core.dep.fetcher import FetchedTree, RegistryFetcher, VcsFetcher
from seed.core.dep.models import (
    BatchReport,
    CacheEntry,
    PackageResult,
    PackageSpec,
    SourceKind,
    SyncFilter,
    SyncStats,
)
from seed.core.dep.parser import parse_spec
from seed.core.dep.planner import plan_destination
from seed.core.dep.resolver import SourceResolver
from seed.core.dep.sync import sync_tree

__all__ = [
    "BatchReport",
    "CacheEntry",
    "FetchedTree",
    "LocalCache",
    "PackageResult",
    "PackageSpec",
    "RegistryFetcher",
    "SourceKind",
    "SourceResolver",
    "SyncFilter",
    "SyncStats",
    "VcsFetcher",
    "parse_spec",
    "plan_destination",
    "sync_tree",
]
