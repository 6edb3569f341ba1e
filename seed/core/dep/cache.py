"""本地制品缓存

缓存布局:
    <cache_dir>/<organization>-<name>-<version>.tar.gz
    归档内只有一个顶层目录 <name>-<version>/

- 读路径: RegistryFetcher 按相同的 key 规则查找归档
- 写路径: publish() 用与安装相同的 SyncFilter 生成过滤快照后打包

已知限制（未实现）:
  - 不做淘汰 / TTL，缓存无限增长
  - key 不含内容哈希，重复发布同一版本会静默替换旧归档
  - 读取时不做完整性校验
"""

from __future__ import annotations

import logging
import tarfile
import tempfile
from pathlib import Path

from seed.core.dep.models import CacheEntry, PackageSpec, SyncFilter
from seed.core.dep.sync import sync_tree
from seed.core.exceptions import FilesystemFailureError, InvalidSpecError
from seed.utils.fs import atomic_publish

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".tar.gz"


def version_token(version: str) -> str:
    """版本号转成可用作文件名的片段

    "/"（如 release/1.x）不能出现在文件名里。先转义 "%" 再转义 "/"，
    映射可逆，不同版本不会落到同一个归档。
    """
    return version.replace("%", "%25").replace("/", "%2F")


class LocalCache:
    """本地制品缓存管理器"""

    def __init__(self, cache_dir: str | Path) -> None:
        self.cache_dir = Path(cache_dir)

    @staticmethod
    def key(spec: PackageSpec) -> str:
        if not spec.version:
            raise InvalidSpecError(f"缓存 key 需要确定的版本: {spec.raw}", raw=spec.raw)
        return f"{spec.organization}-{spec.name}-{version_token(spec.version)}"

    @staticmethod
    def top_level_dir(spec: PackageSpec) -> str:
        """归档内的顶层目录名"""
        return f"{spec.name}-{version_token(spec.version)}"

    def archive_path(self, spec: PackageSpec) -> Path:
        return self.cache_dir / f"{self.key(spec)}{ARCHIVE_SUFFIX}"

    def lookup(self, spec: PackageSpec) -> CacheEntry:
        path = self.archive_path(spec)
        return CacheEntry(key=self.key(spec), archive_path=path, present=path.is_file())

    def list_entries(self) -> list[CacheEntry]:
        if not self.cache_dir.is_dir():
            return []
        return [
            CacheEntry(key=p.name[: -len(ARCHIVE_SUFFIX)], archive_path=p, present=True)
            for p in sorted(self.cache_dir.glob(f"*{ARCHIVE_SUFFIX}"))
            if p.is_file()
        ]

    def publish(
        self, src_dir: str | Path, spec: PackageSpec, sync_filter: SyncFilter,
    ) -> CacheEntry:
        """把 src_dir 的过滤快照打包写入缓存

        先同步到临时目录、打包到缓存目录下的临时文件，最后 rename 到位，
        缓存中不会出现写了一半的归档。
        """
        entry = self.lookup(spec)
        if entry.present:
            logger.warning("缓存已存在，将被替换: %s", entry.archive_path)

        top = self.top_level_dir(spec)
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.TemporaryDirectory(dir=self.cache_dir, prefix=".publish-") as staging:
                snapshot = Path(staging) / top
                stats = sync_tree(src_dir, snapshot, sync_filter)
                tmp = Path(staging) / f"{entry.key}{ARCHIVE_SUFFIX}.tmp"
                with tarfile.open(tmp, "w:gz") as tf:
                    tf.add(str(snapshot), arcname=top)
                atomic_publish(tmp, entry.archive_path)
        except (OSError, tarfile.TarError) as e:
            raise FilesystemFailureError(f"发布失败 {spec}: {e}") from e

        logger.info(
            "已发布 %s -> %s (%d 个文件)", spec, entry.archive_path, stats.copied,
        )
        return CacheEntry(key=entry.key, archive_path=entry.archive_path, present=True)
