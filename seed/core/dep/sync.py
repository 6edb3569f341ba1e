"""目录同步引擎

把拉取到的源码树按过滤规则复制到 vendor 目录:

  1. 目标已存在时整体删除，再以源根目录的权限位重建
     （重复安装结果一致；vendor 下的本地修改会在重装时丢失）
  2. 不进入 exclude_dirs 中的目录（VCS 元数据、嵌套 vendor、CI 配置）
  3. 只复制匹配 include_markers 的文件；符号链接一律跳过
  4. 每个文件经临时文件 + rename 写入，并保留原权限位

遇到第一个错误即抛 FilesystemFailureError。由于每次都先整体删除目标，
失败后重新执行仍能收敛到正确结果。
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

from seed.core.dep.models import SyncFilter, SyncStats
from seed.core.exceptions import FilesystemFailureError
from seed.utils.fs import atomic_copy, remove_path

logger = logging.getLogger(__name__)


def sync_tree(src: str | Path, dst: str | Path, sync_filter: SyncFilter) -> SyncStats:
    """按过滤规则把 src 同步到 dst，返回同步统计"""
    src, dst = Path(src), Path(dst)
    try:
        src_stat = src.stat()
    except OSError as e:
        raise FilesystemFailureError(f"源目录不可访问: {src}: {e}") from e
    if not stat.S_ISDIR(src_stat.st_mode):
        raise FilesystemFailureError(f"源路径不是目录: {src}")

    stats = SyncStats()
    try:
        if remove_path(dst):
            logger.debug("  已删除旧目录: %s", dst)
        dst.mkdir(parents=True)
        _copy_dir(src, dst, sync_filter, stats)
        os.chmod(dst, stat.S_IMODE(src_stat.st_mode))
    except OSError as e:
        raise FilesystemFailureError(f"同步失败 {src} -> {dst}: {e}") from e

    logger.info(
        "  同步完成: %s -> %s (复制 %d, 跳过 %d, 链接 %d, 排除目录 %d)",
        src, dst, stats.copied, stats.skipped, stats.skipped_links, stats.pruned_dirs,
    )
    return stats


def _copy_dir(src: Path, dst: Path, sync_filter: SyncFilter, stats: SyncStats) -> None:
    with os.scandir(src) as it:
        entries = sorted(it, key=lambda e: e.name)

    for entry in entries:
        target = dst / entry.name
        if entry.is_symlink():
            stats.skipped_links += 1
            continue

        if entry.is_dir(follow_symlinks=False):
            if sync_filter.excludes_dir(entry.name):
                stats.pruned_dirs += 1
                continue
            target.mkdir()
            _copy_dir(Path(entry.path), target, sync_filter, stats)
            # 内容写完再设权限，只读目录也能正常复制
            os.chmod(target, stat.S_IMODE(entry.stat(follow_symlinks=False).st_mode))
        elif entry.is_file(follow_symlinks=False) and sync_filter.includes(entry.name):
            mode = stat.S_IMODE(entry.stat(follow_symlinks=False).st_mode)
            atomic_copy(Path(entry.path), target, mode)
            stats.copied += 1
        else:
            stats.skipped += 1
