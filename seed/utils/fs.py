"""文件系统工具 - 原子写入与整体删除

vendor 目录和缓存目录的所有落盘操作都经过这里：
先写同目录临时文件再 os.replace，崩溃时目标路径不会出现截断的文件。
"""

from __future__ import annotations

import os
import shutil
import stat
import tempfile
from pathlib import Path

_COPY_CHUNK = 1024 * 1024


def _discard(tmp: str) -> None:
    try:
        os.unlink(tmp)
    except OSError:
        # 临时文件清理失败不影响原异常抛出
        pass


def atomic_copy(src: Path, dst: Path, mode: int | None = None) -> None:
    """把 src 复制到 dst：临时文件 + fsync + chmod + rename

    参数:
        src: 源文件
        dst: 目标文件（父目录必须已存在）
        mode: 目标权限位，默认取源文件的权限位
    """
    if mode is None:
        mode = stat.S_IMODE(os.stat(src).st_mode)
    fd, tmp = tempfile.mkstemp(
        dir=str(dst.parent), prefix=f".{dst.name}.", suffix=".tmp",
    )
    try:
        with os.fdopen(fd, "wb") as out, open(src, "rb") as inp:
            shutil.copyfileobj(inp, out, _COPY_CHUNK)
            out.flush()
            os.fsync(out.fileno())
        os.chmod(tmp, mode)
        os.replace(tmp, str(dst))
    except Exception:
        # 只捕获普通异常，不拦截 KeyboardInterrupt/SystemExit
        _discard(tmp)
        raise


def atomic_publish(tmp: Path, dst: Path) -> None:
    """把已写完的临时文件原子地移动到 dst，失败时删除临时文件"""
    try:
        os.replace(str(tmp), str(dst))
    except Exception:
        _discard(str(tmp))
        raise


def _grant_owner(path: str) -> None:
    if path and not os.path.islink(path):
        mode = stat.S_IMODE(os.stat(path).st_mode)
        os.chmod(path, mode | stat.S_IRWXU)


def _retry_writable(func, path: str, exc: BaseException) -> None:
    """rmtree 的 onexc 回调：补上属主 rwx 后重试

    同步会保留源目录的只读权限位（如 0o555），删除其中的文件需要父目录可写。
    """
    if isinstance(exc, FileNotFoundError):
        # 已在重试中整体删除
        return
    if not isinstance(exc, PermissionError):
        raise exc
    if func is not os.open:
        _grant_owner(os.path.dirname(path))
    if os.path.isdir(path) and not os.path.islink(path):
        _grant_owner(path)
        shutil.rmtree(path, onexc=_retry_writable)
    else:
        os.unlink(path)


def force_rmtree(path: str | Path) -> None:
    """删除目录树，目录树中的只读目录也能删除"""
    shutil.rmtree(path, onexc=_retry_writable)


def remove_path(path: Path) -> bool:
    """整体删除目录树 / 文件 / 符号链接，返回是否删除了东西

    符号链接只删除链接本身，不跟随到目标目录。
    """
    if path.is_symlink() or path.is_file():
        path.unlink()
        return True
    if path.is_dir():
        force_rmtree(path)
        return True
    return False
