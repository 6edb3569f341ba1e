"""依赖包拉取器

职责:
- VcsFetcher: 维护 bare 镜像，为每次拉取检出独立的工作副本
- RegistryFetcher: 从本地缓存解压制品包并规范顶层目录名

两种拉取器都把结果放在 work_dir 下的私有临时目录中，
由返回的 FetchedTree 独占并负责清理；共享镜像本身从不检出。
"""

from __future__ import annotations

import logging
import os
import tarfile
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path

from seed.core.dep.cache import LocalCache
from seed.core.dep.models import PackageSpec
from seed.core.exceptions import (
    CacheMissError,
    CorruptArchiveError,
    NetworkFailureError,
    RefNotFoundError,
    RenameConflictError,
)
from seed.utils.fs import force_rmtree
from seed.utils.shell import CommandExecutor, CommandResult, get_executor

logger = logging.getLogger(__name__)


@dataclass
class FetchedTree:
    """一次拉取得到的源码树

    path 位于 workdir 之内；离开 with 块时整个 workdir 被删除。
    """

    spec: PackageSpec
    path: Path
    workdir: Path
    revision: str = ""

    def cleanup(self) -> None:
        _discard(self.workdir)

    def __enter__(self) -> FetchedTree:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()


def _discard(path: Path) -> None:
    """删除临时目录；清理失败只记录，不覆盖调用方正在处理的结果或异常"""
    if not path.exists():
        return
    try:
        force_rmtree(path)
    except OSError as e:
        logger.warning("临时目录清理失败 %s: %s", path, e)


def _new_workdir(work_root: Path, spec: PackageSpec) -> Path:
    work_root.mkdir(parents=True, exist_ok=True)
    return Path(tempfile.mkdtemp(
        dir=str(work_root), prefix=f"{spec.organization}-{spec.name}-",
    ))


# =========================================================================
# VCS 来源
# =========================================================================

class VcsFetcher:
    """Git 来源拉取器

    镜像路径: <mirror_dir>/<host>/<organization>/<name>.git (bare mirror)
    同一进程内对同一镜像的更新串行执行。
    """

    _locks: dict[tuple[str, str, str], threading.Lock] = {}
    _locks_guard = threading.Lock()

    def __init__(
        self,
        mirror_dir: str | Path,
        work_dir: str | Path,
        url_template: str = "https://{host}/{organization}/{name}.git",
        executor: CommandExecutor | None = None,
    ) -> None:
        self.mirror_dir = Path(mirror_dir)
        self.work_dir = Path(work_dir)
        self.url_template = url_template
        self.executor = executor or get_executor()
        self._env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}

    def mirror_path(self, spec: PackageSpec) -> Path:
        return self.mirror_dir / spec.host / spec.organization / f"{spec.name}.git"

    def clone_url(self, spec: PackageSpec) -> str:
        return self.url_template.format(
            host=spec.host, organization=spec.organization, name=spec.name,
        )

    def fetch(self, spec: PackageSpec) -> FetchedTree:
        mirror = self.ensure_mirror(spec)
        if spec.defaulted:
            # 未指定版本: 取镜像 HEAD 指向的分支，而不是配置里的占位分支名
            branch = self.default_branch(mirror)
            if branch:
                spec = spec.with_version(branch)
        sha = self.resolve_ref(mirror, spec)

        workdir = _new_workdir(self.work_dir, spec)
        tree = workdir / spec.name
        try:
            self._git(
                ["clone", "--quiet", "--no-checkout", str(mirror), str(tree)],
                cwd=workdir, label="git clone",
            )
            self._git(
                ["checkout", "--quiet", "--detach", sha],
                cwd=tree, label="git checkout",
            )
        except NetworkFailureError:
            _discard(workdir)
            raise

        logger.info("Git 就绪: %s@%s (%s) -> %s", spec.path, spec.version, sha[:12], tree)
        return FetchedTree(spec=spec, path=tree, workdir=workdir, revision=sha)

    def ensure_mirror(self, spec: PackageSpec) -> Path:
        """镜像不存在则 clone --mirror，存在则更新（已是最新也视为成功）"""
        mirror = self.mirror_path(spec)
        with self._lock_for(spec):
            if (mirror / "HEAD").is_file():
                logger.info("更新镜像: %s", mirror)
                self._git(["remote", "update", "--prune"], cwd=mirror, label="git remote update")
                return mirror

            url = self.clone_url(spec)
            logger.info("创建镜像: %s -> %s", url, mirror)
            mirror.parent.mkdir(parents=True, exist_ok=True)
            try:
                self._git(
                    ["clone", "--quiet", "--mirror", url, str(mirror)],
                    cwd=mirror.parent, label="git clone --mirror",
                )
            except NetworkFailureError:
                # 不保留半成品镜像，下次重新 clone
                _discard(mirror)
                raise
        return mirror

    def default_branch(self, mirror: Path) -> str:
        r = self._run(["symbolic-ref", "--short", "HEAD"], cwd=mirror)
        return r.stdout.strip() if r.success else ""

    def resolve_ref(self, mirror: Path, spec: PackageSpec) -> str:
        """把版本解析为 commit SHA，解析不到抛 RefNotFoundError"""
        if spec.defaulted or spec.version == self.default_branch(mirror):
            ref = "HEAD"
        else:
            ref = spec.version
        r = self._run(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], cwd=mirror)
        if not r.success or not r.stdout.strip():
            raise RefNotFoundError(f"版本不存在: {spec.path}@{spec.version}")
        return r.stdout.strip()

    def _lock_for(self, spec: PackageSpec) -> threading.Lock:
        key = (spec.host, spec.organization, spec.name)
        with self._locks_guard:
            return self._locks.setdefault(key, threading.Lock())

    def _run(self, args: list[str], *, cwd: Path) -> CommandResult:
        return self.executor.execute(["git", *args], cwd=str(cwd), env=self._env)

    def _git(self, args: list[str], *, cwd: Path, label: str) -> CommandResult:
        r = self._run(args, cwd=cwd)
        if not r.success:
            raise NetworkFailureError(
                f"{label} 失败 (rc={r.returncode}): {r.stderr.strip()[:300]}"
            )
        return r


# =========================================================================
# 制品仓库来源
# =========================================================================

class RegistryFetcher:
    """制品仓库拉取器 - 只读本地缓存，远程投递由外部负责"""

    def __init__(self, cache: LocalCache, work_dir: str | Path) -> None:
        self.cache = cache
        self.work_dir = Path(work_dir)

    def fetch(self, spec: PackageSpec) -> FetchedTree:
        entry = self.cache.lookup(spec)
        if not entry.present:
            raise CacheMissError(f"缓存中没有 {spec}: {entry.archive_path}")

        workdir = _new_workdir(self.work_dir, spec)
        try:
            self._extract(entry.archive_path, workdir)
            tree = self._normalize(workdir, spec)
        except Exception:
            _discard(workdir)
            raise

        logger.info("缓存解压就绪: %s -> %s", entry.archive_path.name, tree)
        return FetchedTree(spec=spec, path=tree, workdir=workdir, revision=entry.key)

    @staticmethod
    def _extract(archive: Path, dest: Path) -> None:
        try:
            with tarfile.open(archive) as tf:
                tf.extractall(path=str(dest), filter="data")  # noqa: S202
        except (tarfile.TarError, OSError, EOFError) as e:
            raise CorruptArchiveError(f"解压失败 {archive}: {e}") from e

    def _normalize(self, workdir: Path, spec: PackageSpec) -> Path:
        """<name>-<version>/ 重命名为 <name>/，下游看到与版本无关的布局"""
        versioned = workdir / self.cache.top_level_dir(spec)
        plain = workdir / spec.name
        if not versioned.is_dir() or versioned.is_symlink():
            raise CorruptArchiveError(
                f"归档缺少顶层目录 {versioned.name}/: {spec}"
            )
        if plain.exists() or plain.is_symlink():
            raise RenameConflictError(f"目标目录已被占用: {plain}")
        try:
            versioned.rename(plain)
        except OSError as e:
            raise RenameConflictError(f"重命名失败 {versioned} -> {plain}: {e}") from e
        return plain
