"""公共测试夹具 - 本地 git 上游仓库、隔离的配置目录"""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from seed.core.config import Config


def _git(cwd: Path, *args: str) -> str:
    r = subprocess.run(
        ["git", "-c", "user.name=seed", "-c", "user.email=seed@example.com", *args],
        cwd=str(cwd), capture_output=True, text=True, check=True,
    )
    return r.stdout.strip()


def _read_tree(root: Path) -> dict[str, bytes]:
    """{相对路径: 内容}，用于逐字节比较目录树"""
    return {
        str(p.relative_to(root)): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


class Upstream:
    """本地上游仓库（非 bare），充当 VCS 远端"""

    def __init__(self, path: Path, branch: str = "master") -> None:
        self.path = path
        path.mkdir(parents=True)
        _git(path, "init", "-q")
        _git(path, "symbolic-ref", "HEAD", f"refs/heads/{branch}")

    def commit(self, files: dict[str, str], *, tag: str = "", replace: bool = True) -> str:
        """提交一组文件；replace=True 时先清空已跟踪文件"""
        if replace and _git(self.path, "ls-files"):
            _git(self.path, "rm", "-rq", ".")
        for rel, content in files.items():
            f = self.path / rel
            f.parent.mkdir(parents=True, exist_ok=True)
            f.write_text(content)
        _git(self.path, "add", "-A")
        _git(self.path, "commit", "-q", "-m", f"commit {tag or 'head'}")
        if tag:
            _git(self.path, "tag", tag)
        return _git(self.path, "rev-parse", "HEAD")


@pytest.fixture()
def read_tree():
    return _read_tree


@pytest.fixture()
def seed_config(tmp_path: Path) -> Config:
    """所有目录都落在 tmp_path 下的配置，VCS 地址指向本地上游仓库"""
    remotes = tmp_path / "remotes"
    return Config(
        vendor_dir=str(tmp_path / "vendor"),
        cache_dir=str(tmp_path / "cache"),
        mirror_dir=str(tmp_path / "mirrors"),
        work_dir=str(tmp_path / "work"),
        vcs_url_template=str(remotes) + "/{host}/{organization}/{name}",
    )


@pytest.fixture()
def upstream(tmp_path: Path):
    """按 host/organization/name 创建上游仓库的工厂"""
    remotes = tmp_path / "remotes"

    def make(path: str, branch: str = "master") -> Upstream:
        return Upstream(remotes / path, branch)

    return make
