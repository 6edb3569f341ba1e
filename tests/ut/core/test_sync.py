"""目录同步引擎测试 - 过滤、排除、符号链接、权限、覆盖语义"""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

from seed.core.config import Config
from seed.core.dep.models import SyncFilter
from seed.core.dep.sync import sync_tree
from seed.core.exceptions import FilesystemFailureError


@pytest.fixture()
def flt() -> SyncFilter:
    return Config().sync_filter()


def _write(root: Path, rel: str, content: str = "x") -> Path:
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content)
    return p


class TestSyncFilter:
    def test_suffix_and_exact_markers(self, flt: SyncFilter) -> None:
        assert flt.includes("a.go")
        assert flt.includes("README.md")
        assert flt.includes("go.mod")
        assert flt.includes("LICENSE")
        assert not flt.includes("a.txt")
        assert not flt.includes("a.golden")
        assert not flt.includes("LICENSE.txt")

    def test_custom_include(self) -> None:
        custom = SyncFilter(include_markers=frozenset({".go", ".txt"}), exclude_dirs=frozenset())
        assert custom.includes("a.txt")


class TestSyncTree:
    def test_filter_correctness(self, tmp_path: Path, flt: SyncFilter) -> None:
        src, dst = tmp_path / "src", tmp_path / "dst"
        _write(src, "a.go", "package a")
        _write(src, "a.txt")
        _write(src, "sub/b.go", "package b")
        os.symlink(src / "a.go", src / "b.go")

        stats = sync_tree(src, dst, flt)

        assert (dst / "a.go").read_text() == "package a"
        assert (dst / "sub" / "b.go").read_text() == "package b"
        assert not (dst / "a.txt").exists()
        assert not (dst / "b.go").exists()
        assert not (dst / "b.go").is_symlink()
        assert stats.copied == 2
        assert stats.skipped == 1
        assert stats.skipped_links == 1

    def test_txt_copied_when_included(self, tmp_path: Path) -> None:
        src, dst = tmp_path / "src", tmp_path / "dst"
        _write(src, "a.txt")
        custom = SyncFilter(include_markers=frozenset({".txt"}), exclude_dirs=frozenset())
        sync_tree(src, dst, custom)
        assert (dst / "a.txt").is_file()

    def test_symlinked_dir_skipped(self, tmp_path: Path, flt: SyncFilter) -> None:
        outside = tmp_path / "outside"
        _write(outside, "leak.go")
        src, dst = tmp_path / "src", tmp_path / "dst"
        src.mkdir()
        os.symlink(outside, src / "linked")

        sync_tree(src, dst, flt)
        assert not (dst / "linked").exists()

    @pytest.mark.parametrize("excluded", [".git", "vendor", ".github"])
    def test_excluded_dirs_at_any_depth(
        self, tmp_path: Path, flt: SyncFilter, excluded: str,
    ) -> None:
        src, dst = tmp_path / "src", tmp_path / "dst"
        _write(src, f"{excluded}/top.go")
        _write(src, f"pkg/deep/{excluded}/nested.go")
        _write(src, "pkg/deep/keep.go")

        stats = sync_tree(src, dst, flt)

        assert not (dst / excluded).exists()
        assert not (dst / "pkg" / "deep" / excluded).exists()
        assert (dst / "pkg" / "deep" / "keep.go").is_file()
        assert stats.pruned_dirs == 2

    def test_permissions_preserved(self, tmp_path: Path, flt: SyncFilter) -> None:
        src, dst = tmp_path / "src", tmp_path / "dst"
        script = _write(src, "gen.go")
        script.chmod(0o755)
        plain = _write(src, "lib.go")
        plain.chmod(0o640)
        src.chmod(0o750)

        sync_tree(src, dst, flt)

        assert stat.S_IMODE((dst / "gen.go").stat().st_mode) == 0o755
        assert stat.S_IMODE((dst / "lib.go").stat().st_mode) == 0o640
        assert stat.S_IMODE(dst.stat().st_mode) == 0o750

    def test_no_temp_files_left(self, tmp_path: Path, flt: SyncFilter) -> None:
        src, dst = tmp_path / "src", tmp_path / "dst"
        _write(src, "a.go")
        sync_tree(src, dst, flt)
        assert sorted(p.name for p in dst.iterdir()) == ["a.go"]

    def test_destination_replaced_wholesale(self, tmp_path: Path, flt: SyncFilter) -> None:
        src, dst = tmp_path / "src", tmp_path / "dst"
        _write(src, "new.go", "new")
        _write(dst, "old.go", "old")
        _write(dst, "local/edit.go", "local edit")

        sync_tree(src, dst, flt)
        assert sorted(str(p.relative_to(dst)) for p in dst.rglob("*")) == ["new.go"]

    def test_destination_file_replaced(self, tmp_path: Path, flt: SyncFilter) -> None:
        src, dst = tmp_path / "src", tmp_path / "dst"
        _write(src, "a.go")
        dst.write_text("not a directory")
        sync_tree(src, dst, flt)
        assert (dst / "a.go").is_file()

    def test_idempotent(self, tmp_path: Path, flt: SyncFilter, read_tree) -> None:
        src, dst = tmp_path / "src", tmp_path / "dst"
        _write(src, "a.go", "package a")
        _write(src, "x/y/z.go", "package z")
        _write(src, "notes.txt")

        sync_tree(src, dst, flt)
        first = read_tree(dst)
        sync_tree(src, dst, flt)
        assert read_tree(dst) == first

    def test_resync_over_read_only_dirs(
        self, tmp_path: Path, flt: SyncFilter, read_tree,
    ) -> None:
        """目标中带有从源复制来的只读目录时，重复同步仍然成功"""
        src, dst = tmp_path / "src", tmp_path / "dst"
        _write(src, "sub/a.go", "package sub")
        _write(src, "sub/deep/b.go", "package deep")
        (src / "sub" / "deep").chmod(0o555)
        (src / "sub").chmod(0o555)
        try:
            sync_tree(src, dst, flt)
            assert stat.S_IMODE((dst / "sub").stat().st_mode) == 0o555
            sync_tree(src, dst, flt)
            assert read_tree(dst) == {
                "sub/a.go": b"package sub", "sub/deep/b.go": b"package deep",
            }
        finally:
            (src / "sub").chmod(0o755)
            (src / "sub" / "deep").chmod(0o755)

    def test_missing_source_raises(self, tmp_path: Path, flt: SyncFilter) -> None:
        with pytest.raises(FilesystemFailureError, match="不可访问"):
            sync_tree(tmp_path / "nope", tmp_path / "dst", flt)

    def test_source_not_directory(self, tmp_path: Path, flt: SyncFilter) -> None:
        f = _write(tmp_path, "file.go")
        with pytest.raises(FilesystemFailureError, match="不是目录"):
            sync_tree(f, tmp_path / "dst", flt)

    @pytest.mark.skipif(os.geteuid() == 0, reason="root 不受文件权限限制")
    def test_unreadable_file_raises(self, tmp_path: Path, flt: SyncFilter) -> None:
        src, dst = tmp_path / "src", tmp_path / "dst"
        secret = _write(src, "secret.go")
        secret.chmod(0o000)
        try:
            with pytest.raises(FilesystemFailureError, match="同步失败"):
                sync_tree(src, dst, flt)
        finally:
            secret.chmod(0o644)
