"""CLI - 依赖安装、拉取、发布与查询命令"""

from __future__ import annotations

import click

from seed.cli import AliasedGroup, handle_errors
from seed.core.config import get_config
from seed.core.dep.manifest import load_manifest, load_package_meta
from seed.core.dep_manager import DepManager


def register(group: AliasedGroup) -> None:
    group.add_command(install)
    group.add_command(get)
    group.add_command(publish)
    group.add_command(freeze)
    group.add_command(list_deps)
    group.add_alias("i", "install")
    group.add_alias("g", "get")
    group.add_alias("f", "freeze")


@click.command()
@click.option("--file", "-f", "seedfile", default=None, help="依赖清单（默认取配置中的 seedfile）")
@click.option("--folder", "--dir", "-d", "folder", default=None, help="vendor 目录")
@handle_errors
def install(seedfile: str | None, folder: str | None) -> None:
    """按清单顺序安装全部依赖到 vendor 目录"""
    dm = DepManager(get_config(), vendor_dir=folder or "")
    report = dm.install_manifest(seedfile or "")
    for r in report.results:
        if r.ok:
            click.echo(f"  [OK  ] {r.raw} -> {r.destination}")
        else:
            click.echo(f"  [FAIL] {r.raw} ({r.stage}, {r.error_code}): {r.message}")
    click.echo(f"安装汇总: {report.summary()}")
    if not report.ok:
        raise click.ClickException(f"{len(report.failed)} 个依赖安装失败")


@click.command()
@click.argument("spec")
@click.option("--folder", "--dir", "-d", "folder", default=None, help="vendor 目录")
@handle_errors
def get(spec: str, folder: str | None) -> None:
    """拉取单个依赖并同步到 vendor 目录"""
    dm = DepManager(get_config(), vendor_dir=folder or "")
    result = dm.install(spec)
    click.echo(f"就绪: {result.spec} -> {result.destination}")


@click.command()
@click.argument("src_dir", type=click.Path(exists=True, file_okay=False))
@click.argument("spec", required=False)
@click.option("--file", "-f", "manifest", default=None, help="读取 package 段的 YAML 清单")
@handle_errors
def publish(src_dir: str, spec: str | None, manifest: str | None) -> None:
    """把目录的过滤快照发布到本地缓存"""
    cfg = get_config()
    dm = DepManager(cfg)
    if not spec:
        spec = dm.spec_from_meta(load_package_meta(manifest or cfg.seedfile))
    entry = dm.publish(src_dir, spec)
    click.echo(f"已发布: {spec} -> {entry.archive_path}")


@click.command()
@click.argument("project_dir", default=".")
@handle_errors
def freeze(project_dir: str) -> None:
    """列出项目引用的全部 import 路径"""
    for path in DepManager(get_config()).list_imports(project_dir):
        click.echo(path)


@click.command(name="deps")
@click.option("--file", "-f", "seedfile", default=None, help="依赖清单（默认取配置中的 seedfile）")
@click.option("--folder", "--dir", "-d", "folder", default=None, help="vendor 目录")
@handle_errors
def list_deps(seedfile: str | None, folder: str | None) -> None:
    """列出清单中的依赖及其来源、版本和安装状态"""
    cfg = get_config()
    dm = DepManager(cfg, vendor_dir=folder or "")
    deps = dm.list_dependencies(load_manifest(seedfile or cfg.seedfile))
    if not deps:
        click.echo("清单中没有依赖。")
        return
    for d in deps:
        cached = f" cached={d['cached']}" if "cached" in d else ""
        click.echo(
            f"  {d['path']:40s} {d['version']:12s} "
            f"[{d['source']:8s}] installed={d['installed']}{cached}"
        )
