"""依赖包管理器

把解析、来源判定、拉取、同步串成完整的安装流程:

    原始标识 → parse_spec → SourceResolver → VcsFetcher / RegistryFetcher
             → sync_tree → vendor/<organization>/<name>

失败处理:
  - 包标识解析失败: 整份清单在 I/O 之前全部解析，无效项记为失败并跳过
  - 拉取失败: 只中止该包，绝不在缺失 / 过期的目录上继续同步
  - 同步失败: 只中止该包，批次中后续的包照常处理
  所有失败都记录在 BatchReport 中返回给调用方。

用法:
    from seed.core.dep_manager import DepManager

    dm = DepManager()
    report = dm.install_all(["github.com/acme/log@v2", "goseed.io/acme/util"])
    dm.install("acme/log@v3")
    dm.publish("./toolkit", "goseed.io/acme/toolkit@v1.0.0")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from seed.core.dep.cache import LocalCache
from seed.core.dep.fetcher import FetchedTree, RegistryFetcher, VcsFetcher
from seed.core.dep.models import (
    BatchReport,
    CacheEntry,
    PackageResult,
    PackageSpec,
    SourceKind,
)
from seed.core.dep.parser import parse_spec
from seed.core.dep.planner import plan_destination
from seed.core.dep.resolver import SourceResolver
from seed.core.dep.sync import sync_tree
from seed.core.exceptions import (
    ConfigError,
    FilesystemFailureError,
    InvalidSpecError,
    SeedError,
)
from seed.utils.shell import CommandExecutor, get_executor, run_cmd

if TYPE_CHECKING:
    from seed.core.config import Config
    from seed.core.protocols import SourceFetcher

logger = logging.getLogger(__name__)

GO_LIST_IMPORTS = ["go", "list", "-f", '{{ join .Imports "\\n" }}', "./..."]


class DepManager:
    """依赖包统一管理器

    批量安装严格按清单顺序单线程执行。
    """

    def __init__(
        self,
        config: Config | None = None,
        *,
        vendor_dir: str = "",
        executor: CommandExecutor | None = None,
        vcs_fetcher: SourceFetcher | None = None,
        registry_fetcher: SourceFetcher | None = None,
    ) -> None:
        if config is None:
            from seed.core.config import get_config
            config = get_config()
        self.config = config
        self.vendor_dir = Path(vendor_dir or config.vendor_dir)
        self.sync_filter = config.sync_filter()
        self.resolver = SourceResolver(config.registry_domains, config.default_branch)
        self.cache = LocalCache(config.cache_dir)
        self.executor = executor or get_executor()
        self._fetchers: dict[SourceKind, SourceFetcher] = {
            SourceKind.VCS: vcs_fetcher or VcsFetcher(
                config.mirror_dir, config.work_dir,
                url_template=config.vcs_url_template,
                executor=self.executor,
            ),
            SourceKind.REGISTRY: registry_fetcher or RegistryFetcher(
                self.cache, config.work_dir,
            ),
        }

    # ------------------------------------------------------------------
    # 解析
    # ------------------------------------------------------------------

    def parse(self, raw: str) -> PackageSpec:
        """解析并补全来源类型和版本"""
        return self.resolver.apply(parse_spec(raw, self.config.default_host))

    def parse_all(self, raws: list[str]) -> list[PackageSpec]:
        """解析整份清单，任何一项无效都在 I/O 之前整体失败"""
        specs: list[PackageSpec] = []
        errors: list[str] = []
        for raw in raws:
            try:
                specs.append(self.parse(raw))
            except InvalidSpecError as e:
                errors.append(str(e))
        if errors:
            raise InvalidSpecError("清单中存在无效的包标识: " + "; ".join(errors))
        return specs

    def destination(self, spec: PackageSpec) -> Path:
        return plan_destination(self.vendor_dir, spec)

    # ------------------------------------------------------------------
    # 安装
    # ------------------------------------------------------------------

    def install(self, raw: str | PackageSpec) -> PackageResult:
        """拉取并同步单个包，失败直接抛出 SeedError"""
        spec = raw if isinstance(raw, PackageSpec) else self.parse(raw)
        result = self._new_result(spec)
        self._install(spec, result)
        return result

    def install_all(self, raws: list[str]) -> BatchReport:
        """按顺序安装全部包，单个包失败不影响后续包

        先解析整份清单再做任何 I/O；无效标识记为 parse 阶段失败并跳过。
        """
        parsed: list[PackageSpec | PackageResult] = []
        for raw in raws:
            try:
                parsed.append(self.parse(raw))
            except InvalidSpecError as e:
                logger.error("包标识无效: %s", e, extra={"package": raw})
                parsed.append(PackageResult(
                    raw=raw, status="failed", stage="parse",
                    error_code=e.code, message=str(e),
                ))

        report = BatchReport()
        for item in parsed:
            if isinstance(item, PackageResult):
                report.results.append(item)
                continue
            spec = item
            result = self._new_result(spec)
            try:
                self._install(spec, result)
            except SeedError as e:
                result.status = "failed"
                result.error_code = e.code
                result.message = str(e)
                logger.error(
                    "安装失败 [%s] %s: %s", result.stage, spec.raw, e,
                    extra={"package": spec.raw},
                )
            report.results.append(result)

        if report.failed:
            logger.warning("安装汇总: %s", report.summary())
        else:
            logger.info("安装汇总: %s", report.summary())
        return report

    def install_manifest(self, manifest_path: str | Path = "") -> BatchReport:
        from seed.core.dep.manifest import load_manifest
        return self.install_all(load_manifest(manifest_path or self.config.seedfile))

    def _new_result(self, spec: PackageSpec) -> PackageResult:
        return PackageResult(raw=spec.raw, spec=spec, destination=self.destination(spec))

    def _install(self, spec: PackageSpec, result: PackageResult) -> None:
        if not spec.resolved:
            spec = self.resolver.apply(spec)
            result.spec = spec
        logger.info(
            "安装: %s [%s] -> %s", spec, spec.kind.value, result.destination,
            extra={"package": spec.raw},
        )
        result.stage = "fetch"
        with self._fetch(spec) as tree:
            # 未指定版本时 tree.spec 带有实际检出的分支名
            result.spec = tree.spec
            result.stage = "sync"
            result.stats = sync_tree(tree.path, result.destination, self.sync_filter)
        result.stage = ""
        result.status = "installed"

    def _fetch(self, spec: PackageSpec) -> FetchedTree:
        fetcher = self._fetchers[spec.kind]
        try:
            return fetcher.fetch(spec)
        except OSError as e:
            raise FilesystemFailureError(f"拉取工作目录不可用 {spec}: {e}") from e

    # ------------------------------------------------------------------
    # 发布
    # ------------------------------------------------------------------

    def publish(self, src_dir: str | Path, raw: str | PackageSpec) -> CacheEntry:
        """把 src_dir 的过滤快照发布到本地缓存"""
        spec = raw if isinstance(raw, PackageSpec) else self.parse(raw)
        if spec.kind is not SourceKind.REGISTRY:
            logger.warning("%s 按 VCS 来源安装，安装时不会读取该缓存", spec.raw)
        return self.cache.publish(src_dir, spec, self.sync_filter)

    def spec_from_meta(self, meta: dict[str, Any]) -> str:
        """由清单 package 段拼出发布用的包标识（默认第一个制品仓库域名）"""
        organization = meta.get("organization", "")
        name = meta.get("name", "")
        version = meta.get("version", "")
        if not organization or not name or not version:
            raise ConfigError("package 段需要 organization、name 和 version")
        host = meta.get("host") or self.config.registry_domains[0]
        return f"{host}/{organization}/{name}@{version}"

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    def list_dependencies(self, raws: list[str]) -> list[dict[str, str]]:
        """格式化清单中的依赖用于展示"""
        results = []
        for spec in self.parse_all(raws):
            dest = self.destination(spec)
            info = {
                "spec": spec.raw,
                "path": spec.path,
                "version": spec.version,
                "source": spec.kind.value,
                "destination": str(dest),
                "installed": "yes" if dest.is_dir() else "no",
            }
            if spec.kind is SourceKind.REGISTRY:
                info["cached"] = "yes" if self.cache.lookup(spec).present else "no"
            results.append(info)
        return results

    def list_imports(self, project_dir: str | Path = ".") -> list[str]:
        """列出项目引用的全部 import 路径（go list）"""
        r = run_cmd(
            GO_LIST_IMPORTS, cwd=str(project_dir),
            label="go list", executor=self.executor,
        )
        return sorted({line.strip() for line in r.stdout.splitlines() if line.strip()})
