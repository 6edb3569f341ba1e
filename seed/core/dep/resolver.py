"""来源类型解析

职责:
- 按 host 判定包来自 VCS 还是制品仓库（纯函数，无失败分支）
- 按来源类型补全缺省版本
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from seed.core.dep.models import LATEST, PackageSpec, SourceKind

logger = logging.getLogger(__name__)


class SourceResolver:
    """来源类型解析器"""

    def __init__(
        self,
        registry_domains: Iterable[str],
        default_branch: str = "master",
    ) -> None:
        self.registry_domains = frozenset(d.lower() for d in registry_domains)
        self.default_branch = default_branch

    def resolve(self, spec: PackageSpec) -> SourceKind:
        """host 等于某个制品仓库域名（或其子域名）即为 REGISTRY，其余都是 VCS"""
        host = spec.host.lower()
        for domain in self.registry_domains:
            if host == domain or host.endswith("." + domain):
                return SourceKind.REGISTRY
        return SourceKind.VCS

    def default_version(self, kind: SourceKind) -> str:
        if kind is SourceKind.REGISTRY:
            return LATEST
        return self.default_branch

    def apply(self, spec: PackageSpec) -> PackageSpec:
        """返回补全了来源类型和版本的 spec"""
        kind = self.resolve(spec)
        defaulted = spec.defaulted or not spec.version
        version = spec.version or self.default_version(kind)
        logger.debug("来源解析: %s -> %s@%s", spec.raw, kind.value, version)
        return spec.with_resolution(kind, version, defaulted=defaulted)
