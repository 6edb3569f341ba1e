"""vendor 目标路径规划

路径只由 organization/name 决定，版本不参与，
同一个包在 vendor 目录下同时只存在一个版本，新版本原地覆盖旧版本。
"""

from __future__ import annotations

from pathlib import Path

from seed.core.dep.models import PackageSpec


def plan_destination(root: str | Path, spec: PackageSpec) -> Path:
    return Path(root) / spec.organization / spec.name
