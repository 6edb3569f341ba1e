"""包标识解析

支持的格式:
    organization/name[@version]          主机取配置的 default_host
    host/organization/name[@version]
"""

from __future__ import annotations

import re

from seed.core.dep.models import PackageSpec
from seed.core.exceptions import InvalidSpecError

VERSION_SEP = "@"
PATH_SEP = "/"

# 版本会作为 git ref 传给子进程，不允许以 "-" 开头
_SAFE_VERSION_RE = re.compile(r"^[a-zA-Z0-9_.+][a-zA-Z0-9_./+\-]*$")


def parse_spec(raw: str, default_host: str = "github.com") -> PackageSpec:
    """把原始标识解析为 PackageSpec，不做任何 I/O

    版本缺省时保持为空字符串，由 SourceResolver 按来源类型补全。
    """
    text = raw.strip()
    if not text:
        raise InvalidSpecError("包标识为空", raw=raw)

    path, sep, version = text.partition(VERSION_SEP)
    if sep and not _SAFE_VERSION_RE.match(version):
        raise InvalidSpecError(f"版本号无效: {raw!r}", raw=raw)

    segments = path.split(PATH_SEP)
    if any(not s for s in segments):
        raise InvalidSpecError(f"包路径中存在空段: {raw!r}", raw=raw)

    if len(segments) == 2:
        host = default_host
        organization, name = segments
    elif len(segments) == 3:
        host, organization, name = segments
    else:
        raise InvalidSpecError(
            f"包标识应为 [host/]organization/name[@version]: {raw!r}", raw=raw,
        )

    return PackageSpec(
        raw=text, host=host, organization=organization,
        name=name, version=version,
    )
