"""领域协议定义

DepManager 只依赖这里的抽象，不关心拉取器内部是调用外部 git 进程
还是直接读本地归档。

使用 typing.Protocol 而非 ABC，测试中的假拉取器无需继承即可满足协议。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from seed.core.dep.fetcher import FetchedTree
    from seed.core.dep.models import PackageSpec


class SourceFetcher(Protocol):
    """来源拉取器协议

    fetch() 返回的 FetchedTree 由调用方独占，用完后负责清理；
    任何失败都必须抛 FetchError 子类，不能返回不完整的目录。
    """

    def fetch(self, spec: PackageSpec) -> FetchedTree:
        """拉取 spec 对应的源码树"""
        ...
