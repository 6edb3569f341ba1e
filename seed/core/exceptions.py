"""统一异常体系

所有业务异常继承 SeedError，替代散落的 ValueError / OSError。
CLI 层据此输出友好提示并返回非零退出码，批量安装据此记录每个包的失败原因。

层次:
  SeedError
    ├── InvalidSpecError       包标识无法解析
    ├── ConfigError            配置 / 清单文件缺失或无效
    ├── ExecutionError         外部命令执行失败
    ├── FilesystemFailureError 同步过程中的文件系统错误
    └── FetchError             拉取阶段失败（中止该包，不进入同步）
          ├── RefNotFoundError
          ├── NetworkFailureError
          ├── CacheMissError
          ├── CorruptArchiveError
          └── RenameConflictError
"""

from __future__ import annotations


class SeedError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class InvalidSpecError(SeedError):
    """包标识格式错误（缺少组织名/包名、版本为空等）"""

    code = "INVALID_SPEC"

    def __init__(self, message: str, raw: str = "") -> None:
        super().__init__(message)
        self.raw = raw


class ConfigError(SeedError):
    """配置文件或清单缺失、内容无效"""

    code = "CONFIG_ERROR"


class ExecutionError(SeedError):
    """外部命令执行失败"""

    code = "EXECUTION_ERROR"


class FilesystemFailureError(SeedError):
    """目录同步时的文件系统错误"""

    code = "FILESYSTEM_FAILURE"


class FetchError(SeedError):
    """拉取阶段失败的公共基类"""

    code = "FETCH_ERROR"


class RefNotFoundError(FetchError):
    """VCS 镜像中找不到请求的分支 / tag / commit"""

    code = "REF_NOT_FOUND"


class NetworkFailureError(FetchError):
    """clone / fetch 等 VCS 操作失败"""

    code = "NETWORK_FAILURE"


class CacheMissError(FetchError):
    """本地缓存中不存在对应的制品包"""

    code = "CACHE_MISS"


class CorruptArchiveError(FetchError):
    """制品包无法解压或目录结构不符合约定"""

    code = "CORRUPT_ARCHIVE"


class RenameConflictError(FetchError):
    """解压后重命名的目标目录已被占用"""

    code = "RENAME_CONFLICT"
