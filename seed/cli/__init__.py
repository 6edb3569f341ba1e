"""seed 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
核心层抛出的 SeedError 统一转换为非零退出码 + 可读的错误信息。
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any

import click

from seed import __version__
from seed.core.config import DEFAULT_CONFIG_FILE, init_config
from seed.core.exceptions import SeedError
from seed.utils.logger import setup_logging

logger = logging.getLogger(__name__)


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """把 SeedError 转成 click.ClickException（退出码 1）"""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except SeedError as e:
            logger.debug("命令失败", exc_info=True)
            raise click.ClickException(f"[{e.code}] {e}") from e

    return wrapper


class AliasedGroup(click.Group):
    """支持命令短别名的 Group（i → install），别名不在帮助中重复列出"""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.aliases: dict[str, str] = {}

    def add_alias(self, alias: str, name: str) -> None:
        self.aliases[alias] = name

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        return super().get_command(ctx, self.aliases.get(cmd_name, cmd_name))

    def resolve_command(
        self, ctx: click.Context, args: list[str],
    ) -> tuple[str | None, click.Command | None, list[str]]:
        # 上下文中使用正式命令名
        _, cmd, args = super().resolve_command(ctx, args)
        return (cmd.name if cmd else None), cmd, args


@click.group(cls=AliasedGroup)
@click.version_option(version=__version__)
@click.option("--config", "-c", default=DEFAULT_CONFIG_FILE, help="配置文件路径")
def main(config: str) -> None:
    """seed - Go 依赖拉取与 vendor 工具"""
    setup_logging()
    try:
        init_config(config)
    except SeedError as e:
        raise click.ClickException(f"[{e.code}] {e}") from e


# 注册各领域子命令
from seed.cli.cmd_deps import register as _reg_deps  # noqa: E402

_reg_deps(main)
