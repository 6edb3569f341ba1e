"""seed - Go 依赖拉取与 vendor 工具"""

__version__ = "0.1.0"
