"""asset-installer: 汇总依赖包声明的前端资源并驱动 npm 安装"""

__version__ = "0.1.0"
