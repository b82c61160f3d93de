"""统一异常体系

所有业务异常继承 AssetInstallerError，每种异常带有 code 标识错误类别。
CLI 层据此输出友好提示，任何异常都会中止本次运行。
"""

from __future__ import annotations

CONFLICT_DOC_URL = (
    "https://doc.oroinc.com/master/frontend/javascript/composer-js-dependencies"
    "#resolving-conflicting-npm-dependencies/"
)


class AssetInstallerError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(AssetInstallerError):
    """配置文件或包元数据文件缺失/内容无效"""

    code = "CONFIG_ERROR"


class ConflictError(AssetInstallerError):
    """多个非根包声明了同名资源，且根包未覆盖"""

    code = "ASSET_CONFLICT"

    def __init__(self, names: list[str]) -> None:
        self.names = list(names)
        joined = '", "'.join(self.names)
        super().__init__(
            f'存在冲突的 npm 资源 "{joined}"。'
            f"解决方法: 在根包 extra.npm 中固定版本，参见 {CONFLICT_DOC_URL}"
        )


class ManifestIOError(AssetInstallerError):
    """清单文件读写失败"""

    code = "MANIFEST_IO_ERROR"

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path = path


class ManifestFormatError(AssetInstallerError):
    """已存在的清单文件不是合法的 JSON 对象"""

    code = "MANIFEST_FORMAT_ERROR"

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path = path


class InstallError(AssetInstallerError):
    """外部安装工具返回非零退出码或超时"""

    code = "INSTALL_ERROR"

    def __init__(
        self, message: str, returncode: int = -1,
        command: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.command = command or []
