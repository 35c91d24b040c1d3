"""
BitLedger - Version Management
================================
Versione della libreria, User-Agent HTTP e decodifica della versione
numerica riportata dal daemon (getinfo.version).
"""

from typing import NamedTuple


class VersionInfo(NamedTuple):
    """Versione semantica"""
    major: int
    minor: int
    patch: int
    prerelease: str = ""

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        return text


VERSION = VersionInfo(major=1, minor=0, patch=0)


def get_version_string() -> str:
    return str(VERSION)


def get_user_agent() -> str:
    """User-Agent delle richieste JSON-RPC (es. BitLedger/1.0.0)"""
    return f"BitLedger/{VERSION}"


def format_daemon_version(version: int) -> str:
    """
    Versione del daemon in forma leggibile.

    bitcoind codifica la versione come intero
    (major*1000000 + minor*10000 + revision*100 + build).

    Examples:
        >>> format_daemon_version(32400)
        '0.3.24'
        >>> format_daemon_version(210100)
        '0.21.1'
    """
    if version < 0:
        raise ValueError(f"Invalid daemon version: {version!r}")

    major, rest = divmod(version, 1000000)
    minor, rest = divmod(rest, 10000)
    revision, build = divmod(rest, 100)

    text = f"{major}.{minor}.{revision}"
    if build:
        text += f".{build}"
    return text


__version__ = get_version_string()
__version_info__ = VERSION

__all__ = [
    "__version__",
    "__version_info__",
    "VERSION",
    "VersionInfo",
    "get_version_string",
    "get_user_agent",
    "format_daemon_version",
]
