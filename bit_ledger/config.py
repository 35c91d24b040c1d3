"""
BitLedger - Configuration Management
======================================
Configurazione client con Pydantic Settings.
Supporta environment variables, file .env, override runtime.

Last Updated: 2026-10-18
Version: 1.0.0

Features:
- Validazione automatica tipi
- Environment variables con prefisso BITLEDGER_
- File .env support
- Password RPC come SecretStr (mai in repr/log)
"""

import os
from pathlib import Path
from typing import Optional
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bit_ledger.constants import (
    DEFAULT_RPC_HOST,
    DEFAULT_RPC_PORT,
    DEFAULT_RPC_TIMEOUT,
    DEFAULT_PAGE_SIZE,
    DEFAULT_UNLOCK_TIMEOUT,
)


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ============================================================================
# MAIN CONFIGURATION CLASS
# ============================================================================

class ClientSettings(BaseSettings):
    """
    Configurazione del client BitLedger.

    Example:
        # Da environment
        export BITLEDGER_RPC_USER="alice"
        export BITLEDGER_RPC_PASSWORD="secret"
        export BITLEDGER_RPC_PORT=18332

        # Da codice
        settings = ClientSettings(rpc_user="alice", rpc_password="secret")

        # Da .env file
        settings = ClientSettings(_env_file=".env")
    """

    model_config = SettingsConfigDict(
        env_prefix='BITLEDGER_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    # ========================================================================
    # RPC CONNECTION
    # ========================================================================

    rpc_host: str = Field(
        default=DEFAULT_RPC_HOST,
        description="Host del daemon"
    )

    rpc_port: int = Field(
        default=DEFAULT_RPC_PORT,
        ge=1,
        le=65535,
        description="Porta JSON-RPC del daemon"
    )

    rpc_user: str = Field(
        default="",
        description="Utente RPC (HTTP basic auth)"
    )

    rpc_password: SecretStr = Field(
        default=SecretStr(""),
        description="Password RPC (HTTP basic auth)"
    )

    rpc_ssl: bool = Field(
        default=False,
        description="Usa HTTPS verso il daemon"
    )

    rpc_timeout: float = Field(
        default=DEFAULT_RPC_TIMEOUT,
        gt=0,
        le=3600,
        description="Timeout singola chiamata RPC (secondi)"
    )

    # ========================================================================
    # WALLET / LISTING
    # ========================================================================

    page_size: int = Field(
        default=DEFAULT_PAGE_SIZE,
        ge=1,
        le=1000,
        description="Transazioni per pagina in listtransactions"
    )

    unlock_timeout: int = Field(
        default=DEFAULT_UNLOCK_TIMEOUT,
        ge=1,
        description="Secondi di sblocco di default per unlock_wallet"
    )

    # ========================================================================
    # LOGGING
    # ========================================================================

    log_level: str = Field(
        default="INFO",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    log_format: str = Field(
        default="json",
        description="Formato log su file: json, text"
    )

    log_to_file: bool = Field(
        default=False,
        description="Scrivi log su file in log_dir"
    )

    log_dir: Path = Field(
        default=Path("./logs"),
        description="Directory log files"
    )

    slow_call_threshold_ms: Optional[int] = Field(
        default=None,
        ge=1,
        description="Warning per chiamate RPC più lente (None = solo debug)"
    )

    # ========================================================================
    # VALIDATORS
    # ========================================================================

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Nome di livello del modulo logging"""
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log_level: {v}. Must be one of {list(LOG_LEVELS)}")
        return level

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Valida formato log"""
        valid_formats = ['json', 'text']
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(f"Invalid log_format: {v}. Must be one of {valid_formats}")
        return v_lower

    @field_validator('rpc_host')
    @classmethod
    def validate_rpc_host(cls, v: str) -> str:
        """Host senza schema né porta"""
        v = v.strip()
        if not v:
            raise ValueError("rpc_host cannot be empty")
        if "://" in v:
            raise ValueError(f"Invalid rpc_host: {v}. Use rpc_ssl instead of a scheme")
        return v

    # ========================================================================
    # HELPER METHODS
    # ========================================================================

    def rpc_url(self) -> str:
        """URL endpoint JSON-RPC"""
        scheme = "https" if self.rpc_ssl else "http"
        return f"{scheme}://{self.rpc_host}:{self.rpc_port}/"

    def to_dict(self) -> dict:
        """Serializza config (password mascherata)"""
        return self.model_dump()

    def __repr__(self) -> str:
        return (
            f"ClientSettings("
            f"rpc_host={self.rpc_host}, "
            f"rpc_port={self.rpc_port}, "
            f"rpc_user={self.rpc_user}, "
            f"rpc_ssl={self.rpc_ssl})"
        )


# ============================================================================
# SINGLETON INSTANCE
# ============================================================================

@lru_cache(maxsize=1)
def get_settings() -> ClientSettings:
    """
    Ottieni singleton instance di ClientSettings.

    Example:
        >>> settings = get_settings()
        >>> settings.rpc_port
        8331
    """
    return ClientSettings()


def reload_settings() -> ClientSettings:
    """
    Ricarica settings (invalida cache).

    Usare quando si cambiano environment variables a runtime.
    """
    get_settings.cache_clear()
    return get_settings()


def override_settings(**kwargs) -> ClientSettings:
    """
    Settings con valori custom (non tocca il singleton).

    Example:
        >>> test_settings = override_settings(page_size=5, rpc_user="test")
    """
    return ClientSettings(**kwargs)


# ============================================================================
# CONFIGURATION VALIDATION
# ============================================================================

def validate_config(settings: ClientSettings) -> tuple[bool, list[str]]:
    """
    Valida combinazioni di campi che Pydantic non può controllare da solo.

    Returns:
        tuple: (is_valid, errors_list)

    Example:
        >>> is_valid, errors = validate_config(get_settings())
        >>> if not is_valid:
        ...     print(f"Config errors: {errors}")
    """
    errors = []

    if not settings.rpc_user:
        errors.append("rpc_user is required by the daemon")

    if not settings.rpc_password.get_secret_value():
        errors.append("rpc_password is required by the daemon")

    if settings.log_to_file and settings.log_dir.exists():
        if not os.access(settings.log_dir, os.W_OK):
            errors.append(f"Directory not writable: {settings.log_dir}")

    if settings.slow_call_threshold_ms and settings.slow_call_threshold_ms > settings.rpc_timeout * 1000:
        errors.append("slow_call_threshold_ms exceeds rpc_timeout")

    return (len(errors) == 0, errors)


# ============================================================================
# EXPORT
# ============================================================================

__all__ = [
    "ClientSettings",
    "get_settings",
    "reload_settings",
    "override_settings",
    "validate_config",
]
