# src/appstore_earnings/config/settings.py
"""
Application configuration management.
Loads settings from environment variables with sensible defaults.

Priorities for every key (first non-empty wins):
1) Process environment
2) .env file in the current working directory
3) Config file at $XDG_CONFIG_HOME/appstore-earnings-cli/config.json
"""

from __future__ import annotations

import os
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional
from dataclasses import dataclass

from dotenv import dotenv_values

from ..exceptions import ConfigurationError
from ..models.enums import ConfigSource

logger = logging.getLogger(__name__)

APP_NAME = "appstore-earnings-cli"

# env key -> config.json key
FINANCE_KEYS = {
    "ASC_ISSUER_ID": "issuerId",
    "ASC_KEY_ID": "keyId",
    "ASC_PRIVATE_KEY_PATH": "privateKeyPath",
    "ASC_VENDOR_NUMBER": "vendorNumber",
    "ASC_API_TOKEN": "apiToken",
}

APP_MANAGER_KEYS = {
    "ASC_APP_MANAGER_ISSUER_ID": "appManagerIssuerId",
    "ASC_APP_MANAGER_KEY_ID": "appManagerKeyId",
    "ASC_APP_MANAGER_PRIVATE_KEY_PATH": "appManagerPrivateKeyPath",
    "ASC_APP_MANAGER_TOKEN": "appManagerToken",
}

SECRET_KEYS = {"ASC_API_TOKEN", "ASC_APP_MANAGER_TOKEN"}


# -------------------------- helpers (pure) --------------------------


def _xdg_dir(environ: Dict[str, str], var: str, fallback: str) -> Path:
    return Path(environ.get(var) or Path.home() / fallback)


def config_dir(environ: Optional[Dict[str, str]] = None) -> Path:
    return _xdg_dir(os.environ if environ is None else environ, "XDG_CONFIG_HOME", ".config") / APP_NAME


def config_file_path(environ: Optional[Dict[str, str]] = None) -> Path:
    return config_dir(environ) / "config.json"


def _load_config_file(path: Path) -> Dict[str, str]:
    if not path.exists():
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Ignoring unreadable config file {path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


def _load_dotenv(path: Path) -> Dict[str, str]:
    if not path.exists():
        return {}
    return {k: v for k, v in dotenv_values(path).items() if v is not None}


def _bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def _int(value: Optional[str], default: int) -> int:
    try:
        return int(str(value).strip() or default) if value is not None else default
    except ValueError:
        return default


def _float(value: Optional[str], default: float) -> float:
    try:
        return float(str(value).strip() or default) if value is not None else default
    except ValueError:
        return default


class _Resolver:
    """Resolves keys across environment, .env and config.json."""

    def __init__(self, environ: Dict[str, str], dotenv: Dict[str, str], config: Dict[str, str]):
        self.environ = environ
        self.dotenv = dotenv
        self.config = config

    def get(self, env_key: str, config_key: Optional[str] = None) -> Optional[str]:
        for value in (
            self.environ.get(env_key),
            self.dotenv.get(env_key),
            self.config.get(config_key) if config_key else None,
        ):
            if value not in (None, ""):
                return str(value)
        return None

    def source(self) -> ConfigSource:
        def has_identity(values: Dict[str, str], issuer: str, key: str) -> bool:
            return bool(values.get(issuer) or values.get(key))

        if has_identity(self.environ, "ASC_ISSUER_ID", "ASC_KEY_ID"):
            return ConfigSource.ENV
        if has_identity(self.dotenv, "ASC_ISSUER_ID", "ASC_KEY_ID"):
            return ConfigSource.DOTENV
        if has_identity(self.config, "issuerId", "keyId"):
            return ConfigSource.CONFIG
        return ConfigSource.NONE


# -------------------------- dataclasses --------------------------


@dataclass
class FinanceApiConfig:
    """Finance role credentials, used to download financial reports."""

    issuer_id: Optional[str]
    key_id: Optional[str]
    private_key_path: Optional[str]
    vendor_number: Optional[str]
    # Pre-signed token; when set, the signing key settings are not needed
    api_token: Optional[str] = None

    def missing(self) -> List[str]:
        missing = [] if self.vendor_number else ["ASC_VENDOR_NUMBER"]
        if self.api_token:
            return missing
        signing = {
            "ASC_ISSUER_ID": self.issuer_id,
            "ASC_KEY_ID": self.key_id,
            "ASC_PRIVATE_KEY_PATH": self.private_key_path,
        }
        return [key for key, value in signing.items() if not value] + missing

    @property
    def is_complete(self) -> bool:
        return not self.missing()


@dataclass
class AppManagerConfig:
    """App Manager role credentials, used to build the product mapping."""

    issuer_id: Optional[str]
    key_id: Optional[str]
    private_key_path: Optional[str]
    api_token: Optional[str] = None

    def missing(self) -> List[str]:
        if self.api_token:
            return []
        signing = {
            "ASC_APP_MANAGER_ISSUER_ID": self.issuer_id,
            "ASC_APP_MANAGER_KEY_ID": self.key_id,
            "ASC_APP_MANAGER_PRIVATE_KEY_PATH": self.private_key_path,
        }
        return [key for key, value in signing.items() if not value]

    @property
    def is_empty(self) -> bool:
        return not any((self.issuer_id, self.key_id, self.private_key_path, self.api_token))


@dataclass
class CacheConfig:
    """Cache configuration."""

    cache_dir: Path
    mapping_ttl_days: int

    @property
    def reports_dir(self) -> Path:
        return self.cache_dir / "reports"

    @property
    def mapping_file(self) -> Path:
        return self.cache_dir / "product-mapping.json"

    @property
    def mapping_ttl_seconds(self) -> int:
        return self.mapping_ttl_days * 24 * 60 * 60


@dataclass
class HttpConfig:
    """Outbound HTTP configuration."""

    request_timeout: float
    rate_workers: int
    rates_url: str


@dataclass
class Settings:
    """Application settings."""

    finance: FinanceApiConfig
    app_manager: AppManagerConfig
    cache: CacheConfig
    http: HttpConfig
    target_currency: str
    source: ConfigSource
    debug: bool = False
    config_file: Optional[Path] = None

    def require_finance(self) -> FinanceApiConfig:
        """
        Return the finance credentials, failing if any are missing.

        Raises:
            ConfigurationError: If required finance settings are missing
        """
        missing = self.finance.missing()
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}. "
                f"Set them in the environment, a .env file, or {self.config_file}."
            )
        return self.finance

    def app_manager_config(self) -> Optional[AppManagerConfig]:
        """App Manager credentials, or None when not (fully) configured."""
        if self.app_manager.is_empty:
            return None
        missing = self.app_manager.missing()
        if missing:
            logger.warning(
                f"Partial App Manager config, missing: {', '.join(missing)}. "
                f"App grouping will be disabled."
            )
            return None
        return self.app_manager

    def describe(self) -> Dict[str, str]:
        """Settings summary with secrets masked, for status output."""
        def mask(key: str, value: Optional[str]) -> str:
            if not value:
                return "(not set)"
            if key in SECRET_KEYS:
                return "*" * 8
            return value

        summary = {
            "source": self.source.value,
            "config_file": str(self.config_file),
            "target_currency": self.target_currency,
            "cache_dir": str(self.cache.cache_dir),
        }
        finance_values = [
            self.finance.issuer_id, self.finance.key_id, self.finance.private_key_path,
            self.finance.vendor_number, self.finance.api_token,
        ]
        for key, value in zip(FINANCE_KEYS, finance_values):
            summary[key] = mask(key, value)
        manager_values = [
            self.app_manager.issuer_id, self.app_manager.key_id,
            self.app_manager.private_key_path, self.app_manager.api_token,
        ]
        for key, value in zip(APP_MANAGER_KEYS, manager_values):
            summary[key] = mask(key, value)
        return summary


# -------------------------- public API --------------------------


def get_settings(environ: Optional[Dict[str, str]] = None,
                 dotenv_path: Optional[Path] = None,
                 config_path: Optional[Path] = None) -> Settings:
    """
    Build settings from the environment, .env and config.json.

    Args:
        environ: Environment mapping (defaults to os.environ)
        dotenv_path: .env location (defaults to ./.env)
        config_path: config.json location (defaults to the XDG config dir)
    """
    environ = dict(os.environ if environ is None else environ)
    dotenv_path = dotenv_path or Path.cwd() / ".env"
    config_path = config_path or config_file_path(environ)

    resolver = _Resolver(environ, _load_dotenv(dotenv_path), _load_config_file(config_path))

    finance = FinanceApiConfig(
        issuer_id=resolver.get("ASC_ISSUER_ID", FINANCE_KEYS["ASC_ISSUER_ID"]),
        key_id=resolver.get("ASC_KEY_ID", FINANCE_KEYS["ASC_KEY_ID"]),
        private_key_path=resolver.get("ASC_PRIVATE_KEY_PATH", FINANCE_KEYS["ASC_PRIVATE_KEY_PATH"]),
        vendor_number=resolver.get("ASC_VENDOR_NUMBER", FINANCE_KEYS["ASC_VENDOR_NUMBER"]),
        api_token=resolver.get("ASC_API_TOKEN", FINANCE_KEYS["ASC_API_TOKEN"]),
    )

    app_manager = AppManagerConfig(
        issuer_id=resolver.get("ASC_APP_MANAGER_ISSUER_ID", APP_MANAGER_KEYS["ASC_APP_MANAGER_ISSUER_ID"]),
        key_id=resolver.get("ASC_APP_MANAGER_KEY_ID", APP_MANAGER_KEYS["ASC_APP_MANAGER_KEY_ID"]),
        private_key_path=resolver.get(
            "ASC_APP_MANAGER_PRIVATE_KEY_PATH", APP_MANAGER_KEYS["ASC_APP_MANAGER_PRIVATE_KEY_PATH"]
        ),
        api_token=resolver.get("ASC_APP_MANAGER_TOKEN", APP_MANAGER_KEYS["ASC_APP_MANAGER_TOKEN"]),
    )

    cache_dir = resolver.get("ASC_CACHE_DIR", "cacheDir")
    if cache_dir:
        cache_path = Path(cache_dir).expanduser()
    else:
        cache_path = _xdg_dir(environ, "XDG_CACHE_HOME", ".cache") / APP_NAME

    cache = CacheConfig(
        cache_dir=cache_path,
        mapping_ttl_days=_int(resolver.get("ASC_MAPPING_TTL_DAYS", "mappingTtlDays"), 7),
    )

    http = HttpConfig(
        request_timeout=_float(resolver.get("ASC_REQUEST_TIMEOUT", "requestTimeout"), 30.0),
        rate_workers=_int(resolver.get("ASC_RATE_WORKERS", "rateWorkers"), 8),
        rates_url=resolver.get("ASC_RATES_URL", "ratesUrl") or "https://api.frankfurter.app",
    )

    return Settings(
        finance=finance,
        app_manager=app_manager,
        cache=cache,
        http=http,
        target_currency=(resolver.get("ASC_TARGET_CURRENCY", "targetCurrency") or "USD").upper(),
        source=resolver.source(),
        debug=_bool(resolver.get("DEBUG")),
        config_file=config_path,
    )
