from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import yaml

STORE_BACKENDS = ("sqlite", "api")


@dataclass(frozen=True)
class Settings:
    # Paths
    log_dir: str = "./logs"
    report_dir: str = "./reports"
    store_dir: str = "./data"

    # Logging
    log_level: str = "INFO"

    # Store
    store_backend: str = "sqlite"
    api_url: str | None = None
    api_key: str | None = None
    timeout_seconds: float = 20.0
    retries: int = 3
    retry_backoff_seconds: float = 0.5

    # Import/export
    delimiter: str = ";"
    report_items_limit: int = 200
    owner_id: str | None = None


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    sources_used: list[str]


_ENV_NAMES = {
    "log_dir": "BUDGET_LOG_DIR",
    "report_dir": "BUDGET_REPORT_DIR",
    "store_dir": "BUDGET_STORE_DIR",
    "log_level": "BUDGET_LOG_LEVEL",
    "store_backend": "BUDGET_STORE_BACKEND",
    "api_url": "BUDGET_API_URL",
    "api_key": "BUDGET_API_KEY",
    "timeout_seconds": "BUDGET_TIMEOUT_SECONDS",
    "retries": "BUDGET_RETRIES",
    "retry_backoff_seconds": "BUDGET_RETRY_BACKOFF_SECONDS",
    "delimiter": "BUDGET_DELIMITER",
    "report_items_limit": "BUDGET_REPORT_ITEMS_LIMIT",
    "owner_id": "BUDGET_OWNER_ID",
}

_INT_KEYS = ("retries", "report_items_limit")
_FLOAT_KEYS = ("timeout_seconds", "retry_backoff_seconds")


def _read_yaml_config(path: Path) -> dict:
    if not path.exists():
        return {}
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            return {}
        return data


def _env_get(name: str) -> str | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    return v.strip()


def _parse_env_value(key: str, value: str):
    if key in _INT_KEYS:
        try:
            return int(value)
        except ValueError as exc:
            raise ValueError(f"Invalid integer env value for {_ENV_NAMES[key]}: {value}") from exc
    if key in _FLOAT_KEYS:
        try:
            return float(value)
        except ValueError as exc:
            raise ValueError(f"Invalid number env value for {_ENV_NAMES[key]}: {value}") from exc
    return value


def load_settings(
    config_path: str | None,
    cli_overrides: dict,
) -> LoadedSettings:
    """
    Priority: CLI > ENV > config > defaults
    """
    sources: list[str] = []
    defaults = Settings()

    # 1) config file
    cfg: dict = {}
    if config_path:
        cfg = _read_yaml_config(Path(config_path))
        if cfg:
            sources.append("config")

    merged = {key: cfg.get(key, getattr(defaults, key)) for key in _ENV_NAMES}

    # 2) env
    env = {key: _env_get(name) for key, name in _ENV_NAMES.items()}
    if any(v is not None for v in env.values()):
        sources.append("env")
    for key, value in env.items():
        if value is not None:
            merged[key] = _parse_env_value(key, value)

    # 3) CLI overrides (only those explicitly passed)
    if any(v is not None for v in cli_overrides.values()):
        sources.append("cli")
    for k, v in cli_overrides.items():
        if v is None:
            continue
        merged[k] = v

    store_backend = str(merged["store_backend"]).strip().lower()
    if store_backend not in STORE_BACKENDS:
        raise ValueError(f"Unsupported store backend: {merged['store_backend']}")

    settings = Settings(
        log_dir=str(merged["log_dir"]),
        report_dir=str(merged["report_dir"]),
        store_dir=str(merged["store_dir"]),
        log_level=str(merged["log_level"]),
        store_backend=store_backend,
        api_url=merged["api_url"],
        api_key=merged["api_key"],
        timeout_seconds=float(merged["timeout_seconds"]),
        retries=int(merged["retries"]),
        retry_backoff_seconds=float(merged["retry_backoff_seconds"]),
        delimiter=str(merged["delimiter"]),
        report_items_limit=int(merged["report_items_limit"]),
        owner_id=merged["owner_id"],
    )

    return LoadedSettings(settings=settings, sources_used=sources)
