import os
from dataclasses import dataclass


@dataclass
class AppConfig:
    cache_dir: str
    presets_dir: str
    default_export_dir: str
    default_hfov_deg: float
    perf_log_enabled: bool


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# User dir env (cache, custom presets, exports)
BASE_USER_DIR = os.path.abspath(
    os.getenv("BABYVISION_USER_DIR", os.path.expanduser("~/.babyvision"))
)

# Global application constants
APP_CONFIG = AppConfig(
    cache_dir=os.path.join(BASE_USER_DIR, "cache"),
    presets_dir=os.path.join(BASE_USER_DIR, "presets"),
    default_export_dir=os.path.join(BASE_USER_DIR, "export"),
    # Typical front-facing webcam horizontal field of view
    default_hfov_deg=_env_float("BABYVISION_HFOV_DEG", 60.0),
    perf_log_enabled=_env_bool("BABYVISION_PERF_LOG"),
)
