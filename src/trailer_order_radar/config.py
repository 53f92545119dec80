"""Configuration loading, validation and path normalization helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, List

from dotenv import dotenv_values
from pydantic import BaseModel


def _runtime_home() -> Path:
    """`TRAILER_ORDER_RADAR_HOME` when set, else the project root."""
    override = str(os.getenv("TRAILER_ORDER_RADAR_HOME", "") or "").strip()
    if override:
        return Path(override).expanduser().resolve()
    return Path(__file__).resolve().parents[2]


DEFAULT_CONFIG_HOME = _runtime_home()
ENV_PATH = DEFAULT_CONFIG_HOME / ".env"
ENV_EXAMPLE_PATH = DEFAULT_CONFIG_HOME / ".env.example"

SUPABASE_PLACEHOLDER_URL = "https://placeholder.supabase.co"
BRIGHTVIEW_SCOPES = ("all", "brightview", "standard")

_PATH_SETTING_KEYS = {"DATA_PATH", "LOG_PATH"}


def _candidate_env_example_paths() -> List[Path]:
    out: List[Path] = [ENV_EXAMPLE_PATH]
    try:
        out.append(Path.cwd() / ".env.example")
    except Exception:
        pass

    seen: set[str] = set()
    uniq: List[Path] = []
    for path in out:
        key = str(path)
        if key in seen:
            continue
        seen.add(key)
        uniq.append(path)
    return uniq


def _strip_legacy_inline_comment(value: object) -> str:
    """
    Strip inline comments from enum-like keys, e.g.:
      THEME=light  # light|dark
    """
    txt = str(value or "").strip()
    if " #" in txt:
        txt = txt.split(" #", 1)[0].strip()
    return txt


def _coerce_str(value: Any) -> str:
    return str(value or "").strip()


def config_home() -> Path:
    return ENV_PATH.expanduser().resolve().parent


def _resolve_runtime_path(raw: str) -> str:
    txt = _coerce_str(raw)
    if not txt:
        return ""
    path = Path(txt).expanduser()
    if not path.is_absolute():
        path = config_home() / path
    return str(path.resolve())


def _to_storable_path(raw: str) -> str:
    txt = _coerce_str(raw)
    if not txt:
        return ""
    path = Path(txt).expanduser()
    if not path.is_absolute():
        return str(path)
    try:
        rel = path.resolve().relative_to(config_home())
        return str(rel)
    except Exception:
        return str(path.resolve())


class Settings(BaseModel):
    APP_TITLE: str = "Trailer Order Radar"
    THEME: str = "auto"
    DATA_PATH: str = "data/orders.json"
    LOG_LEVEL: str = "INFO"
    # Empty = log to stderr only
    LOG_PATH: str = ""

    # -------------------------
    # Supabase (PostgREST)
    # -------------------------
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_ORDER_TABLE: str = "order"
    SUPABASE_DEALER_TABLE: str = "dealer"
    SUPABASE_TIMEOUT: int = 30

    # -------------------------
    # Dashboard preferences
    # -------------------------
    DASHBOARD_BRIGHTVIEW_SCOPE: str = "all"  # all|brightview|standard


def ensure_env() -> None:
    ENV_PATH.parent.mkdir(parents=True, exist_ok=True)
    if not ENV_PATH.exists():
        example_path = next((p for p in _candidate_env_example_paths() if p.exists()), None)
        if example_path is not None:
            ENV_PATH.write_text(example_path.read_text(encoding="utf-8"), encoding="utf-8")
            return
        ENV_PATH.write_text("", encoding="utf-8")


def load_settings() -> Settings:
    vals = {k: v for k, v in dotenv_values(ENV_PATH).items() if v is not None}

    for key in ("THEME", "LOG_LEVEL", "DASHBOARD_BRIGHTVIEW_SCOPE"):
        if key in vals:
            vals[key] = _strip_legacy_inline_comment(vals[key])
    settings = Settings.model_validate(vals)

    payload = settings.model_dump()
    for key in _PATH_SETTING_KEYS:
        payload[key] = _resolve_runtime_path(str(payload.get(key) or ""))
    return Settings.model_validate(payload)


def save_settings(settings: Settings) -> None:
    ENV_PATH.parent.mkdir(parents=True, exist_ok=True)
    lines = []
    data = settings.model_dump()

    for k, v in data.items():
        if isinstance(v, str) and k in _PATH_SETTING_KEYS:
            v = _to_storable_path(v)
        lines.append(f"{k}={v}")

    ENV_PATH.write_text("\n".join(lines) + "\n", encoding="utf-8")


def brightview_scope(settings: Settings) -> str:
    """Return the configured brightview scope, falling back to `all`."""
    scope = _coerce_str(getattr(settings, "DASHBOARD_BRIGHTVIEW_SCOPE", "")).lower()
    return scope if scope in BRIGHTVIEW_SCOPES else "all"
