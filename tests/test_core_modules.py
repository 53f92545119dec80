from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from trailer_order_radar import config as cfg
from trailer_order_radar import logging_utils
from trailer_order_radar.utils import as_text, fold_text, is_missing, now_iso, optional_text


def test_now_iso_is_valid_utc_timestamp() -> None:
    parsed = datetime.fromisoformat(now_iso())
    assert parsed.tzinfo is not None


def test_missing_value_helpers() -> None:
    assert is_missing(None)
    assert is_missing("   ")
    assert is_missing(float("nan"))
    assert is_missing(pd.NaT)
    assert not is_missing(0)
    assert not is_missing(False)
    assert not is_missing(["x"])
    assert as_text("  Mount ") == "Mount"
    assert as_text(None) == ""
    assert optional_text(" ") is None


def test_fold_text_drops_accents_case_and_extra_spaces() -> None:
    assert fold_text("  Remolque   ÑANDÚ ") == "remolque nandu"
    assert fold_text("Straße") == "strasse"
    assert fold_text(None) == ""  # type: ignore[arg-type]


def test_config_ensure_env_from_example_and_load_save(monkeypatch: Any, tmp_path: Path) -> None:
    env_path = tmp_path / ".env"
    env_example = tmp_path / ".env.example"
    env_example.write_text(
        "APP_TITLE=Yard Radar\n"
        "THEME=dark  # light|dark|auto\n"
        "DATA_PATH=data/orders.json\n"
        "SUPABASE_TIMEOUT=15\n"
        "DASHBOARD_BRIGHTVIEW_SCOPE=brightview  # all|brightview|standard\n",
        encoding="utf-8",
    )

    monkeypatch.setattr(cfg, "ENV_PATH", env_path)
    monkeypatch.setattr(cfg, "ENV_EXAMPLE_PATH", env_example)

    cfg.ensure_env()
    assert env_path.exists()

    settings = cfg.load_settings()
    assert settings.APP_TITLE == "Yard Radar"
    assert settings.THEME == "dark"
    assert settings.SUPABASE_TIMEOUT == 15
    assert settings.DATA_PATH == str((tmp_path / "data" / "orders.json").resolve())
    assert settings.LOG_PATH == ""
    assert cfg.brightview_scope(settings) == "brightview"

    settings.SUPABASE_ORDER_TABLE = "orders_v2"
    cfg.save_settings(settings)
    saved = env_path.read_text(encoding="utf-8")
    assert "SUPABASE_ORDER_TABLE=orders_v2" in saved
    assert f"DATA_PATH={Path('data') / 'orders.json'}" in saved


def test_ensure_env_creates_empty_file_without_example(monkeypatch: Any, tmp_path: Path) -> None:
    env_path = tmp_path / "home" / ".env"
    monkeypatch.setattr(cfg, "ENV_PATH", env_path)
    monkeypatch.setattr(cfg, "ENV_EXAMPLE_PATH", tmp_path / "missing.example")
    monkeypatch.chdir(tmp_path)

    cfg.ensure_env()

    assert env_path.read_text(encoding="utf-8") == ""
    assert cfg.load_settings().SUPABASE_DEALER_TABLE == "dealer"


def test_brightview_scope_falls_back_to_all() -> None:
    assert cfg.brightview_scope(cfg.Settings(DASHBOARD_BRIGHTVIEW_SCOPE="STANDARD")) == "standard"
    assert cfg.brightview_scope(cfg.Settings(DASHBOARD_BRIGHTVIEW_SCOPE="weird")) == "all"


def test_configure_logging_writes_to_rotating_file(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "radar.log"
    settings = cfg.Settings(LOG_LEVEL="debug", LOG_PATH=str(log_path))

    logger = logging_utils.configure_logging(settings)
    try:
        assert logger.level == logging.DEBUG
        again = logging_utils.configure_logging(settings)
        marked = [h for h in again.handlers if getattr(h, "_trailer_order_radar", False)]
        assert len(marked) == 1

        logging_utils.get_logger("ingest").info("fetched %d orders", 3)
        for handler in marked:
            handler.flush()
        content = log_path.read_text(encoding="utf-8")
        assert "| INFO | trailer_order_radar.ingest | fetched 3 orders" in content
    finally:
        for handler in list(logger.handlers):
            if getattr(handler, "_trailer_order_radar", False):
                logger.removeHandler(handler)
                handler.close()
        logger.setLevel(logging.NOTSET)


def test_get_logger_namespaces_under_package() -> None:
    assert logging_utils.get_logger("x").name == "trailer_order_radar.x"
    name = "trailer_order_radar.ingest.supabase_ingest"
    assert logging_utils.get_logger(name).name == name
