"""Configuration loaded from `config.yaml` (with defaults for anything missing)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

import yaml


logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.yaml"
DEFAULT_API_BASE_URL = "http://62.217.127.19:8010"


@dataclass(frozen=True)
class ApiConfig:
    base_url: str = DEFAULT_API_BASE_URL
    timeout_s: float = 10.0
    connect_timeout_s: float = 3.0


@dataclass(frozen=True)
class RecommenderConfig:
    similarity_threshold: float = 0.75
    min_peer_rating: float = 4.0
    max_candidates: int = 40
    # False: skip movies whose detail fetch failed. True: abort the whole run.
    fail_fast_details: bool = False


@dataclass(frozen=True)
class Settings:
    api: ApiConfig = field(default_factory=ApiConfig)
    recommender: RecommenderConfig = field(default_factory=RecommenderConfig)
    log_level: str = "INFO"


def find_config_path(start: Optional[Path] = None) -> Optional[Path]:
    """Search upwards from `start` (default: cwd) for `config.yaml`."""
    start = (start or Path.cwd()).resolve()
    if start.is_file():
        start = start.parent

    for candidate in (start, *start.parents):
        path = candidate / CONFIG_FILENAME
        if path.is_file():
            return path

    # Fallback: search upwards from this file (useful for an editable install).
    here = Path(__file__).resolve().parent
    for candidate in (here, *here.parents):
        path = candidate / CONFIG_FILENAME
        if path.is_file():
            return path
    return None


def _section(cfg: dict[str, Any], name: str) -> dict[str, Any]:
    return cfg.get(name, {}) if isinstance(cfg.get(name), dict) else {}


def settings_from_mapping(cfg: dict[str, Any]) -> Settings:
    api_raw = _section(cfg, "api")
    rec_raw = _section(cfg, "recommender")
    log_raw = _section(cfg, "logging")

    defaults_api = ApiConfig()
    defaults_rec = RecommenderConfig()

    api = ApiConfig(
        base_url=str(api_raw.get("base_url", defaults_api.base_url)).rstrip("/"),
        timeout_s=float(api_raw.get("timeout_s", defaults_api.timeout_s)),
        connect_timeout_s=float(api_raw.get("connect_timeout_s", defaults_api.connect_timeout_s)),
    )
    recommender = RecommenderConfig(
        similarity_threshold=float(rec_raw.get("similarity_threshold", defaults_rec.similarity_threshold)),
        min_peer_rating=float(rec_raw.get("min_peer_rating", defaults_rec.min_peer_rating)),
        max_candidates=int(rec_raw.get("max_candidates", defaults_rec.max_candidates)),
        fail_fast_details=rec_raw.get("fail_fast_details", defaults_rec.fail_fast_details),
    )
    if not isinstance(recommender.fail_fast_details, bool):
        raise ValueError(
            f"recommender.fail_fast_details must be true or false, got {recommender.fail_fast_details!r}"
        )
    if recommender.max_candidates < 0:
        raise ValueError(f"recommender.max_candidates must be >= 0, got {recommender.max_candidates}")
    if not -1.0 <= recommender.similarity_threshold <= 1.0:
        raise ValueError(
            f"recommender.similarity_threshold must be within [-1, 1], got {recommender.similarity_threshold}"
        )

    return Settings(api=api, recommender=recommender, log_level=str(log_raw.get("level", "INFO")))


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """Load settings from YAML, then apply environment overrides.

    Without an explicit path, `CONFIG_PATH` is used, then an upwards search
    for `config.yaml`. A missing file means defaults.
    """
    if config_path is None:
        env_path = os.getenv("CONFIG_PATH")
        if env_path is not None and env_path.strip() != "":
            config_path = Path(env_path)
        else:
            config_path = find_config_path()

    cfg: dict[str, Any] = {}
    if config_path is None:
        logger.info("No %s found, using default settings", CONFIG_FILENAME)
    else:
        config_path = Path(config_path).resolve()
        if not config_path.exists():
            raise FileNotFoundError(f"Config not found: {config_path}")
        obj = yaml.safe_load(config_path.read_text())
        if obj is None:
            obj = {}
        if not isinstance(obj, dict):
            raise ValueError(f"Expected YAML mapping at {config_path}, got {type(obj)}")
        cfg = obj
        logger.info("Loaded settings from %s", config_path)

    settings = settings_from_mapping(cfg)

    env_base_url = os.getenv("MOVIEREC_API_BASE_URL")
    if env_base_url:
        settings = replace(settings, api=replace(settings.api, base_url=env_base_url.rstrip("/")))
    env_level = os.getenv("LOG_LEVEL")
    if env_level:
        settings = replace(settings, log_level=env_level)
    return settings
