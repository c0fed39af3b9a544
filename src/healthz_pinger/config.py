from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from typing import Any

import confuse

from healthz_pinger.logger import setup_logger

DEFAULT_ENDPOINT = "https://mailerservice-y32x.onrender.com/healthz"
DEFAULT_CADENCE = "0 * * * *"

RUN_MODE_SCHEDULE = "schedule"
RUN_MODE_ONCE = "once"
RUN_MODES = (RUN_MODE_SCHEDULE, RUN_MODE_ONCE)


@dataclass(frozen=True)
class ProbeConfig:
    endpoint: str
    api_key: str


@dataclass(frozen=True)
class ScheduleConfig:
    cadence: str = DEFAULT_CADENCE
    run_mode: str = RUN_MODE_SCHEDULE


@dataclass(frozen=True)
class AppConfig:
    probe: ProbeConfig
    schedule: ScheduleConfig
    debug_level: str = "INFO"


def _cfg_get(cfg: confuse.Configuration, path: list[str], typ: Any, default: Any) -> Any:
    node = cfg
    try:
        for key in path:
            node = node[key]
        return node.get(typ)
    except confuse.ConfigError:
        return default


def _env_or(name: str, value: str) -> str:
    """Environment variables win over the config file when set and non-blank."""
    override = os.getenv(name)
    if override is not None and override.strip():
        return override.strip()
    return value


def load_config(config_file: str = "config.yaml") -> AppConfig:
    cfg = confuse.Configuration("healthz_pinger", __name__, read=False)
    if config_file and os.path.exists(config_file):
        cfg.set_file(config_file)

    endpoint = _env_or("API_ENDPOINT", _cfg_get(cfg, ["PROBE", "ENDPOINT"], str, DEFAULT_ENDPOINT))
    api_key = _env_or("API_KEY", _cfg_get(cfg, ["PROBE", "API_KEY"], str, ""))
    cadence = _env_or("PINGER_CADENCE", _cfg_get(cfg, ["SCHEDULE", "CADENCE"], str, DEFAULT_CADENCE))
    run_mode = _env_or("PINGER_RUN_MODE", _cfg_get(cfg, ["SCHEDULE", "RUN_MODE"], str, RUN_MODE_SCHEDULE))
    debug_level = _env_or("DEBUG_LEVEL", _cfg_get(cfg, ["DEBUG_LEVEL"], str, "INFO"))

    # --- Configure logging here ---
    setup_logger(debug_level)
    logging.info("Logger configured with level %s", debug_level.upper())

    if not endpoint.strip():
        logging.warning("Empty endpoint configured, falling back to %s", DEFAULT_ENDPOINT)
        endpoint = DEFAULT_ENDPOINT

    run_mode = run_mode.lower()
    if run_mode not in RUN_MODES:
        logging.warning("Unknown run mode %r, using %r", run_mode, RUN_MODE_SCHEDULE)
        run_mode = RUN_MODE_SCHEDULE

    return AppConfig(
        probe=ProbeConfig(endpoint=endpoint, api_key=api_key),
        schedule=ScheduleConfig(cadence=cadence, run_mode=run_mode),
        debug_level=debug_level,
    )
