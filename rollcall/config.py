"""
rollcall.config — YAML Configuration Loader
============================================

Reads ``config.yaml`` for **infrastructure-only** settings (group identity,
timezone, dashboard port).  Scoring tunables — the meeting
start time and the point tiers — live in the ``settings`` database table and
are edited from the admin dashboard.

Usage::

    from rollcall.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.group_name)        # "Youth Meeting"
    print(cfg.tz)                # ZoneInfo('Africa/Cairo')
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo

import yaml


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class RollcallConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    group_name: str

    # Local calendar used for every date_str / HH:MM comparison
    timezone: str

    # Dashboard
    dashboard_port: int

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> RollcallConfig:
    """Read *path* and return a :class:`RollcallConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    zoneinfo.ZoneInfoNotFoundError
        If ``timezone`` is not a known IANA zone name.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh)

    cfg = RollcallConfig(
        group_name=raw["group_name"],
        timezone=raw["timezone"],
        dashboard_port=int(raw["dashboard_port"]),
    )
    # Fail fast on a typo instead of at the first check-in
    ZoneInfo(cfg.timezone)
    return cfg
