"""
rollcall.__main__ — Entry point for ``python -m rollcall``
==========================================================

Wiring:
1. Load .env (secrets, DATABASE_URL).
2. Load config.yaml (group name, timezone, dashboard port).
3. Create the SQLAlchemy engine, ensure tables exist and seed defaults.
4. Serve the dashboard API with uvicorn (blocking).

Run with::

    python -m rollcall
"""

from __future__ import annotations

import logging

import uvicorn
from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("rollcall")


def main() -> None:
    """Bootstrap and serve the Rollcall API."""

    # 1. Environment variables (secrets).
    load_dotenv()

    # 2. Soft configuration.
    from rollcall.config import load_config

    cfg = load_config()
    logger.info("Config loaded — Group: %s (%s)", cfg.group_name, cfg.timezone)

    # 3. Database.  The API modules validate JWT_SECRET on import, so they
    #    are imported only after .env has been loaded.
    from rollcall.api.deps import get_engine
    from rollcall.database.engine import init_db

    init_db(get_engine())

    # 4. Serve (blocks until Ctrl+C or SIGTERM).
    from rollcall.api.main import app

    logger.info("Starting Rollcall API on port %d…", cfg.dashboard_port)
    uvicorn.run(app, host="0.0.0.0", port=cfg.dashboard_port, log_config=None)


if __name__ == "__main__":
    main()
