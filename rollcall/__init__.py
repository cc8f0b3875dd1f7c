"""
Rollcall — Attendance and Reward Tracking for a Weekly Meeting
===============================================================
Records check-ins, scores punctuality into points, lets members spend those
points on gifts, and surfaces who has been missing so servants can follow
up.  Everything is keyed to the group's local calendar.

Package layout::

    rollcall/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Defaults and view presets
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + session helper
    │   ├── models.py      # ORM models (members, ledger, agenda, audit)
    │   └── seed.py        # Default settings and gift catalogue
    ├── engine/
    │   ├── clock.py       # Epoch-ms ↔ local date / HH:MM
    │   ├── errors.py      # Domain exceptions
    │   ├── scoring.py     # Arrival → points tier
    │   ├── balance.py     # Earned − spent, derived on demand
    │   ├── leaderboard.py # Monthly / all-time ranking
    │   ├── absence.py     # Consecutive-miss detection
    │   ├── agenda.py      # Segment ordering + active segment
    │   └── insights.py    # Trend, birthdays, random draw
    ├── services/          # Session-owning read/write operations
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Engine, config, clock and JWT dependencies
        └── routes/        # REST endpoints
"""

__version__ = "0.1.0"
