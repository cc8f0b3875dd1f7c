"""
rollcall.constants — Shared Constants
======================================

Single source of truth for defaults and view presets.  Import from here
instead of repeating magic numbers in services and routes.
"""

from __future__ import annotations

from rollcall.engine.scoring import MeetingConfig

# ---------------------------------------------------------------------------
# Meeting defaults (seeded into the settings table)
# ---------------------------------------------------------------------------
DEFAULT_MEETING_CONFIG = MeetingConfig(
    start_time="18:00",
    points_on_time=10,
    points_late_15=7,
    points_late_30=4,
    points_late=1,
)

DEFAULT_GIFTS: list[tuple[str, int]] = [
    ("Pen", 20),
    ("Chocolate", 30),
    ("Notebook", 50),
    ("Spiritual book", 100),
    ("Icon", 150),
    ("Trip", 500),
]

# ---------------------------------------------------------------------------
# Leaderboard
# ---------------------------------------------------------------------------
LEADERBOARD_DEFAULT_SIZE = 10
RANK_BADGES: list[str] = ["\U0001f947", "\U0001f948", "\U0001f949"]  # 🥇🥈🥉

# ---------------------------------------------------------------------------
# Absence presets
# ---------------------------------------------------------------------------
# Dashboard "recently missed" card
DASHBOARD_ABSENCE_LOOKBACK = 3
DASHBOARD_MISS_THRESHOLD = 2
DASHBOARD_ABSENCE_LIMIT = 5

# Follow-up page
FOLLOW_UP_LOOKBACK = 5
FOLLOW_UP_DEFAULT_WEEKS = 2

# Roster filter values accepted alongside a servant username
SERVANT_FILTER_ALL = "all"
SERVANT_FILTER_UNASSIGNED = "unassigned"

# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------
BIRTHDAY_WINDOW_DAYS = 7
TREND_MEETING_COUNT = 5
