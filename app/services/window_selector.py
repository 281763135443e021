from datetime import datetime, date
from typing import Optional, Sequence

from app.models.schemas import DayWindow


def select_active(windows: Sequence[DayWindow], now: datetime, today: date) -> Optional[DayWindow]:
    """
    Pick the window to report as an attraction's current operating hours.

    A window we are inside right now wins over today's window, so a park
    running past midnight keeps reporting last night's hours instead of
    jumping to tomorrow's. Failing that, today's window, then the first one.

    The result is a copy without a date; cached windows are left untouched.
    """
    todays: Optional[DayWindow] = None
    current: Optional[DayWindow] = None

    for window in windows:
        if window.date == today:
            todays = window
        if window.contains(now):
            current = window

    chosen = current or todays
    if chosen is None and windows:
        chosen = windows[0]
    if chosen is None:
        return None
    return chosen.model_copy(update={"date": None})
