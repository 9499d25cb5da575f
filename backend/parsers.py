"""
Best-effort field extraction from free-text chat answers.
Nothing here raises: text that cannot be understood falls back to a default.
"""
import re
from datetime import datetime, timedelta
from typing import Optional

from models import Priority

DEFAULT_TIME = "9:00 AM"

# "3pm", "9:30 am", "12 PM"
_MERIDIEM_TIME = re.compile(r"\b(\d{1,2})(?::(\d{2}))?\s*(am|pm)\b", re.IGNORECASE)
# "15:00", "9:30"
_CLOCK_TIME = re.compile(r"\b(\d{1,2}):(\d{2})\b")
# "at 5", "14"; not part of a larger number, word, clock time or M/D
_BARE_HOUR = re.compile(r"(?<![\w:/.])(\d{1,2})(?![\w:/]|\.\d)")

_MONTHS = (
    "jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?|"
    "aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?"
)
_MONTH_DAY = re.compile(rf"\b(?:{_MONTHS})\.?\s+\d{{1,2}}\b(?!\s*(?:am|pm|:))", re.IGNORECASE)
_SLASH_DATE = re.compile(r"\b\d{1,2}/\d{1,2}\b")

_LEADING_INT = re.compile(r"^[+-]?\d+")


def format_date(value: datetime) -> str:
    """Render a date as M/D/YYYY."""
    return f"{value.month}/{value.day}/{value.year}"


def _date_tokens_removed(text: str) -> str:
    """Blank out "Dec 25" and "12/25" tokens so their digits are not read as hours."""
    for pattern in (_MONTH_DAY, _SLASH_DATE):
        text = pattern.sub(lambda m: " " * len(m.group(0)), text)
    return text


def parse_time(text: str) -> str:
    """
    Extract a time and convert it to 24-hour H:MM.
    Accepts "3pm", "9:30 am", "15:00" and a bare hour ("at 5"); the first valid
    one in that order of preference wins. Hours are not zero-padded ("9:30",
    "15:00"); minutes default to "00".
    Returns DEFAULT_TIME when the text holds no recognizable time.
    """
    for match in _MERIDIEM_TIME.finditer(text):
        hour = int(match.group(1))
        minute = match.group(2) or "00"
        period = match.group(3).lower()
        if 1 <= hour <= 12 and int(minute) < 60:
            if period == "pm" and hour != 12:
                hour += 12
            if period == "am" and hour == 12:
                hour = 0
            return f"{hour}:{minute}"

    for match in _CLOCK_TIME.finditer(text):
        hour, minute = int(match.group(1)), match.group(2)
        if hour < 24 and int(minute) < 60:
            return f"{hour}:{minute}"

    for match in _BARE_HOUR.finditer(_date_tokens_removed(text)):
        hour = int(match.group(1))
        if hour < 24:
            return f"{hour}:00"

    return DEFAULT_TIME


def parse_date(text: str, now: Optional[datetime] = None) -> str:
    """
    Extract a due date.
    "today" and "tomorrow" resolve against `now`; a "Dec 25" or "12/25" token is
    kept as typed; anything else falls back to today's date.
    """
    now = now or datetime.now()
    lower = text.lower()

    if "today" in lower:
        return format_date(now)
    if "tomorrow" in lower:
        return format_date(now + timedelta(days=1))

    match = _MONTH_DAY.search(text) or _SLASH_DATE.search(text)
    if match:
        return match.group(0)
    return format_date(now)


def parse_date_time(text: str, now: Optional[datetime] = None) -> tuple[str, str]:
    """Return (due_date, due_time). Date and time are parsed independently."""
    return parse_date(text, now), parse_time(text)


def parse_priority(text: str) -> Priority:
    lower = text.lower()
    if "high" in lower or "urgent" in lower:
        return "High"
    if "low" in lower:
        return "Low"
    return "Medium"


def parse_yes(text: str) -> bool:
    # Any "y" counts, so "yes", "y" and "yeah" all enable the reminder
    lower = text.lower()
    return "yes" in lower or "y" in lower


def parse_selection(text: str) -> Optional[int]:
    """
    Read the leading integer of a menu answer ("2", " 2 ", "2." -> 2).
    Returns None when the text does not start with a number.
    """
    match = _LEADING_INT.match(text.strip())
    if not match:
        return None
    return int(match.group(0))
