import calendar
import re
from datetime import date
from typing import Optional

from services.schemas import ScanResult

_MONTHS = {name.lower(): index for index, name in enumerate(calendar.month_abbr) if name}
_MONTHS["sept"] = 9

_FULL_DATE = re.compile(r"^(\d{1,2})[-/.](\d{1,2})[-/.](\d{2}|\d{4})$")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_MONTH_YEAR = re.compile(r"^(\d{1,2})[-/.](\d{2}|\d{4})$")
_NAMED_MONTH = re.compile(r"^([a-z]{3,9})\.?[\s\-/,]*(\d{2}|\d{4})$", re.I)


def _full_year(year: str) -> int:
    value = int(year)
    return value + 2000 if value < 100 else value


def _end_of_month(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def parse_expiry(expiry_date: Optional[str]) -> Optional[date]:
    """
    Last valid day for a printed expiry date. Month-only dates run to the
    end of the month. Returns None for anything unparsable (including "N/A").
    """
    if not expiry_date:
        return None
    text = expiry_date.strip()

    try:
        match = _ISO_DATE.match(text)
        if match:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))

        match = _FULL_DATE.match(text)
        if match:
            day, month, year = int(match.group(1)), int(match.group(2)), _full_year(match.group(3))
            if month > 12 and day <= 12:
                day, month = month, day
            return date(year, month, day)

        match = _MONTH_YEAR.match(text)
        if match:
            return _end_of_month(_full_year(match.group(2)), int(match.group(1)))

        match = _NAMED_MONTH.match(text)
        if match:
            month = _MONTHS.get(match.group(1).lower()[:4]) or _MONTHS.get(match.group(1).lower()[:3])
            if month:
                return _end_of_month(_full_year(match.group(2)), month)
    except ValueError:
        return None

    return None


def is_expired(expiry_date: Optional[str], today: Optional[date] = None) -> Optional[bool]:
    last_day = parse_expiry(expiry_date)
    if last_day is None:
        return None
    return last_day < (today or date.today())


def voice_message(result: ScanResult) -> str:
    """Text read aloud by the client after a scan."""
    if result.status == "genuine":
        message = f"This medicine is genuine. {result.medicine_name}. {result.purpose or ''}".strip()
    elif result.status == "fake":
        message = (
            f"Warning! This is a fake medicine. {result.medicine_name}. "
            f"Possible side effects include: {result.side_effects or 'unknown harmful effects'}. Do not consume."
        )
    else:
        message = f"This medicine is suspicious. {result.medicine_name}. Please verify with a pharmacist."

    if result.is_expired:
        message = f"Warning! This medicine has expired. {message}"
    return message
