from __future__ import annotations

import csv
from datetime import date, datetime, time, timedelta
import io
import logging
from typing import Iterable, List, NamedTuple, Union

from adhan.prayer_times import AdhanError, Day, Month

DATE_FMT = "%a %d %b %Y"
TIME_FMT = "%H:%M"
EVENING_SHIFT = timedelta(hours=12)

_logger = logging.getLogger("adhan.CsvParser")


class CsvParseError(AdhanError):
    """Raised when the feed is not a CSV table of the expected shape."""


class DateTimeParseError(AdhanError):
    """Raised when a date or time cell does not match the feed format."""


class CsvRow(NamedTuple):
    day: str
    fajr: str
    sunrise: str
    dhuhr: str
    asr: str
    maghrib: str
    isha: str


def shift_time(value: time, delta: timedelta = EVENING_SHIFT) -> time:
    # Wraps around midnight instead of overflowing into the next day.
    return (datetime.combine(date.min, value) + delta).time()


def parse_prayer_time(text: str, shift: bool = False) -> time:
    # The feed pads single digit hours with a space (%k), so strip before parsing.
    try:
        parsed = datetime.strptime(text.strip(), TIME_FMT).time()
    except ValueError as exc:
        raise DateTimeParseError(f"Invalid prayer time: {text!r}") from exc
    return shift_time(parsed) if shift else parsed


def parse_prayer_date(text: str, year: int) -> date:
    stripped = text.strip()
    try:
        parsed = datetime.strptime(f"{stripped} {year}", DATE_FMT).date()
    except ValueError as exc:
        raise DateTimeParseError(f"Invalid prayer date: {text!r}") from exc
    # strptime ignores %a, so a weekday that contradicts the date must be caught here.
    weekday = stripped.split()[0]
    if weekday.lower() != parsed.strftime("%a").lower():
        raise DateTimeParseError(
            f"Weekday {weekday!r} does not match {parsed:%d %b %Y}: {text!r}"
        )
    return parsed


def build_day(row: CsvRow, now: datetime) -> Day:
    # The year is not in the feed; rows are dated in the year of `now`.
    day = parse_prayer_date(row.day, now.year)
    times = [
        parse_prayer_time(row.fajr),
        parse_prayer_time(row.dhuhr, shift=True),
        parse_prayer_time(row.asr, shift=True),
        parse_prayer_time(row.maghrib, shift=True),
        parse_prayer_time(row.isha, shift=True),
    ]
    return Day.build(day, times, now=now)


def read_rows(lines: Iterable[str]) -> List[CsvRow]:
    reader = csv.reader(lines)
    try:
        next(reader)
    except StopIteration:
        return []
    except csv.Error as exc:
        raise CsvParseError(f"Malformed CSV header: {exc}") from exc

    rows: List[CsvRow] = []
    try:
        for record in reader:
            if not any(cell.strip() for cell in record):
                continue
            if len(record) != len(CsvRow._fields):
                raise CsvParseError(
                    f"Expected {len(CsvRow._fields)} columns on line "
                    f"{reader.line_num}, got {len(record)}"
                )
            rows.append(CsvRow(*record))
    except csv.Error as exc:
        raise CsvParseError(f"Malformed CSV on line {reader.line_num}: {exc}") from exc
    return rows


def parse_month(data: Union[bytes, str], now: datetime) -> Month:
    """Parse a whole feed response into a Month.

    A single bad row fails the whole feed; no partial month is returned.
    """
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise CsvParseError("Feed is not valid UTF-8") from exc

    rows = read_rows(io.StringIO(data, newline=""))
    days = [build_day(row, now) for row in rows]
    _logger.info("Parsed %s days from feed", len(days))
    return Month(days=days)
