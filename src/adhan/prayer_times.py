from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple


class AdhanError(RuntimeError):
    """Base class for failures surfaced to the command line."""


class PrayerKind(Enum):
    FAJR = "Fajr"
    DHUHR = "Dhuhr"
    ASR = "Asr"
    MAGHRIB = "Maghrib"
    ISHA = "Isha"

    @classmethod
    def ordered(cls) -> Tuple["PrayerKind", ...]:
        # Declaration order is the canonical order of the day.
        return tuple(cls)

    def __str__(self) -> str:
        return self.value


def is_performed(now: datetime, prayer_date: date, prayer_time: time) -> bool:
    today = now.date()
    if prayer_date < today:
        return True
    if prayer_date > today:
        return False
    return prayer_time <= now.time()


class Clock:
    def now(self) -> datetime:  # pragma: no cover - interface only
        raise NotImplementedError


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now()


@dataclass
class Prayer:
    kind: PrayerKind
    time: time
    performed: bool = False

    def __str__(self) -> str:
        return f"{self.kind}: {self.time.strftime('%H:%M:%S')}"

    def to_dict(self) -> Dict[str, Any]:
        # performed depends on the wall clock at read time, so it is never stored.
        return {"kind": self.kind.value, "time": self.time.strftime("%H:%M:%S")}

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Prayer":
        return cls(
            kind=PrayerKind(payload["kind"]),
            time=time.fromisoformat(str(payload["time"])),
        )


@dataclass
class Day:
    date: date
    prayers: Tuple[Prayer, ...]

    def __post_init__(self) -> None:
        self.prayers = tuple(self.prayers)
        kinds = tuple(prayer.kind for prayer in self.prayers)
        if kinds != PrayerKind.ordered():
            raise ValueError(
                f"Day {self.date} must hold one prayer per kind in order, got {kinds}"
            )

    @classmethod
    def build(
        cls, day: date, times: Sequence[time], now: Optional[datetime] = None
    ) -> "Day":
        """Create a day from five times given in canonical prayer order.

        When ``now`` is supplied each prayer is tagged with its performed
        status relative to that moment.
        """
        prayers = []
        for kind, prayer_time in zip(PrayerKind.ordered(), times):
            performed = is_performed(now, day, prayer_time) if now else False
            prayers.append(Prayer(kind=kind, time=prayer_time, performed=performed))
        return cls(date=day, prayers=tuple(prayers))

    def prayer(self, kind: PrayerKind) -> Prayer:
        for prayer in self.prayers:
            if prayer.kind is kind:
                return prayer
        raise KeyError(kind)

    def next_prayer(self) -> Optional[Prayer]:
        for prayer in self.prayers:
            if not prayer.performed:
                return prayer
        return None

    def mark_performed(self, kind: PrayerKind) -> None:
        self.prayer(kind).performed = True

    def reload(self, now: datetime) -> None:
        for prayer in self.prayers:
            prayer.performed = is_performed(now, self.date, prayer.time)

    def copy(self) -> "Day":
        return Day(date=self.date, prayers=tuple(replace(p) for p in self.prayers))

    def __str__(self) -> str:
        title = self.date.strftime("%A, %d %B %Y")
        rule = f"|{'=' * 62}|"
        names = " | ".join(f"{str(p.kind):^10}" for p in self.prayers)
        times = " | ".join(f"{p.time.strftime('%H:%M:%S'):^10}" for p in self.prayers)
        return "\n".join(
            ["", f"{title:^62}", rule, f"|{names}|", f"|{times}|", rule]
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "prayers": [prayer.to_dict() for prayer in self.prayers],
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Day":
        return cls(
            date=date.fromisoformat(str(payload["date"])),
            prayers=tuple(Prayer.from_dict(item) for item in payload["prayers"]),
        )


@dataclass
class Month:
    """Days of one feed response, kept in the order the feed emitted them."""

    days: List[Day] = field(default_factory=list)

    def __iter__(self) -> Iterator[Day]:
        return iter(self.days)

    def __len__(self) -> int:
        return len(self.days)

    def select_by_date(self, day: date) -> Optional[Day]:
        for current in self.days:
            if current.date == day:
                return current
        return None

    def select_by_day_offset(self, offset: int, now: datetime) -> Optional[Day]:
        return self.select_by_date(now.date() + timedelta(days=offset))

    def today(self, now: datetime) -> Optional[Day]:
        return self.select_by_day_offset(0, now)

    def tomorrow(self, now: datetime) -> Optional[Day]:
        return self.select_by_day_offset(1, now)

    def update_day(self, day: Day) -> None:
        for idx, current in enumerate(self.days):
            if current.date == day.date:
                self.days[idx] = day.copy()

    def reload(self, now: datetime) -> None:
        for day in self.days:
            day.reload(now)

    def to_list(self) -> List[Dict[str, Any]]:
        return [day.to_dict() for day in self.days]

    @classmethod
    def from_list(cls, payload: List[Dict[str, Any]]) -> "Month":
        return cls(days=[Day.from_dict(item) for item in payload])
