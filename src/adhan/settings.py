from __future__ import annotations

import calendar
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional

from adhan.prayer_times import Clock, SystemClock


class LatitudeMethod(Enum):
    ONE_SEVENTH = "one-seventh"
    ANGLE_BASED = "angle-based"


class PrayerMethod(Enum):
    MWL = "mwl"
    UIS = "uis"
    ISNA = "isna"


class AsrMethod(Enum):
    SHAFI = "shafi"
    HANAFI = "hanafi"


# Codes sent to the feed. Kept apart from the enum values so that renaming or
# reordering a member can never change what goes over the wire.
WIRE_CODES: Dict[Enum, int] = {
    LatitudeMethod.ONE_SEVENTH: 3,
    LatitudeMethod.ANGLE_BASED: 4,
    PrayerMethod.MWL: 1,
    PrayerMethod.UIS: 3,
    PrayerMethod.ISNA: 5,
    AsrMethod.SHAFI: 1,
    AsrMethod.HANAFI: 2,
}


def wire_code(method: Enum) -> int:
    return WIRE_CODES[method]


@dataclass(frozen=True)
class CalculationMethods:
    latitude: LatitudeMethod = LatitudeMethod.ONE_SEVENTH
    organisation: PrayerMethod = PrayerMethod.MWL
    asr: AsrMethod = AsrMethod.SHAFI


@dataclass(frozen=True)
class Location:
    country: str = "uk"
    city: str = "bath"


def last_day_of_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def build_query(
    base_url: str, methods: CalculationMethods, location: Location, month_start: date
) -> str:
    year, month = month_start.year, month_start.month
    start = f"{year}-{month}-01"
    end = f"{year}-{month}-{last_day_of_month(year, month)}"
    return (
        f"{base_url.rstrip('/')}/{location.country}/{location.city}/csv"
        f"?highlatitudemethod={wire_code(methods.latitude)}"
        f"&prayercalculationmethod={wire_code(methods.organisation)}"
        f"&asarcalculationmethod={wire_code(methods.asr)}"
        f"&start={start}&end={end}"
    )


@dataclass(frozen=True)
class PrayerSettings:
    """Settings used to fetch a month, doubling as the cache fingerprint.

    Equality covers every field, including ``is_audio_downloaded``. The
    persisted copy is always written via :meth:`with_audio_downloaded`, so a
    freshly built instance must be normalised the same way before comparing.
    """

    methods: CalculationMethods
    location: Location
    current_month: int
    is_audio_downloaded: bool = False

    def __post_init__(self) -> None:
        if not 1 <= self.current_month <= 12:
            raise ValueError(f"Month out of range: {self.current_month}")

    @classmethod
    def create(
        cls,
        methods: CalculationMethods,
        location: Location,
        clock: Optional[Clock] = None,
    ) -> "PrayerSettings":
        now = (clock or SystemClock()).now()
        return cls(methods=methods, location=location, current_month=now.month)

    def with_audio_downloaded(self) -> "PrayerSettings":
        return replace(self, is_audio_downloaded=True)

    def for_month(self, month: int) -> "PrayerSettings":
        return replace(self, current_month=month)

    def query(self, base_url: str, month_start: date) -> str:
        return build_query(base_url, self.methods, self.location, month_start)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "methods": {
                "latitude": self.methods.latitude.value,
                "organisation": self.methods.organisation.value,
                "asr": self.methods.asr.value,
            },
            "location": {
                "country": self.location.country,
                "city": self.location.city,
            },
            "is_audio_downloaded": self.is_audio_downloaded,
            "current_month": self.current_month,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "PrayerSettings":
        methods = payload["methods"]
        location = payload["location"]
        return cls(
            methods=CalculationMethods(
                latitude=LatitudeMethod(methods["latitude"]),
                organisation=PrayerMethod(methods["organisation"]),
                asr=AsrMethod(methods["asr"]),
            ),
            location=Location(
                country=str(location["country"]), city=str(location["city"])
            ),
            is_audio_downloaded=bool(payload["is_audio_downloaded"]),
            current_month=int(payload["current_month"]),
        )
