from __future__ import annotations

from datetime import date
import logging
from pathlib import Path
from typing import Any, Optional

from adhan.cache_store import CacheError, CacheStore
from adhan.csv_parser import parse_month
from adhan.prayer_api import DEFAULT_AUDIO_URL, DEFAULT_BASE_URL
from adhan.prayer_times import Clock, Day, Month, SystemClock
from adhan.settings import PrayerSettings

CURRENT_MONTH = "current_month.yaml"
CURRENT_SETTINGS = ".current_settings.yaml"
ADHAN_AUDIO = "adhan.mp3"


class PrayerTimeService:
    """Decides between the cached month and a fresh download.

    The month snapshot and the adhan audio live in the documents store, the
    settings fingerprint in the cache store.
    """

    def __init__(
        self,
        *,
        api_client: Any,
        documents: CacheStore,
        cache: CacheStore,
        base_url: str = DEFAULT_BASE_URL,
        audio_url: str = DEFAULT_AUDIO_URL,
        download_audio: bool = True,
        clock: Optional[Clock] = None,
    ) -> None:
        self._api_client = api_client
        self._documents = documents
        self._cache = cache
        self._base_url = base_url
        self._audio_url = audio_url
        self._download_audio = download_audio
        self._clock = clock or SystemClock()
        self._logger = logging.getLogger(f"adhan.{self.__class__.__name__}")

    @property
    def audio_path(self) -> Path:
        return self._documents.path_for(ADHAN_AUDIO)

    def get_prayer_times(
        self, settings: PrayerSettings, custom_month: Optional[int] = None
    ) -> Month:
        if custom_month is not None:
            return self._request_times(settings, custom_month)

        if self._check_settings(settings):
            month = self.load_month()
            if month is not None:
                self._logger.info("Using cached prayer times")
                return month

        return self._request_times(settings, self._clock.now().month)

    def load_month(self) -> Optional[Month]:
        payload = self._documents.read(CURRENT_MONTH)
        if payload is None:
            return None
        try:
            month = Month.from_list(payload)
        except (KeyError, TypeError, ValueError) as exc:
            self._logger.warning("Cached month is unusable: %s", exc)
            return None
        month.reload(self._clock.now())
        return month

    def update_timetable(self, day: Day) -> None:
        month = self.load_month()
        if month is None:
            raise CacheError("No cached timetable to update")
        month.update_day(day)
        self._documents.write(CURRENT_MONTH, month.to_list())

    def clear_cache(self) -> None:
        self._documents.clear()
        self._cache.clear()

    def _check_settings(self, settings: PrayerSettings) -> bool:
        payload = self._cache.read(CURRENT_SETTINGS)
        if payload is None:
            return False
        try:
            cached = PrayerSettings.from_dict(payload)
        except (KeyError, TypeError, ValueError) as exc:
            self._logger.warning("Cached settings are unusable: %s", exc)
            return False
        # Only a fingerprint written after the audio download can match.
        return cached == settings.with_audio_downloaded()

    def _request_times(self, settings: PrayerSettings, month: int) -> Month:
        now = self._clock.now()
        url = settings.query(self._base_url, date(now.year, month, 1))
        timetable = self._api_client.get_timetable(url)
        result = parse_month(timetable, now)

        audio = None
        if self._download_audio:
            audio = self._api_client.get_audio(self._audio_url)

        self._cache_data(result, audio, settings.for_month(month))
        return result

    def _cache_data(
        self, month: Month, audio: Optional[bytes], settings: PrayerSettings
    ) -> None:
        if audio is not None:
            self._documents.write_bytes(ADHAN_AUDIO, audio)
        self._documents.write(CURRENT_MONTH, month.to_list())
        fingerprint = settings
        if audio is not None or self.audio_path.exists():
            fingerprint = settings.with_audio_downloaded()
        self._cache.write(CURRENT_SETTINGS, fingerprint.to_dict())
