from __future__ import annotations

import logging
from typing import Optional

import requests

from adhan.prayer_times import AdhanError

DEFAULT_BASE_URL = "https://www.salahtimes.com"
DEFAULT_AUDIO_URL = "https://media.sd.ma/assabile/adhan_3435370/8c052a5edec1.mp3"


class NetworkError(AdhanError):
    """Raised when a download fails or returns an unusable response."""


class PrayerApiClient:
    def __init__(
        self,
        *,
        timeout_seconds: float = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        # No retries: a failed fetch is reported to the caller as is.
        self._timeout_seconds = timeout_seconds
        self._session = session or requests.Session()
        self._logger = logging.getLogger(f"adhan.{self.__class__.__name__}")

    def get_timetable(self, url: str) -> bytes:
        self._logger.info("Downloading times from %s", url)
        return self._get(url)

    def get_audio(self, url: str) -> bytes:
        self._logger.info("Downloading adhan from %s", url)
        return self._get(url)

    def _get(self, url: str) -> bytes:
        try:
            resp = self._session.get(url, timeout=self._timeout_seconds)
        except requests.RequestException as exc:
            raise NetworkError(f"Request failed for {url}: {exc}") from exc

        if resp.status_code != 200:
            self._logger.warning("Download failed: %s %s", resp.status_code, url)
            raise NetworkError(f"Request to {url} failed with status {resp.status_code}")

        return resp.content
