from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
import shutil
import subprocess
import sys
from threading import Event, Lock, Thread
import time
from typing import Callable, Optional, Protocol, Sequence, TextIO

from adhan.prayer_times import AdhanError, PrayerKind


class AudioError(AdhanError):
    """Raised when the adhan cannot be decoded or played."""


class CommandRunner(Protocol):
    def run(
        self, args: Sequence[str], *, timeout: float | None
    ) -> subprocess.CompletedProcess[str]:
        ...

    def which(self, name: str) -> str | None:
        ...


@dataclass
class SubprocessCommandRunner:
    def run(
        self, args: Sequence[str], *, timeout: float | None
    ) -> subprocess.CompletedProcess[str]:
        return subprocess.run(
            args,
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout,
        )

    def which(self, name: str) -> str | None:
        return shutil.which(name)


class AudioPlayer:
    def __init__(self, runner: CommandRunner, *, device: Optional[str] = None) -> None:
        self._runner = runner
        self._device = device
        self._logger = logging.getLogger(f"adhan.{self.__class__.__name__}")

    def command(self, path: Path) -> list[str]:
        args = ["mpg123", "-q"]
        if self._device:
            args.extend(["-a", self._device])
        args.append(str(path))
        return args

    def play(self, path: Path) -> None:
        if not path.exists():
            raise AudioError(f"Audio file missing: {path}")
        if not self._runner.which("mpg123"):
            raise AudioError("mpg123 is not installed or not on PATH")

        # Runs to completion; there is no way to cancel an adhan once started.
        try:
            result = self._runner.run(self.command(path), timeout=None)
        except OSError as exc:
            raise AudioError(f"Audio playback could not start: {exc}") from exc
        if result.returncode != 0:
            raise AudioError(f"Audio playback failed: {result.stderr.strip()}")
        self._logger.info("Finished playing %s", path)


class AdhanPlayback:
    """Plays the adhan on a worker thread while reporting progress.

    The worker owns the ``playing`` event and clears it once playback ends.
    The calling thread only polls it and joins the worker before returning.
    Overlapping calls are serialized, so one adhan finishes before the next starts.
    """

    def __init__(
        self,
        player: AudioPlayer,
        audio_path: Path,
        *,
        poll_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        stream: Optional[TextIO] = None,
    ) -> None:
        self._player = player
        self._audio_path = audio_path
        self._poll_seconds = poll_seconds
        self._sleep = sleep
        self._stream = stream or sys.stdout
        self._logger = logging.getLogger(f"adhan.{self.__class__.__name__}")
        self._lock = Lock()

    def play(self, kind: PrayerKind) -> None:
        if not self._lock.acquire(blocking=False):
            self._logger.info("Adhan already playing; %s waits its turn", kind)
            self._lock.acquire()
        try:
            self._play(kind)
        finally:
            self._lock.release()

    def _play(self, kind: PrayerKind) -> None:
        playing = Event()
        playing.set()
        failures: list[BaseException] = []

        def worker() -> None:
            try:
                self._player.play(self._audio_path)
            except Exception as exc:
                failures.append(exc)
            finally:
                playing.clear()

        self._logger.info("Playing adhan for %s", kind)
        thread = Thread(target=worker, name=f"adhan-{kind.value.lower()}", daemon=True)
        thread.start()
        self._display_progress(kind, playing)
        thread.join()

        if failures:
            error = failures[0]
            if isinstance(error, AudioError):
                raise error
            raise AudioError(f"Audio playback raised: {error}") from error

    def _display_progress(self, kind: PrayerKind, playing: Event) -> None:
        counter = 0
        while playing.is_set():
            dots = "." * (counter % 3 + 1)
            self._stream.write(f"{kind} is starting{dots:<3}\r")
            self._stream.flush()
            self._sleep(self._poll_seconds)
            counter += 1
        self._stream.write(f"{'':64}\r")
        self._stream.flush()
