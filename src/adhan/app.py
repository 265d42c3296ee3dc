from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterable, Optional

from adhan.cache_store import CacheStore
from adhan.config import AppConfig, ConfigError, ConfigLoader
from adhan.logging_utils import LoggerFactory
from adhan.prayer_api import PrayerApiClient
from adhan.prayer_times import AdhanError, Clock, Day, Prayer, SystemClock
from adhan.service import PrayerTimeService
from adhan.settings import (
    AsrMethod,
    CalculationMethods,
    LatitudeMethod,
    Location,
    PrayerMethod,
    PrayerSettings,
)
from adhan.timetable import TimetableExporter, header_date


def main(argv: Optional[Iterable[str]] = None, *, clock: Optional[Clock] = None) -> int:
    args = _parse_args(argv, player=False)
    clock = clock or SystemClock()
    config = _load_config(args)
    if config is None:
        return 2
    logger = LoggerFactory.create(
        "adhan", log_file=config.logging.file_path, level=config.logging.level
    )

    try:
        service = build_service(config, clock)
        if args.clear_cache:
            service.clear_cache()
        month = service.get_prayer_times(_settings(args, clock), args.month)

        now = clock.now()
        if args.today:
            day = month.today(now)
            if day is not None:
                print(day)
            else:
                logger.warning("No prayer times for %s", now.date().isoformat())
        elif args.export:
            exporter = TimetableExporter(CacheStore(config.storage.documents_dir))
            path = exporter.export(
                month, header_date(month, now, args.month), args.generate_css
            )
            print(f"Timetable written to {path}")
        else:
            for day in month:
                print(day)
    except (AdhanError, OSError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


def player_main(
    argv: Optional[Iterable[str]] = None, *, clock: Optional[Clock] = None
) -> int:
    args = _parse_args(argv, player=True)
    clock = clock or SystemClock()
    config = _load_config(args)
    if config is None:
        return 2
    logger = LoggerFactory.create(
        "adhan",
        log_file=config.logging.file_path,
        level=config.logging.level,
        capture=("apscheduler",),
    )

    # Import APScheduler and the audio stack only once config is valid.
    from apscheduler.schedulers.blocking import BlockingScheduler

    from adhan.audio import AdhanPlayback, AudioPlayer, SubprocessCommandRunner
    from adhan.scheduler import PrayerScheduler, single_worker

    try:
        service = build_service(config, clock)
        if args.clear_cache:
            service.clear_cache()
        month = service.get_prayer_times(_settings(args, clock), args.month)
        today = month.today(clock.now())
        if today is None:
            raise AdhanError(f"No prayer times for {clock.now().date().isoformat()}")

        player = AudioPlayer(SubprocessCommandRunner(), device=args.output_device)
        playback = AdhanPlayback(player, service.audio_path)

        def handle(day: Day, prayer: Prayer) -> None:
            playback.play(prayer.kind)
            day.mark_performed(prayer.kind)
            service.update_timetable(day)

        prayer_scheduler = PrayerScheduler(
            scheduler=single_worker(BlockingScheduler),
            handler=handle,
            now_provider=clock.now,
        )
        prayer_scheduler.schedule_day(today)
        print(today)
        prayer_scheduler.run()
    except (AdhanError, OSError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


def build_service(config: AppConfig, clock: Clock) -> PrayerTimeService:
    return PrayerTimeService(
        api_client=PrayerApiClient(timeout_seconds=config.api.timeout_seconds),
        documents=CacheStore(config.storage.documents_dir),
        cache=CacheStore(config.storage.cache_dir),
        base_url=config.api.base_url,
        audio_url=config.api.audio_url,
        download_audio=config.audio.download,
        clock=clock,
    )


def _load_config(args: argparse.Namespace) -> Optional[AppConfig]:
    try:
        root_dir = Path(args.config) if args.config else None
        return ConfigLoader(root_dir=root_dir).load()
    except ConfigError as exc:
        LoggerFactory.create("adhan")
        logging.getLogger("adhan").error("Config error: %s", exc)
        return None


def _settings(args: argparse.Namespace, clock: Clock) -> PrayerSettings:
    return PrayerSettings.create(
        CalculationMethods(
            latitude=LatitudeMethod(args.latitude_method),
            organisation=PrayerMethod(args.prayer_method),
            asr=AsrMethod(args.asr_method),
        ),
        Location(country=args.country, city=args.city),
        clock=clock,
    )


def _month(value: str) -> int:
    month = int(value)
    if not 1 <= month <= 12:
        raise argparse.ArgumentTypeError(f"month must be between 1 and 12: {value}")
    return month


def _parse_args(argv: Optional[Iterable[str]], *, player: bool) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="adhan-player" if player else "adhan",
        description="Gets prayer times from www.salahtimes.com",
    )
    parser.add_argument("--config", help="Directory holding config.yml")
    parser.add_argument(
        "--latitude-method",
        choices=[m.value for m in LatitudeMethod],
        default=LatitudeMethod.ONE_SEVENTH.value,
        help="High latitude method",
    )
    parser.add_argument(
        "--prayer-method",
        choices=[m.value for m in PrayerMethod],
        default=PrayerMethod.MWL.value,
        help="Source of prayer calculation",
    )
    parser.add_argument(
        "--asr-method",
        choices=[m.value for m in AsrMethod],
        default=AsrMethod.SHAFI.value,
        help="Asr time method",
    )
    parser.add_argument("--month", type=_month, help="The month to pull the timetable from")
    parser.add_argument("--country", default="uk")
    parser.add_argument("--city", default="bath")
    parser.add_argument("--clear-cache", action="store_true", help="Clear cache")
    if player:
        parser.add_argument("--output-device", help="Specific output audio device")
    else:
        parser.add_argument("-t", "--today", action="store_true", help="Get today's times")
        parser.add_argument("--export", action="store_true", help="Export times to an HTML file")
        parser.add_argument(
            "--generate-css",
            action="store_true",
            help="Generate default CSS for the HTML file instead of an editable template",
        )
    return parser.parse_args(list(argv) if argv is not None else None)


if __name__ == "__main__":
    raise SystemExit(main())
