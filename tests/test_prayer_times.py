from __future__ import annotations

from datetime import date, datetime, time, timedelta

import pytest

from adhan.prayer_times import Day, Month, Prayer, PrayerKind, is_performed

NOW = datetime(2022, 1, 15, 18, 0, 0)
TIMES = [time(6, 25), time(12, 13), time(13, 52), time(16, 7), time(17, 58)]


def _january() -> Month:
    return Month(
        days=[Day.build(date(2022, 1, 1) + timedelta(days=n), TIMES) for n in range(31)]
    )


@pytest.mark.parametrize(
    ("prayer_date", "prayer_time", "expected"),
    [
        (date(2022, 1, 1), time(0, 0, 0), True),
        (date(2022, 1, 15), time(0, 0, 0), True),
        (date(2022, 1, 15), time(18, 0, 0), True),
        (date(2022, 1, 15), time(18, 0, 1), False),
        (date(2022, 1, 16), time(0, 0, 0), False),
    ],
)
def test_performed_status(prayer_date: date, prayer_time: time, expected: bool) -> None:
    assert is_performed(NOW, prayer_date, prayer_time) is expected


def test_build_tags_prayers_relative_to_now() -> None:
    day = Day.build(date(2022, 1, 15), TIMES, now=NOW)

    assert [p.performed for p in day.prayers] == [True, True, True, True, True]
    later = Day.build(date(2022, 1, 15), TIMES, now=datetime(2022, 1, 15, 13, 0))
    assert [p.performed for p in later.prayers] == [True, True, False, False, False]
    assert later.next_prayer().kind is PrayerKind.ASR


def test_day_requires_one_prayer_per_kind_in_order() -> None:
    prayers = [Prayer(kind, t) for kind, t in zip(PrayerKind.ordered(), TIMES)]
    prayers[0], prayers[1] = prayers[1], prayers[0]

    with pytest.raises(ValueError):
        Day(date=date(2022, 1, 1), prayers=tuple(prayers))

    with pytest.raises(ValueError):
        Day.build(date(2022, 1, 1), TIMES[:4])


def test_prayer_lookup_and_mark_performed() -> None:
    day = Day.build(date(2022, 1, 1), TIMES)

    day.mark_performed(PrayerKind.FAJR)

    assert day.prayer(PrayerKind.FAJR).performed is True
    assert day.prayer(PrayerKind.MAGHRIB).time == time(16, 7)
    assert day.next_prayer().kind is PrayerKind.DHUHR


def test_day_renders_table() -> None:
    text = str(Day.build(date(2022, 1, 1), TIMES))

    assert "Saturday, 01 January 2022" in text
    assert "Maghrib" in text
    assert "16:07:00" in text


def test_select_by_date() -> None:
    month = _january()

    assert month.select_by_date(date(2022, 1, 1)) is month.days[0]
    assert month.select_by_date(date(2022, 2, 1)) is None


def test_today_tomorrow_and_offset() -> None:
    month = _january()

    assert month.today(NOW).date == date(2022, 1, 15)
    assert month.tomorrow(NOW).date == date(2022, 1, 16)
    assert month.select_by_day_offset(-14, NOW).date == date(2022, 1, 1)
    assert month.select_by_day_offset(17, NOW) is None


def test_update_day_replaces_only_matching_date() -> None:
    month = _january()
    before = [day.to_dict() for day in month]
    replacement = Day.build(date(2022, 1, 15), [time(7, 0)] * 5)

    month.update_day(replacement)

    after = [day.to_dict() for day in month]
    assert after[14] == replacement.to_dict()
    assert after[:14] == before[:14]
    assert after[15:] == before[15:]
    assert len(month) == 31


def test_iteration_is_restartable() -> None:
    month = _january()

    assert [d.date for d in month] == [d.date for d in month]


def test_serialized_form_omits_performed_and_reload_recomputes() -> None:
    month = _january()
    month.days[20].mark_performed(PrayerKind.FAJR)

    restored = Month.from_list(month.to_list())

    assert "performed" not in month.to_list()[0]["prayers"][0]
    assert [d.date for d in restored] == [d.date for d in month]
    assert [[p.time for p in d.prayers] for d in restored] == [
        [p.time for p in d.prayers] for d in month
    ]
    restored.reload(NOW)
    assert restored.days[13].prayer(PrayerKind.ISHA).performed is True
    assert restored.days[14].prayer(PrayerKind.ISHA).performed is True
    assert restored.days[20].prayer(PrayerKind.FAJR).performed is False
