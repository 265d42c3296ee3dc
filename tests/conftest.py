import sys
from datetime import date, timedelta
from pathlib import Path

import pytest


def pytest_sessionstart(session):
    """Ensure src/ is on sys.path for local test runs."""
    repo_root = Path(__file__).resolve().parents[1]
    src_path = repo_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


HEADER = "Day,Fajr,Sunrise,Dhuhr,Asr,Maghrib,Isha"


def june_feed(days: int = 30) -> str:
    lines = [HEADER]
    start = date(2022, 6, 1)
    for offset in range(days):
        current = start + timedelta(days=offset)
        lines.append(
            f"{current.strftime('%a %d %b')},2:58,4:53,1:10,5:27,9:{20 + offset % 10:02d},11:15"
        )
    return "\n".join(lines) + "\n"


@pytest.fixture
def june_csv() -> bytes:
    return june_feed().encode("utf-8")
