from __future__ import annotations

from datetime import date, datetime, time
import logging
from pathlib import Path
from typing import Optional

from jinja2 import Environment

from adhan.cache_store import CacheStore
from adhan.prayer_times import Month, PrayerKind

CURRENT_HTML = "current_month.html"
CURRENT_CSS = "current_month.css"


TIMETABLE_TEMPLATE = """<!doctype html>
<html lang="en-gb">
<head>
<link rel="stylesheet" href="{{ stylesheet }}">
<title>Adhan - Prayer Time Collector</title>
</head>
<body>
<h1>Adhan</h1>
<table class="tg">
<thead>
<tr>
<th class="tg-baqh">{{ header }}</th>
{% for name in prayer_names %}<th class="tg-baqh">{{ name }}</th>
{% endfor %}</tr>
</thead>
<tbody>
{% for row in rows %}<tr>
<td class="tg-baqh">{{ row.date }}</td>
{% for cell in row.times %}<td class="tg-baqh">{{ cell }}</td>
{% endfor %}</tr>
{% endfor %}</tbody>
</table>
</body>
</html>
"""


DEFAULT_CSS = """
h1 {font-family:Arial, sans-serif;text-align:center;}
.tg {border-collapse:collapse;border-color:#9ABAD9;border-spacing:0;width:100%}
.tg td {background-color:#EBF5FF;border-color:#9ABAD9;border-style:solid;border-width:1px;color:#444;
  font-family:Arial, sans-serif;font-size:14px;overflow:hidden;padding:5px 20px;word-break:normal;text-align:center;}
.tg th {background-color:#409cff;border-color:#9ABAD9;border-style:solid;border-width:1px;color:#fff;
  font-family:Arial, sans-serif;font-size:14px;font-weight:normal;overflow:hidden;padding:5px 20px;word-break:normal;}
.tg .tg-baqh {text-align:center;vertical-align:top}
"""


TEMPLATE_CSS = """
h1 {font-family:Arial, sans-serif;text-align:center;}
.tg {}
.tg td {}
.tg th {}
.tg .tg-baqh {}
"""


def format_clock(value: time) -> str:
    # Equivalent of %k:%M, which is not portable across strftime implementations.
    return f"{value.hour:>2}:{value.minute:02d}"


def header_date(month: Month, now: datetime, custom_month: Optional[int] = None) -> date:
    if custom_month is not None:
        return date(now.year, custom_month, 1)
    today = month.today(now)
    if today is not None:
        return today.date
    first = next(iter(month), None)
    return first.date if first is not None else now.date()


class TimetableExporter:
    def __init__(self, documents: CacheStore) -> None:
        self._documents = documents
        self._template = Environment(autoescape=True).from_string(TIMETABLE_TEMPLATE)
        self._logger = logging.getLogger(f"adhan.{self.__class__.__name__}")

    def render(self, month: Month, header: date) -> str:
        rows = [
            {
                "date": day.date.strftime("%A, %d"),
                "times": [format_clock(prayer.time) for prayer in day.prayers],
            }
            for day in month
        ]
        return self._template.render(
            stylesheet=CURRENT_CSS,
            header=header.strftime("%b %Y"),
            prayer_names=[kind.value for kind in PrayerKind.ordered()],
            rows=rows,
        )

    def export(self, month: Month, header: date, generate_css: bool) -> Path:
        html_path = self._documents.write_bytes(
            CURRENT_HTML, self.render(month, header).encode("utf-8")
        )
        if generate_css:
            self._documents.write_bytes(CURRENT_CSS, DEFAULT_CSS.encode("utf-8"))
        else:
            css_path = self._documents.write_bytes(
                CURRENT_CSS, TEMPLATE_CSS.encode("utf-8")
            )
            self._logger.info(
                "Create your own CSS or modify the template at %s", css_path
            )
        return html_path
