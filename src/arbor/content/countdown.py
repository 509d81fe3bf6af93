"""Countdown widgets.

The first line of a ``.countdown`` file is the end time, the rest an
optional template::

    2030-01-01 00:00:00 +0100
    Only {{ countdown().days }} days left!

Without a template, a sentence listing every unit is rendered. The
numbers are computed on the server at request time and kept ticking
by a small script in the browser.
"""

import calendar
from dataclasses import dataclass
from datetime import datetime

from arbor.broker import Broker
from arbor.content.html import decode, dirpath_of
from arbor.errors import ContentError
from arbor.namespace import Contribution

TIME_FORMAT = "%Y-%m-%d %H:%M:%S %z"

DEFAULT_BODY = """\
{% set c = countdown() %}
<span id="years">{{ c.years }}</span> years,
<span id="months">{{ c.months }}</span> months,
<span id="days">{{ c.days }}</span> days,
<span id="hours">{{ c.hours }}</span> hours,
<span id="minutes">{{ c.minutes }}</span> minutes,
<span id="seconds">{{ c.seconds }}</span> seconds
"""

# Calendar-aware difference in the browser's time zone, same borrowing rules as calendar_diff
SCRIPT = """\
<script>
(function() {
  var end = new Date({{ countdown().timestamp }} * 1000);
  var units = ["years", "months", "days", "hours", "minutes", "seconds"];
  function update() {
    var a = new Date();
    if (a >= end) { return; }
    var d = [
      end.getFullYear() - a.getFullYear(),
      end.getMonth() - a.getMonth(),
      end.getDate() - a.getDate(),
      end.getHours() - a.getHours(),
      end.getMinutes() - a.getMinutes(),
      end.getSeconds() - a.getSeconds()
    ];
    if (d[5] < 0) { d[5] += 60; d[4]--; }
    if (d[4] < 0) { d[4] += 60; d[3]--; }
    if (d[3] < 0) { d[3] += 24; d[2]--; }
    if (d[2] < 0) { d[2] += new Date(a.getFullYear(), a.getMonth() + 1, 0).getDate(); d[1]--; }
    if (d[1] < 0) { d[1] += 12; d[0]--; }
    units.forEach(function(unit, i) {
      var element = document.getElementById(unit);
      if (element) { element.textContent = d[i]; }
    });
    setTimeout(update, 1000);
  }
  update();
})();
</script>
"""


@dataclass(frozen=True, slots=True)
class Remaining:
    """Time left until ``end``, split into calendar units."""

    end: datetime
    years: int = 0
    months: int = 0
    days: int = 0
    hours: int = 0
    minutes: int = 0
    seconds: int = 0

    @property
    def timestamp(self) -> int:
        return int(self.end.timestamp())

    @property
    def finished(self) -> bool:
        return not any(
            (self.years, self.months, self.days, self.hours, self.minutes, self.seconds)
        )


def calendar_diff(start: datetime, end: datetime) -> Remaining:
    """Calendar-aware difference from *start* to *end*; all zero once *end* has passed.

    Leap years and month lengths are respected: borrowing a day adds the
    length of *start*'s month.
    """
    if start >= end:
        return Remaining(end)
    end_local = end.astimezone(start.tzinfo)

    years = end_local.year - start.year
    months = end_local.month - start.month
    days = end_local.day - start.day
    hours = end_local.hour - start.hour
    minutes = end_local.minute - start.minute
    seconds = end_local.second - start.second

    if seconds < 0:
        seconds += 60
        minutes -= 1
    if minutes < 0:
        minutes += 60
        hours -= 1
    if hours < 0:
        hours += 24
        days -= 1
    if days < 0:
        days += calendar.monthrange(start.year, start.month)[1]
        months -= 1
    if months < 0:
        months += 12
        years -= 1

    return Remaining(end, years, months, days, hours, minutes, seconds)


def parse_end(line: str) -> datetime:
    line = line.strip()
    if not line:
        msg = "missing end time"
        raise ContentError(msg)
    try:
        return datetime.strptime(line, TIME_FORMAT)
    except ValueError as exc:
        msg = f"parsing time: {exc}"
        raise ContentError(msg) from exc


def countdown(url_path: str, stem: str, content: bytes, broker: Broker) -> Contribution:
    """Content processor for ``.countdown`` files."""
    first, _, body = decode(content).partition("\n")
    end = parse_end(first)
    body = body.strip() or DEFAULT_BODY

    def remaining() -> Remaining:
        return calendar_diff(datetime.now(end.tzinfo), end)

    return Contribution(
        body + "\n" + SCRIPT,
        {"countdown": remaining, "dirpath": dirpath_of(url_path)},
    )
