"""Date parsing and NAV-series normalization helpers."""

from __future__ import annotations

import logging
from bisect import bisect_left, bisect_right
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Union

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from fundcalc.schemas.series import NAVPoint, RawNavPoint

logger = logging.getLogger(__name__)

DateLike = Union[str, date, datetime]

PERIOD_OFFSETS = {
    "1m": relativedelta(months=1),
    "3m": relativedelta(months=3),
    "6m": relativedelta(months=6),
    "1y": relativedelta(years=1),
    "3y": relativedelta(years=3),
    "5y": relativedelta(years=5),
}


def parse_flexible_date(value: DateLike, today: Optional[date] = None) -> date:
    """Parse an ISO 8601 or DD-MM-YYYY date.

    Unparseable input falls back to ``today`` (the current date by default)
    and is logged, so callers get a date back in every case.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    try:
        return isoparse(text).date()
    except (ValueError, OverflowError):
        pass

    parts = text.split("-")
    if len(parts) == 3:
        try:
            day, month, year = (int(part) for part in parts)
            return date(year, month, day)
        except ValueError:
            pass

    logger.warning("Invalid date %r, using current date as fallback", value)
    return today or date.today()


def add_months(start: date, months: int) -> date:
    """Calendar month arithmetic; the day is clamped to the month end."""
    return start + relativedelta(months=months)


def sort_chronological(series: Iterable[NAVPoint]) -> List[NAVPoint]:
    return sorted(series, key=lambda point: point.date)


def normalize_series(raw: Iterable[Union[RawNavPoint, NAVPoint, dict]]) -> List[NAVPoint]:
    """Turn API rows into a sorted list of NAVPoint, dropping unusable NAVs."""
    points: List[NAVPoint] = []
    for item in raw:
        if isinstance(item, NAVPoint):
            points.append(item)
            continue
        if isinstance(item, dict):
            item = RawNavPoint.model_validate(item)
        try:
            nav = float(item.nav)
        except (TypeError, ValueError):
            logger.debug("Dropping NAV point %s with non-numeric nav %r", item.date, item.nav)
            continue
        if not nav > 0:
            logger.debug("Dropping NAV point %s with non-positive nav %r", item.date, item.nav)
            continue
        points.append(NAVPoint(date=parse_flexible_date(item.date), nav=nav))
    return sort_chronological(points)


def nearest_nav(
    series: Sequence[NAVPoint],
    target: date,
    dates: Optional[Sequence[date]] = None,
) -> Optional[NAVPoint]:
    """NAV applicable on ``target`` for a chronologically sorted series.

    Preference order: same day, the next available day, the most recent
    earlier day, then the first point. ``dates`` may be passed when the
    caller looks up many targets in the same series.
    """
    if not series:
        return None
    if dates is None:
        dates = [point.date for point in series]

    index = bisect_left(dates, target)
    if index < len(dates) and dates[index] == target:
        return series[index]

    after = bisect_right(dates, target)
    if after < len(dates):
        return series[after]
    if index > 0:
        return series[index - 1]
    return series[0]


def filter_by_period(
    series: Sequence[NAVPoint],
    period: Optional[str],
    today: Optional[date] = None,
) -> List[NAVPoint]:
    offset = PERIOD_OFFSETS.get(period or "all")
    if offset is None:
        return list(series)
    start = (today or date.today()) - offset
    return [point for point in series if point.date >= start]


def filter_by_date_range(series: Sequence[NAVPoint], start: DateLike, end: DateLike) -> List[NAVPoint]:
    """Points between ``start`` and ``end``, both inclusive."""
    start_date = parse_flexible_date(start)
    end_exclusive = parse_flexible_date(end) + timedelta(days=1)
    return [point for point in series if start_date <= point.date < end_exclusive]


def select_series(
    raw: Iterable[Union[RawNavPoint, NAVPoint, dict]],
    period: Optional[str] = None,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
) -> List[NAVPoint]:
    """Normalize a series, then apply a date range (preferred) or a period."""
    series = normalize_series(raw)
    if start and end:
        return filter_by_date_range(series, start, end)
    return filter_by_period(series, period)
