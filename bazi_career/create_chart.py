"""
Chart creation library.
Builds a BirthMoment from form-style birth data, computes the BaZi chart,
and optionally writes chart JSON to chart_data/<name>.json.

Usage from Python:
    from bazi_career.create_chart import compute_and_save_chart
    compute_and_save_chart(
        name="Alex", birth_date="1990-01-01", birth_time="00:00",
        lunar=False, gender="male", province="广东省", city="广州市",
        longitude=113.26, latitude=23.13,  # optional: true solar time
    )
"""

import json
import logging
from pathlib import Path
from typing import Optional

from bazi_career import config
from bazi_career.astro_calendar import (
    BirthLocation, BirthMoment, CalendarSystem, default_calendar,
)
from bazi_career.bazi import ChartResult, compute_chart

logger = logging.getLogger(__name__)


def parse_birth_time(birth_time: str) -> tuple[int, int, int]:
    """'HH:MM' or 'HH:MM:SS' → (hour, minute, second)."""
    parts = birth_time.strip().split(":")
    if len(parts) not in (2, 3) or not all(p.isdigit() for p in parts):
        raise ValueError(f"Birth time must be HH:MM or HH:MM:SS, got {birth_time!r}")
    hour, minute = int(parts[0]), int(parts[1])
    second = int(parts[2]) if len(parts) == 3 else 0
    return hour, minute, second


def birth_moment(birth_date: str, birth_time: str, lunar: bool = False,
                 leap_month: bool = False, longitude: Optional[float] = None,
                 latitude: Optional[float] = None,
                 utc_offset: Optional[float] = None) -> BirthMoment:
    """
    Build a BirthMoment from 'YYYY-MM-DD' and 'HH:MM[:SS]' strings.

    The date is not checked against a calendar here: lunar dates such as
    month 2 day 30 are valid input. The calendar adapter does that check.
    """
    parts = birth_date.strip().split("-")
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Birth date must be YYYY-MM-DD, got {birth_date!r}")
    year, month, day = map(int, parts)
    hour, minute, second = parse_birth_time(birth_time)

    location = None
    if longitude is not None:
        location = BirthLocation(longitude=longitude, latitude=latitude, utc_offset=utc_offset)
    elif latitude is not None or utc_offset is not None:
        raise ValueError("Longitude is required for true solar time correction")

    return BirthMoment(
        year=year, month=month, day=day,
        hour=hour, minute=minute, second=second,
        calendar=CalendarSystem.LUNAR if lunar else CalendarSystem.SOLAR,
        leap_month=leap_month,
        location=location,
    )


def compute_chart_from_strings(birth_date: str, birth_time: str, lunar: bool = False,
                               leap_month: bool = False, language: str = "en",
                               **location) -> ChartResult:
    moment = birth_moment(birth_date, birth_time, lunar=lunar, leap_month=leap_month, **location)
    return compute_chart(moment, language=language)


def compute_and_save_chart(name, birth_date, birth_time, lunar=False, leap_month=False,
                           gender=None, province=None, city=None,
                           longitude=None, latitude=None, utc_offset=None,
                           language=None, save=True) -> dict:
    """
    Compute a chart and save it to chart_data/<name>.json.

    Args:
        name: str (used as filename)
        birth_date: str "YYYY-MM-DD", solar or lunar
        birth_time: str "HH:MM" (24h, local clock time)
        lunar: bool, birth_date is a lunar date
        leap_month: bool, lunar date falls in the intercalary month
        gender, province, city: carried through to the output
        longitude, latitude, utc_offset: optional, enables true solar time
        language: summary language, defaults to config.SUMMARY_LANGUAGE
        save: write the JSON file

    Returns:
        Chart data dict; includes "path" when saved
    """
    language = language or config.SUMMARY_LANGUAGE
    moment = birth_moment(birth_date, birth_time, lunar=lunar, leap_month=leap_month,
                          longitude=longitude, latitude=latitude, utc_offset=utc_offset)
    calendar = default_calendar()
    chart = compute_chart(moment, calendar=calendar, language=language)

    chart_data = {
        "user": {
            "name": name,
            "birth_date": birth_date,
            "birth_time": birth_time,
            "calendar": moment.calendar.value,
            "leap_month": moment.leap_month,
            "solar_time_used": calendar.resolve(moment).isoformat(),
            "gender": gender,
            "location": {
                "province": province,
                "city": city,
                "latitude": latitude,
                "longitude": longitude,
            },
        },
        "bazi": chart.to_dict(language),
    }

    if save:
        chart_dir = Path(config.CHART_DATA_DIR)
        chart_dir.mkdir(parents=True, exist_ok=True)
        filename = name.lower().replace(" ", "_")
        chart_path = chart_dir / f"{filename}.json"

        with open(chart_path, "w", encoding="utf-8") as f:
            json.dump(chart_data, f, indent=2, ensure_ascii=False)
        logger.info("Saved chart for %s to %s", name, chart_path)
        chart_data["path"] = str(chart_path)

    return chart_data
