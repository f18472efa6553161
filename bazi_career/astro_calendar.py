"""
Calendar adapter for BaZi pillar lookup.

Handles solar/lunar birth input, lunar → solar resolution,
optional true solar time correction (LMT + equation of time),
and the eight pillar glyphs for a resolved instant.

Pillar math is delegated to lunar_python; this module only feeds it
a validated solar instant.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional
from zoneinfo import ZoneInfo

import swisseph as swe
from lunar_python import Lunar, Solar
from timezonefinder import TimezoneFinder

from bazi_career import config

logger = logging.getLogger(__name__)

if config.SWISSEPH_EPHE_PATH:
    swe.set_ephe_path(config.SWISSEPH_EPHE_PATH)

MIN_YEAR = 1
MAX_YEAR = 9999


class CalendarSystem(Enum):
    SOLAR = "solar"
    LUNAR = "lunar"


class CalendarResolutionError(ValueError):
    """The calendar could not resolve a birth moment to pillars."""


@dataclass(frozen=True)
class BirthLocation:
    longitude: float  # east positive
    latitude: Optional[float] = None  # needed only for timezone lookup
    utc_offset: Optional[float] = None  # hours; overrides timezone lookup


@dataclass(frozen=True)
class BirthMoment:
    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int = 0
    calendar: CalendarSystem = CalendarSystem.SOLAR
    leap_month: bool = False  # lunar only
    location: Optional[BirthLocation] = None

    def __str__(self):
        leap = "leap " if self.leap_month else ""
        return (f"{self.calendar.value} {self.year:04d}-{leap}{self.month:02d}-{self.day:02d} "
                f"{self.hour:02d}:{self.minute:02d}:{self.second:02d}")


# ============================================================
# TRUE SOLAR TIME
# ============================================================

_tf = TimezoneFinder()


def lmt_correction(longitude: float, standard_meridian: float = 120.0) -> float:
    """
    Calculate Local Mean Time correction in minutes.

    China uses a single timezone based on 120°E. For locations
    significantly west of this (like Urumqi at 87.6°E), the clock
    time runs well ahead of solar time.

    Args:
        longitude: birth location longitude in degrees (east positive)
        standard_meridian: timezone standard meridian (120.0 for China/CST)

    Returns:
        Correction in minutes (negative = subtract from clock time)
    """
    return (longitude - standard_meridian) * 4.0


def equation_of_time(utc_dt: datetime) -> float:
    """Apparent minus mean solar time at `utc_dt`, in minutes."""
    hour = utc_dt.hour + utc_dt.minute / 60 + utc_dt.second / 3600
    jd_ut = swe.julday(utc_dt.year, utc_dt.month, utc_dt.day, hour)
    return swe.time_equ(jd_ut) * 1440.0


def standard_utc_offset(latitude: float, longitude: float, clock_dt: datetime) -> tuple[float, float]:
    """
    Determine the zone's standard UTC offset from coordinates and date.

    Returns:
        (standard_offset, dst_hours), both in hours. dst_hours is 0 when
        daylight saving was not active at `clock_dt` (e.g. China 1986-1991
        summers have dst_hours == 1).
    """
    tz_name = _tf.timezone_at(lat=latitude, lng=longitude)
    if tz_name is None:
        raise CalendarResolutionError(f"Could not determine timezone for ({latitude}, {longitude})")

    local_dt = clock_dt.replace(tzinfo=ZoneInfo(tz_name))
    clock_offset = local_dt.utcoffset().total_seconds() / 3600
    dst = local_dt.dst()
    dst_hours = dst.total_seconds() / 3600 if dst else 0.0
    return clock_offset - dst_hours, dst_hours


def true_solar_time(clock_dt: datetime, location: BirthLocation) -> datetime:
    """
    Convert clock time at a location to apparent (true) solar time.

    clock → standard time (DST removed) → LMT → + equation of time.
    A manual utc_offset is taken as the standard offset with no DST check.
    """
    if location.utc_offset is not None:
        standard_offset, dst_hours = location.utc_offset, 0.0
    elif location.latitude is None:
        raise CalendarResolutionError("Latitude or utc_offset is required to resolve the birth timezone")
    else:
        standard_offset, dst_hours = standard_utc_offset(location.latitude, location.longitude, clock_dt)

    standard_dt = clock_dt - timedelta(hours=dst_hours)
    utc_dt = standard_dt - timedelta(hours=standard_offset)

    lmt_minutes = lmt_correction(location.longitude, standard_offset * 15)
    eot_minutes = equation_of_time(utc_dt)
    shift = timedelta(seconds=round((lmt_minutes + eot_minutes) * 60))

    logger.debug("Solar time shift at lon %.4f: LMT %+.2f min, EoT %+.2f min, DST %.1f h",
                 location.longitude, lmt_minutes, eot_minutes, dst_hours)
    return standard_dt + shift


# ============================================================
# CALENDAR ADAPTER
# ============================================================

class LunarCalendar:
    """lunar_python-backed calendar adapter."""

    def to_solar(self, moment: BirthMoment) -> datetime:
        """Resolve a birth moment to its solar clock time (before solar time correction)."""
        if not MIN_YEAR <= moment.year <= MAX_YEAR:
            raise self._fail(moment, f"year must be between {MIN_YEAR} and {MAX_YEAR}")

        if moment.calendar is CalendarSystem.SOLAR:
            if moment.leap_month:
                raise self._fail(moment, "leap_month applies to lunar dates only")
            try:
                return datetime(moment.year, moment.month, moment.day,
                                moment.hour, moment.minute, moment.second)
            except ValueError as exc:
                raise self._fail(moment, str(exc)) from exc

        if not 1 <= moment.month <= 12 or not 1 <= moment.day <= 30:
            raise self._fail(moment, "lunar month must be 1-12 and day 1-30")
        if not (0 <= moment.hour <= 23 and 0 <= moment.minute <= 59 and 0 <= moment.second <= 59):
            raise self._fail(moment, "time of day out of range")

        month = -moment.month if moment.leap_month else moment.month
        try:
            solar = Lunar.fromYmdHms(moment.year, month, moment.day,
                                     moment.hour, moment.minute, moment.second).getSolar()
            return datetime(solar.getYear(), solar.getMonth(), solar.getDay(),
                            solar.getHour(), solar.getMinute(), solar.getSecond())
        except Exception as exc:
            raise self._fail(moment, str(exc)) from exc

    def to_lunar(self, moment: BirthMoment) -> BirthMoment:
        """The same instant expressed as a lunar birth moment."""
        solar_dt = self.to_solar(moment)
        lunar = self._solar(moment, solar_dt).getLunar()
        return replace(
            moment,
            year=lunar.getYear(),
            month=abs(lunar.getMonth()),
            day=lunar.getDay(),
            hour=solar_dt.hour,
            minute=solar_dt.minute,
            second=solar_dt.second,
            calendar=CalendarSystem.LUNAR,
            leap_month=lunar.getMonth() < 0,
        )

    def resolve(self, moment: BirthMoment) -> datetime:
        """Solar instant the pillars are read from, after any solar time correction."""
        solar_dt = self.to_solar(moment)
        if moment.location is not None:
            solar_dt = true_solar_time(solar_dt, moment.location)
        return solar_dt

    def eight_chars(self, moment: BirthMoment) -> tuple[str, ...]:
        """Year, month, day and hour pillar glyphs, stem then branch."""
        solar_dt = self.resolve(moment)
        ec = self._solar(moment, solar_dt).getLunar().getEightChar()
        return (
            ec.getYearGan(), ec.getYearZhi(),
            ec.getMonthGan(), ec.getMonthZhi(),
            ec.getDayGan(), ec.getDayZhi(),
            ec.getTimeGan(), ec.getTimeZhi(),
        )

    def _solar(self, moment: BirthMoment, dt: datetime):
        if not MIN_YEAR <= dt.year <= MAX_YEAR:
            raise self._fail(moment, f"resolved year {dt.year} is outside the supported range")
        try:
            return Solar.fromYmdHms(dt.year, dt.month, dt.day, dt.hour, dt.minute, dt.second)
        except Exception as exc:
            raise self._fail(moment, str(exc)) from exc

    @staticmethod
    def _fail(moment: BirthMoment, reason: str) -> CalendarResolutionError:
        logger.warning("Cannot resolve %s: %s", moment, reason)
        return CalendarResolutionError(f"Cannot resolve {moment}: {reason}")


_default_calendar: Optional[LunarCalendar] = None


def default_calendar() -> LunarCalendar:
    global _default_calendar
    if _default_calendar is None:
        _default_calendar = LunarCalendar()
    return _default_calendar
