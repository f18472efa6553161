"""
Calendar adapter tests - lunar_python resolution and true solar time
"""
from datetime import datetime, timedelta

import pytest

from bazi_career.astro_calendar import (
    BirthLocation, BirthMoment, CalendarResolutionError, CalendarSystem, LunarCalendar,
    lmt_correction, standard_utc_offset, true_solar_time,
)
from bazi_career.bazi import DAY_MASTER, Element, Strength, compute_chart

calendar = LunarCalendar()


class TestReferenceChart:
    """1990-01-01 00:00 solar: 己巳 丙子 丙寅 戊子"""

    moment = BirthMoment(1990, 1, 1, 0, 0)

    def test_pillars(self):
        assert calendar.eight_chars(self.moment) == ("己", "巳", "丙", "子", "丙", "寅", "戊", "子")

    def test_chart(self):
        chart = compute_chart(self.moment)

        assert chart.elements == (Element.EARTH, Element.FIRE, Element.FIRE, Element.WATER,
                                  Element.FIRE, Element.WOOD, Element.EARTH, Element.WATER)
        assert chart.ten_gods == ("Output God", "Rival Wealth", "Parallel", "Seven Killings",
                                  DAY_MASTER, "Indirect Resource", "Eating God", "Seven Killings")
        assert chart.day_master.chinese == "丙"
        assert chart.day_master_element == Element.FIRE
        # fire 3 + wood 1, month branch 子 is water: exactly on the weak side of 4.5
        assert chart.support_score == 4
        assert chart.strength is Strength.WEAK
        assert chart.favorable_elements == (Element.FIRE, Element.WOOD)
        assert chart.unfavorable_elements == (Element.EARTH, Element.METAL, Element.WATER)
        assert chart.summary == ("Day master is 丙Fire, born in the 子 month. "
                                 "Elementally weak; favorable elements are Fire, Wood.")

    def test_deterministic(self):
        assert compute_chart(self.moment) == compute_chart(self.moment)


class TestLunarResolution:

    def test_lunar_new_year(self):
        """Lunar 1990-01-01 is Spring Festival, 27 Jan 1990"""
        moment = BirthMoment(1990, 1, 1, 12, 0, calendar=CalendarSystem.LUNAR)
        assert calendar.to_solar(moment) == datetime(1990, 1, 27, 12, 0)

    def test_leap_month(self):
        """2023 has a leap second month starting 22 Mar 2023"""
        moment = BirthMoment(2023, 2, 1, 8, 30, calendar=CalendarSystem.LUNAR, leap_month=True)
        assert calendar.to_solar(moment) == datetime(2023, 3, 22, 8, 30)

    def test_to_lunar_leap_month(self):
        lunar = calendar.to_lunar(BirthMoment(2023, 3, 22, 8, 30))
        assert lunar.calendar is CalendarSystem.LUNAR
        assert (lunar.year, lunar.month, lunar.day) == (2023, 2, 1)
        assert lunar.leap_month is True
        assert (lunar.hour, lunar.minute) == (8, 30)

    @pytest.mark.parametrize("solar", [
        BirthMoment(1990, 1, 1, 0, 0),
        BirthMoment(1985, 7, 20, 23, 15),
        BirthMoment(2023, 3, 22, 8, 30),
        BirthMoment(2004, 2, 4, 19, 45, 30),
    ])
    def test_round_trip_same_chart(self, solar):
        lunar = calendar.to_lunar(solar)
        assert calendar.to_solar(lunar) == calendar.to_solar(solar)
        assert compute_chart(lunar) == compute_chart(solar)


class TestCalendarErrors:

    @pytest.mark.parametrize("moment", [
        BirthMoment(1990, 2, 30, 12, 0),
        BirthMoment(1990, 13, 1, 12, 0),
        BirthMoment(1990, 1, 1, 24, 0),
        BirthMoment(0, 1, 1, 12, 0),
        BirthMoment(1990, 1, 1, 12, 0, leap_month=True),
        BirthMoment(1990, 13, 1, 12, 0, calendar=CalendarSystem.LUNAR),
        BirthMoment(1990, 1, 31, 12, 0, calendar=CalendarSystem.LUNAR),
        BirthMoment(1990, 1, 1, 25, 0, calendar=CalendarSystem.LUNAR),
        # 2021 has no leap month
        BirthMoment(2021, 3, 1, 12, 0, calendar=CalendarSystem.LUNAR, leap_month=True),
    ])
    def test_unresolvable(self, moment):
        with pytest.raises(CalendarResolutionError):
            compute_chart(moment)

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            calendar.to_solar(BirthMoment(1990, 2, 30, 12, 0))

    def test_location_needs_timezone_source(self):
        moment = BirthMoment(1990, 1, 1, 12, 0, location=BirthLocation(longitude=116.4))
        with pytest.raises(CalendarResolutionError):
            calendar.resolve(moment)


class TestSolarTime:

    def test_lmt_correction(self):
        assert lmt_correction(120.0) == 0.0
        assert lmt_correction(108.37) == pytest.approx(-46.52)
        assert lmt_correction(-122.4194, -120.0) == pytest.approx(-9.6776)

    def test_equation_of_time_february(self):
        """Mid-February the sun runs ~14 minutes behind mean time"""
        result = true_solar_time(datetime(2000, 2, 11, 12, 0), BirthLocation(120.0, utc_offset=8))
        assert datetime(2000, 2, 11, 11, 44) <= result <= datetime(2000, 2, 11, 11, 48)

    def test_equation_of_time_november(self):
        """Early November the sun runs ~16 minutes ahead"""
        result = true_solar_time(datetime(2000, 11, 3, 12, 0), BirthLocation(120.0, utc_offset=8))
        assert datetime(2000, 11, 3, 12, 14) <= result <= datetime(2000, 11, 3, 12, 18)

    def test_western_longitude(self):
        """90°E on Beijing time: two hours of LMT, equation of time near zero in mid-June"""
        result = true_solar_time(datetime(2000, 6, 13, 12, 0), BirthLocation(90.0, utc_offset=8))
        assert abs(result - datetime(2000, 6, 13, 10, 0)) <= timedelta(minutes=2)
        assert result.microsecond == 0

    def test_correction_moves_hour_pillar(self):
        plain = BirthMoment(2000, 6, 13, 11, 30)
        corrected = BirthMoment(2000, 6, 13, 11, 30, location=BirthLocation(90.0, utc_offset=8))
        assert calendar.eight_chars(plain)[7] == "午"
        assert calendar.eight_chars(corrected)[7] == "巳"

    def test_round_trip_with_location(self):
        location = BirthLocation(87.6, utc_offset=8)
        solar = BirthMoment(1995, 8, 15, 9, 0, location=location)
        lunar = calendar.to_lunar(solar)
        assert lunar.location == location
        assert compute_chart(lunar) == compute_chart(solar)

    def test_timezone_lookup_plain(self):
        assert standard_utc_offset(39.9, 116.4, datetime(2000, 7, 1, 12, 0)) == (8.0, 0.0)

    def test_timezone_lookup_strips_dst(self):
        """China observed DST in the summers of 1986-1991"""
        assert standard_utc_offset(39.9, 116.4, datetime(1988, 7, 1, 12, 0)) == (8.0, 1.0)
