"""
CLI wrapper for compute_and_save_chart().

Usage:
    bazi-career --birth-date YYYY-MM-DD --birth-time HH:MM [--lunar] [--leap-month] \
        [--gender GENDER] [--province P] [--city C] \
        [--longitude LON] [--latitude LAT] [--utc-offset OFFSET] \
        [--language en|zh] [--context] [--save --name NAME]
"""

import argparse
import json
import logging

from bazi_career import config
from bazi_career.astro_calendar import CalendarResolutionError
from bazi_career.bazi import compute_chart
from bazi_career.create_chart import birth_moment, compute_and_save_chart
from bazi_career.generate_context import career_context


def main(argv=None):
    parser = argparse.ArgumentParser(description="Compute a BaZi chart and its favorable elements.")
    parser.add_argument("--birth-date", required=True, dest="birth_date")
    parser.add_argument("--birth-time", required=True, dest="birth_time")
    parser.add_argument("--lunar", action="store_true", help="birth date is a lunar date")
    parser.add_argument("--leap-month", action="store_true", dest="leap_month")
    parser.add_argument("--gender", choices=["male", "female"])
    parser.add_argument("--province")
    parser.add_argument("--city")
    parser.add_argument("--longitude", type=float)
    parser.add_argument("--latitude", type=float)
    parser.add_argument("--utc-offset", dest="utc_offset", type=float)
    parser.add_argument("--language", choices=["en", "zh"], default=config.SUMMARY_LANGUAGE)
    parser.add_argument("--context", action="store_true",
                        help="print the career recommendation context instead of the chart")
    parser.add_argument("--save", action="store_true", help="write chart_data/<name>.json")
    parser.add_argument("--name", default="chart")

    args = parser.parse_args(argv)
    logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")

    location = dict(longitude=args.longitude, latitude=args.latitude, utc_offset=args.utc_offset)

    try:
        if args.context:
            moment = birth_moment(args.birth_date, args.birth_time, lunar=args.lunar,
                                  leap_month=args.leap_month, **location)
            chart = compute_chart(moment, language=args.language)
            result = career_context(chart, args.gender, args.province, args.city, language=args.language)
        else:
            result = compute_and_save_chart(
                name=args.name,
                birth_date=args.birth_date,
                birth_time=args.birth_time,
                lunar=args.lunar,
                leap_month=args.leap_month,
                gender=args.gender,
                province=args.province,
                city=args.city,
                language=args.language,
                save=args.save,
                **location,
            )
    except CalendarResolutionError as exc:
        parser.exit(2, f"error: {exc}\n")
    except ValueError as exc:
        parser.error(str(exc))

    print(json.dumps(result, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
