#!/usr/bin/env python3
import argparse
import datetime
from typing import List

import activity_timeline.config.config as config
from activity_timeline.domain.analyzer import analyze
from activity_timeline.domain.errors import TimelineError
from activity_timeline.domain.input_entities import ActivityType, ParsedBatch
from activity_timeline.domain.loader import BatchLoader
from activity_timeline.domain.selection import FilterState, activities_for_day, filter_by_type
from activity_timeline.domain.window import ActivityIndex, Segment, Viewport
from activity_timeline.helpers.helpers import (
    format_duration_minutes,
    from_start_to_end_to_str,
    setup_logging,
    start_of_day,
    valid_date,
)
from activity_timeline.sources.activitywatch_source import load_day
from activity_timeline.sources.api_source import ActivityApiClient
from activity_timeline.sources.file_source import load_csv

LOG = setup_logging()


def load_batch(args: argparse.Namespace, day: datetime.datetime) -> ParsedBatch:
    """
    Loads batch from the source chosen in arguments. Exits the process on batch-fatal errors.
    """
    loader = BatchLoader()
    if args.csv:
        token = loader.begin(args.csv)
    elif args.user:
        token = loader.begin(("api", args.user, day.date()))
    else:
        token = loader.begin(("aw", day.date()))
    try:
        if args.csv:
            batch = load_csv(args.csv)
        elif args.user:
            batch = ActivityApiClient().load_batch(args.user, day.date())
        else:
            batch = load_day(day)
    except (TimelineError, OSError) as err:
        loader.fail(token, err)
        LOG.error("Can't load activities: %s", err)
        exit(1)
    loader.complete(token, batch)
    LOG.info(
        "Rows seen %d, kept %d, skipped %d. Metrics:\n  %s",
        batch.total_rows_seen,
        batch.rows_kept,
        batch.rows_skipped,
        "\n  ".join(batch.metrics.to_strings()),
    )
    return loader.current


def segments_to_str(segments: List[Segment]) -> str:
    return "\n".join(
        f"  {from_start_to_end_to_str(x.activity.start_time, x.activity.end_time)}"
        f" +{format_duration_minutes(x.offset_minutes):>7} {format_duration_minutes(x.duration_minutes):>7}"
        f" {x.activity.type.value:<11} {x.activity.title}"
        for x in segments
    )


def print_hourly(index: ActivityIndex, day_start: datetime.datetime) -> None:
    for bucket in index.hourly_breakdown(day_start):
        if bucket.segments:
            LOG.info("%s (%d activities):\n%s", bucket.label, len(bucket.segments), segments_to_str(bucket.segments))


def print_viewport(index: ActivityIndex, day_start: datetime.datetime, viewport: Viewport) -> None:
    window = viewport.to_window(day_start)
    segments = index.clip(window)
    LOG.info(
        "Viewport %s (%s), %d activities:\n%s",
        from_start_to_end_to_str(window.start, window.end),
        format_duration_minutes(viewport.width_minutes),
        len(segments),
        segments_to_str(segments),
    )


def build_timeline(args: argparse.Namespace) -> None:
    """
    Loads activities, selects one day of them and prints summaries and timeline views for the day.
    """
    day = args.date if args.date else datetime.datetime.today().astimezone(config.CURRENT_TIMEZONE)
    if args.back_days and args.back_days > 0:
        day = day - datetime.timedelta(days=args.back_days)
    batch = load_batch(args, start_of_day(day))
    if args.csv and not args.date:
        day = batch.covered_range.end  # Files may contain few days, show the last one.
    day_start = start_of_day(day)
    activities = activities_for_day(batch.activities, day_start)
    if args.types:
        activities = filter_by_type(activities, FilterState.only(ActivityType(x) for x in args.types))
    LOG.info("Selected %d of %d activities for %s.", len(activities), batch.rows_kept, f"{day_start:%Y-%m-%d}")
    if not activities:
        LOG.warning("No activities on %s.", f"{day_start:%Y-%m-%d}")
        return
    LOG.info(analyze(activities, day_start).to_str())
    index = ActivityIndex(activities)
    if args.hourly:
        print_hourly(index, day_start)
    if args.zoom:
        print_viewport(index, day_start, Viewport.for_zoom_level(args.zoom, args.view_start * 60))


def main():
    parser = argparse.ArgumentParser(
        description="Loads activities from CSV file, activity REST API or local ActivityWatch,"
        " merges overlapping activities to calculate true time and prints summaries for one day:"
        " active and idle time, time per user, per activity type, per application and per website."
        "\nTo see debug logs need to set environment variable 'LOGLEVEL=debug'."
    )
    parser.add_argument(
        "date",
        nargs="?",
        type=valid_date,
        help="Date to show activities on in format 'YYYY-mm-dd'. By-default is today,"
        " or the last day with activities for CSV source."
        " If don't set here then date is calculated as today-'back days'.",
    )
    parser.add_argument(
        "-b",
        "--back-days",
        type=int,
        help="How many days back show activities on. I.e. '1' value means 'show yesterday'.",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--csv",
        metavar="PATH_OR_URL",
        help="Path or HTTP(S) URL of CSV file with activities. Columns are recognized by names like"
        f" '{config.START_TIME_ALIASES[0]}', '{config.END_TIME_ALIASES[0]}', '{config.ACTIVITY_TYPE_ALIASES[0]}'.",
    )
    source.add_argument(
        "--user",
        metavar="USER_ID",
        help="Identifier of user to load activities of from the activity REST API."
        " API is configured with 'ACTIVITY_API_URL' and 'ACTIVITY_API_KEY' environment variables.",
    )
    source.add_argument(
        "--aw",
        action="store_true",
        help="Load events from local ActivityWatch. It is the default source.",
    )
    parser.add_argument(
        "--hourly",
        action="store_true",
        help="Print activities clipped by each hour of the day.",
    )
    parser.add_argument(
        "-z",
        "--zoom",
        nargs="?",
        const=config.DEFAULT_ZOOM_LEVEL,
        choices=config.ZOOM_LEVELS.keys(),
        help="Print activities visible in the timeline zoomed to this width."
        f" Without value the whole day is shown ('{config.DEFAULT_ZOOM_LEVEL}').",
    )
    parser.add_argument(
        "-s",
        "--view-start",
        type=float,
        default=0,
        help="Hour of the day to start zoomed timeline from, like '13.5'. Used with '--zoom'.",
    )
    parser.add_argument(
        "-t",
        "--types",
        nargs="*",
        choices=[x.value for x in ActivityType],
        help="Activity types to show. By-default all.",
    )
    build_timeline(parser.parse_args())


if __name__ == "__main__":
    main()
