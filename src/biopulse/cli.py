"""CLI for the biopulse sleep metrics engine."""

import asyncio
import json
import logging
from datetime import date, datetime

import click

from biopulse.config import GOAL_WAKE_TIME_KEY, SLEEP_GOAL_KEY, ConfigStore, parse_time_of_day
from biopulse.errors import GoalNotConfiguredError, SourceError

DATE = click.DateTime(formats=["%Y-%m-%d"])


def _fmt_duration(seconds: float) -> str:
    sign = "-" if seconds < 0 else ""
    minutes = int(abs(seconds)) // 60
    return f"{sign}{minutes // 60}h {minutes % 60:02d}m"


def _day(value: datetime | None) -> date:
    return value.date() if value is not None else date.today()


def _engine(file: str, sleep_goal: int, wake_time: str | None):
    from biopulse.engine import SleepEngine
    from biopulse.store import load_export

    config = ConfigStore({SLEEP_GOAL_KEY: sleep_goal, GOAL_WAKE_TIME_KEY: wake_time})
    return SleepEngine(load_export(file), config)


def _run(coro):
    try:
        return asyncio.run(coro)
    except SourceError as e:
        raise click.ClickException(f"Health data query failed: {e}")
    except GoalNotConfiguredError as e:
        raise click.ClickException(f"{e} (see --sleep-goal / --wake-time)")


def _check_wake_time(ctx, param, value):
    try:
        parse_time_of_day(value)
    except (TypeError, ValueError):
        raise click.BadParameter(f"{value!r} is not a time of day (expected HH:MM)")
    return value


def goal_options(f):
    f = click.option("--wake-time", default=None, callback=_check_wake_time,
                     help="Goal wake time, HH:MM.")(f)
    f = click.option("--sleep-goal", default=0, type=int,
                     help="Sleep goal in minutes (0 = not set).")(f)
    return f


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """biopulse: nightly sleep scores, sleep debt and bedtime advice."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--date", "day", type=DATE, default=None, help="Night to show (default today).")
@click.option("--json", "as_json", is_flag=True, help="Print JSON.")
@goal_options
def night(file: str, day: datetime | None, as_json: bool,
          sleep_goal: int, wake_time: str | None) -> None:
    """Summarize one night (the 14:00-to-14:00 window ending on --date)."""
    engine = _engine(file, sleep_goal, wake_time)
    result = _run(engine.get_night(_day(day)))

    if result is None:
        click.echo("No sleep data for this night.")
        return
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    click.echo(f"\n{'=' * 44}")
    click.echo(f"  Night of {result.date:%Y-%m-%d}")
    click.echo(f"{'=' * 44}")
    click.echo(f"  Sleep score: {result.sleep_score}/100")
    click.echo(f"  Asleep:      {_fmt_duration(result.sleep_duration)} "
               f"({result.sleep_start_time:%H:%M} - {result.sleep_end_time:%H:%M})")
    click.echo(f"  Awake:       {_fmt_duration(result.total_awake_time)}")
    click.echo(f"  HRV:         {result.hrv:.0f} ms")
    click.echo(f"  Resting HR:  {result.resting_heart_rate:.0f} bpm")
    for stage, secs in result.stage_seconds.items():
        click.echo(f"    {stage:<6} {_fmt_duration(secs)}")


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--days", "-n", default=7, help="Number of nights to fetch.")
@click.option("--today", type=DATE, default=None, help="Last night's date (default today).")
@click.option("--json", "as_json", is_flag=True, help="Print JSON.")
@goal_options
def nights(file: str, days: int, today: datetime | None, as_json: bool,
           sleep_goal: int, wake_time: str | None) -> None:
    """List the last N nights, newest first."""
    engine = _engine(file, sleep_goal, wake_time)
    results = _run(engine.get_nights(days, today=_day(today)))

    if as_json:
        click.echo(json.dumps([n.to_dict() for n in results], indent=2))
        return
    if not results:
        click.echo("No sleep data.")
        return
    for n in results:
        click.echo(f"  {n.date:%Y-%m-%d}  score {n.sleep_score:>3}  "
                   f"asleep {_fmt_duration(n.sleep_duration)}  "
                   f"hrv {n.hrv:>3.0f}  rhr {n.resting_heart_rate:>3.0f}")


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--days", "-n", default=30, help="Number of nights to include.")
@click.option("--today", type=DATE, default=None, help="Last night's date (default today).")
@goal_options
def debt(file: str, days: int, today: datetime | None,
         sleep_goal: int, wake_time: str | None) -> None:
    """Show per-day sleep debt and the rolling 14-night debt."""
    engine = _engine(file, sleep_goal, wake_time)

    async def _debt():
        fetched = await engine.get_nights(days, today=_day(today))
        return engine.get_debt_series(fetched), engine.get_rolling_debt(fetched)

    series, rolling = _run(_debt())
    for day in sorted(series.daily):
        click.echo(f"  {day}  delta {_fmt_duration(series.daily[day]):>9}  "
                   f"14-night {_fmt_duration(rolling.rolling[day]):>9}")
    click.echo(f"\n  Net debt:         {_fmt_duration(series.total)}")
    click.echo(f"  Current 14-night: {_fmt_duration(rolling.current)}")


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--date", "day", type=DATE, default=None, help="Wake-up date (default today).")
@goal_options
def bedtime(file: str, day: datetime | None, sleep_goal: int, wake_time: str | None) -> None:
    """Recommend a bedtime from the goal and the last 14 nights of debt."""
    engine = _engine(file, sleep_goal, wake_time)
    reference = _day(day)

    async def _recommend():
        fetched = await engine.get_nights(14, today=reference)
        return engine.get_bedtime_recommendation(reference, fetched)

    rec = _run(_recommend())
    click.echo(f"  Bedtime:   {rec.bedtime:%Y-%m-%d %H:%M}")
    click.echo(f"  Wake time: {rec.wake_time:%Y-%m-%d %H:%M}")
    click.echo(f"  Shift:     {rec.shift_sec / 60:+.0f} min (positive = earlier)")


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--days", "-n", default=14, help="Number of nights to include.")
@click.option("--today", type=DATE, default=None, help="Last night's date (default today).")
@goal_options
def trend(file: str, days: int, today: datetime | None,
          sleep_goal: int, wake_time: str | None) -> None:
    """Compare actual bedtimes and wake times against the goal."""
    from biopulse.analytics.timing import circadian_mismatch

    engine = _engine(file, sleep_goal, wake_time)
    reference = _day(today)

    async def _trend():
        fetched = await engine.get_nights(days, today=reference)
        return fetched, engine.get_timing_trend(fetched, limit=days)

    fetched, points = _run(_trend())
    for p in points:
        click.echo(f"  {p.date}  bed {p.bedtime:%H:%M} (goal {p.goal_bedtime:%H:%M})  "
                   f"wake {p.wake_time:%H:%M} (goal {p.goal_wake_time:%H:%M})")
    mismatch = circadian_mismatch(fetched, reference)
    click.echo(f"\n  Average wake vs 08:00: {mismatch:+.1f} h")


@main.command()
@click.argument("file", type=click.Path(exists=True))
@click.option("--start", type=DATE, default=None, help="First day of the week (default today).")
def steps(file: str, start: datetime | None) -> None:
    """Show daily step totals for one week."""
    engine = _engine(file, 0, None)
    week = _run(engine.weekly_steps(_day(start)))
    for day, count in week.items():
        click.echo(f"  {day:%a %Y-%m-%d}  {count:>8.0f}")


@main.command("hrv")
@click.argument("file", type=click.Path(exists=True))
@click.option("--days", "-n", default=7, help="Number of days to average.")
@click.option("--now", type=DATE, default=None, help="End of the averaging window.")
def hrv_cmd(file: str, days: int, now: datetime | None) -> None:
    """Show average HRV over the last N days."""
    engine = _engine(file, 0, None)
    value = _run(engine.average_hrv(days, now=now))
    if value is None:
        click.echo("No HRV data.")
    else:
        click.echo(f"  Average HRV ({days}d): {value:.1f} ms")


if __name__ == "__main__":
    main()
