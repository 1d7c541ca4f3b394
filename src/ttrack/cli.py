"""CLI entry point for ttrack.

Every command first works out what it is going to do and prints it, reading
storage but never writing it. The single mutation that follows is skipped on
`--dry`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

import click
from pydantic import ValidationError

from ttrack.activity import Activity, OngoingActivity
from ttrack.clock import Clock
from ttrack.config import Config, load_config
from ttrack.errors import TrackerError
from ttrack.report import format_status, in_range, report_lines, summary_lines
from ttrack.service import ActivityService
from ttrack.storage import JsonStorage
from ttrack.timeline import render_days
from ttrack.timeparse import parse_time, split_time_clue, split_time_range
from ttrack.times import format_datetime, format_duration

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """Everything a command needs, built once per invocation."""

    service: ActivityService
    clock: Clock
    config: Config
    dry_run: bool = False

    @property
    def deny_overlapping(self) -> bool:
        return self.config.deny_overlapping

    def commit(self, mutation: Callable[[], Any]) -> Any:
        """Apply `mutation` unless this is a dry run."""
        if self.dry_run:
            click.echo("(dry-run) nothing done")
            return None
        return mutation()


pass_session = click.make_pass_decorator(Session)


class TrackerGroup(click.Group):
    """Command group reporting `TrackerError` as a regular CLI error."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except TrackerError as e:
            raise click.ClickException(str(e)) from e


def _echo_activity(verb: str, activity: Activity) -> None:
    click.echo(f"{verb} {activity.title}")
    click.echo(f"Started {format_datetime(activity.start_time):>20}")
    click.echo(f"Ended   {format_datetime(activity.stop_time):>20}")
    click.echo(f"Total   {format_duration(activity.duration):>20}")


def _new_activity(
    start_time: datetime, tags: list[str], description: str | None
) -> OngoingActivity:
    """Build an activity from command-line values, reporting bad input as usage errors."""
    if not tags:
        raise click.UsageError("no tags provided")
    try:
        return OngoingActivity(start_time=start_time, tags=tags, description=description)
    except ValidationError as e:
        messages = "; ".join(error["msg"] for error in e.errors())
        raise click.UsageError(f"invalid activity: {messages}") from e


def _resolve_range(
    session: Session,
    tokens: tuple[str, ...],
    *,
    yesterday: bool = False,
    week: bool = False,
    lastweek: bool = False,
    default: Callable[[], tuple[datetime, datetime]] | None = None,
) -> tuple[datetime, datetime]:
    """Turn 'START - [END]' tokens or a range flag into (start, end)."""
    if sum([bool(tokens), yesterday, week, lastweek]) > 1:
        raise click.UsageError("give either a time range or one of --yesterday, --week, --lastweek")
    clock = session.clock
    if tokens:
        start, end, rest = split_time_range(tokens, clock.now())
        if rest:
            raise click.UsageError(f"unexpected arguments: {' '.join(rest)}")
        return start, end
    if yesterday:
        return clock.yesterday_range()
    if week:
        return clock.this_week_range()
    if lastweek:
        return clock.last_week_range()
    return (default or clock.today_range)()


@click.group(
    cls=TrackerGroup,
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.option(
    "--dir",
    "storage_dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="TTRACK_DIR",
    default=None,
    help="Storage directory (default: from config, ~/.local/share/ttrack)",
)
@click.option("--default", "use_default", is_flag=True, hidden=True, help="Ignore config files")
@click.option(
    "--overlap/--no-overlap",
    default=None,
    help="Allow or deny overlapping activities (default: from config)",
)
@click.option("-n", "--dry", "dry_run", is_flag=True, help="Dry run: don't write anything")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose logs")
@click.pass_context
def cli(
    ctx: click.Context,
    storage_dir: Path | None,
    use_default: bool,
    overlap: bool | None,
    dry_run: bool,
    verbose: bool,
) -> None:
    """Time Tracker CLI.

    Track time spent on tagged activities. Without a command, shows the
    ongoing activities.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    # A clock may be preloaded with obj={"clock": ...}.
    preset = ctx.obj if isinstance(ctx.obj, dict) else {}

    config = Config() if use_default else load_config()
    if overlap is not None:
        config = config.model_copy(update={"deny_overlapping": not overlap})
    storage_dir = storage_dir or config.storage_dir
    logger.debug("Using storage directory %s", storage_dir)

    ctx.obj = Session(
        service=ActivityService(JsonStorage.in_directory(storage_dir)),
        clock=preset.get("clock") or Clock(),
        config=config,
        dry_run=dry_run,
    )
    if ctx.invoked_subcommand is None:
        _display_current(ctx.obj)


def _display_current(session: Session) -> None:
    ongoing = session.service.get_ongoing_activities()
    if not ongoing:
        click.echo("There is no active time tracking.")
        return
    now = session.clock.now()
    for activity_id, activity in ongoing:
        click.echo(f"Tracking {activity.title}")
        click.echo(f"Total    {format_duration(now - activity.start_time)}")
        click.echo(f"Id       {activity_id}")


@cli.command()
@click.argument("tokens", nargs=-1, required=True)
@click.option("-d", "--description", help="Long activity description")
@pass_session
def start(session: Session, tokens: tuple[str, ...], description: str | None) -> None:
    """Start a new activity.

    TOKENS is an optional time clue followed by at least one tag.

    Example:
        ttrack start foo
        ttrack start 09:00 foo bar
        ttrack start 4 min ago foo
    """
    start_time, tags = split_time_clue(tokens, session.clock.now())
    started = _new_activity(start_time, tags, description)
    click.echo(f"Tracking {started.title}")
    click.echo(f"Started  {format_datetime(started.start_time)}")

    result = session.commit(
        lambda: session.service.start_activity(started, session.deny_overlapping)
    )
    if result is not None and result[1] is not None:
        _echo_activity("Recorded", result[1])


@cli.command()
@click.argument("time_clue", nargs=-1)
@click.option("--id", "activity_id", type=int, help="Ongoing activity id (default: the only one)")
@pass_session
def stop(session: Session, time_clue: tuple[str, ...], activity_id: int | None) -> None:
    """Stop an ongoing activity.

    TIME_CLUE is optional (e.g. '4 min ago'); the current time is used when
    omitted.
    """
    now = session.clock.now()
    stop_time = parse_time(" ".join(time_clue), now) if time_clue else now
    target = session.service.resolve_ongoing_activity(activity_id)
    if target is None:
        if activity_id is None:
            click.echo("There is no active time tracking.")
        else:
            click.echo(f"No ongoing activity with id {activity_id}.")
        return

    target_id, ongoing = target
    stopped = ongoing.into_activity(stop_time)
    _echo_activity("Recorded", stopped)
    session.commit(
        lambda: session.service.stop_ongoing_activity(
            stop_time, target_id, session.deny_overlapping
        )
    )


@cli.command()
@click.argument("tokens", nargs=-1, required=True)
@click.option("-d", "--description", help="Long activity description")
@pass_session
def track(session: Session, tokens: tuple[str, ...], description: str | None) -> None:
    """Track a finished activity.

    TOKENS is 'START - [STOP] TAG...'; STOP defaults to now.

    Example:
        ttrack track 09:00 - 10:00 foo
        ttrack track 2019-12-25T19:43:00 - 2019-12-25T19:45:00 foo
    """
    start_time, stop_time, tags = split_time_range(tokens, session.clock.now())
    tracked = _new_activity(start_time, tags, description).into_activity(stop_time)
    _echo_activity("Recorded", tracked)
    session.commit(lambda: session.service.track_activity(tracked, session.deny_overlapping))


@cli.command()
@click.option("--id", "activity_id", type=int, help="Ongoing activity id (default: the only one)")
@pass_session
def cancel(session: Session, activity_id: int | None) -> None:
    """Cancel an ongoing activity without recording it."""
    target = session.service.resolve_ongoing_activity(activity_id)
    if target is None:
        if activity_id is None:
            click.echo("Nothing to cancel: there is no active time tracking.")
        else:
            click.echo(f"No ongoing activity with id {activity_id}.")
        return

    target_id, cancelled = target
    click.echo(f"Cancelled {cancelled.title}")
    click.echo(f"Started   {format_datetime(cancelled.start_time):>20}")
    click.echo(f"Total     {format_duration(session.clock.now() - cancelled.start_time):>20}")
    session.commit(lambda: session.service.cancel_ongoing_activity(target_id))


@cli.command()
@click.argument("activity_id", type=int)
@pass_session
def delete(session: Session, activity_id: int) -> None:
    """Delete a finished activity.

    ACTIVITY_ID is shown by `ttrack summary --id`; 0 is the most recent one.
    Ids change after every deletion.
    """
    matches = session.service.filter_activities(lambda item: item[0] == activity_id)
    if not matches:
        click.echo(f"No activity found for id {activity_id}.")
        return

    _, deleted = matches[0]
    _echo_activity("Deleted", deleted)
    session.commit(lambda: session.service.delete_activity(activity_id))


@cli.command("continue")
@click.argument("activity_id", type=int, required=False)
@pass_session
def continue_activity(session: Session, activity_id: int | None) -> None:
    """Start again a finished activity (default: the most recent one)."""
    finished = session.service.get_finished_activities()
    if activity_id is not None:
        finished = [item for item in finished if item[0] == activity_id]
    if not finished:
        if activity_id is None:
            click.echo("No activity to continue from.")
        else:
            click.echo(f"No activity found for id {activity_id}.")
        return

    _, previous = finished[-1]
    started = OngoingActivity(
        start_time=session.clock.now(),
        tags=list(previous.tags),
        description=previous.description,
    )
    click.echo(f"Tracking {started.title}")
    session.commit(lambda: session.service.start_activity(started, session.deny_overlapping))


@cli.command()
@click.argument("tokens", nargs=-1)
@click.option("--yesterday", is_flag=True, help="Activities done yesterday")
@click.option("--week", is_flag=True, help="Activities done this week")
@click.option("--lastweek", is_flag=True, help="Activities done last week")
@click.option("--id", "display_id", is_flag=True, help="Display activity ids")
@click.option("-d", "--description", "display_description", is_flag=True, help="Display descriptions")
@click.option("-r", "--report", is_flag=True, help="Sum up activities with the same tags")
@pass_session
def summary(
    session: Session,
    tokens: tuple[str, ...],
    yesterday: bool,
    week: bool,
    lastweek: bool,
    display_id: bool,
    display_description: bool,
    report: bool,
) -> None:
    """Display finished activities (default: today).

    TOKENS is an optional range 'START - [END]', e.g. '09:00 - 10:00'.
    """
    start, end = _resolve_range(session, tokens, yesterday=yesterday, week=week, lastweek=lastweek)
    activities = session.service.filter_activities(lambda item: in_range(item, start, end))
    if not activities:
        click.echo("No filtered data found.")
        return
    if report:
        lines = report_lines(activities)
    else:
        lines = summary_lines(
            activities, display_id=display_id, display_description=display_description
        )
    for line in lines:
        click.echo(line)


def _echo_timeline(session: Session, start: datetime, end: datetime) -> None:
    activities = session.service.filter_activities(lambda item: in_range(item, start, end))
    if not activities:
        click.echo("No filtered data found.")
        return
    for line in render_days(activities, session.config.timeline_colors):
        click.echo(line)


@cli.command()
@click.argument("tokens", nargs=-1)
@pass_session
def timeline(session: Session, tokens: tuple[str, ...]) -> None:
    """Display finished activities as a timeline (default: this week).

    TOKENS is an optional range 'START - [END]', e.g. 'last monday - now'.
    """
    start, end = _resolve_range(session, tokens, default=session.clock.this_week_range)
    _echo_timeline(session, start, end)


@cli.command()
@pass_session
def day(session: Session) -> None:
    """Display the current day as a timeline."""
    _echo_timeline(session, *session.clock.today_range())


@cli.command()
@pass_session
def week(session: Session) -> None:
    """Display the current week as a timeline."""
    _echo_timeline(session, *session.clock.this_week_range())


@cli.command()
@click.option(
    "--format",
    "format_string",
    default=None,
    help="Placeholders: {id} {ongoing} {start} {duration} {human_duration}",
)
@pass_session
def status(session: Session, format_string: str | None) -> None:
    """Print ongoing activities on one line (for prompts and status bars)."""
    ongoing = session.service.get_ongoing_activities()
    click.echo(format_status(ongoing, session.clock.now(), format_string))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
