"""Finire CLI - 30 days, 300 words a day."""

import json
import logging
import sys

import click

from . import workflows
from .config import Config, load_config
from .core.days import DaySlot, day_label, journey_stats, progress_percent
from .core.reminders import parse_time_12h
from .core.words import SEAL_THRESHOLD
from .dispatch import run_dispatch
from .errors import ConfigError, StoreError
from .session import JournalSession


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _resolve_user(config: Config, user: str | None) -> str:
    user_id = user or config.user_id
    if not user_id:
        _fail("No user. Pass --user or set USER_ID in finire.conf")
    return user_id


def _open_store(config: Config):
    try:
        return workflows.get_store(config)
    except (ConfigError, ValueError) as e:
        _fail(str(e))


user_option = click.option("--user", "-u", "user", default=None, help="User ID (defaults to USER_ID)")


@click.group()
@click.version_option(package_name="finire")
@click.option("--verbose", "-v", is_flag=True, help="Log to stderr")
def main(verbose: bool):
    """Finire - a 30-day writing journey."""
    if verbose:
        logging.basicConfig(
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            level=logging.DEBUG,
        )


def _slot_json(slot: DaySlot) -> dict:
    return {
        "day_number": slot.day_number,
        "word_count": slot.word_count,
        "sealed": slot.sealed,
        "is_today": slot.is_today,
        "locked": slot.locked,
    }


@main.command()
@user_option
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def days(user: str | None, as_json: bool):
    """Show the 30-day timeline."""
    config = load_config()
    user_id = _resolve_user(config, user)
    store = _open_store(config)
    try:
        slots = workflows.load_days(store, user_id)
    except StoreError as e:
        _fail(str(e))

    stats = journey_stats(slots)
    if as_json:
        click.echo(
            json.dumps(
                {
                    "total_words": stats.total_words,
                    "days_completed": stats.days_completed,
                    "days": [_slot_json(s) for s in slots],
                },
                indent=2,
            )
        )
        return

    for slot in slots:
        marker = "✓" if slot.sealed else (">" if slot.is_today else " ")
        click.echo(f"[{marker}] {day_label(slot)}")
    click.echo()
    click.echo(f"{stats.total_words:,} total words · {stats.days_completed} days completed")


@main.command()
@user_option
@click.argument("day", type=click.IntRange(1, 30))
def show(user: str | None, day: int):
    """Print a day's entry."""
    config = load_config()
    user_id = _resolve_user(config, user)
    store = _open_store(config)
    try:
        slots = workflows.load_days(store, user_id)
    except StoreError as e:
        _fail(str(e))

    slot = slots[day - 1]
    if slot.locked:
        _fail(f"Day {day} is locked. Seal the days before it first.")

    title = f"Today — Day {day}" if slot.is_today else f"Day {day}"
    status = f"Sealed · {slot.word_count} words" if slot.sealed else f"{slot.word_count} / {SEAL_THRESHOLD} words"
    click.echo(f"### {title} ({status})")
    click.echo()
    click.echo(slot.content or "(empty)")


def _print_progress(slot: DaySlot) -> None:
    pct = progress_percent(slot)
    ready = " · ready to seal" if slot.word_count >= SEAL_THRESHOLD and not slot.sealed else ""
    click.echo(f"Day {slot.day_number}: {slot.word_count} / {SEAL_THRESHOLD} words ({pct:.0f}%){ready}")


@main.command()
@user_option
@click.option("--editor", "use_editor", is_flag=True, help="Edit today's entry in $EDITOR")
def write(user: str | None, use_editor: bool):
    """Write today's entry (reads stdin line by line unless --editor)."""
    from .adapters.apscheduler_timer import APSchedulerTimers

    config = load_config()
    user_id = _resolve_user(config, user)
    store = _open_store(config)
    timers = APSchedulerTimers()
    session = JournalSession(store, user_id, timers, delay=config.autosave_delay)

    try:
        session.load()
        today = session.today
        if today is None or today.sealed:
            _fail("Today's entry is sealed. Your journey is complete.")

        if use_editor:
            edited = click.edit(today.content, extension=".md")
            if edited is not None:
                session.edit(edited.rstrip("\n"))
        else:
            click.echo(f"Day {today.day_number} — start writing. {SEAL_THRESHOLD} words to move forward. Ctrl-D to finish.")
            lines = [today.content] if today.content else []
            for line in sys.stdin:
                lines.append(line.rstrip("\n"))
                session.edit("\n".join(lines))

        saved = session.close()
    except StoreError as e:
        _fail(str(e))
    finally:
        timers.shutdown()

    if not saved:
        _fail("Could not save your latest changes. Try again.")
    _print_progress(session.viewing)


@main.command()
@user_option
def seal(user: str | None):
    """Seal today's entry and unlock tomorrow."""
    from .adapters.apscheduler_timer import APSchedulerTimers

    config = load_config()
    user_id = _resolve_user(config, user)
    store = _open_store(config)
    timers = APSchedulerTimers()
    session = JournalSession(store, user_id, timers, delay=config.autosave_delay)

    try:
        session.load()
        today = session.today
        sealed = session.seal()
    except StoreError as e:
        _fail(str(e))
    finally:
        timers.shutdown()

    if not sealed:
        if today is not None and today.sealed:
            click.echo(f"Day {today.day_number} is already sealed.")
        elif today is not None:
            _print_progress(today)
            click.echo(f"Not sealed: {SEAL_THRESHOLD - today.word_count} more words to go.")
        return

    click.echo(f"✓ Day {today.day_number} sealed · {today.word_count} words")
    next_day = session.today
    if next_day is not None and not next_day.sealed:
        click.echo(f"Day {next_day.day_number} is unlocked.")
    else:
        click.echo("All 30 days sealed. Finished.")


@main.group()
def reminder():
    """Manage the daily email reminder."""
    pass


@reminder.command("show")
@user_option
def reminder_show(user: str | None):
    """Show the current reminder."""
    config = load_config()
    user_id = _resolve_user(config, user)
    store = _open_store(config)
    try:
        pref = workflows.get_reminder(store, user_id)
    except StoreError as e:
        _fail(str(e))

    if pref is None:
        click.echo("No reminder set.")
        return
    state = "on" if pref.enabled else "off"
    click.echo(f"Daily reminder at {pref.display_time} ({pref.timezone}) · {state}")


@reminder.command("set")
@user_option
@click.argument("time_12h")
def reminder_set(user: str | None, time_12h: str):
    """Set the reminder time, e.g. "8:05 PM" (minutes in steps of 5)."""
    config = load_config()
    user_id = _resolve_user(config, user)
    try:
        picked = parse_time_12h(time_12h)
    except ValueError as e:
        _fail(str(e))

    store = _open_store(config)
    try:
        pref = workflows.set_reminder(
            store,
            user_id,
            picked.hour,
            picked.minute,
            picked.meridiem,
            config.resolve_timezone(),
        )
    except StoreError as e:
        _fail(f"Could not save reminder: {e}")

    click.echo(f"✓ Daily reminder at {pref.display_time} ({pref.timezone})")


def _toggle_reminder(user: str | None, enabled: bool) -> None:
    config = load_config()
    user_id = _resolve_user(config, user)
    store = _open_store(config)
    try:
        pref = workflows.set_reminder_enabled(store, user_id, enabled)
    except (StoreError, ValueError) as e:
        _fail(str(e))
    click.echo(f"Reminder {'on' if pref.enabled else 'off'} ({pref.display_time} {pref.timezone})")


@reminder.command("on")
@user_option
def reminder_on(user: str | None):
    """Turn the reminder on."""
    _toggle_reminder(user, True)


@reminder.command("off")
@user_option
def reminder_off(user: str | None):
    """Turn the reminder off."""
    _toggle_reminder(user, False)


@main.group()
def user():
    """Manage local users (file store only)."""
    pass


def _file_store(config: Config):
    from .adapters.file_store import FileRecordStore

    if config.store_backend not in ("file", ""):
        _fail("Users are managed by the identity provider for this backend.")
    return FileRecordStore(config.data_path)


@user.command("add")
@click.argument("email")
def user_add(email: str):
    """Register a local user and print their ID."""
    config = load_config()
    store = _file_store(config)
    try:
        row = store.add_user(email)
    except StoreError as e:
        _fail(str(e))
    click.echo(row["id"])


@user.command("list")
def user_list():
    """List local users."""
    config = load_config()
    store = _file_store(config)
    try:
        users = store.list_users()
    except StoreError as e:
        _fail(str(e))
    if not users:
        click.echo("No users.")
        return
    for u in users:
        click.echo(f"{u['id']}  {u['email']}")


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def dispatch(as_json: bool):
    """Send reminders that are due this minute."""
    summary = run_dispatch(load_config())

    if as_json:
        click.echo(json.dumps(summary.to_dict(), indent=2))
    else:
        if not summary.ok:
            click.echo(f"Error: {summary.error}", err=True)
        elif not summary.results:
            click.echo("No reminders due.")
        for r in summary.results:
            detail = f" ({r.error})" if r.error else ""
            click.echo(f"{r.status:6} {r.email}{detail}")

    if not summary.ok:
        sys.exit(1)


@main.command()
def scheduler():
    """Run the once-a-minute reminder scheduler."""
    from .scheduler import run_scheduler

    run_scheduler()


if __name__ == "__main__":
    main()
