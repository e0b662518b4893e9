"""Terminal driver for Snappr Relay.

Usage:
    python main.py play                  # Play from wherever the session left off
    python main.py play --session alice  # Use a separate session file
    python main.py status                # Show progression for a session
    python main.py reset                 # Forget all progress
    RELAY_FAST=1 python main.py play     # All delays divided by ten
"""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from relay.config import load_config
from relay.core import Session
from relay.router import HUB

PLAY_HELP = (
    "Commands: look, skip, quit, plus whatever the current screen lists.",
    "Timed messages keep arriving while you type; use look to refresh.",
)


def _setup_logging(verbose: bool = False, log_file: str | None = None) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    fmt = "%(asctime)s — %(name)s — %(levelname)s — %(message)s"

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=fmt, handlers=handlers)

    # Quiet down noisy libraries
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def _echo_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(f"  {line}")


async def _play(session: Session, start: str | None) -> None:
    done = False

    async with session:
        session.subscribe(lambda text: click.echo(f"  * {text}"))
        if start:
            session.navigate(start)
        else:
            session.start()
        _echo_lines(session.render())
        click.echo()
        _echo_lines(list(PLAY_HELP))

        driver = asyncio.create_task(session.run(lambda: done))
        try:
            while True:
                line = await asyncio.to_thread(input, "\n> ")
                command = line.strip()
                if command in ("quit", "exit"):
                    break
                if command in ("", "look"):
                    _echo_lines(session.render())
                    continue
                if command == "help":
                    _echo_lines(list(PLAY_HELP))
                    continue
                _echo_lines(session.handle(command))
                _echo_lines(session.render())
        except EOFError:
            pass
        finally:
            done = True
            await driver
            if session.current is not None:
                session.current.unmount()


@click.group()
@click.option("--verbose", is_flag=True, help="Enable debug logging")
@click.option("--config-dir", type=click.Path(), default=None, help="Config directory")
@click.option("--session", "session_id", default="default", show_default=True, help="Session name")
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_dir: str | None, session_id: str) -> None:
    """Snappr Relay: a narrative puzzle sequence in your terminal."""
    cfg = load_config(config_dir)

    log_file = cfg["_env"].get("log_file") or cfg.get("storage", {}).get("log_file")
    _setup_logging(verbose=verbose, log_file=log_file)

    ctx.obj = {"cfg": cfg, "session_id": session_id}


@main.command()
@click.option("--screen", default=None, help=f"Start on this screen instead of {HUB}")
@click.pass_context
def play(ctx: click.Context, screen: str | None) -> None:
    """Play the sequence."""
    session = Session(config=ctx.obj["cfg"], session_id=ctx.obj["session_id"])
    if screen and screen not in session.router.screens():
        raise click.BadParameter(f"unknown screen {screen!r}", param_hint="--screen")
    try:
        asyncio.run(_play(session, screen))
    except KeyboardInterrupt:
        click.echo("\nConnection dropped. Progress is saved.")


@main.command()
@click.option("--events", default=10, show_default=True, help="Recent journal events to show")
@click.pass_context
def status(ctx: click.Context, events: int) -> None:
    """Show progression for a session."""
    session = Session(config=ctx.obj["cfg"], session_id=ctx.obj["session_id"])
    info = session.status()
    click.echo(f"Session:          {info['session']}")
    if not info["started"]:
        click.echo("No progress yet.")
        return
    click.echo(f"Narrative stage:  {info['narrative_stage']}")
    click.echo(f"Completed:        {', '.join(info['completed']) or '—'}")
    click.echo(f"Pending signals:  {', '.join(info['signals']) or '—'}")
    click.echo(f"Next message id:  {info['next_message_id']}")

    async def _recent() -> list[dict]:
        async with session.journal as journal:
            return await journal.get_recent_events(limit=events)

    recent = asyncio.run(_recent())
    if recent:
        click.echo("\nRecent events:")
        for event in recent:
            click.echo(f"  {event['created_at'][:19]}  {event['event_type']:<17} {event['subject']}")


@main.command()
@click.confirmation_option(prompt="Forget all progress for this session?")
@click.pass_context
def reset(ctx: click.Context) -> None:
    """Forget all progress for a session."""
    session = Session(config=ctx.obj["cfg"], session_id=ctx.obj["session_id"])

    async def _reset() -> None:
        async with session:
            session.reset()

    asyncio.run(_reset())
    click.echo(f"Session {ctx.obj['session_id']} reset.")


if __name__ == "__main__":
    main()
