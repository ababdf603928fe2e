"""Topicline CLI -- terminal interface for topic routing and shared state.

This module is NEVER imported from topicline/__init__.py.
It is only loaded via the ``topicline`` entry point defined in pyproject.toml.

Every command prints either a ``{"ok": true, "data": ...}`` JSON envelope
or rich text. Errors print the matching ``{"ok": false, "error": ...}``
envelope (or a rich error line) and exit with the error's exit code.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable

try:
    import click
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install topicline[cli]"
    ) from None

from topicline._version import __version__
from topicline.cli.formatting import format_error, get_console
from topicline.config import OutputMode, load_config
from topicline.exceptions import InvalidInputError, TopiclineError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

    from topicline.config import TopiclineConfig
    from topicline.remote.protocols import SessionBackend
    from topicline.state.store import StateStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


@click.group()
@click.version_option(__version__, prog_name="topicline")
@click.option(
    "--json/--text",
    "json_output",
    default=None,
    help="Force JSON or text output (default: config, else JSON when piped).",
)
@click.option(
    "--config",
    "config_path",
    default=None,
    help="Path to a .topicline.toml file.",
)
@click.option(
    "--window",
    "window_id",
    default=None,
    envvar="TOPICLINE_WINDOW_ID",
    help="Window id used for pins and watch cursors.",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool | None,
    config_path: str | None,
    window_id: str | None,
    verbose: bool,
) -> None:
    """Topicline: shared topics and state for agent windows."""
    ctx.ensure_object(dict)
    ctx.obj["json_output"] = json_output
    ctx.obj["config_path"] = config_path
    ctx.obj["window_id"] = window_id
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


# ---------------------------------------------------------------------------
# Shared command helpers
# ---------------------------------------------------------------------------


def get_config(ctx: click.Context) -> TopiclineConfig:
    """Load (once per invocation) and return the configuration."""
    if "config" not in ctx.obj:
        config, path = load_config(ctx.obj.get("config_path"))
        ctx.obj["config"] = config
        ctx.obj["config_file"] = path
    return ctx.obj["config"]


def get_backend(ctx: click.Context) -> SessionBackend:
    """Return the session backend, building a HonchoBackend from config if none was injected."""
    backend = ctx.obj.get("backend")
    if backend is None:
        from topicline.remote.client import HonchoBackend

        backend = HonchoBackend.from_config(get_config(ctx))
        ctx.obj["backend"] = backend
        ctx.call_on_close(backend.close)
    return backend


def get_store(ctx: click.Context) -> StateStore:
    """Return the state store for the current directory (or an injected one)."""
    store = ctx.obj.get("store")
    if store is None:
        from topicline.state.store import StateStore

        store = StateStore.for_cwd(os.getcwd())
        ctx.obj["store"] = store
    return store


def require_window(ctx: click.Context) -> str:
    window_id = ctx.obj.get("window_id")
    if not window_id:
        raise InvalidInputError(
            "No window id (pass --window or set TOPICLINE_WINDOW_ID).",
            suggestions=["Run: topicline --window <id> ...", "Or export TOPICLINE_WINDOW_ID=<id>"],
        )
    return window_id


def output_is_json(ctx: click.Context) -> bool:
    """Explicit flag, then the configured mode, then JSON unless stdout is a TTY."""
    flag = ctx.obj.get("json_output")
    if flag is not None:
        return flag
    config = ctx.obj.get("config")
    if config is not None and config.output.mode != OutputMode.AUTO:
        return config.output.mode == OutputMode.JSON
    return not sys.stdout.isatty()


def echo_json(payload: Any, *, indent: int | None = 2) -> None:
    click.echo(json.dumps(payload, indent=indent, default=str))


def emit(ctx: click.Context, data: Any, render: Callable[[Console], None]) -> None:
    """Print a command result in the active output mode."""
    if output_is_json(ctx):
        echo_json({"ok": True, "data": data})
    else:
        render(get_console())


@contextmanager
def command_session(ctx: click.Context) -> Iterator[Console]:
    """Yield a console and turn escaping errors into envelopes and exit codes.

    TopiclineError exits with its own ``exit_code``; anything else is
    reported as ``UNEXPECTED_ERROR`` and exits with 1.
    """
    console = get_console()
    try:
        yield console
    except (SystemExit, click.ClickException, click.exceptions.Exit):
        raise
    except TopiclineError as exc:
        if output_is_json(ctx):
            echo_json(exc.to_json())
        else:
            format_error(exc.message, get_console(stderr=True), exc.suggestions)
        raise SystemExit(exc.exit_code) from None
    except Exception as exc:
        logger.debug("Unexpected error", exc_info=True)
        if output_is_json(ctx):
            echo_json(
                {
                    "ok": False,
                    "error": {"code": "UNEXPECTED_ERROR", "message": str(exc), "retryable": True},
                }
            )
        else:
            format_error(str(exc), get_console(stderr=True))
        raise SystemExit(1) from None


# Register subcommands after cli group is defined
from topicline.cli.commands.post import post  # noqa: E402
from topicline.cli.commands.watch import watch  # noqa: E402
from topicline.cli.commands.resolve import resolve  # noqa: E402
from topicline.cli.commands.topic_demo import topic_demo  # noqa: E402
from topicline.cli.commands.validate_topic import validate_topic  # noqa: E402
from topicline.cli.commands.rename import rename  # noqa: E402
from topicline.cli.commands.merge import merge  # noqa: E402
from topicline.cli.commands.pin import pin  # noqa: E402
from topicline.cli.commands.schema import schema  # noqa: E402
from topicline.cli.commands.config import config  # noqa: E402

cli.add_command(post)
cli.add_command(watch)
cli.add_command(resolve)
cli.add_command(topic_demo)
cli.add_command(validate_topic)
cli.add_command(rename)
cli.add_command(merge)
cli.add_command(pin)
cli.add_command(schema)
cli.add_command(config)
