"""topicline watch -- stream new messages of a topic."""

from __future__ import annotations

import os

import click

from topicline.cli.formatting import format_watch_message


@click.command()
@click.option("--topic", default=None, help="Topic to watch (default: pinned, else repository topic).")
@click.option("--interval", type=float, default=2.0, show_default=True, help="Seconds between polls.")
@click.option("--once", is_flag=True, help="Poll once and exit.")
@click.option("--tail", type=click.IntRange(min=0), default=0, help="Show the last N messages first.")
@click.option("--notify", is_flag=True, help="Raise a desktop notification per new message.")
@click.pass_context
def watch(
    ctx: click.Context,
    topic: str | None,
    interval: float,
    once: bool,
    tail: int,
    notify: bool,
) -> None:
    """Print new messages of a topic as they arrive."""
    from topicline.cli import (
        command_session,
        echo_json,
        get_backend,
        get_config,
        get_store,
        output_is_json,
        require_window,
    )
    from topicline.post import resolve_explicit_topic
    from topicline.topics.repo import repo_topic_id_for_cwd
    from topicline.watch import watch_topic

    with command_session(ctx) as console:
        window_id = require_window(ctx)
        get_config(ctx)
        store = get_store(ctx)
        if topic:
            topic_id = resolve_explicit_topic(store, topic)
        else:
            pinned = store.get_pinned_topic(window_id)
            topic_id = store.resolve_alias(pinned) if pinned else repo_topic_id_for_cwd(os.getcwd())

        as_json = output_is_json(ctx)

        def on_message(message) -> None:
            if as_json:
                echo_json(
                    {
                        "ok": True,
                        "data": {"event": "message", "message": message.model_dump(exclude_none=True)},
                    },
                    indent=None,
                )
            else:
                format_watch_message(message, console)

        try:
            watch_topic(
                get_backend(ctx),
                store,
                window_id=window_id,
                topic_id=topic_id,
                interval=interval,
                once=once,
                tail=tail,
                on_message=on_message,
                notify=notify,
            )
        except KeyboardInterrupt:
            return
