"""topicline pin -- show or set the window's pinned topic."""

from __future__ import annotations

import click
from rich.markup import escape


@click.command()
@click.argument("topic", required=False)
@click.pass_context
def pin(ctx: click.Context, topic: str | None) -> None:
    """Pin the window to TOPIC, or show the current pin."""
    from topicline.cli import command_session, emit, get_store, require_window
    from topicline.post import resolve_explicit_topic
    from topicline.window import window_name_from_id

    with command_session(ctx):
        window_id = require_window(ctx)
        store = get_store(ctx)
        window_name = window_name_from_id(window_id)
        if topic:
            topic_id = resolve_explicit_topic(store, topic)
            changed = store.set_pinned_topic(window_id, topic_id)
            data = {"window_id": window_id, "window_name": window_name, "topic_id": topic_id, "changed": changed}
        else:
            pinned = store.get_pinned_topic(window_id)
            topic_id = store.resolve_alias(pinned) if pinned else None
            data = {"window_id": window_id, "window_name": window_name, "topic_id": topic_id, "pinned": pinned}

        def render(console) -> None:
            if topic_id is None:
                console.print(f"[dim]Window {escape(window_name)} is not pinned.[/dim]")
            else:
                console.print(f"{escape(window_name)} -> [green]{escape(topic_id)}[/green]")

        emit(ctx, data, render)
