"""topicline rename -- alias a topic name to another."""

from __future__ import annotations

import click
from rich.markup import escape


@click.command()
@click.argument("old")
@click.argument("new")
@click.pass_context
def rename(ctx: click.Context, old: str, new: str) -> None:
    """Route OLD to NEW from now on and move window pins.

    Only local state changes; remote topics are untouched.
    """
    from topicline.cli import command_session, emit, get_store
    from topicline.post import rename_topic

    with command_session(ctx):
        store = get_store(ctx)
        moved = rename_topic(store, old, new)
        target = store.resolve_alias(new)
        emit(
            ctx,
            {"old": old, "new": new, "target": target, "pins_moved": moved},
            lambda console: console.print(
                f"Renamed [yellow]{escape(old)}[/yellow] -> [green]{escape(target)}[/green] "
                f"({moved} pin(s) moved)"
            ),
        )
