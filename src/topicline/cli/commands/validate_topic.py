"""topicline validate-topic -- check a topic name against the naming rules."""

from __future__ import annotations

import click
from rich.markup import escape


@click.command("validate-topic")
@click.argument("name")
@click.pass_context
def validate_topic(ctx: click.Context, name: str) -> None:
    """Exit 0 if NAME is a valid topic name, 2 otherwise."""
    from topicline.cli import command_session, emit
    from topicline.topics import require_valid_topic_name

    with command_session(ctx):
        require_valid_topic_name(name)
        emit(
            ctx,
            {"name": name, "valid": True},
            lambda console: console.print(f"[green]valid[/green] {escape(name)}", highlight=False),
        )
