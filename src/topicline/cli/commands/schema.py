"""topicline schema -- print structured response schemas."""

from __future__ import annotations

import click

from topicline.cli.formatting import format_json


@click.command()
@click.pass_context
def schema(ctx: click.Context) -> None:
    """Print the JSON schemas used for structured chat responses."""
    from topicline.cli import command_session, emit
    from topicline.prompts.structured import all_schemas

    with command_session(ctx):
        schemas = all_schemas()
        emit(ctx, schemas, lambda console: format_json(schemas, console))
