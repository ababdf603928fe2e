"""topicline config -- show the resolved configuration."""

from __future__ import annotations

import click

from topicline.cli.formatting import format_json


@click.command()
@click.pass_context
def config(ctx: click.Context) -> None:
    """Print the resolved configuration with secrets redacted."""
    from topicline.cli import command_session, emit, get_config

    with command_session(ctx):
        resolved = get_config(ctx)
        data = {"config": resolved.redacted(), "config_path": str(ctx.obj["config_file"])}
        emit(ctx, data, lambda console: format_json(data, console))
