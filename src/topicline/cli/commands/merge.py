"""topicline merge -- consolidate the two most related topics."""

from __future__ import annotations

import click

from topicline.cli.formatting import format_merge_plan


@click.command()
@click.option(
    "--limit",
    type=click.IntRange(min=2),
    default=None,
    help="Topics to consider (default: topics.max_active, else auto_assign_k).",
)
@click.pass_context
def merge(ctx: click.Context, limit: int | None) -> None:
    """Merge two topics into a new one and re-point aliases and pins."""
    from topicline.cli import command_session, emit, get_backend, get_config, get_store
    from topicline.post import merge_topics

    with command_session(ctx):
        plan = merge_topics(get_backend(ctx), get_store(ctx), get_config(ctx), session_limit=limit)
        emit(
            ctx,
            {
                "merged_topic_id": plan.merged_topic_id,
                "merged_from": list(plan.merged_from),
                "reason": plan.reason,
            },
            lambda console: format_merge_plan(plan, console),
        )
