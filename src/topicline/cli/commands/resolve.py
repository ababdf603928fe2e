"""topicline resolve -- run topic resolution for a message without posting."""

from __future__ import annotations

import click

from topicline.cli.formatting import format_decision


@click.command()
@click.argument("message", nargs=-1, required=True)
@click.option("--title", default=None, help="Title for a newly created topic.")
@click.pass_context
def resolve(ctx: click.Context, message: tuple[str, ...], title: str | None) -> None:
    """Show which topic MESSAGE would be routed to.

    May create or consolidate topics, exactly as posting would.
    """
    from topicline.cli import command_session, emit, get_backend, get_config, get_store
    from topicline.models.topic import Merged
    from topicline.post import apply_merge, plan_from_decision
    from topicline.topics import resolve_topic

    with command_session(ctx):
        config = get_config(ctx)
        text = " ".join(message).strip()
        decision = resolve_topic(
            get_backend(ctx),
            text,
            config.topics,
            title_hint=title or text,
            system_peer_id=config.decisions.system_peer_id,
        )
        if isinstance(decision, Merged):
            apply_merge(get_store(ctx), plan_from_decision(decision))
        emit(ctx, decision.to_dict(), lambda console: format_decision(decision, console))
