"""topicline topic-demo -- run the topic vote on literal ids (offline)."""

from __future__ import annotations

from dataclasses import asdict

import click

from topicline.cli.formatting import format_choice


@click.command("topic-demo")
@click.argument("topic_ids", nargs=-1)
@click.option("--threshold", type=float, default=0.8, show_default=True, help="Dominance threshold.")
@click.option("--min-hits", type=int, default=2, show_default=True, help="Minimum hits for the winner.")
@click.pass_context
def topic_demo(ctx: click.Context, topic_ids: tuple[str, ...], threshold: float, min_hits: int) -> None:
    """Vote over TOPIC_IDS as if each were one search hit.

    Example: topicline topic-demo A A A A B
    """
    from topicline.cli import command_session, emit
    from topicline.topics import choose_topic

    with command_session(ctx):
        choice = choose_topic(list(topic_ids), threshold=threshold, min_hits=min_hits)
        emit(ctx, asdict(choice), lambda console: format_choice(choice, console))
