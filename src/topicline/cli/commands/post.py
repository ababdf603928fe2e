"""topicline post -- post a message to a topic."""

from __future__ import annotations

import click

from topicline.cli.formatting import format_post_result


def read_message(words: tuple[str, ...]) -> str:
    """Join positional words, or read stdin when none are given and it is piped."""
    if words:
        return " ".join(words).strip()
    stdin = click.get_text_stream("stdin")
    if not stdin.isatty():
        return stdin.read().strip()
    return ""


@click.command()
@click.argument("message", nargs=-1)
@click.option("--topic", default=None, help="Topic name or id (skips auto-detection).")
@click.option("--decision", "decision_flag", is_flag=True, help="Treat the message as a decision.")
@click.option("--force", is_flag=True, help="Post even if the decision conflicts.")
@click.option("--title", default=None, help="Title for a newly created topic.")
@click.option(
    "--peer",
    "peer_id",
    default=None,
    envvar="TOPICLINE_PEER_ID",
    help="Author peer id (default: the window id, else 'agent').",
)
@click.pass_context
def post(
    ctx: click.Context,
    message: tuple[str, ...],
    topic: str | None,
    decision_flag: bool,
    force: bool,
    title: str | None,
    peer_id: str | None,
) -> None:
    """Post MESSAGE (or stdin) to a topic.

    The topic is --topic if given, else the window's pinned topic, else
    whichever topic dominates a search for the message.
    """
    from topicline.cli import command_session, emit, get_backend, get_config, get_store
    from topicline.post import post_message

    with command_session(ctx):
        text = read_message(message)
        config = get_config(ctx)
        window_id = ctx.obj.get("window_id")
        result = post_message(
            get_backend(ctx),
            get_store(ctx),
            config,
            message=text,
            peer_id=peer_id or window_id or "agent",
            window_id=window_id,
            topic=topic,
            title_hint=title,
            decision_flag=decision_flag,
            force=force,
        )
        emit(ctx, result.to_dict(), lambda console: format_post_result(result, console))
