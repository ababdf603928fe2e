"""Rich formatting helpers for the Topicline CLI.

Text-mode renderers for command results. Rich auto-detects TTY and
degrades gracefully when piped (no ANSI codes). JSON mode bypasses these
entirely.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from topicline.models.topic import AutoTopicDecision, MergePlan, TopicChoice
    from topicline.post import PostResult
    from topicline.remote.models import Message

EXCERPT_LENGTH = 160


def get_console(stderr: bool = False) -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=stderr)


def excerpt(text: str, limit: int = EXCERPT_LENGTH) -> str:
    return text.replace("\n", " ")[:limit]


def format_error(message: str, console: Console, suggestions: list[str] | None = None) -> None:
    """Display an error message, followed by any suggestions."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
    for suggestion in suggestions or []:
        console.print(f"  [dim]-[/dim] {escape(suggestion)}", highlight=False)


def format_choice(choice: TopicChoice, console: Console) -> None:
    """Display the outcome of a topic vote."""
    chosen = choice.chosen_topic_id or "(none)"
    console.print(f"chosen=[green]{escape(chosen)}[/green] dominance={choice.dominance:.2f}")
    if not choice.counts:
        return
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Topic", style="cyan")
    table.add_column("Hits", justify="right")
    for topic_id, count in sorted(choice.counts.items(), key=lambda kv: (-kv[1], kv[0])):
        table.add_row(escape(topic_id), str(count))
    console.print(table)


def format_decision(decision: AutoTopicDecision, console: Console) -> None:
    """Display a resolver decision."""
    topic = decision.topic_id or "(none)"
    console.print(
        f"[bold]{decision.action}[/bold] topic=[green]{escape(topic)}[/green] "
        f"dominance={decision.dominance:.2f} "
        f"({decision.best_count}/{decision.total_matches} hits)"
    )
    reason = getattr(decision, "reason", None)
    if reason:
        console.print(f"  Reason: [dim]{escape(reason)}[/dim]")
    merged_from = getattr(decision, "merged_from", None)
    if merged_from:
        console.print(f"  Merged: {escape(', '.join(merged_from))}")
    for candidate in decision.candidates:
        console.print(
            f"  [cyan]{escape(candidate.topic_id)}[/cyan] "
            f"{candidate.count} hit(s) [dim]{candidate.dominance:.2f}[/dim]"
        )


def format_post_result(result: PostResult, console: Console) -> None:
    """Display a posted message."""
    console.print(
        f"Posted to [green]{escape(result.topic_id)}[/green] "
        f"[dim]({result.source})[/dim]: {escape(excerpt(result.message.content))}"
    )
    if result.decision is not None:
        console.print(f"  Topic: {result.decision.action}")
    if result.conflicts is not None and result.conflicts.conflicts:
        console.print(
            f"  [yellow]{len(result.conflicts.conflicts)} conflict(s)[/yellow] "
            f"max confidence {result.conflicts.max_confidence:.2f}"
        )
    if result.indexed is not None and result.indexed.created_ids:
        console.print(f"  Indexed {len(result.indexed.created_ids)} decision(s)")


def format_watch_message(message: Message, console: Console) -> None:
    """Display one watched message as a single line."""
    created = f" [dim]{message.created_at}[/dim]" if message.created_at else ""
    console.print(
        f"[cyan]{escape(f'[{message.topic_id}]')}[/cyan]{created} "
        f"[bold]{escape(message.peer_id)}[/bold]: {escape(excerpt(message.content))}",
        highlight=False,
    )


def format_merge_plan(plan: MergePlan, console: Console) -> None:
    """Display a consolidation result."""
    first, second = plan.merged_from
    console.print(
        f"Merged [yellow]{escape(first)}[/yellow] and [yellow]{escape(second)}[/yellow] "
        f"into [green]{escape(plan.merged_topic_id)}[/green]"
    )
    if plan.reason:
        console.print(f"  Reason: [dim]{escape(plan.reason)}[/dim]")


def format_json(data: object, console: Console) -> None:
    """Pretty-print a JSON-compatible value."""
    console.print_json(data=data)
