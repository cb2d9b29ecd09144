"""Show how a query is parsed and why a node does or does not match it."""

from __future__ import annotations

from datetime import datetime

import click
from rich.markup import escape
from rich.tree import Tree

from outliner.cli import Context, pass_context
from outliner.exceptions import OutlineError, QuerySyntaxError
from outliner.search import Explanation, explain, format_expression, parse_query, to_query
from outliner.search.debug import format_explanation, node_details
from outliner.search.query import default_now
from outliner.utils.output import console, create_table, error, info

EXIT_SUCCESS = 0
EXIT_PARSE_ERROR = 1
EXIT_OUTLINE_ERROR = 2


def _add_explanation(tree: Tree, explanation: Explanation) -> None:
    style = "explain.match" if explanation.matched else "explain.miss"
    mark = "✓" if explanation.matched else "✗"
    branch = tree.add(
        f"[{style}]{mark}[/{style}] [bold]{escape(explanation.expression)}[/bold]: "
        f"{escape(explanation.reason)}",
        highlight=False,
    )
    for child in explanation.children:
        _add_explanation(branch, child)


def build_explanation_tree(explanation: Explanation) -> Tree:
    """Build a rich Tree mirroring an explanation trace."""
    style = "explain.match" if explanation.matched else "explain.miss"
    verdict = "MATCH" if explanation.matched else "NO MATCH"
    tree = Tree(f"[{style}]{verdict}[/{style}]", highlight=False)
    _add_explanation(tree, explanation)
    return tree


@click.command("explain")
@click.argument("query", nargs=-1, required=True)
@click.option(
    "--node",
    "-n",
    "node_id",
    default=None,
    help="Explain the match result for the node with this id",
)
@click.option(
    "--now",
    "now_override",
    type=click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"]),
    default=None,
    help="Evaluate relative dates against this time instead of the current time",
)
@click.option(
    "--plain",
    is_flag=True,
    default=False,
    help="Print the match trace as indented text instead of a tree",
)
@pass_context
def cli(
    ctx: Context,
    query: tuple[str, ...],
    node_id: str | None,
    now_override: datetime | None,
    plain: bool,
) -> None:
    """Show the parsed form of QUERY and optionally explain a node's result.

    Without --node only the parse tree and the normalized query are shown,
    so no outline document is needed.

    \b
    Examples:
      outliner explain "a:@type=project -@status=done"
      outliner explain --node item_42 "d:>1 m:-7d"
      outliner explain --plain -n item_42 "a:@type=project"
    """
    query_string = " ".join(query)

    try:
        expr = parse_query(query_string)
    except QuerySyntaxError as e:
        error(f"Invalid search query: {escape(str(e))}")
        raise SystemExit(EXIT_PARSE_ERROR)

    info("Parsed expression:")
    console.print(format_expression(expr), markup=False, highlight=False)
    info("Normalized query:")
    console.print(to_query(expr) or '""', markup=False, highlight=False)

    if node_id is None:
        raise SystemExit(EXIT_SUCCESS)

    try:
        outline = ctx.load_outline()
    except OutlineError as e:
        error(escape(str(e)), hint="Set \\[paths] outline in the config or pass --outline")
        raise SystemExit(EXIT_OUTLINE_ERROR)

    node = outline.find_by_id(node_id)
    if node is None:
        error(f"Node not found: {escape(node_id)}")
        raise SystemExit(EXIT_OUTLINE_ERROR)

    now = now_override.astimezone() if now_override is not None else default_now()

    explanation = explain(expr, node, now)

    if plain:
        click.echo(format_explanation(explanation))
        raise SystemExit(EXIT_SUCCESS)

    table = create_table(title=f"Node {escape(node.id)}", show_header=False)
    table.add_column("Property", style="bold")
    table.add_column("Value")
    for key, value in node_details(node).items():
        table.add_row(key, value)
    console.print(table)

    console.print(build_explanation_tree(explanation))
    raise SystemExit(EXIT_SUCCESS)
