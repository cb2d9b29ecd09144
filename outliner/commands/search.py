"""Search outline nodes with the filter query language."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

import click
from rich.markup import escape

from outliner.cli import Context, pass_context
from outliner.config import OUTPUT_FORMATS
from outliner.exceptions import OutlineError, QuerySyntaxError
from outliner.search import (
    AndExpr,
    FilterExpression,
    FuzzyFilter,
    OrExpr,
    TextFilter,
    find_matches,
    parse_query,
    parse_query_lenient,
    quick_search,
)
from outliner.search.query import (
    Node,
    default_now,
    depth_of,
    fuzzy_positions,
    iter_ancestors,
    text_positions,
)
from outliner.utils.output import (
    create_table,
    error,
    highlight,
    info,
    pager_print,
    render_to_string,
    verbose,
    warning,
)

EXIT_SUCCESS = 0
EXIT_NO_RESULTS = 0
EXIT_PARSE_ERROR = 1
EXIT_OUTLINE_ERROR = 2

# All available fields and their table configuration
FIELD_DEFS: dict[str, dict[str, Any]] = {
    "id": {"header": "ID", "style": "node.id", "justify": "left"},
    "text": {"header": "Text", "style": None, "justify": "left"},
    "depth": {"header": "Depth", "style": None, "justify": "right"},
    "path": {"header": "Path", "style": "path", "justify": "left"},
    "tags": {"header": "Tags", "style": None, "justify": "left"},
    "attributes": {"header": "Attributes", "style": "node.attr", "justify": "left"},
    "created": {"header": "Created", "style": None, "justify": "left"},
    "modified": {"header": "Modified", "style": None, "justify": "left"},
    "children": {"header": "Children", "style": None, "justify": "right"},
}

PATH_SEPARATOR = " > "


def _node_path(node: Node) -> str:
    """Texts of the ancestors, root first."""
    return PATH_SEPARATOR.join(reversed([a.text for a in iter_ancestors(node)]))


def _field_value(node: Node, name: str) -> Any:
    """Return a JSON-serialisable value for one field of a node."""
    if name == "id":
        return node.id
    if name == "text":
        return node.text
    if name == "depth":
        return depth_of(node)
    if name == "path":
        return _node_path(node)
    if name == "tags":
        return list(node.tags)
    if name == "attributes":
        return dict(node.attributes)
    if name == "created":
        return node.created.isoformat() if node.created else None
    if name == "modified":
        return node.modified.isoformat() if node.modified else None
    if name == "children":
        return len(node.children)
    raise KeyError(name)


def _field_text(node: Node, name: str) -> str:
    """Return the plain-text rendering of one field of a node."""
    value = _field_value(node, name)
    if value is None:
        return ""
    if name == "tags":
        return ", ".join(value)
    if name == "attributes":
        return ", ".join(f"{k}={v}" for k, v in value.items())
    return str(value)


def _highlight_positions(expr: FilterExpression, text: str) -> list[int]:
    """Character positions in ``text`` matched by the positive text terms of ``expr``."""
    if isinstance(expr, (AndExpr, OrExpr)):
        return _highlight_positions(expr.left, text) + _highlight_positions(expr.right, text)
    if isinstance(expr, TextFilter):
        return text_positions(expr.term, text)
    if isinstance(expr, FuzzyFilter):
        return fuzzy_positions(expr.term, text) or []
    return []


def _parse_fields(fields: str) -> list[str]:
    names = [f.strip() for f in fields.split(",") if f.strip()]
    for name in names:
        if name not in FIELD_DEFS:
            error(f"Unknown field: {name}", hint=f"Available: {', '.join(FIELD_DEFS.keys())}")
            raise SystemExit(EXIT_PARSE_ERROR)
    return names


def _report_syntax_error(query_string: str, exc: QuerySyntaxError) -> None:
    hint = None
    if exc.position is not None:
        hint = f"{query_string}\n        {' ' * exc.position}^"
    error(f"Invalid search query: {escape(str(exc))}", hint=escape(hint) if hint else None)


@click.command("search")
@click.argument("query", nargs=-1, required=True)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(list(OUTPUT_FORMATS)),
    default=None,
    help="Output format (default: from config, usually table)",
)
@click.option(
    "--fields",
    "-F",
    default=None,
    help=f"Comma-separated fields to show. Available: {', '.join(FIELD_DEFS.keys())}",
)
@click.option(
    "--limit",
    "-l",
    type=int,
    default=None,
    help="Stop after this many results",
)
@click.option(
    "--quick",
    is_flag=True,
    default=False,
    help="Bounded, forgiving search (as used by interactive search boxes)",
)
@click.option(
    "--lenient/--strict",
    default=None,
    help="Fall back to text search on syntax errors (default: from config)",
)
@click.option(
    "--now",
    "now_override",
    type=click.DateTime(formats=["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S"]),
    default=None,
    help="Evaluate relative dates against this time instead of the current time",
)
@pass_context
def cli(
    ctx: Context,
    query: tuple[str, ...],
    output_format: str | None,
    fields: str | None,
    limit: int | None,
    quick: bool,
    lenient: bool | None,
    now_override: datetime | None,
) -> None:
    """Search outline nodes with the filter query language.

    QUERY is a filter query. Multiple arguments are joined with spaces.

    \b
    Syntax examples:
      outliner search meeting
      outliner search "d:>0 @status=todo"
      outliner search "@status=done | @status=cancelled"
      outliner search "@type=task -a:@status=archived"
      outliner search "m:-7d" "p:@type=project"
      outliner search "@due<+3d -@status=done"
      outliner search "ref:item_20251101120000_ab12cd34"

    \b
    Output formats:
      --format table   Rich table with matches highlighted (default)
      --format ids     One node id per line (for piping)
      --format json    JSON array of node objects
      --format jsonl   One JSON object per line
      --format fields  Tab-separated field values
    """
    config = ctx.config
    if config is None:
        error("Configuration not loaded")
        raise SystemExit(EXIT_OUTLINE_ERROR)

    output_format = output_format or config.default_format
    field_list = _parse_fields(fields or config.fields)
    if lenient is None:
        lenient = config.lenient

    query_string = " ".join(query)
    now = now_override.astimezone() if now_override is not None else default_now()

    try:
        outline = ctx.load_outline()
    except OutlineError as e:
        error(escape(str(e)), hint="Set \\[paths] outline in the config or pass --outline")
        raise SystemExit(EXIT_OUTLINE_ERROR)

    if quick:
        nodes, parse_error = quick_search(
            outline.items, query_string, limit or config.quick_search_limit, now
        )
        if parse_error is not None:
            warning(f"Invalid search query, showing text matches: {escape(str(parse_error))}")
        expr, _ = parse_query_lenient(query_string)
    else:
        if lenient:
            expr, parse_error = parse_query_lenient(query_string)
            if parse_error is not None:
                warning(f"Invalid search query, showing text matches: {escape(str(parse_error))}")
        else:
            try:
                expr = parse_query(query_string)
            except QuerySyntaxError as e:
                _report_syntax_error(query_string, e)
                raise SystemExit(EXIT_PARSE_ERROR)
        nodes = find_matches(expr, outline.items, now, limit)

    verbose(f"Evaluated at {now:%Y-%m-%d %H:%M %z}: {len(nodes)} matches")

    if not nodes:
        if not ctx.quiet:
            info(f"No results for: {escape(query_string)}")
        raise SystemExit(EXIT_NO_RESULTS)

    if output_format == "table":
        _print_table(nodes, query_string, field_list, expr, quiet=ctx.quiet)
    elif output_format == "ids":
        _print_ids(nodes)
    elif output_format == "json":
        _print_json(nodes, field_list)
    elif output_format == "jsonl":
        _print_jsonl(nodes, field_list)
    elif output_format == "fields":
        _print_fields(nodes, field_list)

    raise SystemExit(EXIT_SUCCESS)


def _print_table(
    nodes: list[Node],
    query_string: str,
    field_list: list[str],
    expr: FilterExpression,
    *,
    quiet: bool = False,
) -> None:
    """Print results as a Rich table, using pager when appropriate."""
    if not quiet:
        info(f"Search: {escape(query_string)} ({len(nodes)} results)")

    table = create_table(show_header=True, header_style="bold")

    for name in field_list:
        fdef = FIELD_DEFS[name]
        kwargs: dict[str, Any] = {"justify": fdef["justify"]}
        if fdef["style"]:
            kwargs["style"] = fdef["style"]
        table.add_column(fdef["header"], no_wrap=True, **kwargs)

    for node in nodes:
        row: list[Any] = []
        for name in field_list:
            if name == "text":
                row.append(highlight(node.text, _highlight_positions(expr, node.text)))
            else:
                row.append(_field_text(node, name))
        table.add_row(*row)

    # Wide render; the pager handles horizontal scrolling
    content = render_to_string(table, width=1000)

    # Table header = top border + header + header border
    pager_print(content, header_lines=3)


def _print_ids(nodes: list[Node]) -> None:
    """Print one node id per line."""
    for node in nodes:
        click.echo(node.id)


def _node_record(node: Node, field_list: list[str]) -> dict[str, Any]:
    return {name: _field_value(node, name) for name in field_list}


def _print_json(nodes: list[Node], field_list: list[str]) -> None:
    """Print results as JSON array."""
    click.echo(json.dumps([_node_record(n, field_list) for n in nodes], indent=2))


def _print_jsonl(nodes: list[Node], field_list: list[str]) -> None:
    for node in nodes:
        click.echo(json.dumps(_node_record(node, field_list)))


def _print_fields(nodes: list[Node], field_list: list[str]) -> None:
    """Print tab-separated field values, one node per line."""
    for node in nodes:
        click.echo("\t".join(_field_text(node, name) for name in field_list))
