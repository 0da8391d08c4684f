"""Output formatting utilities for CLI commands."""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, Any, NoReturn

import rich_click as click
from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from nodeloom.core.graph import NodeGraph
    from nodeloom.core.runner import RunnerEvent


def output_json(data: Any, indent: int = 2) -> None:
    """Output data as formatted JSON."""
    click.echo(json.dumps(data, indent=indent, default=str))


def output_json_or_table(
    data: Any,
    json_flag: bool,
    table_fn: Callable[[], None],
) -> None:
    """Output as JSON if flag is set, otherwise call table function."""
    if json_flag:
        output_json(data)
    else:
        table_fn()


def error_exit(message: str, code: int = 1) -> NoReturn:
    """Print error message and exit with code."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)


def error_print(message: str) -> None:
    """Print error message without exiting."""
    click.echo(f"Error: {message}", err=True)


def node_label(graph: NodeGraph, node_id: str | None) -> str:
    """Short "Name (id-prefix)" label for a node id."""
    if node_id is None:
        return "-"
    node = graph.get_node(node_id)
    if node is None:
        return f"<missing {node_id[:8]}>"
    return f"{node.display_name} ({node_id[:8]})"


def print_nodes(console: Console, graph: NodeGraph) -> None:
    """Print the node table of a graph."""
    table = Table(title=f"Nodes - {graph.name}", title_justify="left")
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Type", style="cyan")
    table.add_column("Name")
    table.add_column("Outputs")
    table.add_column("State")
    table.add_column("BP", justify="center")

    for node in graph.nodes:
        table.add_row(
            node.id,
            graph.registry.tag_for(node),
            node.display_name,
            ", ".join(port.id for port in node.output_ports()) or "-",
            node.state.name.lower(),
            "[red]●[/]" if node.has_breakpoint else "",
        )
    console.print(table)


def print_connections(console: Console, graph: NodeGraph) -> None:
    """Print the connection table of a graph."""
    table = Table(title="Connections", title_justify="left")
    table.add_column("From")
    table.add_column("Port", style="cyan")
    table.add_column("To")
    table.add_column("Port", style="cyan")

    for conn in graph.connections:
        table.add_row(
            node_label(graph, conn.out_node),
            conn.out_port,
            node_label(graph, conn.in_node),
            conn.in_port,
        )
    console.print(table)


def print_variables(console: Console, graph: NodeGraph) -> None:
    """Print the variable table of a graph."""
    if graph.variable_count == 0:
        console.print("[dim]No variables[/]")
        return

    table = Table(title="Variables", title_justify="left")
    table.add_column("Name")
    table.add_column("Type", style="cyan")
    table.add_column("Value")

    for variable in graph.variables:
        table.add_row(variable.name, variable.type.value, variable.value)
    console.print(table)


def print_graph(console: Console, graph: NodeGraph) -> None:
    """Print nodes, connections and variables."""
    print_nodes(console, graph)
    print_connections(console, graph)
    print_variables(console, graph)


def print_validation(console: Console, errors: Sequence[str]) -> None:
    if not errors:
        console.print("[green]✓ Graph is valid[/]")
        return
    console.print(f"[red]✗ {len(errors)} validation error(s):[/]")
    for error in errors:
        console.print(f"  - {error}")


def print_path(console: Console, graph: NodeGraph, path: Sequence[str]) -> None:
    """Print an execution path as a numbered list."""
    if not path:
        console.print("[dim]No nodes executed[/]")
        return
    console.print("Execution path:")
    for i, node_id in enumerate(path, 1):
        console.print(f"  {i:3}. {node_label(graph, node_id)}")


def format_event(event: RunnerEvent, graph: NodeGraph) -> str:
    """One-line rendering of a runner event."""
    ts = event.timestamp.strftime("%H:%M:%S.%f")[:-3]
    text = f"[dim]{ts}[/] {event.event_type}"
    if event.node_id is not None:
        text += f" {node_label(graph, event.node_id)}"
    if event.data.get("variant_driven"):
        text += " [dim](branch)[/]"
    if "reason" in event.data:
        text += f" [dim]reason={event.data['reason']}[/]"
    if "signal" in event.data:
        text += f" signal={event.data['signal']} released={event.data.get('released', 0)}"
    return text
