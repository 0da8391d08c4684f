"""Graph commands - validate, inspect, run and debug graph files."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import rich_click as click
from rich.console import Console

from nodeloom.core.errors import GraphLoadError
from nodeloom.core.graph import NodeGraph, read_graph
from nodeloom.core.logging_config import configure_logging
from nodeloom.core.nodes import default_registry
from nodeloom.core.runner import BREAKPOINT_HIT, GraphRunner, RunnerEvent
from nodeloom.frontends.cli.debugger import resolve_node
from nodeloom.frontends.cli.output import (
    error_exit,
    format_event,
    output_json,
    output_json_or_table,
    print_graph,
    print_path,
    print_validation,
    print_variables,
)

# How often pending --signal deliveries check for a waiting node
SIGNAL_POLL_INTERVAL = 0.05


def load_graph(file: str) -> NodeGraph:
    """Read a graph file or exit with an error."""
    try:
        return read_graph(file, strict=True)
    except GraphLoadError as e:
        error_exit(str(e))


@click.group()
@click.version_option(package_name="nodeloom")
@click.option(
    "--log-level",
    "log_level",
    default="WARNING",
    show_default=True,
    help="Engine log level (DEBUG, INFO, WARNING, ERROR)",
)
def cli(log_level: str) -> None:
    """nodeloom - run and debug node graphs.

    A graph file holds nodes, the connections between their ports and typed
    variables. The runner walks it from the Start node, one node at a time.

    **Commands:**

        nodeloom validate    Check a graph can run

        nodeloom show        List nodes, connections and variables

        nodeloom run         Execute a graph to completion

        nodeloom debug       Interactive debugger (pause, step, breakpoints)

        nodeloom types       List registered node types
    """
    configure_logging(level=log_level)


@cli.command("validate")
@click.argument("file")
@click.option("--json", "-j", "json_output", is_flag=True, help="Output as JSON")
def validate_graph(file: str, json_output: bool) -> None:
    """Check that a graph can run.

    Exits with status 1 when there are validation errors.

    **Examples:**

        nodeloom validate flow.json
    """
    graph = load_graph(file)
    errors = graph.validate()

    output_json_or_table(
        {"file": file, "valid": not errors, "errors": errors},
        json_output,
        lambda: print_validation(Console(), errors),
    )
    if errors:
        sys.exit(1)


@cli.command("show")
@click.argument("file")
@click.option("--json", "-j", "json_output", is_flag=True, help="Output as JSON")
def show_graph(file: str, json_output: bool) -> None:
    """Show nodes, connections and variables of a graph.

    **Examples:**

        nodeloom show flow.json

        nodeloom show flow.json --json
    """
    graph = load_graph(file)
    output_json_or_table(graph.to_dict(), json_output, lambda: print_graph(Console(), graph))


async def deliver_signals(runner: GraphRunner, signals: list[str]) -> None:
    """Send each signal, in order, once some node waits for it."""
    for name in signals:
        while runner.is_running and name not in runner.waiting_signals():
            await asyncio.sleep(SIGNAL_POLL_INTERVAL)
        if not runner.is_running:
            return
        runner.send_signal(name)


async def run_graph(
    graph: NodeGraph,
    breakpoints: list[str],
    signals: list[str],
    timeout: float | None,
    console: Console | None = None,
    trace: bool = False,
) -> tuple[GraphRunner, bool]:
    """Run a graph to completion without interaction.

    Breakpoints are reported and resumed automatically.

    Returns:
        (runner, ended) where ended is False on refusal or timeout.
    """
    runner = GraphRunner(graph, debug=trace)
    loop = asyncio.get_running_loop()

    for ref in breakpoints:
        node = resolve_node(graph, ref)
        if node is None:
            error_exit(f"No unique node matches breakpoint {ref!r}")
        node.has_breakpoint = True

    def on_event(event: RunnerEvent) -> None:
        if console is not None and (trace or event.event_type == BREAKPOINT_HIT):
            console.print(format_event(event, graph))
        if event.event_type == BREAKPOINT_HIT:
            loop.call_soon(runner.resume)

    unsubscribe = runner.events.subscribe(on_event)
    try:
        if not runner.run():
            return runner, False

        signal_task = asyncio.create_task(deliver_signals(runner, signals)) if signals else None
        ended = await runner.wait(timeout)
        if not ended:
            runner.stop()
        if signal_task is not None:
            signal_task.cancel()
        return runner, ended
    finally:
        unsubscribe()


@cli.command("run")
@click.argument("file")
@click.option(
    "--break",
    "-b",
    "breakpoints",
    multiple=True,
    help="Node id, id prefix or name to break at (repeatable)",
)
@click.option(
    "--signal", "-s", "signals", multiple=True, help="Signal to deliver once awaited (repeatable)"
)
@click.option("--timeout", "-t", type=float, default=None, help="Stop the run after SECONDS")
@click.option("--trace", is_flag=True, help="Print every runner event")
@click.option("--json", "-j", "json_output", is_flag=True, help="Output as JSON")
def run_command(
    file: str,
    breakpoints: tuple[str, ...],
    signals: tuple[str, ...],
    timeout: float | None,
    trace: bool,
    json_output: bool,
) -> None:
    """Execute a graph until it ends.

    Prints the execution path and the final variable values.

    **Examples:**

        nodeloom run flow.json

        nodeloom run flow.json --break Delay --trace

        nodeloom run flow.json --signal answer --timeout 10
    """
    graph = load_graph(file)
    errors = graph.validate()
    if errors:
        print_validation(Console(stderr=True), errors)
        sys.exit(1)

    console = None if json_output else Console()
    runner, ended = asyncio.run(
        run_graph(graph, list(breakpoints), list(signals), timeout, console, trace)
    )

    if json_output:
        output_json(
            {
                "file": file,
                "ended": ended,
                "execution_path": list(runner.execution_path),
                "variables": [variable.to_entry() for variable in graph.variables],
            }
        )
    else:
        assert console is not None
        print_path(console, graph, runner.execution_path)
        print_variables(console, graph)
        if not ended:
            console.print(f"[yellow]Run stopped after timeout ({timeout}s)[/]")

    if not ended:
        sys.exit(1)


@cli.command("debug")
@click.argument("file")
def debug_command(file: str) -> None:
    """Interactive debugger for a graph.

    Start the run, pause, single-step, toggle breakpoints, send signals and
    watch variables. Type `help` at the prompt for commands.

    **Examples:**

        nodeloom debug flow.json
    """
    from nodeloom.frontends.cli.debugger import DebuggerConsole

    graph = load_graph(file)
    console = DebuggerConsole(graph=graph, path=Path(file))
    asyncio.run(console.run())


@cli.command("types")
@click.option("--json", "-j", "json_output", is_flag=True, help="Output as JSON")
def list_types(json_output: bool) -> None:
    """List registered node types."""
    rows = []
    for tag in default_registry.tags():
        node_cls = default_registry.resolve(tag)
        assert node_cls is not None
        rows.append({"tag": tag, "name": node_cls.name, "category": node_cls.category})

    def table() -> None:
        console = Console()
        for row in rows:
            console.print(f"  [cyan]{row['tag']:<14}[/] {row['name']:<16} [dim]{row['category']}[/]")

    output_json_or_table(rows, json_output, table)
