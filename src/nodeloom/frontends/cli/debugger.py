"""Interactive graph debugger.

A prompt_toolkit console that drives a GraphRunner: start a run, pause,
single-step, toggle breakpoints, deliver signals and inspect variables
while the graph executes in the background on the same event loop.

This module provides:
- DebugContext: state shared by command handlers
- CommandResult: result of a command with control flow signal
- Command registry with handler functions
- DebuggerConsole: the prompt loop
"""

from __future__ import annotations

from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console

from nodeloom.core.graph import NodeGraph, write_graph
from nodeloom.core.nodes import Node
from nodeloom.core.runner import GraphRunner, RunnerEvent
from nodeloom.frontends.cli.output import (
    format_event,
    node_label,
    print_nodes,
    print_path,
    print_validation,
    print_variables,
)


class CommandAction(Enum):
    """Control flow actions from command handlers."""

    CONTINUE = auto()  # Keep prompting
    BREAK = auto()  # Leave the debugger


@dataclass
class DebugContext:
    """All state needed by command handlers."""

    graph: NodeGraph
    runner: GraphRunner
    console: Console
    path: Path | None = None


@dataclass
class CommandResult:
    """Result from a command handler."""

    action: CommandAction = CommandAction.CONTINUE
    message: str | None = None


CommandHandler = Callable[[DebugContext, list[str]], Coroutine[Any, Any, CommandResult]]


def resolve_node(graph: NodeGraph, ref: str) -> Node | None:
    """Find a node by exact id, unique id prefix, or unique display name."""
    node = graph.get_node(ref)
    if node is not None:
        return node

    by_prefix = [n for n in graph.nodes if n.id.startswith(ref)]
    if len(by_prefix) == 1:
        return by_prefix[0]

    lowered = ref.lower()
    by_name = [
        n for n in graph.nodes if n.display_label.lower() == lowered or n.name.lower() == lowered
    ]
    if len(by_name) == 1:
        return by_name[0]
    return None


# =============================================================================
# Command Handlers
# =============================================================================


async def cmd_help(ctx: DebugContext, args: list[str]) -> CommandResult:
    """Show help."""
    ctx.console.print(
        "[bold]Commands:[/]\n"
        "  run [paused]     Start the graph (optionally held before the Start node)\n"
        "  step             Execute the held node, pause before the next\n"
        "  resume           Continue a paused run\n"
        "  pause            Pause at the next node boundary\n"
        "  stop             Stop the run and cancel pending work\n"
        "  break ID         Set a breakpoint (id, id prefix or name)\n"
        "  clear ID         Remove a breakpoint\n"
        "  signal NAME      Deliver a named signal to waiting nodes\n"
        "  nodes            List nodes\n"
        "  vars             Show graph variables\n"
        "  path             Show the execution path\n"
        "  status           Show runner state\n"
        "  save [FILE]      Write the graph (breakpoints included)\n"
        "  quit             Leave the debugger"
    )
    return CommandResult()


async def cmd_run(ctx: DebugContext, args: list[str]) -> CommandResult:
    """Start a run."""
    if ctx.runner.is_running:
        return CommandResult(message="Already running (use stop first)")

    errors = ctx.graph.validate()
    if errors:
        print_validation(ctx.console, errors)
        return CommandResult()

    start_paused = bool(args) and args[0] == "paused"
    ctx.runner.run(start_paused=start_paused)
    return CommandResult()


async def cmd_step(ctx: DebugContext, args: list[str]) -> CommandResult:
    """Step one node."""
    if not ctx.runner.is_paused:
        return CommandResult(message="Not paused")
    ctx.runner.step()
    return CommandResult()


async def cmd_resume(ctx: DebugContext, args: list[str]) -> CommandResult:
    """Resume a paused run."""
    if not ctx.runner.is_paused:
        return CommandResult(message="Not paused")
    ctx.runner.resume()
    return CommandResult()


async def cmd_pause(ctx: DebugContext, args: list[str]) -> CommandResult:
    """Pause at the next node boundary."""
    if not ctx.runner.is_running:
        return CommandResult(message="Not running")
    ctx.runner.pause()
    return CommandResult()


async def cmd_stop(ctx: DebugContext, args: list[str]) -> CommandResult:
    """Stop the run."""
    if not ctx.runner.is_running:
        return CommandResult(message="Not running")
    ctx.runner.stop()
    return CommandResult()


def _set_breakpoint(ctx: DebugContext, args: list[str], enabled: bool) -> CommandResult:
    if not args:
        return CommandResult(message="Usage: break|clear NODE")

    node = resolve_node(ctx.graph, args[0])
    if node is None:
        return CommandResult(message=f"No unique node matches {args[0]!r}")

    node.has_breakpoint = enabled
    ctx.graph.mark_dirty()
    state = "set" if enabled else "cleared"
    return CommandResult(message=f"Breakpoint {state}: {node_label(ctx.graph, node.id)}")


async def cmd_break(ctx: DebugContext, args: list[str]) -> CommandResult:
    """Set a breakpoint."""
    return _set_breakpoint(ctx, args, True)


async def cmd_clear(ctx: DebugContext, args: list[str]) -> CommandResult:
    """Clear a breakpoint."""
    return _set_breakpoint(ctx, args, False)


async def cmd_signal(ctx: DebugContext, args: list[str]) -> CommandResult:
    """Deliver a named signal."""
    if not args:
        waiting = ctx.runner.waiting_signals()
        if waiting:
            return CommandResult(message=f"Waiting on: {', '.join(waiting)}")
        return CommandResult(message="Usage: signal NAME")

    released = ctx.runner.send_signal(args[0])
    return CommandResult(message=f"Signal {args[0]!r} released {released} node(s)")


async def cmd_nodes(ctx: DebugContext, args: list[str]) -> CommandResult:
    """List nodes."""
    print_nodes(ctx.console, ctx.graph)
    return CommandResult()


async def cmd_vars(ctx: DebugContext, args: list[str]) -> CommandResult:
    """Show variables."""
    print_variables(ctx.console, ctx.graph)
    return CommandResult()


async def cmd_path(ctx: DebugContext, args: list[str]) -> CommandResult:
    """Show execution path."""
    print_path(ctx.console, ctx.graph, ctx.runner.execution_path)
    return CommandResult()


async def cmd_status(ctx: DebugContext, args: list[str]) -> CommandResult:
    """Show runner state."""
    info = ctx.runner.to_info()
    if not info.is_running:
        state = "idle"
    elif info.is_paused:
        state = "paused"
    else:
        state = "running"

    ctx.console.print(f"Runner:  {info.runner_id} [bold]{state}[/]")
    ctx.console.print(f"Current: {node_label(ctx.graph, info.current_node)}")
    ctx.console.print(f"Pending: {node_label(ctx.graph, info.pending_node)}")
    ctx.console.print(f"Executed: {len(info.execution_path)} node(s)")
    waiting = ctx.runner.waiting_signals()
    if waiting:
        ctx.console.print(f"Waiting signals: {', '.join(waiting)}")
    return CommandResult()


async def cmd_save(ctx: DebugContext, args: list[str]) -> CommandResult:
    """Write the graph to disk."""
    target = Path(args[0]) if args else ctx.path
    if target is None:
        return CommandResult(message="Usage: save FILE")
    write_graph(ctx.graph, target)
    return CommandResult(message=f"Saved {target}")


async def cmd_quit(ctx: DebugContext, args: list[str]) -> CommandResult:
    """Leave the debugger."""
    return CommandResult(action=CommandAction.BREAK)


COMMANDS: dict[str, CommandHandler] = {
    "help": cmd_help,
    "run": cmd_run,
    "step": cmd_step,
    "s": cmd_step,  # Alias
    "resume": cmd_resume,
    "c": cmd_resume,  # Alias
    "pause": cmd_pause,
    "stop": cmd_stop,
    "break": cmd_break,
    "clear": cmd_clear,
    "signal": cmd_signal,
    "nodes": cmd_nodes,
    "vars": cmd_vars,
    "path": cmd_path,
    "status": cmd_status,
    "save": cmd_save,
    "quit": cmd_quit,
    "exit": cmd_quit,  # Alias
}


async def dispatch_command(
    ctx: DebugContext,
    command: str,
    args: list[str],
) -> CommandResult | None:
    """Dispatch a command to its handler.

    Returns:
        CommandResult if command was handled, None if not a recognized command.
    """
    handler = COMMANDS.get(command)
    if handler:
        return await handler(ctx, args)
    return None


# =============================================================================
# Console
# =============================================================================


@dataclass
class DebuggerConsole:
    """Prompt loop around a GraphRunner.

    Runner events are printed as they happen; printing goes through
    patch_stdout so it does not clobber the input line.
    """

    graph: NodeGraph
    path: Path | None = None
    show_events: bool = True

    console: Console = field(init=False)
    runner: GraphRunner = field(init=False)
    _prompt_session: PromptSession[str] = field(init=False)
    _unsubscribe: Callable[[], None] | None = field(default=None, init=False)

    def __post_init__(self) -> None:
        # force_terminal=True keeps ANSI styling under patch_stdout()
        self.console = Console(force_terminal=True)
        self.runner = GraphRunner(self.graph)
        self._prompt_session = PromptSession(
            history=InMemoryHistory(),
            completer=WordCompleter(sorted(COMMANDS), sentence=True),
        )

    def _on_event(self, event: RunnerEvent) -> None:
        if self.show_events:
            self.console.print(format_event(event, self.graph))

    def _prompt(self) -> str:
        if not self.runner.is_running:
            return "nodeloom> "
        if self.runner.is_paused:
            return "nodeloom (paused)> "
        return "nodeloom (running)> "

    async def handle_input(self, line: str) -> CommandResult:
        parts = line.split()
        command, args = parts[0].lower(), parts[1:]
        ctx = DebugContext(
            graph=self.graph, runner=self.runner, console=self.console, path=self.path
        )

        result = await dispatch_command(ctx, command, args)
        if result is None:
            return CommandResult(message=f"Unknown command: {command} (try 'help')")
        return result

    async def run(self) -> None:
        """Run the prompt loop until quit or EOF."""
        self._unsubscribe = self.runner.events.subscribe(self._on_event)
        self.console.print(
            f"[bold]nodeloom debugger[/] - {self.graph.name} "
            f"({self.graph.node_count} nodes). Type 'help' for commands."
        )

        try:
            with patch_stdout(raw=True):
                while True:
                    try:
                        line = await self._prompt_session.prompt_async(self._prompt())
                    except KeyboardInterrupt:
                        continue
                    except EOFError:
                        break

                    if not line.strip():
                        continue

                    result = await self.handle_input(line.strip())
                    if result.message:
                        self.console.print(result.message)
                    if result.action == CommandAction.BREAK:
                        break
        finally:
            if self._unsubscribe is not None:
                self._unsubscribe()
            if self.runner.is_running:
                self.runner.stop()
