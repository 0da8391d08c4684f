"""CLI frontend for nodeloom.

Commands:
    nodeloom validate   Check a graph can run
    nodeloom show       List nodes, connections and variables
    nodeloom run        Execute a graph until it ends
    nodeloom debug      Interactive debugger
    nodeloom types      List registered node types

Example:
    $ nodeloom validate flow.json
    $ nodeloom run flow.json --break Delay --trace
    $ nodeloom debug flow.json
"""

from nodeloom.frontends.cli.main import main

__all__ = ["main"]
