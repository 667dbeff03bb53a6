"""
canvaslog: event-sourced canvas workspace.

A workspace (typed nodes, edges and viewport) changes only by appending
validated, immutable events to an ordered log. Any consumer rebuilds the
current or a past state by replaying that log through a pure reducer.
"""

__version__ = "0.1.0"
