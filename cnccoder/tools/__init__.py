"""Cutter descriptions."""

from cnccoder.tools.tool import Direction, Tool, ToolShape

__all__ = ["Direction", "Tool", "ToolShape"]
