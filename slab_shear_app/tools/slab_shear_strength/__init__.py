"""Slab Shear Strength tool plugin.

Exports:
  - TOOL: an instance of SlabShearStrengthTool
  - RUNS_ON_UI_THREAD = True (tool opens its own Qt window)
"""
from __future__ import annotations

from .tool import TOOL, SlabShearStrengthTool

RUNS_ON_UI_THREAD = True

__all__ = ["TOOL", "SlabShearStrengthTool", "RUNS_ON_UI_THREAD"]
