"""Everdice: an AI-narrated tabletop campaign service.

Players create characters, join campaigns and roll dice while an AI Dungeon
Master narrates. Gameplay is recorded as a CAMLTrace event log and scored
against per-difficulty adventure completion rules.
"""

from __future__ import annotations


__version__ = "0.1.0"
__author__ = "Everdice Team"

__all__ = ["__version__", "__author__"]
