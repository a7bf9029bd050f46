"""
new-words scheduling core.

SM-2 spaced repetition, the item store that persists per-word statistics,
and the practice session orchestrator that slices word pools into rounds.
"""

__version__ = "0.1.0"
