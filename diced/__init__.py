"""
DICED progression engine.

Turns practice hours on four culinary attributes into levels and ranks,
and applies quest completions to a persisted user profile.
"""

__version__ = "1.0.0"
