"""
speedstats - Traffic speed study statistics

A modular Python package that turns speed-counter data into daily, hourly
and hour-of-day summaries, window statistics and speed-bin tables, using
the Functional Core, Imperative Shell architecture.

Structure:
- analysis/ : Functional Core (pure transformations)
- data/     : Imperative Shell (study files, configuration)
- utils/    : logging, timezone and date-label helpers
"""

__version__ = "0.1.0"
