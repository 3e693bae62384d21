"""
CPIA Dashboard: validated, plot-ready CPIA score comparisons.
"""

__version__ = "0.1.0"
