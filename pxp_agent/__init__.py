"""
PXP agent — executes remote actions through external modules.
"""

__version__ = "0.1.0"
