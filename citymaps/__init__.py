"""
citymaps: data-join and interaction-state engine for interactive city maps.
"""

__version__ = "0.1.0"
