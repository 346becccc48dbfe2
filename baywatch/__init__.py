"""
Baywatch package
================

Fire-incident dashboard core: a table of incident records kept in sync with a
map view and a detail drawer.

- The CLI entry point is in `baywatch/cli.py`.
- Column derivation, rendering and sorting is in `baywatch/columns.py`.
- The shared selection state machine is in `baywatch/selection.py`.
- Dataset loading is in `baywatch/loader.py`.
"""

__version__ = '0.1.0'
