"""
Configuration
=============

Plain dataclasses; the CLI fills them from its command-line options.
"""

from dataclasses import dataclass

from .columns import PLACEHOLDER


@dataclass
class DashboardConfig:
    """Knobs for the terminal views."""
    # Shown in cells whose value can't be derived (e.g. missing timestamp)
    placeholder: str = PLACEHOLDER
    # How many table rows `show` prints by default
    preview_rows: int = 10
    log_level: str = "WARNING"
    log_format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
