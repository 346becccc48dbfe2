from __future__ import annotations

"""
Baywatch report generator
-------------------------
Writes a DOCX summary of the incident table as it is currently shown
(filters and sort applied).

- Report dependencies (python-docx, matplotlib) are imported lazily so the
  dashboard runs without them until `report` is used.
- Cells are rendered through the same Column objects as the terminal table,
  so the report never disagrees with what the user saw.
"""

from collections import Counter
from dataclasses import dataclass
import logging
import os
import tempfile
from typing import List, Optional, Sequence, Tuple

from .columns import COLUMNS, PLACEHOLDER, SEVERITY_ORDER, delay_minutes
from .errors import MissingField
from .models import Record

logger = logging.getLogger(__name__)


@dataclass
class ReportConfig:
    """High-level knobs to control how the report is written."""
    title: str = "Baywatch Incident Report"
    subtitle: str = "Fire incidents (table view)"
    # How many table rows to include
    max_rows: int = 50
    placeholder: str = PLACEHOLDER
    source_name: Optional[str] = None
    # Commands that produced the current table
    command_log: Optional[List[str]] = None


def _delays(records: Sequence[Record]) -> List[int]:
    out: List[int] = []
    for r in records:
        try:
            out.append(delay_minutes(r))
        except MissingField:
            continue
    return out


def _choose_bins(n: int) -> int:
    if n <= 20:
        return 10
    if n <= 100:
        return 15
    return 30


def generate_docx_report(
    records: Sequence[Record],
    out_path: str,
    *,
    config: Optional[ReportConfig] = None,
    active: Optional[Record] = None,
) -> str:
    """Generate a DOCX report with charts for the given table rows."""
    config = config or ReportConfig()

    try:
        from docx import Document
        from docx.enum.text import WD_ALIGN_PARAGRAPH
        from docx.shared import Inches, Pt
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e

    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError as e:
        raise ImportError(
            "Missing dependency: matplotlib.\n"
            "Install it with: python -m pip install matplotlib"
        ) from e

    if not records:
        raise ValueError("No incidents to report on (table is empty).")

    # -----------------------------
    # 1) Figures
    # -----------------------------
    severities = Counter(r.severity if r.severity in SEVERITY_ORDER else "other" for r in records)
    delays = _delays(records)
    costs = [r.est_cost for r in records if r.est_cost is not None]

    # -----------------------------
    # 2) Charts
    # -----------------------------
    tmpdir = tempfile.mkdtemp(prefix="baywatch_report_")
    chart_paths: List[Tuple[str, str]] = []

    def _save(filename: str) -> str:
        path = os.path.join(tmpdir, filename)
        plt.tight_layout()
        plt.savefig(path, dpi=150)
        plt.close()
        return path

    labels = [s for s in ("high", "medium", "low", "other") if severities.get(s)]
    plt.figure()
    plt.bar(labels, [severities[s] for s in labels], edgecolor="black", linewidth=0.8)
    plt.title("Incidents by severity")
    plt.ylabel("Count")
    chart_paths.append(("Incidents by severity", _save("severity.png")))

    if delays:
        plt.figure()
        plt.hist(delays, bins=_choose_bins(len(delays)), edgecolor="black", linewidth=0.8)
        plt.title("Estimated fire delay (minutes)")
        plt.xlabel("Minutes between fire start and report")
        plt.ylabel("Count")
        chart_paths.append(("Estimated fire delay", _save("delay.png")))

    # -----------------------------
    # 3) Document
    # -----------------------------
    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(10)

    def _center_title(text: str, size: int, bold: bool = False, italic: bool = False) -> None:
        p = doc.add_paragraph()
        r = p.add_run(text)
        r.bold = bold
        r.italic = italic
        r.font.size = Pt(size)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _kv(key: str, value: str) -> None:
        p = doc.add_paragraph()
        r = p.add_run(f"{key}: ")
        r.bold = True
        p.add_run(value)

    _center_title(config.title, 20, bold=True)
    _center_title(config.subtitle, 12, italic=True)

    doc.add_heading("Summary", level=1)
    if config.source_name:
        _kv("Source", config.source_name)
    _kv("Incidents in table", str(len(records)))
    for s in ("high", "medium", "low", "other"):
        if severities.get(s):
            _kv(f"Severity {s}", str(severities[s]))
    if delays:
        _kv("Median delay", f"{sorted(delays)[len(delays) // 2]} minutes")
        _kv("Longest delay", f"{max(delays)} minutes")
    if costs:
        _kv("Total estimated cost", f"${sum(costs):,.2f}")
    missing_times = len(records) - len(delays)
    if missing_times:
        _kv("Incidents missing a timestamp", str(missing_times))

    if active is not None:
        doc.add_heading(f"Selected incident {active.id}", level=1)
        for c in COLUMNS:
            _kv(c.header, c.cell(active, config.placeholder))

    doc.add_heading("Charts", level=1)
    for title, path in chart_paths:
        doc.add_paragraph(title)
        doc.add_picture(path, width=Inches(5.5))

    doc.add_heading("Incidents", level=1)
    shown = list(records)[:config.max_rows]
    t = doc.add_table(rows=1, cols=len(COLUMNS) + 1)
    t.rows[0].cells[0].text = "ID"
    for i, c in enumerate(COLUMNS, start=1):
        t.rows[0].cells[i].text = c.header
    for r in shown:
        cells = t.add_row().cells
        cells[0].text = r.id
        for i, c in enumerate(COLUMNS, start=1):
            cells[i].text = c.cell(r, config.placeholder)
    if len(records) > len(shown):
        doc.add_paragraph(f"Showing {len(shown)} of {len(records)} incidents.")

    # Reproducibility footer
    from datetime import datetime as _dt
    from . import __version__

    doc.add_heading("Reproducibility", level=1)
    doc.add_paragraph(f"Baywatch version: {__version__}")
    doc.add_paragraph(f"Report generated at: {_dt.now().isoformat(timespec='seconds')}")
    if config.command_log:
        doc.add_paragraph("Commands used:")
        for line in config.command_log:
            doc.add_paragraph(line, style="List Bullet")

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    doc.save(out_path)
    logger.info("Report written to %s (%d incidents)", out_path, len(records))
    return out_path
