"""Input-list and stage documents: CSV, XLSX (openpyxl) and PDF (reportlab)."""
from __future__ import annotations

import csv
import io
import logging
import re
from typing import Optional
from xml.sax.saxutils import escape

from openpyxl import Workbook
from openpyxl.styles import Font
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.lib.utils import ImageReader
from reportlab.platypus import Flowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

logger = logging.getLogger(__name__)

HEADER = ["", "TOTAL", "INSTRUMENT", "MIC / DI", "STAND", "NOTES", "CABLES", ""]
SHEET_NAME = "Inputs"
ICON_SIZE = 80
DEFAULT_STAGE = (900, 520)


def safe_filename(value) -> str:
    s = str(value or "").strip()
    if not s:
        return ""
    s = re.sub(r"[^a-zA-Z0-9\-_.()\s]", "", s)
    return re.sub(r"\s+", " ", s).strip()


def input_grid(rows: list[dict], title: str) -> list[list]:
    """Spreadsheet layout: spacer, title, spacer, header, then one line per input."""
    blank = [""] * len(HEADER)
    grid: list[list] = [list(blank), ["", title, "", "", "", "", "", ""], list(blank), list(HEADER)]
    for r in rows:
        grid.append(["", r["order"], r["instrument"] or r["item"], r["mic"], r["stand"], r["notes"], r["cables"], ""])
    return grid


def to_csv(rows: list[dict], title: str) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    grid = input_grid(rows, title)
    writer.writerows(grid)
    # no trailing newline after the last row
    return buf.getvalue()[:-1]


def to_xlsx(rows: list[dict], title: str) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_NAME
    for line in input_grid(rows, title):
        ws.append(line)
    ws.cell(row=2, column=2).font = Font(bold=True)
    for cell in ws[4]:
        cell.font = Font(bold=True)
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


class StageFlowable(Flowable):
    """Draws the placed nodes scaled to the frame width, stage y axis pointing down."""

    def __init__(self, nodes: list[dict], images: dict[str, bytes], names: dict[str, str], max_height: float):
        super().__init__()
        self.nodes = nodes
        self.images = images
        self.names = names
        self.max_height = max_height
        self.stage_w, self.stage_h = self._extent()
        self.k = 1.0

    def _extent(self) -> tuple[float, float]:
        w, h = DEFAULT_STAGE
        for n in self.nodes:
            reach = ICON_SIZE / 2 * float(n.get("scale") or 1) + 24
            w = max(w, float(n.get("x") or 0) + reach)
            h = max(h, float(n.get("y") or 0) + reach)
        return w, h

    def wrap(self, avail_width, avail_height):
        self.k = min(avail_width / self.stage_w, min(avail_height, self.max_height) / self.stage_h)
        self.width = self.stage_w * self.k
        self.height = self.stage_h * self.k
        return self.width, self.height

    def _reader(self, asset_id) -> Optional[ImageReader]:
        data = self.images.get(str(asset_id))
        if not data:
            return None
        try:
            return ImageReader(io.BytesIO(data))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Asset %s image unreadable for PDF: %s", asset_id, exc)
            return None

    def draw(self):
        c = self.canv
        c.setStrokeColor(colors.HexColor("#cbd5e1"))
        c.rect(0, 0, self.width, self.height)
        c.translate(0, self.height)
        c.scale(self.k, -self.k)
        half = ICON_SIZE / 2
        for n in self.nodes:
            x = float(n.get("x") or 0)
            y = float(n.get("y") or 0)
            s = float(n.get("scale") or 1)
            c.saveState()
            c.translate(x, y)
            c.rotate(float(n.get("rotation") or 0))
            c.scale(-s if n.get("flip_x") else s, -s)
            reader = self._reader(n.get("asset_id"))
            if reader is not None:
                c.drawImage(reader, -half, -half, ICON_SIZE, ICON_SIZE, mask="auto", preserveAspectRatio=True)
            else:
                c.setStrokeColor(colors.HexColor("#64748b"))
                c.roundRect(-half, -half, ICON_SIZE, ICON_SIZE, 8)
                c.setFont("Helvetica", 9)
                c.drawCentredString(0, -3, self.names.get(str(n.get("asset_id")), "")[:18])
            c.restoreState()

            label = str(n.get("label") or "")
            if label:
                c.saveState()
                c.translate(x, y + half * s + 12)
                c.scale(1, -1)
                c.setFont("Helvetica-Bold", 12)
                c.setFillColor(colors.HexColor("#0f172a"))
                c.drawCentredString(0, -12, label)
                c.restoreState()


def to_pdf(
    title: str,
    nodes: list[dict],
    rows: list[dict],
    images: dict[str, bytes],
    names: Optional[dict[str, str]] = None,
) -> bytes:
    """A4 portrait: title, stage drawing, then the input table."""
    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=1.5 * cm,
        rightMargin=1.5 * cm,
        topMargin=1.5 * cm,
        bottomMargin=1.5 * cm,
        title=title,
    )
    styles = getSampleStyleSheet()
    story = [
        Paragraph(escape(title), styles["Title"]),
        Spacer(1, 0.3 * cm),
        StageFlowable(nodes, images, names or {}, max_height=doc.height * 0.55),
        Spacer(1, 0.6 * cm),
    ]

    data = [HEADER[1:-1]] + [
        [str(r["order"]), r["instrument"] or r["item"], r["mic"], r["stand"], r["notes"], r["cables"]] for r in rows
    ]
    table = Table(data, repeatRows=1, colWidths=[1.5 * cm, 4 * cm, 3.5 * cm, 2.5 * cm, 3.5 * cm, 3 * cm])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#0f172a")),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 8),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#94a3b8")),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    story.append(table)
    doc.build(story)
    return buf.getvalue()
