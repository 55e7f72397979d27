# string_loom/export.py
import csv
import logging
from pathlib import Path
from typing import Iterable

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .solver import Chord, chord_endpoints

logger = logging.getLogger(__name__)

PIN_HEADER = ["from_pin", "to_pin"]
COORD_HEADER = ["x1", "y1", "x2", "y2"]


def chord_record(chord: Chord, write_coords: bool = False) -> list:
    if write_coords:
        return list(chord_endpoints(chord))
    return [chord.source, chord.dest]


def write_csv(csv_file, chords: Iterable[Chord], write_coords: bool = False, header: bool = False) -> str:
    """
    One row per chord: `from_pin,to_pin`, or the pixel endpoints
    `x1,y1,x2,y2` when `write_coords` is set.
    """
    Path(csv_file).parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(csv_file, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        if header:
            writer.writerow(COORD_HEADER if write_coords else PIN_HEADER)
        for chord in chords:
            writer.writerow(chord_record(chord, write_coords))
            count += 1
    logger.info("Wrote %d chords to %s", count, csv_file)
    return str(csv_file)


def read_pin_rows(csv_file) -> list:
    """[step, from, to] rows from a pin CSV, with or without a header line."""
    rows = []
    with open(csv_file, newline="", encoding="utf-8") as f:
        reader = csv.reader(f)
        for record in reader:
            if len(record) != 2:
                continue
            from_pin, to_pin = (v.strip() for v in record)
            if not (from_pin.isdigit() and to_pin.isdigit()):
                continue  # header
            rows.append([len(rows) + 1, from_pin, to_pin])
    return rows


# -------------------------------------------------------------------
# Threading instructions PDF
# -------------------------------------------------------------------

STEP_HEADER = ["Step", "From Pin", "To Pin"]
PDF_TITLE = "String Art Threading Instructions"
PDF_SUBTITLE = "Pin 0 is at 3 o'clock, numbers increase clockwise."


def step_table_style(header_font: int = 11, row_font: int = 9) -> TableStyle:
    """Black header row, then zebra-striped step rows."""
    return TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.black),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTSIZE", (0, 0), (-1, 0), header_font),
        ("FONTSIZE", (0, 1), (-1, -1), row_font),
        ("ALIGN", (0, 0), (-1, -1), "CENTER"),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.whitesmoke, colors.lightgrey]),
    ])


def instruction_rows(chords: Iterable[Chord]) -> list:
    return [[step] + chord_record(chord) for step, chord in enumerate(chords, start=1)]


def build_instructions_pdf(rows: list, pdf_file,
                           title: str = PDF_TITLE, subtitle: str = PDF_SUBTITLE,
                           page_size=A4, margin_mm: float = 15,
                           rows_per_page: int = 0,
                           col_width_mm: float = 40) -> str:
    """
    One table of [step, from, to] rows. The table header repeats on every
    page; `rows_per_page` forces a page break every that many steps.
    """
    if not rows:
        raise ValueError(f"No threading steps to write to {pdf_file}")

    Path(pdf_file).parent.mkdir(parents=True, exist_ok=True)
    margin = margin_mm * mm
    doc = SimpleDocTemplate(str(pdf_file), pagesize=page_size,
                            leftMargin=margin, rightMargin=margin,
                            topMargin=margin, bottomMargin=margin,
                            title=title)

    styles = getSampleStyleSheet()
    story = [
        Paragraph(f"<b>{title}</b>", styles["Title"]),
        Paragraph(subtitle, styles["Normal"]),
        Spacer(1, 10),
    ]

    page = rows_per_page if rows_per_page and rows_per_page > 0 else len(rows)
    style = step_table_style()
    for start in range(0, len(rows), page):
        if start:
            story.append(PageBreak())
        story.append(Table([STEP_HEADER] + rows[start:start + page],
                           colWidths=[col_width_mm * mm] * len(STEP_HEADER),
                           repeatRows=1, style=style))

    doc.build(story)
    logger.info("Built %d-step instructions PDF at %s", len(rows), pdf_file)
    return str(pdf_file)


def chords_to_pdf(chords: Iterable[Chord], pdf_file, **kwargs) -> str:
    return build_instructions_pdf(instruction_rows(chords), pdf_file, **kwargs)


def csv_to_pdf(csv_file, pdf_file, **kwargs) -> str:
    """Instructions from a pin CSV written earlier by `write_csv`."""
    rows = read_pin_rows(csv_file)
    if not rows:
        raise ValueError(f"No rows found in {csv_file}")
    return build_instructions_pdf(rows, pdf_file, **kwargs)
