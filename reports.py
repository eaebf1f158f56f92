"""
Trip reports: mutation log filtering, CSV export, PDF reports and the
verification QR code.

Reports only read vehicles and trips; they never change fleet state.
"""

import base64
import csv
import io
import logging
from datetime import date
from xml.sax.saxutils import escape
from typing import Dict, Iterable, List, Optional, Union

import qrcode
from qrcode.constants import ERROR_CORRECT_H
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

import settings
from models import Mutation, ReportError, Vehicle
from models.timestamps import format_local, format_local_date, parse_timestamp, to_local

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "Nomor Polisi",
    "Merk Kendaraan",
    "Pengemudi",
    "Tujuan",
    "Waktu Mulai",
    "Waktu Selesai",
    "KM Awal",
    "KM Akhir",
    "Jarak Tempuh (km)",
    "Catatan",
    "Status",
]
CSV_FILENAME = "laporan_mutasi_kendaraan.csv"
TABLE_PDF_FILENAME = "laporan_mutasi_kendaraan.pdf"

NO_NOTES = "Tidak ada catatan."
INCOMPLETE_TRIP = "Data perjalanan tidak lengkap untuk membuat PDF."


# =============================================================================
# Mutation log
# =============================================================================


def _as_date(value: Union[str, date, None]) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def filter_mutations(
    mutations: Iterable[Mutation],
    driver: Optional[str] = None,
    start_date: Union[str, date, None] = None,
    end_date: Union[str, date, None] = None,
    timezone: Optional[str] = None,
) -> List[Mutation]:
    """
    Filter trips for the log, newest first.

    - driver: case-insensitive substring of the driver name
    - start_date/end_date: inclusive range on the local start date
    """
    zone = timezone or settings.TIMEZONE
    since = _as_date(start_date)
    until = _as_date(end_date)
    needle = driver.strip().lower() if driver else ""

    def keep(mutation: Mutation) -> bool:
        if needle and needle not in mutation.driver.lower():
            return False
        if since is None and until is None:
            return True
        if mutation.start_time is None:
            return False
        local_day = to_local(mutation.start_time, zone).date()
        if since is not None and local_day < since:
            return False
        if until is not None and local_day > until:
            return False
        return True

    kept = [m for m in mutations if keep(m)]
    return sorted(
        kept,
        key=lambda m: m.start_time or parse_timestamp("1970-01-01"),
        reverse=True,
    )


def _vehicle_index(vehicles: Iterable[Vehicle]) -> Dict[str, Vehicle]:
    return {v.id: v for v in vehicles}


# =============================================================================
# CSV
# =============================================================================


def export_csv(
    mutations: Iterable[Mutation],
    vehicles: Iterable[Vehicle],
    timezone: Optional[str] = None,
) -> str:
    """
    Mutation history as CSV text.

    Starts with a UTF-8 BOM so spreadsheet programs pick the right encoding;
    every cell is quoted and embedded quotes are doubled.
    """
    zone = timezone or settings.TIMEZONE
    by_id = _vehicle_index(vehicles)
    buffer = io.StringIO()
    buffer.write("\ufeff")
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for mutation in mutations:
        vehicle = by_id.get(mutation.vehicle_id)
        writer.writerow(
            [
                vehicle.plate_number if vehicle else "",
                vehicle.brand if vehicle else "",
                mutation.driver,
                mutation.destination,
                format_local(mutation.start_time, zone) if mutation.start_time else "",
                format_local(mutation.end_time, zone) if mutation.end_time else "",
                mutation.start_km,
                "" if mutation.end_km is None else mutation.end_km,
                "" if mutation.distance is None else mutation.distance,
                mutation.notes or "",
                mutation.status.value,
            ]
        )
    return buffer.getvalue()


# =============================================================================
# QR code
# =============================================================================


def report_url(
    mutation_id: str, base_url: Optional[str] = None, download: bool = False
) -> str:
    """
    Deep link to the read-only report view of a trip.

    With download the link opens the PDF instead of the view.
    """
    origin = (base_url or settings.BASE_URL).rstrip("/")
    url = f"{origin}/?reportId={mutation_id}"
    return f"{url}&download=true" if download else url


def make_qr_png(text: str, box_size: int = 10) -> bytes:
    """PNG bytes of a QR code with high error correction."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_H,
        box_size=box_size,
        border=4,
    )
    qr.add_data(text)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def _photo_reader(data_url: Optional[str]) -> Optional[ImageReader]:
    """ImageReader for a base64 data URL, or None when it cannot be decoded."""
    if not data_url:
        return None
    encoded = data_url.split(",", 1)[1] if data_url.startswith("data:") else data_url
    try:
        reader = ImageReader(io.BytesIO(base64.b64decode(encoded, validate=True)))
        reader.getSize()
        return reader
    except Exception as e:  # reportlab/PIL raise assorted errors for bad images
        logger.warning("Skipping undecodable driver photo: %s", e)
        return None


# =============================================================================
# Single trip PDF
# =============================================================================


def single_report_filename(mutation: Mutation, vehicle: Vehicle) -> str:
    day = mutation.end_time.date().isoformat() if mutation.end_time else "draft"
    return f"Laporan-Perjalanan-{vehicle.plate_number}-{day}.pdf"


def single_report_pdf(
    mutation: Mutation,
    vehicle: Optional[Vehicle],
    base_url: Optional[str] = None,
    timezone: Optional[str] = None,
) -> bytes:
    """
    Printable report of one completed trip.

    Contains the trip details, the driver photo, the notes, a signature
    block and a QR code linking back to the report view.
    """
    if vehicle is None or not mutation.is_report_ready:
        raise ReportError(INCOMPLETE_TRIP)
    zone = timezone or settings.TIMEZONE

    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4

    def top(v_mm: float) -> float:
        """Convert a distance from the top edge (mm) to a reportlab y."""
        return height - v_mm * mm

    # Header
    c.setFont("Helvetica-Bold", 18)
    c.drawCentredString(width / 2, top(20), "Formulir Laporan Perjalanan Kendaraan")
    c.setLineWidth(0.5)
    c.line(20 * mm, top(28), 190 * mm, top(28))

    # Trip details
    rows = [
        ("Nomor Polisi", vehicle.plate_number),
        ("Kendaraan", f"{vehicle.brand} ({vehicle.year})"),
        ("Pengemudi", mutation.driver),
        ("Tujuan", mutation.destination),
        ("Waktu Mulai", format_local(mutation.start_time, zone)),
        ("Waktu Selesai", format_local(mutation.end_time, zone)),
        ("Kilometer Awal", f"{mutation.start_km} km"),
        ("Kilometer Akhir", f"{mutation.end_km} km"),
        ("Jarak Tempuh", f"{mutation.distance} km"),
    ]
    y = 40.0
    for label, value in rows:
        c.setFont("Helvetica-Bold", 11)
        c.drawString(20 * mm, top(y), label)
        c.setFont("Helvetica", 11)
        c.drawString(60 * mm, top(y), f": {value}")
        y += 7
    table_end = y

    # Driver photo
    photo_end = 35.0
    photo = _photo_reader(mutation.driver_photo)
    if photo is not None:
        c.setFont("Helvetica-Bold", 12)
        c.drawString(150 * mm, top(40), "Foto Pengemudi:")
        c.drawImage(photo, 150 * mm, top(85), width=40 * mm, height=40 * mm)
        c.rect(150 * mm, top(85), 40 * mm, 40 * mm)
        photo_end = 85.0

    # Notes
    notes_y = max(table_end, photo_end) + 10
    c.setFont("Helvetica-Bold", 12)
    c.drawString(20 * mm, top(notes_y), "Catatan Perjalanan:")
    c.setFont("Helvetica", 11)
    lines = simpleSplit(mutation.notes or NO_NOTES, "Helvetica", 11, 166 * mm)
    text_y = notes_y + 8
    for line in lines:
        c.drawString(22 * mm, top(text_y), line)
        text_y += 5
    notes_height = max(30, len(lines) * 5 + 10)
    c.rect(20 * mm, top(notes_y + 3 + notes_height), 170 * mm, notes_height * mm)

    # Signatures
    sig_y = notes_y + notes_height + 25
    c.drawString(30 * mm, top(sig_y), "Diserahkan oleh,")
    c.drawString(140 * mm, top(sig_y), "Diterima & Diverifikasi oleh,")
    c.line(30 * mm, top(sig_y + 20), 80 * mm, top(sig_y + 20))
    c.drawString(30 * mm, top(sig_y + 25), mutation.driver)
    c.drawString(30 * mm, top(sig_y + 30), "Pengemudi")

    qr_png = make_qr_png(report_url(mutation.id, base_url))
    c.drawImage(
        ImageReader(io.BytesIO(qr_png)),
        140 * mm,
        top(sig_y + 28),
        width=25 * mm,
        height=25 * mm,
    )
    c.setFont("Helvetica", 8)
    c.setFillColor(colors.grey)
    c.drawString(140 * mm, top(sig_y + 32), "Pindai untuk Verifikasi")
    c.setFillColor(colors.black)
    c.setFont("Helvetica", 11)
    c.drawString(140 * mm, top(sig_y + 38), "Petugas")

    c.showPage()
    c.save()
    pdf_bytes = buffer.getvalue()
    logger.info("Generated trip report for %s (%d bytes)", mutation.id, len(pdf_bytes))
    return pdf_bytes


# =============================================================================
# Tabular PDF
# =============================================================================


class _NumberedCanvas(canvas.Canvas):
    """Canvas that stamps 'Halaman i dari n' once the page count is known."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_pages = []

    def showPage(self):
        self._saved_pages.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_pages)
        for state in self._saved_pages:
            self.__dict__.update(state)
            self.setFont("Helvetica", 9)
            page_width, _ = self._pagesize
            self.drawRightString(
                page_width - 14 * mm,
                10 * mm,
                f"Halaman {self._pageNumber} dari {total}",
            )
            super().showPage()
        super().save()


def table_report_pdf(
    mutations: Iterable[Mutation],
    vehicles: Iterable[Vehicle],
    printed_on: Optional[date] = None,
    timezone: Optional[str] = None,
) -> bytes:
    """Landscape table of trips, one row per trip, with page numbers."""
    zone = timezone or settings.TIMEZONE
    by_id = _vehicle_index(vehicles)
    styles = getSampleStyleSheet()
    cell = styles["BodyText"].clone("cell", fontSize=8, leading=10)

    header = [
        "No.",
        "Kendaraan",
        "Pengemudi",
        "Tujuan",
        "Waktu Mulai",
        "Waktu Selesai",
        "Jarak (km)",
        "Status",
    ]
    body = []
    for index, mutation in enumerate(mutations, start=1):
        vehicle = by_id.get(mutation.vehicle_id)
        body.append(
            [
                str(index),
                Paragraph(escape(vehicle.name) if vehicle else "N/A", cell),
                Paragraph(escape(mutation.driver), cell),
                Paragraph(escape(mutation.destination), cell),
                format_local(mutation.start_time, zone),
                format_local(mutation.end_time, zone),
                "-" if mutation.distance is None else str(mutation.distance),
                mutation.status.value,
            ]
        )

    table = Table(
        [header] + body,
        colWidths=[10 * mm, 50 * mm, 35 * mm, 55 * mm, 32 * mm, 32 * mm, 20 * mm, 30 * mm],
        repeatRows=1,
    )
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.Color(22 / 255, 101 / 255, 52 / 255)),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 8),
                ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]
        )
    )

    printed = printed_on or date.today()
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=landscape(A4),
        leftMargin=14 * mm,
        rightMargin=14 * mm,
        topMargin=14 * mm,
        bottomMargin=18 * mm,
        title="Laporan Log Perjalanan Kendaraan",
    )
    story = [
        Paragraph("Laporan Log Perjalanan Kendaraan", styles["Title"]),
        Paragraph(f"Tanggal Cetak: {format_local_date(printed)}", styles["Normal"]),
        Spacer(1, 6 * mm),
        table,
    ]
    doc.build(story, canvasmaker=_NumberedCanvas)
    pdf_bytes = buffer.getvalue()
    logger.info("Generated trip table report (%d rows, %d bytes)", len(body), len(pdf_bytes))
    return pdf_bytes
