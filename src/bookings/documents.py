from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from io import BytesIO
import qrcode
from qrcode import constants
from PIL import Image

from src.config import settings
from src.models import Booking, Payment
from src.bookings.pnr_service import format_status

class TicketDocumentService:
    """Renders e-tickets and payment invoices for a booking as PDF bytes"""

    def __init__(self, qr_size: int = 150):
        self.qr_size = qr_size

    def generate_qr_code_image(self, data: str) -> bytes:
        """PNG image of a QR code for the given payload"""
        qr = qrcode.QRCode(
            version=1,
            error_correction=constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(data)
        qr.make(fit=True)

        qr_image = qr.make_image(fill_color="black", back_color="white")
        qr_image = qr_image.convert("RGB").resize((self.qr_size, self.qr_size), Image.LANCZOS)

        buffer = BytesIO()
        qr_image.save(buffer, format="PNG")
        return buffer.getvalue()

    def qr_payload(self, booking: Booking) -> str:
        train_number = booking.train.train_number if booking.train else ""
        journey_date = booking.journey.departure_date.isoformat() if booking.journey else ""
        return f"PNR:{booking.pnr}|TRAIN:{train_number}|DATE:{journey_date}|PAX:{len(booking.passengers)}"

    def generate_ticket_pdf(self, booking: Booking) -> bytes:
        """E-ticket with journey details, passenger list and a PNR QR code"""

        from reportlab.lib import colors
        from reportlab.lib.pagesizes import A4
        from reportlab.lib.styles import getSampleStyleSheet
        from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
        from reportlab.platypus import Image as ReportImage

        buffer = BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4, title=f"E-Ticket {booking.pnr}")
        styles = getSampleStyleSheet()
        story = []

        story.append(Paragraph(settings.PROJECT_NAME, styles['Title']))
        story.append(Paragraph("Electronic Reservation Slip", styles['Heading2']))
        story.append(Spacer(1, 15))

        details = [
            ["PNR Number:", booking.pnr],
            ["Train Number/Name:", self._train_label(booking)],
            ["Class:", self._coach_type(booking)],
            ["From Station:", booking.source_station.name if booking.source_station else ""],
            ["To Station:", booking.dest_station.name if booking.dest_station else ""],
            ["Journey Date:", booking.journey.departure_date.strftime("%d %b %Y") if booking.journey else ""],
            ["Booking Date:", self._format_time(booking.booking_time)],
            ["Transaction ID:", self._transaction_id(booking)],
            ["Status:", format_status(booking.status)],
        ]

        details_table = Table(details, colWidths=[140, 300])
        details_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (0, -1), colors.lightgrey),
            ('TEXTCOLOR', (0, 0), (-1, -1), colors.black),
            ('ALIGN', (0, 0), (-1, -1), 'LEFT'),
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.grey)
        ]))
        story.append(details_table)
        story.append(Spacer(1, 20))

        story.append(Paragraph("Passenger Details", styles['Heading3']))
        story.append(self._passenger_table(booking, styles))
        story.append(Spacer(1, 20))

        qr_png = self.generate_qr_code_image(self.qr_payload(booking))
        story.append(ReportImage(BytesIO(qr_png), width=self.qr_size, height=self.qr_size))
        story.append(Paragraph(
            "Please carry a valid photo identity proof in original during the journey.",
            styles['Italic']
        ))

        doc.build(story)
        return buffer.getvalue()

    def generate_invoice_pdf(self, booking: Booking) -> bytes:
        """Payment invoice with the fare breakdown for a booking"""

        from reportlab.lib import colors
        from reportlab.lib.pagesizes import A4
        from reportlab.lib.styles import getSampleStyleSheet
        from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

        buffer = BytesIO()
        doc = SimpleDocTemplate(buffer, pagesize=A4, title=f"Invoice {booking.pnr}")
        styles = getSampleStyleSheet()
        story = []

        story.append(Paragraph(settings.PROJECT_NAME, styles['Title']))
        story.append(Paragraph(f"Invoice for PNR {booking.pnr}", styles['Heading2']))
        story.append(Paragraph(f"Issued on {datetime.now().strftime('%d %b %Y %H:%M')}", styles['Normal']))
        story.append(Spacer(1, 15))

        passenger_count = len(booking.passengers) or 1
        total = Decimal(booking.total_fare)
        per_passenger = (total / passenger_count).quantize(Decimal("0.01"))

        fare_rows = [
            ["Description", "Qty", "Amount"],
            [f"{self._train_label(booking)} ({self._coach_type(booking)})", str(passenger_count),
             self._money(per_passenger)],
            ["TOTAL", "", self._money(total)],
        ]

        fare_table = Table(fare_rows, colWidths=[300, 50, 100])
        fare_table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
            ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
            ('GRID', (0, 0), (-1, -1), 0.5, colors.black)
        ]))
        story.append(fare_table)
        story.append(Spacer(1, 15))

        payment = self._latest_payment(booking)
        if payment is not None:
            story.append(Paragraph(
                f"Paid via {payment.provider or payment.method} "
                f"(transaction {payment.transaction_id or 'N/A'}) on {self._format_time(payment.payment_time)}",
                styles['Normal']
            ))

        doc.build(story)
        return buffer.getvalue()

    def _passenger_table(self, booking: Booking, styles):
        from reportlab.lib import colors
        from reportlab.platypus import Table, TableStyle, Paragraph

        if not booking.passengers:
            return Paragraph("No passenger information available", styles['Normal'])

        rows = [["#", "Name", "Age", "Gender", "Coach", "Seat"]]
        for index, passenger in enumerate(booking.passengers, start=1):
            rows.append([
                str(index),
                passenger.name,
                str(passenger.age),
                passenger.gender,
                passenger.coach_type,
                passenger.seat_number or ""
            ])

        table = Table(rows, colWidths=[30, 170, 40, 50, 50, 60])
        table.setStyle(TableStyle([
            ('BACKGROUND', (0, 0), (-1, 0), colors.grey),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('BOTTOMPADDING', (0, 0), (-1, 0), 6),
            ('BACKGROUND', (0, 1), (-1, -1), colors.beige),
            ('GRID', (0, 0), (-1, -1), 1, colors.black)
        ]))
        return table

    def _train_label(self, booking: Booking) -> str:
        if booking.train is None:
            return "Train Details"
        return f"{booking.train.train_number} / {booking.train.name}"

    def _coach_type(self, booking: Booking) -> str:
        return booking.passengers[0].coach_type if booking.passengers else ""

    def _latest_payment(self, booking: Booking) -> Optional[Payment]:
        payments: List[Payment] = [p for p in booking.payments if p.status == "success"]
        return payments[-1] if payments else None

    def _transaction_id(self, booking: Booking) -> str:
        payment = self._latest_payment(booking)
        return payment.transaction_id if payment and payment.transaction_id else "N/A"

    @staticmethod
    def _format_time(value: Optional[datetime]) -> str:
        return value.strftime("%d %b %Y %H:%M") if value else ""

    @staticmethod
    def _money(amount: Decimal) -> str:
        return f"Rs. {amount:,.2f}"
