"""
Quotation Report - branded A4 PDF price quotation for an agent package.

Sections:
  - Header bar with agency name
  - Package reference block (name, year, type, SAR → BDT rate)
  - Bangladesh portion table (home currency)
  - Saudi portion table (foreign amount and converted amount)
  - Subtotal / discount / grand total

Rendered in memory; the caller streams the bytes back.
"""
import io
import logging
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.services.costing_engine import Totals

logger = logging.getLogger("hajj-report")

DEFAULT_COMPANY_NAME = os.getenv("QUOTATION_COMPANY_NAME", "HAJJ & UMRAH SERVICES")
DEFAULT_HOME_CURRENCY = os.getenv("QUOTATION_HOME_CURRENCY", "BDT")
DEFAULT_FOREIGN_CURRENCY = os.getenv("QUOTATION_FOREIGN_CURRENCY", "SAR")


def _hex_to_rgb(hex_color: str) -> tuple:
    """Convert '#RRGGBB' to (r, g, b) floats 0-1."""
    h = hex_color.lstrip("#")
    if len(h) != 6:
        return (0.08, 0.08, 0.12)
    return (int(h[0:2], 16) / 255, int(h[2:4], 16) / 255, int(h[4:6], 16) / 255)


def _draw_header(c, page_w, page_h, company_name: str, theme_rgb: tuple):
    from reportlab.lib.units import cm
    c.setFillColorRGB(*theme_rgb)
    c.rect(0, page_h - 2.5*cm, page_w, 2.5*cm, fill=1, stroke=0)
    c.setFillColorRGB(1, 1, 1)
    c.setFont("Helvetica-Bold", 13)
    c.drawString(1.5*cm, page_h - 1.5*cm, company_name)
    c.setStrokeColorRGB(0.58, 0.64, 0.72)
    c.setLineWidth(2)
    c.line(0, page_h - 2.5*cm, page_w, page_h - 2.5*cm)
    c.setLineWidth(1)
    c.setStrokeColorRGB(0, 0, 0)


def _draw_footer(c, page_w, page_num: int, company_name: str):
    from reportlab.lib.units import cm
    c.setFillColorRGB(0.5, 0.5, 0.5)
    c.setFont("Helvetica", 7)
    c.drawString(1.5*cm, 0.8*cm, f"PRICE QUOTATION | {company_name}")
    c.drawRightString(page_w - 1.5*cm, 0.8*cm, f"Page {page_num}")
    c.setStrokeColorRGB(0.7, 0.7, 0.7)
    c.line(1.5*cm, 1.2*cm, page_w - 1.5*cm, 1.2*cm)


class QuotationReport:

    def __init__(self, tenant_settings: Optional[Dict[str, Any]] = None):
        ts = tenant_settings or {}
        self.company_name = ts.get("company_name", DEFAULT_COMPANY_NAME)
        self.theme_rgb = _hex_to_rgb(ts.get("theme_color_hex", "#0b3d2e"))
        self.home_currency = ts.get("home_currency", DEFAULT_HOME_CURRENCY)
        self.foreign_currency = ts.get("foreign_currency", DEFAULT_FOREIGN_CURRENCY)

    def render(self, package_meta: Dict[str, Any], totals: Totals) -> bytes:
        """Render the quotation PDF and return its bytes."""
        from reportlab.pdfgen import canvas as rl_canvas
        from reportlab.lib.pagesizes import A4
        from reportlab.lib.units import cm

        buffer = io.BytesIO()
        page_w, page_h = A4
        c = rl_canvas.Canvas(buffer, pagesize=A4)
        home, foreign = self.home_currency, self.foreign_currency

        def new_page():
            c.showPage()
            _draw_header(c, page_w, page_h, self.company_name, self.theme_rgb)
            _draw_footer(c, page_w, c.getPageNumber(), self.company_name)
            return page_h - 3.5*cm

        def check_page(y, needed=1.5):
            if y < needed*cm + 1.5*cm:
                return new_page()
            return y

        def section_title(y, title):
            y = check_page(y, 2.5)
            c.setFont("Helvetica-Bold", 11)
            c.setFillColorRGB(0.08, 0.08, 0.12)
            c.drawString(1.5*cm, y, title)
            y -= 0.35*cm
            c.setStrokeColorRGB(0.58, 0.64, 0.72)
            c.line(1.5*cm, y, page_w - 1.5*cm, y)
            return y - 0.5*cm

        def money_row(y, label, value, bold=False, muted=False, color=None):
            y = check_page(y)
            c.setFont("Helvetica-Bold" if bold else "Helvetica", 10 if bold else 9)
            shade = 0.55 if muted else 0.2
            c.setFillColorRGB(*(color or (shade, shade, shade)))
            c.drawString(2*cm, y, label)
            c.drawRightString(page_w - 1.5*cm, y, value)
            return y - 0.5*cm

        _draw_header(c, page_w, page_h, self.company_name, self.theme_rgb)
        _draw_footer(c, page_w, 1, self.company_name)

        y = page_h - 4*cm
        c.setFillColorRGB(0.08, 0.08, 0.12)
        c.setFont("Helvetica-Bold", 18)
        c.drawString(1.5*cm, y, "PACKAGE PRICE QUOTATION")
        y -= 0.8*cm
        c.setFont("Helvetica-Bold", 12)
        c.drawString(1.5*cm, y, str(package_meta.get("packageName") or "Agent Package").upper())
        y -= 0.6*cm
        c.setFont("Helvetica", 9)
        c.setFillColorRGB(0.4, 0.4, 0.4)
        ref = str(package_meta.get("id") or "")[:8].upper() or "DRAFT"
        c.drawString(
            1.5*cm, y,
            f"Ref: {ref}  |  Year: {package_meta.get('packageYear') or '-'}  |  "
            f"Type: {package_meta.get('customPackageType') or 'Regular'}  |  "
            f"Date: {datetime.now().strftime('%d %b %Y')}",
        )
        y -= 0.5*cm
        c.drawString(1.5*cm, y, f"Exchange rate: 1 {foreign} = {totals.exchange_rate:,.4f} {home}")

        rows: List[Dict[str, Any]] = totals.breakdown_rows()

        y -= 1.2*cm
        y = section_title(y, f"BANGLADESH PORTION ({home})")
        for row in rows:
            if row["side"] != "bangladesh" or not row["amount_home"]:
                continue
            y = money_row(y, row["label"], f"{home} {row['amount_home']:,.2f}")
        y = money_row(y, "Bangladesh Total", f"{home} {totals.bangladesh_total:,.2f}", bold=True)

        y -= 0.6*cm
        y = section_title(y, f"SAUDI PORTION ({foreign} to {home})")
        for row in rows:
            if row["side"] != "saudi" or not row["active"] or not row["amount_foreign"]:
                continue
            y = money_row(
                y, row["label"],
                f"{foreign} {row['amount_foreign']:,.2f}  =  {home} {row['amount_home']:,.2f}",
            )
        y = money_row(
            y, "Saudi Total",
            f"{foreign} {totals.saudi_total_foreign:,.2f}  =  {home} {totals.saudi_total_home:,.2f}",
            bold=True,
        )

        y -= 0.6*cm
        y = section_title(y, "SUMMARY")
        y = money_row(y, "Subtotal", f"{home} {totals.subtotal:,.2f}")
        y = money_row(y, "Discount", f"- {home} {totals.discount:,.2f}", muted=not totals.discount)
        money_row(y, "GRAND TOTAL", f"{home} {totals.grand_total:,.2f}", bold=True, color=self.theme_rgb)

        c.save()
        pdf = buffer.getvalue()
        logger.info(f"Quotation PDF rendered ({len(pdf)} bytes, ref {ref})")
        return pdf
