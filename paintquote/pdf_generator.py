"""
PDF quote generator.

Renders a saved painting quote as a customer-facing PDF with fpdf2
(pure Python, no system dependencies).

Sections:
1. Header (company, quote number, date, customer)
2. Scope of work (surfaces and areas)
3. Paint and materials
4. Project total
5. Terms

White-labeled: company name and contact come from the contractor's profile.
"""

from datetime import datetime
from typing import Optional

from fpdf import FPDF

PROJECT_TYPE_NAMES = {
    "interior": "Interior Painting",
    "exterior": "Exterior Painting",
    "both": "Interior & Exterior Painting",
}

CATEGORY_NAMES = {
    "primer": "Primer",
    "wall_paint": "Wall Paint",
    "ceiling_paint": "Ceiling Paint",
    "trim_paint": "Trim Paint",
}

SURFACES = [
    ("Walls", "walls_sqft", "walls_rate"),
    ("Ceilings", "ceilings_sqft", "ceilings_rate"),
    ("Trim", "trim_sqft", "trim_rate"),
]

STANDARD_EXCLUSIONS = [
    "Drywall or wood repair beyond minor patching",
    "Moving heavy furniture",
    "Lead paint abatement",
]


def _fmt(amount) -> str:
    """Format a number as $X,XXX.XX"""
    try:
        return f"${float(amount):,.2f}"
    except (ValueError, TypeError):
        return "$0.00"


def _safe(text) -> str:
    """Built-in PDF fonts are latin-1 only."""
    if not text:
        return ""
    return (
        str(text)
        .replace("\u2022", "-")
        .replace("\u2014", " - ")
        .replace("\u2013", "-")
        .replace("\u201c", '"')
        .replace("\u201d", '"')
        .replace("\u2018", "'")
        .replace("\u2019", "'")
        .encode("latin-1", errors="replace")
        .decode("latin-1")
    )


def scope_summary(quote: dict) -> str:
    """One-line description of the job, used in the PDF header."""
    project = PROJECT_TYPE_NAMES.get(quote.get("project_type"), "Painting")
    parts = [
        f"{label.lower()} ({quote.get(area_key) or 0:,.0f} sq ft)"
        for label, area_key, _ in SURFACES
        if quote.get(area_key)
    ]
    if not parts:
        return project + "."
    return f"{project}: " + ", ".join(parts) + "."


class QuotePDF(FPDF):

    def __init__(self, company_name=""):
        super().__init__()
        self.company_name = company_name
        self.set_auto_page_break(auto=True, margin=20)

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(150, 150, 150)
        self.cell(0, 10, f"{_safe(self.company_name)} - Page {self.page_no()}/{{nb}}", align="C")

    def section_header(self, title):
        self.set_font("Helvetica", "B", 11)
        self.set_fill_color(52, 78, 65)
        self.set_text_color(255, 255, 255)
        self.cell(0, 8, f"  {title}", fill=True, new_x="LMARGIN", new_y="NEXT")
        self.set_text_color(0, 0, 0)
        self.ln(2)

    def table_header(self, cols):
        """cols: [(label, width, align), ...]"""
        self.set_font("Helvetica", "B", 8)
        self.set_fill_color(240, 240, 240)
        for label, width, align in cols:
            self.cell(width, 6, label, border="B", fill=True, align=align)
        self.ln()

    def table_row(self, values, cols):
        self.set_font("Helvetica", "", 9)
        for value, (_, width, align) in zip(values, cols):
            self.cell(width, 6, _safe(value), align=align)
        self.ln()

    def total_row(self, label, amount, bold=False):
        self.set_font("Helvetica", "B" if bold else "", 10)
        self.cell(130, 6, label)
        self.cell(60, 6, _fmt(amount), align="R")
        self.ln()


def generate_quote_pdf(quote: dict, company: dict, created_at: Optional[datetime] = None) -> bytes:
    """
    Args:
        quote: serialized Quote (the quotes router's dict form)
        company: company_name, company_address, company_phone, company_email

    Returns:
        PDF bytes
    """
    company_name = company.get("company_name") or "Painting Quote"
    contact = " | ".join(
        p for p in (company.get("company_address"), company.get("company_phone"),
                    company.get("company_email")) if p
    )
    pricing = quote.get("pricing") or {}
    products = quote.get("products") or {}

    pdf = QuotePDF(company_name=company_name)
    pdf.alias_nb_pages()
    pdf.add_page()
    pw = pdf.w - pdf.l_margin - pdf.r_margin

    # Header
    pdf.set_font("Helvetica", "B", 20)
    pdf.cell(0, 10, _safe(company_name), new_x="LMARGIN", new_y="NEXT")
    if contact:
        pdf.set_font("Helvetica", "", 9)
        pdf.set_text_color(100, 100, 100)
        pdf.cell(0, 5, _safe(contact), new_x="LMARGIN", new_y="NEXT")
        pdf.set_text_color(0, 0, 0)
    pdf.ln(4)

    date_str = (created_at or datetime.utcnow()).strftime("%B %d, %Y")
    valid_days = quote.get("valid_days") or 30
    pdf.set_font("Helvetica", "B", 14)
    pdf.cell(0, 8, f"QUOTE #{_safe(quote.get('quote_number'))}", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 10)
    pdf.cell(0, 5, f"Date: {date_str}", new_x="LMARGIN", new_y="NEXT")
    pdf.cell(0, 5, f"Valid for: {valid_days} days", new_x="LMARGIN", new_y="NEXT")
    pdf.ln(2)
    pdf.cell(0, 5, f"Prepared for: {_safe(quote.get('customer_name'))}", new_x="LMARGIN", new_y="NEXT")
    if quote.get("address"):
        pdf.cell(0, 5, f"Property: {_safe(quote['address'])}", new_x="LMARGIN", new_y="NEXT")
    pdf.ln(3)
    pdf.set_font("Helvetica", "", 9)
    pdf.multi_cell(0, 4.5, _safe(scope_summary(quote)), new_x="LMARGIN", new_y="NEXT")
    if quote.get("special_requests"):
        pdf.multi_cell(0, 4.5, _safe(f"Notes: {quote['special_requests']}"), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(4)

    # Scope of work
    pdf.section_header("SCOPE OF WORK")
    cols = [("Surface", 70, "L"), ("Area (sq ft)", 40, "R"), ("Rate", 40, "R"), ("Labor", 40, "R")]
    pdf.table_header(cols)
    for label, area_key, rate_key in SURFACES:
        area = quote.get(area_key) or 0
        if area <= 0:
            continue
        rate = quote.get(rate_key) or 0
        pdf.table_row([label, f"{area:,.0f}", f"{_fmt(rate)}/sqft", _fmt(area * rate)], cols)
    pdf.ln(2)
    pdf.total_row("Labor Subtotal", quote.get("total_labor", 0), bold=True)
    pdf.ln(4)

    # Paint & materials
    pdf.section_header("PAINT & MATERIALS")
    paint_cols = [("Product", 90, "L"), ("Use", 50, "L"), ("Sheen", 50, "L")]
    pdf.table_header(paint_cols)
    listed = False
    for category, name in CATEGORY_NAMES.items():
        product = products.get(category)
        if not product:
            continue
        listed = True
        pdf.table_row(
            [f"{product.get('supplier', '')} {product.get('product_name', '')}".strip(), name,
             product.get("sheen") or "-"],
            paint_cols,
        )
    if not listed:
        quality = (products.get("paint_quality") or "better").title()
        pdf.table_row([f"{quality} grade paint", "All surfaces", "-"], paint_cols)
    pdf.ln(2)
    pdf.set_font("Helvetica", "I", 8)
    pdf.cell(0, 5, "Includes brushes, rollers, tape and drop cloths.", new_x="LMARGIN", new_y="NEXT")
    pdf.total_row("Materials Subtotal", quote.get("total_materials", 0), bold=True)
    pdf.ln(4)

    # Project total, markup folded into the first line
    pdf.section_header("PROJECT TOTAL")
    subtotal_with_markup = (pricing.get("subtotal", 0) or 0) + (pricing.get("markup_amount", 0) or 0)
    pdf.total_row("Labor & Materials", subtotal_with_markup)
    tax_amount = pricing.get("tax_amount") or 0
    if tax_amount:
        pdf.total_row(f"Tax ({pricing.get('tax_rate', 0):g}%)", tax_amount)

    pdf.ln(1)
    pdf.set_fill_color(52, 78, 65)
    pdf.set_text_color(255, 255, 255)
    pdf.set_font("Helvetica", "B", 13)
    pdf.cell(130, 10, "  QUOTE TOTAL", fill=True)
    pdf.cell(60, 10, f"{_fmt(quote.get('final_price', 0))}  ", fill=True, align="R")
    pdf.set_text_color(0, 0, 0)
    pdf.ln(14)

    # Terms
    pdf.section_header("EXCLUSIONS")
    pdf.set_font("Helvetica", "", 8)
    for e in STANDARD_EXCLUSIONS:
        pdf.set_x(pdf.l_margin)
        pdf.cell(pw, 4.5, _safe(f"  - {e}"), new_x="LMARGIN", new_y="NEXT")
    pdf.ln(6)

    pdf.set_font("Helvetica", "I", 8)
    pdf.set_text_color(100, 100, 100)
    pdf.set_x(pdf.l_margin)
    pdf.cell(pw, 4, f"This quote is valid for {valid_days} days from the date above.",
             new_x="LMARGIN", new_y="NEXT")
    pdf.cell(pw, 4, "Payment terms: 50% deposit, balance upon completion.", new_x="LMARGIN", new_y="NEXT")
    pdf.set_text_color(0, 0, 0)

    return bytes(pdf.output())
