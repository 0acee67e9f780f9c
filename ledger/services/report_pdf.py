from io import BytesIO
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from ledger.core.config import settings
from ledger.models.report import (
    CollectionsSummary, FinancialSummary, PaymentsSummary,
    ProductPerformanceRow, SupplierBalanceRow, SystemSummary,
)


LEFT = 18 * mm


def _fmt_date(d: Any) -> str:
    if not d:
        return ""
    if isinstance(d, (datetime, date)):
        return d.strftime("%Y-%m-%d")
    return str(d)


def _fmt_money(value: Any) -> str:
    return f"{Decimal(str(value or 0)):,.2f}"


def _period(start_date: Optional[date], end_date: Optional[date]) -> str:
    if not start_date and not end_date:
        return "All time"
    return f"{_fmt_date(start_date) or '...'} to {_fmt_date(end_date) or '...'}"


def _new_canvas() -> Tuple[canvas.Canvas, BytesIO]:
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    return c, buf


def _draw_header(c: canvas.Canvas, main_title: str, sub_title: str = "") -> float:
    w, h = A4
    y = h - 20 * mm

    c.setFont("Helvetica-Bold", 14)
    c.drawString(LEFT, y, settings.app_name)

    y -= 7 * mm
    c.setFont("Helvetica-Bold", 12)
    c.drawString(LEFT, y, main_title)

    if sub_title:
        y -= 5 * mm
        c.setFont("Helvetica", 10)
        c.drawString(LEFT, y, sub_title)

    y -= 4 * mm
    c.setStrokeColor(colors.grey)
    c.setLineWidth(0.6)
    c.line(LEFT, y, w - LEFT, y)
    y -= 6 * mm
    return y


def _draw_table_header(c: canvas.Canvas, y: float, headers: Sequence[str], col_points: List[float]) -> float:
    c.setFont("Helvetica-Bold", 9)
    for i, htxt in enumerate(headers):
        c.drawString(LEFT + sum(col_points[:i]), y, htxt)
    y -= 4 * mm
    c.setLineWidth(0.4)
    c.line(LEFT, y, LEFT + sum(col_points), y)
    y -= 5 * mm
    c.setFont("Helvetica", 9)
    return y


def _table(
    c: canvas.Canvas,
    y: float,
    headers: Sequence[str],
    rows: Iterable[Sequence[str]],
    col_widths_mm: Sequence[float],
) -> float:
    """Simple table that continues on a new page when the current one is full."""
    col_points = [w * mm for w in col_widths_mm]
    y = _draw_table_header(c, y, headers, col_points)

    for row in rows:
        if y < 25 * mm:
            c.showPage()
            y = _draw_header(c, "Continued")
            y = _draw_table_header(c, y, headers, col_points)

        for i, cell in enumerate(row):
            c.drawString(LEFT + sum(col_points[:i]), y, (cell or "")[:45])
        y -= 4 * mm

    return y - 4 * mm


def _key_values(c: canvas.Canvas, y: float, pairs: Sequence[Tuple[str, str]]) -> float:
    c.setFont("Helvetica", 10)
    for label, value in pairs:
        c.drawString(LEFT, y, f"{label}:")
        c.drawString(LEFT + 70 * mm, y, value)
        y -= 5 * mm
    return y - 4 * mm


def _section(c: canvas.Canvas, y: float, title: str) -> float:
    if y < 40 * mm:
        c.showPage()
        y = _draw_header(c, "Continued")
    c.setFont("Helvetica-Bold", 11)
    c.drawString(LEFT, y, title)
    return y - 6 * mm


def _finish(c: canvas.Canvas, buf: BytesIO) -> bytes:
    c.setFont("Helvetica-Oblique", 8)
    c.drawString(LEFT, 12 * mm, f"Generated {datetime.utcnow().strftime('%Y-%m-%d %H:%M')} UTC")
    c.showPage()
    c.save()
    return buf.getvalue()


# ===================== Reports =====================


def build_summary_pdf(data: SystemSummary) -> bytes:
    c, buf = _new_canvas()
    y = _draw_header(c, "System Summary", f"As of {_fmt_date(date.today())}")

    y = _section(c, y, "Master data")
    y = _key_values(c, y, [
        ("Suppliers (active / total)", f"{data.active_suppliers} / {data.total_suppliers}"),
        ("Products (active / total)", f"{data.active_products} / {data.total_products}"),
    ])

    y = _section(c, y, "Ledger")
    y = _key_values(c, y, [
        ("Collections", str(data.total_collections)),
        ("Collection amount", _fmt_money(data.total_collection_amount)),
        ("Payments", str(data.total_payments)),
        ("Payment amount", _fmt_money(data.total_payment_amount)),
        ("Outstanding balance", _fmt_money(data.outstanding_balance)),
    ])

    y = _section(c, y, "This month")
    _key_values(c, y, [
        ("Collections", f"{data.collections_this_month} ({_fmt_money(data.collection_amount_this_month)})"),
        ("Payments", f"{data.payments_this_month} ({_fmt_money(data.payment_amount_this_month)})"),
    ])

    return _finish(c, buf)


def build_supplier_balances_pdf(rows: List[SupplierBalanceRow]) -> bytes:
    c, buf = _new_canvas()
    y = _draw_header(c, "Supplier Balances", f"{len(rows)} suppliers")

    _table(
        c, y,
        ["Code", "Supplier", "Collected", "Paid", "Balance", "Coll.", "Pay."],
        [
            (r.supplier_code, r.supplier_name, _fmt_money(r.total_collections),
             _fmt_money(r.total_payments), _fmt_money(r.balance),
             str(r.collection_count), str(r.payment_count))
            for r in rows
        ],
        [20, 45, 27, 27, 27, 14, 14],
    )
    return _finish(c, buf)


def build_collections_summary_pdf(
    data: CollectionsSummary,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> bytes:
    c, buf = _new_canvas()
    y = _draw_header(c, "Collections Summary", _period(start_date, end_date))

    y = _key_values(c, y, [
        ("Collections", str(data.summary.total_count)),
        ("Total quantity", str(data.summary.total_quantity)),
        ("Total amount", _fmt_money(data.summary.total_amount)),
    ])

    y = _section(c, y, "By product")
    y = _table(
        c, y,
        ["Product", "Count", "Quantity", "Amount"],
        [(r.product_name, str(r.count), str(r.total_quantity), _fmt_money(r.total_amount))
         for r in data.by_product],
        [70, 25, 35, 40],
    )

    y = _section(c, y, "By supplier")
    _table(
        c, y,
        ["Code", "Supplier", "Count", "Quantity", "Amount"],
        [(r.supplier_code, r.supplier_name, str(r.count), str(r.total_quantity),
          _fmt_money(r.total_amount))
         for r in data.by_supplier],
        [25, 55, 20, 35, 40],
    )
    return _finish(c, buf)


def build_payments_summary_pdf(
    data: PaymentsSummary,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> bytes:
    c, buf = _new_canvas()
    y = _draw_header(c, "Payments Summary", _period(start_date, end_date))

    y = _key_values(c, y, [
        ("Payments", str(data.summary.total_count)),
        ("Total amount", _fmt_money(data.summary.total_amount)),
    ])

    y = _section(c, y, "By type")
    y = _table(
        c, y,
        ["Type", "Count", "Amount"],
        [(r.type.value, str(r.count), _fmt_money(r.total_amount)) for r in data.by_type],
        [50, 30, 40],
    )

    y = _section(c, y, "By supplier")
    _table(
        c, y,
        ["Code", "Supplier", "Count", "Amount"],
        [(r.supplier_code, r.supplier_name, str(r.count), _fmt_money(r.total_amount))
         for r in data.by_supplier],
        [25, 70, 25, 40],
    )
    return _finish(c, buf)


def build_product_performance_pdf(
    rows: List[ProductPerformanceRow],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> bytes:
    c, buf = _new_canvas()
    y = _draw_header(c, "Product Performance", _period(start_date, end_date))

    _table(
        c, y,
        ["Code", "Product", "Coll.", "Quantity", "Amount", "Suppliers", "Avg rate"],
        [
            (r.product_code, r.product_name, str(r.collection_count), str(r.total_quantity),
             _fmt_money(r.total_amount), str(r.unique_suppliers), _fmt_money(r.avg_rate))
            for r in rows
        ],
        [20, 40, 14, 26, 28, 20, 24],
    )
    return _finish(c, buf)


def build_financial_summary_pdf(
    data: FinancialSummary,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> bytes:
    c, buf = _new_canvas()
    y = _draw_header(c, "Financial Summary", _period(start_date, end_date))

    y = _key_values(c, y, [
        ("Total collections", _fmt_money(data.summary.total_collections)),
        ("Total payments", _fmt_money(data.summary.total_payments)),
        ("Net balance", _fmt_money(data.summary.net_balance)),
    ])

    y = _section(c, y, "Monthly breakdown")
    _table(
        c, y,
        ["Month", "Collections", "Payments", "Net"],
        [(m.month, _fmt_money(m.collections), _fmt_money(m.payments), _fmt_money(m.net))
         for m in data.monthly_breakdown],
        [30, 45, 45, 45],
    )
    return _finish(c, buf)
