import uuid
from datetime import date
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from ledger.core.dependencies import get_report_service, require_permission
from ledger.db.schema import User
from ledger.models.common import ApiResponse, ok
from ledger.models.report import (
    CollectionsSummary, FinancialSummary, PaymentsSummary,
    ProductPerformanceRow, SupplierBalanceRow, SystemSummary,
)
from ledger.services import report_pdf
from ledger.services.report import ReportService


router = APIRouter()

can_view_reports = require_permission("reports.view")


def _pdf(report: str, render: Callable[[], bytes]) -> Response:
    filename = f"{report}-{date.today().isoformat()}.pdf"
    return Response(
        content=render(),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get(
    "/summary",
    response_model=ApiResponse[SystemSummary],
    summary="System Summary",
    description="Counts, ledger totals, outstanding balance and this month's figures."
)
def summary(
    current_user: User = Depends(can_view_reports),
    service: ReportService = Depends(get_report_service)
):
    return ok(service.summary())


@router.get("/summary/pdf", summary="System Summary (PDF)")
def summary_pdf(
    current_user: User = Depends(can_view_reports),
    service: ReportService = Depends(get_report_service)
):
    data = service.summary()
    return _pdf("summary", lambda: report_pdf.build_summary_pdf(data))


@router.get(
    "/supplier-balances",
    response_model=ApiResponse[List[SupplierBalanceRow]],
    summary="Supplier Balances",
    description="Collected, paid and balance per supplier, ordered by balance."
)
def supplier_balances(
    limit: int = Query(10, ge=1, le=1000),
    sort: str = Query("desc", pattern="^(asc|desc)$"),
    current_user: User = Depends(can_view_reports),
    service: ReportService = Depends(get_report_service)
):
    return ok(service.supplier_balances(limit=limit, sort=sort))


@router.get("/supplier-balances/pdf", summary="Supplier Balances (PDF)")
def supplier_balances_pdf(
    limit: int = Query(10, ge=1, le=1000),
    sort: str = Query("desc", pattern="^(asc|desc)$"),
    current_user: User = Depends(can_view_reports),
    service: ReportService = Depends(get_report_service)
):
    rows = service.supplier_balances(limit=limit, sort=sort)
    return _pdf("supplier-balances", lambda: report_pdf.build_supplier_balances_pdf(rows))


@router.get(
    "/collections-summary",
    response_model=ApiResponse[CollectionsSummary],
    summary="Collections Summary",
    description="Totals with breakdowns by product and by supplier."
)
def collections_summary(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    supplier_id: Optional[uuid.UUID] = None,
    product_id: Optional[uuid.UUID] = None,
    current_user: User = Depends(can_view_reports),
    service: ReportService = Depends(get_report_service)
):
    return ok(service.collections_summary(start_date, end_date, supplier_id, product_id))


@router.get("/collections-summary/pdf", summary="Collections Summary (PDF)")
def collections_summary_pdf(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    supplier_id: Optional[uuid.UUID] = None,
    product_id: Optional[uuid.UUID] = None,
    current_user: User = Depends(can_view_reports),
    service: ReportService = Depends(get_report_service)
):
    data = service.collections_summary(start_date, end_date, supplier_id, product_id)
    return _pdf(
        "collections-summary",
        lambda: report_pdf.build_collections_summary_pdf(data, start_date, end_date),
    )


@router.get(
    "/payments-summary",
    response_model=ApiResponse[PaymentsSummary],
    summary="Payments Summary",
    description="Totals with breakdowns by payment type and by supplier."
)
def payments_summary(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    supplier_id: Optional[uuid.UUID] = None,
    current_user: User = Depends(can_view_reports),
    service: ReportService = Depends(get_report_service)
):
    return ok(service.payments_summary(start_date, end_date, supplier_id))


@router.get("/payments-summary/pdf", summary="Payments Summary (PDF)")
def payments_summary_pdf(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    supplier_id: Optional[uuid.UUID] = None,
    current_user: User = Depends(can_view_reports),
    service: ReportService = Depends(get_report_service)
):
    data = service.payments_summary(start_date, end_date, supplier_id)
    return _pdf(
        "payments-summary",
        lambda: report_pdf.build_payments_summary_pdf(data, start_date, end_date),
    )


@router.get(
    "/product-performance",
    response_model=ApiResponse[List[ProductPerformanceRow]],
    summary="Product Performance",
    description="Per product deliveries, quantity, amount, distinct suppliers and average rate."
)
def product_performance(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: User = Depends(can_view_reports),
    service: ReportService = Depends(get_report_service)
):
    return ok(service.product_performance(start_date, end_date))


@router.get("/product-performance/pdf", summary="Product Performance (PDF)")
def product_performance_pdf(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: User = Depends(can_view_reports),
    service: ReportService = Depends(get_report_service)
):
    rows = service.product_performance(start_date, end_date)
    return _pdf(
        "product-performance",
        lambda: report_pdf.build_product_performance_pdf(rows, start_date, end_date),
    )


@router.get(
    "/financial-summary",
    response_model=ApiResponse[FinancialSummary],
    summary="Financial Summary",
    description="Ledger totals and a month by month breakdown (`YYYY-MM`)."
)
def financial_summary(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: User = Depends(can_view_reports),
    service: ReportService = Depends(get_report_service)
):
    return ok(service.financial_summary(start_date, end_date))


@router.get("/financial-summary/pdf", summary="Financial Summary (PDF)")
def financial_summary_pdf(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    current_user: User = Depends(can_view_reports),
    service: ReportService = Depends(get_report_service)
):
    data = service.financial_summary(start_date, end_date)
    return _pdf(
        "financial-summary",
        lambda: report_pdf.build_financial_summary_pdf(data, start_date, end_date),
    )
