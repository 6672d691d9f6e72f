# teacher_eval/api/v1/endpoints/admin_reports.py
from dataclasses import asdict
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Response
from sqlalchemy import text
from sqlalchemy.orm import Session

from teacher_eval.api.deps.admin import require_admin
from teacher_eval.api.deps.reports import anonymity_threshold, report_filters
from teacher_eval.db.session import get_db
from teacher_eval.schemas.reports import (
    DashboardOut, DisciplineFilterItem, FilterItem, FiltersOut, StatsOut,
)
from teacher_eval.services.aggregation import (
    InsufficientSample, build_dashboard, build_stats, chart_payloads,
)
from teacher_eval.services.excel_export import XLSX_MEDIA_TYPE, catalog_workbook, responses_workbook
from teacher_eval.services.filters import ReportFilters, filter_labels
from teacher_eval.services.pdf_report import build_pdf

router = APIRouter(tags=["admin-reports"])


def _attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _stamp() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")


# 1) STATS
@router.get("/reports/stats", response_model=StatsOut)
def stats(
    filters: ReportFilters = Depends(report_filters),
    threshold: int = Depends(anonymity_threshold),
    db: Session = Depends(get_db),
    _admin=Depends(require_admin),
):
    result = build_stats(db, filters, threshold)
    if isinstance(result, InsufficientSample):
        return StatsOut(response_count=result.count, threshold=result.threshold, insufficient_sample=True)
    return StatsOut(
        response_count=result.count,
        threshold=result.threshold,
        overall=result.overall,
        questions=[asdict(q) for q in result.questions],
        areas=[asdict(a) for a in result.areas],
        comments=[asdict(c) for c in result.comments],
    )


# 2) DASHBOARD (numbers + chart payloads)
@router.get("/reports/dashboard", response_model=DashboardOut)
def dashboard(
    filters: ReportFilters = Depends(report_filters),
    threshold: int = Depends(anonymity_threshold),
    db: Session = Depends(get_db),
    _admin=Depends(require_admin),
):
    result = build_dashboard(db, filters, threshold)
    if isinstance(result, InsufficientSample):
        return DashboardOut(response_count=result.count, threshold=result.threshold, insufficient_sample=True)
    return DashboardOut(
        response_count=result.count,
        threshold=result.threshold,
        teachers_evaluated=result.teachers_evaluated,
        overall=result.overall,
        questions=[asdict(q) for q in result.questions],
        areas=[asdict(a) for a in result.areas],
        timeseries=[asdict(d) for d in result.timeseries],
        comments=[asdict(c) for c in result.comments],
        charts=chart_payloads(result),
    )


# 3) FILTER CATALOGS
@router.get("/reports/filters", response_model=FiltersOut)
def filters_catalog(db: Session = Depends(get_db), _admin=Depends(require_admin)):
    def rows(sql: str):
        return db.execute(text(sql)).mappings().all()

    return FiltersOut(
        courses=[FilterItem(**r) for r in rows("SELECT id, name FROM course ORDER BY name")],
        semesters=[FilterItem(**r) for r in rows("SELECT id, name FROM semester ORDER BY id")],
        disciplines=[
            DisciplineFilterItem(**r)
            for r in rows("SELECT id, name, course_id FROM discipline ORDER BY name")
        ],
        teachers=[FilterItem(**r) for r in rows("SELECT id, name FROM teacher ORDER BY name")],
        school_years=[FilterItem(**r) for r in rows("SELECT id, name FROM school_year ORDER BY name DESC")],
        class_groups=[FilterItem(**r) for r in rows("SELECT id, name FROM class_group ORDER BY name")],
    )


# 4) EXPORTS
@router.get("/reports/export/excel")
def export_excel(
    filters: ReportFilters = Depends(report_filters),
    db: Session = Depends(get_db),
    _admin=Depends(require_admin),
):
    """Raw responses, one row each; not gated by the anonymity threshold."""
    return _attachment(responses_workbook(db, filters), XLSX_MEDIA_TYPE, f"respostas_{_stamp()}.xlsx")


@router.get("/reports/export/pdf")
def export_pdf(
    filters: ReportFilters = Depends(report_filters),
    threshold: int = Depends(anonymity_threshold),
    db: Session = Depends(get_db),
    _admin=Depends(require_admin),
):
    result = build_stats(db, filters, threshold)
    content = build_pdf(result, filter_labels(db, filters))
    return _attachment(content, "application/pdf", f"relatorio_{_stamp()}.pdf")


@router.get("/exports/catalog.xlsx")
def export_catalog(db: Session = Depends(get_db), _admin=Depends(require_admin)):
    """Catalog in the same four-sheet layout the importer reads."""
    return _attachment(catalog_workbook(db), XLSX_MEDIA_TYPE, f"catalogo_{_stamp()}.xlsx")
