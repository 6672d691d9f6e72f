# teacher_eval/api/v1/endpoints/admin_imports.py
from dataclasses import asdict

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session

from teacher_eval.api.deps.admin import require_admin_strict
from teacher_eval.core.exceptions import InputError
from teacher_eval.db.session import get_db
from teacher_eval.schemas.imports import InsertedCounts, WorkbookImportOut
from teacher_eval.services.importer import import_workbook

router = APIRouter(tags=["admin/imports"])


@router.post("/imports/workbook", response_model=WorkbookImportOut)
async def import_catalog_workbook(
    file: UploadFile = File(..., description="Workbook with sheets cursos, docentes, disciplinas, leccionacao"),
    wipe_all: bool = Form(False, description="Delete the whole catalog and its responses first"),
    dry_run: bool = Form(False, description="Validate and count, but roll back"),
    db: Session = Depends(get_db),
    _admin=Depends(require_admin_strict),
):
    try:
        content = await file.read()
    finally:
        await file.close()
    if not content:
        raise InputError("Empty upload")

    summary = import_workbook(db, content, wipe_all=wipe_all, dry_run=dry_run)
    return WorkbookImportOut(
        inserted=InsertedCounts(
            courses=summary.courses,
            teachers=summary.teachers,
            disciplines=summary.disciplines,
            semesters=summary.semesters,
            school_years=summary.school_years,
            class_groups=summary.class_groups,
            teachings=summary.teachings,
        ),
        sheets=summary.sheets,
        wiped=summary.wiped,
        dry_run=summary.dry_run,
        skipped=[asdict(s) for s in summary.skipped],
    )
