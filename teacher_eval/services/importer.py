# teacher_eval/services/importer.py
"""
Bulk import of the reference catalog from an .xlsx workbook.

Sheets (row 1 is a header, names case-insensitive):
  cursos       | courses      A: course
  docentes     | teachers     A: teacher
  disciplinas  | disciplines  A: course, B: discipline
  leccionacao  | teachings    A: course, B: discipline, C: teacher,
                              D: school year, E: semester, F: class group (optional)

Everything, including the optional wipe, runs in one transaction.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Dict, List, Tuple

from openpyxl import load_workbook
from sqlalchemy import delete, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from teacher_eval.core.exceptions import ImportFailed
from teacher_eval.db.base import Base, DATA_TABLES
from teacher_eval.models.catalog import (
    Course, Discipline, Teacher, Semester, SchoolYear, ClassGroup,
)
from teacher_eval.services.intake import ensure_teaching

logger = logging.getLogger(__name__)

# canonical key -> accepted sheet names, first one is used on export
SHEETS = {
    "courses": ("cursos", "courses"),
    "teachers": ("docentes", "teachers"),
    "disciplines": ("disciplinas", "disciplines"),
    "teachings": ("leccionacao", "teachings"),
}


@dataclass
class SkippedRow:
    sheet: str
    row: int
    message: str


@dataclass
class ImportSummary:
    courses: int = 0
    teachers: int = 0
    disciplines: int = 0
    semesters: int = 0
    school_years: int = 0
    class_groups: int = 0
    teachings: int = 0
    wiped: bool = False
    dry_run: bool = False
    sheets: List[str] = field(default_factory=list)
    skipped: List[SkippedRow] = field(default_factory=list)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


class _Catalog:
    """Name -> id upserts with a per-import cache; counts real inserts."""

    def __init__(self, db: Session, summary: ImportSummary):
        self.db = db
        self.summary = summary
        self._cache: Dict[Tuple[str, Any], int] = {}

    def _upsert(self, model, counter: str, **values) -> int:
        key = (model.__tablename__, tuple(sorted(values.items())))
        if key in self._cache:
            return self._cache[key]
        result = self.db.execute(sqlite_insert(model).values(**values).on_conflict_do_nothing())
        if result.rowcount:
            setattr(self.summary, counter, getattr(self.summary, counter) + 1)
        stmt = select(model.id)
        for col, val in values.items():
            stmt = stmt.where(getattr(model, col) == val)
        pk = self.db.execute(stmt).scalar_one()
        self._cache[key] = pk
        return pk

    def course(self, name: str) -> int:
        return self._upsert(Course, "courses", name=name)

    def teacher(self, name: str) -> int:
        return self._upsert(Teacher, "teachers", name=name)

    def discipline(self, course_name: str, name: str) -> int:
        return self._upsert(Discipline, "disciplines", course_id=self.course(course_name), name=name)

    def semester(self, name: str) -> int:
        return self._upsert(Semester, "semesters", name=name)

    def school_year(self, name: str) -> int:
        return self._upsert(SchoolYear, "school_years", name=name)

    def class_group(self, name: str) -> int:
        return self._upsert(ClassGroup, "class_groups", name=name)


def wipe_catalog(db: Session) -> None:
    """Deletes responses, teachings and reference rows. Questions stay."""
    tables = Base.metadata.tables
    for name in DATA_TABLES:
        db.execute(delete(tables[name]))


def _find_sheets(wb) -> Dict[str, Any]:
    by_lower = {ws.title.strip().lower(): ws for ws in wb.worksheets}
    found = {}
    for key, names in SHEETS.items():
        for name in names:
            if name in by_lower:
                found[key] = by_lower[name]
                break
    return found


def _data_rows(ws):
    for idx, row in enumerate(ws.iter_rows(min_row=2, values_only=True), start=2):
        cells = [_cell(v) for v in row]
        if any(cells):
            yield idx, cells


def _col(cells: List[str], i: int) -> str:
    return cells[i] if i < len(cells) else ""


def import_workbook(db: Session, content: bytes, *, wipe_all: bool = False, dry_run: bool = False) -> ImportSummary:
    try:
        wb = load_workbook(BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        raise ImportFailed(f"Could not read workbook: {e}")

    try:
        sheets = _find_sheets(wb)
        if not sheets:
            expected = ", ".join(names[0] for names in SHEETS.values())
            raise ImportFailed(f"Workbook has none of the required sheets ({expected})")

        summary = ImportSummary(wiped=wipe_all, dry_run=dry_run, sheets=[ws.title for ws in sheets.values()])
        catalog = _Catalog(db, summary)

        try:
            if wipe_all:
                wipe_catalog(db)

            if "courses" in sheets:
                for _, cells in _data_rows(sheets["courses"]):
                    if _col(cells, 0):
                        catalog.course(_col(cells, 0))

            if "teachers" in sheets:
                for _, cells in _data_rows(sheets["teachers"]):
                    if _col(cells, 0):
                        catalog.teacher(_col(cells, 0))

            if "disciplines" in sheets:
                ws = sheets["disciplines"]
                for idx, cells in _data_rows(ws):
                    course_name, disc_name = _col(cells, 0), _col(cells, 1)
                    if not (course_name and disc_name):
                        summary.skipped.append(SkippedRow(ws.title, idx, "course and discipline are required"))
                        continue
                    catalog.discipline(course_name, disc_name)

            if "teachings" in sheets:
                ws = sheets["teachings"]
                for idx, cells in _data_rows(ws):
                    course_name, disc_name, teacher_name, year_name, sem_name, class_name = (
                        _col(cells, i) for i in range(6)
                    )
                    if not all((course_name, disc_name, teacher_name, year_name, sem_name)):
                        summary.skipped.append(SkippedRow(
                            ws.title, idx, "course, discipline, teacher, year and semester are required",
                        ))
                        continue
                    _, created = ensure_teaching(
                        db,
                        teacher_id=catalog.teacher(teacher_name),
                        discipline_id=catalog.discipline(course_name, disc_name),
                        semester_id=catalog.semester(sem_name),
                        school_year_id=catalog.school_year(year_name),
                        class_group_id=catalog.class_group(class_name) if class_name else None,
                    )
                    if created:
                        summary.teachings += 1

            if dry_run:
                db.rollback()
            else:
                db.commit()
        except Exception as e:
            db.rollback()
            logger.exception("Workbook import failed")
            raise ImportFailed(f"Import failed, nothing was saved: {e}")
    finally:
        wb.close()

    logger.info(
        "Import %s: courses=%d teachers=%d disciplines=%d teachings=%d skipped=%d wipe=%s",
        "simulated" if dry_run else "committed",
        summary.courses, summary.teachers, summary.disciplines, summary.teachings,
        len(summary.skipped), wipe_all,
    )
    return summary
