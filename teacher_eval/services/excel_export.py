# teacher_eval/services/excel_export.py
from __future__ import annotations

from collections import defaultdict
from io import BytesIO
from typing import Dict

from openpyxl import Workbook
from sqlalchemy.orm import Session, aliased

from teacher_eval.models.catalog import (
    Course, Discipline, Teacher, Semester, SchoolYear, ClassGroup, Teaching,
)
from teacher_eval.models.survey import SurveyQuestion, SurveyResponse, SurveyAnswer
from teacher_eval.services.filters import ReportFilters
from teacher_eval.services.importer import SHEETS

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
TIMESTAMP_FMT = "%Y-%m-%d %H:%M:%S"


def _to_bytes(wb: Workbook) -> bytes:
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


def _append_text(ws, values) -> None:
    """
    ws.append for rows holding free text. openpyxl turns any string that
    starts with "=" into a formula; these cells stay plain strings.
    """
    ws.append(values)
    for cell in ws[ws.max_row]:
        if isinstance(cell.value, str) and cell.data_type == "f":
            cell.data_type = "s"


def responses_workbook(db: Session, filters: ReportFilters) -> bytes:
    """
    Raw listing: one row per response, one column per question code.
    Unanswered questions stay blank.
    """
    questions = db.query(SurveyQuestion).order_by(SurveyQuestion.position, SurveyQuestion.id).all()

    sy = aliased(SchoolYear)
    cg = aliased(ClassGroup)
    q = (
        db.query(
            SurveyResponse.id,
            SurveyResponse.submitted_at,
            SurveyResponse.comment,
            Course.name,
            Semester.name,
            sy.name,
            cg.name,
            Discipline.name,
            Teacher.name,
        )
        .select_from(SurveyResponse)
        .join(Teaching, Teaching.id == SurveyResponse.teaching_id)
        .join(Discipline, Discipline.id == Teaching.discipline_id)
        .join(Course, Course.id == Discipline.course_id)
        .join(Semester, Semester.id == Teaching.semester_id)
        .join(Teacher, Teacher.id == Teaching.teacher_id)
        .outerjoin(sy, sy.id == Teaching.school_year_id)
        .outerjoin(cg, cg.id == Teaching.class_group_id)
    )
    rows = filters.apply(q).order_by(SurveyResponse.submitted_at.desc(), SurveyResponse.id.desc()).all()

    answers: Dict[int, Dict[int, int]] = defaultdict(dict)
    response_ids = [r[0] for r in rows]
    if response_ids:
        ans_q = db.query(SurveyAnswer.response_id, SurveyAnswer.question_id, SurveyAnswer.value).filter(
            SurveyAnswer.response_id.in_(response_ids)
        )
        for rid, qid, value in ans_q.all():
            answers[rid][qid] = value

    wb = Workbook()
    ws = wb.active
    ws.title = "Respostas"
    ws.append(
        ["Data/Hora", "Curso", "Semestre", "Ano lectivo", "Turma", "Disciplina", "Docente"]
        + [qq.code for qq in questions]
        + ["Comentário"]
    )
    for rid, submitted_at, comment, course, semester, year, klass, discipline, teacher in rows:
        by_q = answers.get(rid, {})
        _append_text(
            ws,
            [submitted_at.strftime(TIMESTAMP_FMT), course, semester, year or "", klass or "", discipline, teacher]
            + [by_q.get(qq.id, "") for qq in questions]
            + [comment or ""]
        )
    return _to_bytes(wb)


def catalog_workbook(db: Session) -> bytes:
    """Reference catalog in the layout the bulk import reads back."""
    wb = Workbook()
    wb.remove(wb.active)

    ws = wb.create_sheet(SHEETS["courses"][0])
    ws.append(["curso"])
    for (name,) in db.query(Course.name).order_by(Course.name).all():
        _append_text(ws, [name])

    ws = wb.create_sheet(SHEETS["teachers"][0])
    ws.append(["docente"])
    for (name,) in db.query(Teacher.name).order_by(Teacher.name).all():
        _append_text(ws, [name])

    ws = wb.create_sheet(SHEETS["disciplines"][0])
    ws.append(["curso", "disciplina"])
    rows = (
        db.query(Course.name, Discipline.name)
        .join(Discipline, Discipline.course_id == Course.id)
        .order_by(Course.name, Discipline.name)
        .all()
    )
    for course, discipline in rows:
        _append_text(ws, [course, discipline])

    sy = aliased(SchoolYear)
    cg = aliased(ClassGroup)
    ws = wb.create_sheet(SHEETS["teachings"][0])
    ws.append(["curso", "disciplina", "docente", "ano", "semestre", "turma"])
    rows = (
        db.query(Course.name, Discipline.name, Teacher.name, sy.name, Semester.name, cg.name)
        .select_from(Teaching)
        .join(Discipline, Discipline.id == Teaching.discipline_id)
        .join(Course, Course.id == Discipline.course_id)
        .join(Teacher, Teacher.id == Teaching.teacher_id)
        .join(Semester, Semester.id == Teaching.semester_id)
        .outerjoin(sy, sy.id == Teaching.school_year_id)
        .outerjoin(cg, cg.id == Teaching.class_group_id)
        .order_by(Course.name, Discipline.name, Teacher.name)
        .all()
    )
    for course, discipline, teacher, year, semester, klass in rows:
        _append_text(ws, [course, discipline, teacher, year or "", semester, klass or ""])

    return _to_bytes(wb)
