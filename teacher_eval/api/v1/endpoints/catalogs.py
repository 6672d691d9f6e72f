# teacher_eval/api/v1/endpoints/catalogs.py
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from sqlalchemy import text

from teacher_eval.core.exceptions import InputError
from teacher_eval.db.session import get_db
from teacher_eval.schemas.survey import (
    NamedItem, QuestionItem, ShiftOut, SurveyFormOut, SurveyOptionsOut,
)

router = APIRouter(prefix="/survey", tags=["survey"])

EVENING_MARKERS = ("pós-laboral", "pos-laboral", "noite", "nocturno", "noturno")


def _is_evening(name: str) -> bool:
    lower = name.lower()
    return any(m in lower for m in EVENING_MARKERS)


def _named(db: Session, sql: str) -> List[NamedItem]:
    return [NamedItem(**dict(r)) for r in db.execute(text(sql)).mappings().all()]


# first step of the questionnaire: period selectors
@router.get("/options", response_model=SurveyOptionsOut)
def survey_options(db: Session = Depends(get_db)):
    classes = _named(db, "SELECT id, name FROM class_group ORDER BY name")
    return SurveyOptionsOut(
        courses=_named(db, "SELECT id, name FROM course ORDER BY name"),
        semesters=_named(db, "SELECT id, name FROM semester ORDER BY id"),
        school_years=_named(db, "SELECT id, name FROM school_year ORDER BY name DESC"),
        shifts=[
            ShiftOut(key="day", label="Diurno", class_groups=[c for c in classes if not _is_evening(c.name)]),
            ShiftOut(key="evening", label="Pós-laboral", class_groups=[c for c in classes if _is_evening(c.name)]),
        ],
    )


# second step: disciplines/teachers actually taught in that period + questions
@router.get("/form", response_model=SurveyFormOut)
def survey_form(
    course_id: Optional[int] = Query(None),
    semester_id: Optional[int] = Query(None),
    school_year_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
):
    if not course_id or not semester_id or not school_year_id:
        raise InputError("course_id, semester_id and school_year_id are required")

    params = {"cid": course_id, "sid": semester_id, "yid": school_year_id}
    rows = db.execute(text("""
        SELECT d.id AS discipline_id, d.name AS discipline_name,
               te.id AS teacher_id, te.name AS teacher_name
        FROM teaching t
        JOIN discipline d ON d.id = t.discipline_id
        JOIN teacher te   ON te.id = t.teacher_id
        WHERE d.course_id = :cid
          AND t.semester_id = :sid
          AND t.school_year_id = :yid
        ORDER BY d.name, te.name
    """), params).mappings().all()

    disciplines: List[NamedItem] = []
    teachers: Dict[int, List[NamedItem]] = {}
    for r in rows:
        did = r["discipline_id"]
        if did not in teachers:
            disciplines.append(NamedItem(id=did, name=r["discipline_name"]))
            teachers[did] = []
        # the same teacher can appear once per class group
        if all(t.id != r["teacher_id"] for t in teachers[did]):
            teachers[did].append(NamedItem(id=r["teacher_id"], name=r["teacher_name"]))

    questions = db.execute(text("""
        SELECT id, code, text, area
        FROM survey_question
        ORDER BY position, id
    """)).mappings().all()

    return SurveyFormOut(
        course_id=course_id,
        semester_id=semester_id,
        school_year_id=school_year_id,
        disciplines=disciplines,
        teachers_by_discipline=teachers,
        questions=[QuestionItem(**dict(q)) for q in questions],
    )
