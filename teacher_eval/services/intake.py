# teacher_eval/services/intake.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from teacher_eval.core.exceptions import InputError
from teacher_eval.models.catalog import (
    Course, Discipline, Teacher, Semester, SchoolYear, ClassGroup, Teaching,
)
from teacher_eval.models.survey import ANSWER_VALUES, SurveyQuestion, SurveyResponse, SurveyAnswer

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("course_id", "semester_id", "discipline_id", "teacher_id")


@dataclass
class Submission:
    course_id: Optional[int] = None
    semester_id: Optional[int] = None
    discipline_id: Optional[int] = None
    teacher_id: Optional[int] = None
    school_year_id: Optional[int] = None
    class_group_id: Optional[int] = None
    answers: Optional[Mapping[Any, Any]] = None
    comment: Optional[str] = None


@dataclass
class SubmitResult:
    response_id: int
    teaching_id: int
    answers_saved: int
    answers_skipped: int


def ensure_teaching(
    db: Session,
    *,
    teacher_id: int,
    discipline_id: int,
    semester_id: int,
    school_year_id: Optional[int] = None,
    class_group_id: Optional[int] = None,
) -> Tuple[int, bool]:
    """
    Lookup-or-create of the teaching tuple. The insert is ignored when the
    unique index already holds the tuple, so repeating it never duplicates.
    Returns (teaching_id, created). Does not commit.
    """
    values = {
        "teacher_id": teacher_id,
        "discipline_id": discipline_id,
        "semester_id": semester_id,
        "school_year_id": school_year_id,
        "class_group_id": class_group_id,
    }
    result = db.execute(sqlite_insert(Teaching).values(**values).on_conflict_do_nothing())

    teaching_id = db.query(Teaching.id).filter(
        Teaching.teacher_id == teacher_id,
        Teaching.discipline_id == discipline_id,
        Teaching.semester_id == semester_id,
        func.coalesce(Teaching.school_year_id, 0) == (school_year_id or 0),
        func.coalesce(Teaching.class_group_id, 0) == (class_group_id or 0),
    ).scalar()
    return teaching_id, bool(result.rowcount)


def _parse_answer(raw: Any) -> Optional[int]:
    """0, 1, 2 (int or numeric string) or None."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, str) and raw.strip().isdecimal():
        try:
            value = int(raw.strip())
        except ValueError:
            return None
    else:
        return None
    return value if value in ANSWER_VALUES else None


def _parse_question_id(raw: Any) -> Optional[int]:
    # accepts 3, "3" and the form field name "q_3"
    text = str(raw).strip()
    if text.startswith("q_"):
        text = text[2:]
    if not text.isdecimal():
        return None
    try:
        return int(text)
    except ValueError:
        return None


def _require(db: Session, model, pk: Optional[int], label: str):
    row = db.get(model, pk)
    if row is None:
        raise InputError(f"Unknown {label}: {pk}")
    return row


def validate_dimensions(db: Session, sub: Submission) -> None:
    missing = [name for name in REQUIRED_FIELDS if getattr(sub, name) in (None, "")]
    if missing:
        raise InputError(f"Missing required fields: {', '.join(missing)}")

    _require(db, Course, sub.course_id, "course")
    _require(db, Semester, sub.semester_id, "semester")
    _require(db, Teacher, sub.teacher_id, "teacher")
    discipline = _require(db, Discipline, sub.discipline_id, "discipline")
    if discipline.course_id != sub.course_id:
        raise InputError("Discipline does not belong to the selected course")
    if sub.school_year_id is not None:
        _require(db, SchoolYear, sub.school_year_id, "school year")
    if sub.class_group_id is not None:
        _require(db, ClassGroup, sub.class_group_id, "class group")


def clean_answers(db: Session, answers: Optional[Mapping[Any, Any]]) -> tuple[Dict[int, int], int]:
    """
    Keeps answers for known questions with a value in {0,1,2};
    everything else is dropped and counted.
    """
    known = {qid for (qid,) in db.query(SurveyQuestion.id).all()}
    kept: Dict[int, int] = {}
    skipped = 0
    for raw_qid, raw_value in (answers or {}).items():
        qid = _parse_question_id(raw_qid)
        value = _parse_answer(raw_value)
        if qid is None or qid not in known or value is None:
            skipped += 1
            continue
        kept[qid] = value
    return kept, skipped


def submit_survey(db: Session, sub: Submission) -> SubmitResult:
    """
    Stores one anonymous response and its answers in a single transaction.
    Raises InputError before writing anything when the request is unusable.
    """
    validate_dimensions(db, sub)
    kept, skipped = clean_answers(db, sub.answers)
    if not kept:
        raise InputError("No valid answers (each answer must be 0, 1 or 2)")

    comment = (sub.comment or "").strip() or None
    try:
        teaching_id, _ = ensure_teaching(
            db,
            teacher_id=sub.teacher_id,
            discipline_id=sub.discipline_id,
            semester_id=sub.semester_id,
            school_year_id=sub.school_year_id,
            class_group_id=sub.class_group_id,
        )
        response = SurveyResponse(
            teaching_id=teaching_id,
            submitted_at=datetime.now(timezone.utc).replace(tzinfo=None),
            comment=comment,
        )
        db.add(response)
        db.flush()
        db.add_all(
            SurveyAnswer(response_id=response.id, question_id=qid, value=value)
            for qid, value in sorted(kept.items())
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Stored response %s for teaching %s (%d answers, %d skipped)",
                response.id, teaching_id, len(kept), skipped)
    return SubmitResult(
        response_id=response.id,
        teaching_id=teaching_id,
        answers_saved=len(kept),
        answers_skipped=skipped,
    )
