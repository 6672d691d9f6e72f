# teacher_eval/services/filters.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Query as ORMQuery, Session

from teacher_eval.models.catalog import (
    Course, Discipline, Teacher, Semester, SchoolYear, ClassGroup, Teaching,
)


class ReportFilters(BaseModel):
    """
    Optional dimensions shared by every report. An unset dimension matches
    any value; a set one becomes an equality predicate.
    """
    course_id: Optional[int] = None
    semester_id: Optional[int] = None
    discipline_id: Optional[int] = None
    teacher_id: Optional[int] = None
    school_year_id: Optional[int] = None
    class_group_id: Optional[int] = None

    @field_validator("*", mode="before")
    @classmethod
    def _blank_is_unset(cls, v):
        # selects post "" for "all"
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def predicates(self) -> List[Any]:
        """Conditions over teaching/discipline for the filters that are set."""
        columns = {
            "course_id": Discipline.course_id,
            "semester_id": Teaching.semester_id,
            "discipline_id": Teaching.discipline_id,
            "teacher_id": Teaching.teacher_id,
            "school_year_id": Teaching.school_year_id,
            "class_group_id": Teaching.class_group_id,
        }
        conds = []
        for name, column in columns.items():
            value = getattr(self, name)
            if value is not None:
                conds.append(column == value)
        return conds

    def apply(self, query: ORMQuery) -> ORMQuery:
        """
        Adds the predicates to a query that already joins Teaching and
        Discipline.
        """
        conds = self.predicates()
        return query.filter(*conds) if conds else query


def filter_labels(db: Session, filters: ReportFilters) -> Dict[str, str]:
    """Human labels of the dimensions that are set, for report headers."""
    lookups = (
        ("course_id", Course, "Curso"),
        ("semester_id", Semester, "Semestre"),
        ("school_year_id", SchoolYear, "Ano lectivo"),
        ("class_group_id", ClassGroup, "Turma"),
        ("discipline_id", Discipline, "Disciplina"),
        ("teacher_id", Teacher, "Docente"),
    )
    labels: Dict[str, str] = {}
    for attr, model, label in lookups:
        pk = getattr(filters, attr)
        if pk is None:
            continue
        row = db.get(model, pk)
        if row is not None:
            labels[label] = row.name
    return labels
