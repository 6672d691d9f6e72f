from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


# ---------- Inputs ----------

class SubmitIn(BaseModel):
    # Required ones are checked by the service so a missing one is a 400
    course_id: Optional[int] = None
    semester_id: Optional[int] = None
    discipline_id: Optional[int] = None
    teacher_id: Optional[int] = None
    school_year_id: Optional[int] = None
    class_group_id: Optional[int] = None
    # question id -> 0|1|2; invalid entries are skipped, not rejected
    answers: Dict[str, Any] = Field(default_factory=dict)
    comment: Optional[str] = Field(None, max_length=4000)

    @field_validator("course_id", "semester_id", "discipline_id", "teacher_id",
                     "school_year_id", "class_group_id", mode="before")
    @classmethod
    def _blank_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


# ---------- Outputs ----------

class SubmitOut(BaseModel):
    response_id: int
    answers_saved: int
    answers_skipped: int


class NamedItem(BaseModel):
    id: int
    name: str


class QuestionItem(BaseModel):
    id: int
    code: str
    text: str
    area: str


class ShiftOut(BaseModel):
    key: str            # day | evening
    label: str
    class_groups: List[NamedItem] = Field(default_factory=list)


class SurveyOptionsOut(BaseModel):
    courses: List[NamedItem] = Field(default_factory=list)
    semesters: List[NamedItem] = Field(default_factory=list)
    school_years: List[NamedItem] = Field(default_factory=list)
    shifts: List[ShiftOut] = Field(default_factory=list)


class SurveyFormOut(BaseModel):
    course_id: int
    semester_id: int
    school_year_id: int
    disciplines: List[NamedItem] = Field(default_factory=list)
    # discipline id -> teachers giving it in that period
    teachers_by_discipline: Dict[int, List[NamedItem]] = Field(default_factory=dict)
    questions: List[QuestionItem] = Field(default_factory=list)
    scale: List[int] = Field(default_factory=lambda: [0, 1, 2])
