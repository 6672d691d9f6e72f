from datetime import datetime
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field

class QuestionAvgOut(BaseModel):
    question_id: int
    code: str
    text: str
    area: str
    n: int
    mean: Optional[float] = None

class AreaAvgOut(BaseModel):
    area: str
    n_questions: int
    mean: Optional[float] = None

class CommentOut(BaseModel):
    comment: str
    submitted_at: datetime

class DailyCountOut(BaseModel):
    day: str               # "YYYY-MM-DD"
    count: int

class StatsOut(BaseModel):
    # response_count/threshold are always present; the rest only when
    # the sample is large enough
    response_count: int
    threshold: int
    insufficient_sample: bool = False
    overall: Optional[float] = None
    questions: List[QuestionAvgOut] = Field(default_factory=list)
    areas: List[AreaAvgOut] = Field(default_factory=list)
    comments: List[CommentOut] = Field(default_factory=list)

class DashboardOut(BaseModel):
    response_count: int
    threshold: int
    insufficient_sample: bool = False
    teachers_evaluated: Optional[int] = None
    overall: Optional[float] = None
    questions: List[QuestionAvgOut] = Field(default_factory=list)
    areas: List[AreaAvgOut] = Field(default_factory=list)
    timeseries: List[DailyCountOut] = Field(default_factory=list)
    comments: List[CommentOut] = Field(default_factory=list)
    charts: Dict[str, Any] = Field(default_factory=dict)

# --- catalogs for the dashboard filters ---
class FilterItem(BaseModel):
    id: int
    name: str

class DisciplineFilterItem(FilterItem):
    course_id: int

class FiltersOut(BaseModel):
    courses: List[FilterItem] = Field(default_factory=list)
    semesters: List[FilterItem] = Field(default_factory=list)
    disciplines: List[DisciplineFilterItem] = Field(default_factory=list)
    teachers: List[FilterItem] = Field(default_factory=list)
    school_years: List[FilterItem] = Field(default_factory=list)
    class_groups: List[FilterItem] = Field(default_factory=list)
