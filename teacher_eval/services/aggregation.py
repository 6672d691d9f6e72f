# teacher_eval/services/aggregation.py
"""
Read-only statistics over survey answers.

Every function takes a ReportFilters and only sees responses whose teaching
matches it. Per-area scores are the plain mean of the per-question means of
that area, so each question weighs the same whatever its answer count.
Nothing numeric leaves build_stats/build_dashboard when the matching
response count is below the anonymity threshold.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Union

from sqlalchemy import func
from sqlalchemy.orm import Session

from teacher_eval.models.catalog import Teaching, Discipline
from teacher_eval.models.survey import SurveyQuestion, SurveyResponse, SurveyAnswer
from teacher_eval.services.filters import ReportFilters

DASHBOARD_COMMENTS = 12


@dataclass
class QuestionAverage:
    question_id: int
    code: str
    text: str
    area: str
    n: int
    mean: Optional[float] = None


@dataclass
class AreaAverage:
    area: str
    n_questions: int
    mean: Optional[float] = None


@dataclass
class CommentItem:
    comment: str
    submitted_at: datetime


@dataclass
class DailyCount:
    day: str
    count: int


@dataclass
class InsufficientSample:
    count: int
    threshold: int


@dataclass
class StatsResult:
    count: int
    threshold: int
    questions: List[QuestionAverage] = field(default_factory=list)
    areas: List[AreaAverage] = field(default_factory=list)
    comments: List[CommentItem] = field(default_factory=list)
    overall: Optional[float] = None


@dataclass
class DashboardResult:
    count: int
    threshold: int
    teachers_evaluated: int
    overall: Optional[float]
    questions: List[QuestionAverage]
    areas: List[AreaAverage]
    timeseries: List[DailyCount]
    comments: List[CommentItem]


# -------------------- queries -------------------- #

def _responses(db: Session, filters: ReportFilters, *columns):
    q = (
        db.query(*columns)
        .select_from(SurveyResponse)
        .join(Teaching, Teaching.id == SurveyResponse.teaching_id)
        .join(Discipline, Discipline.id == Teaching.discipline_id)
    )
    return filters.apply(q)


def _mean(values: List[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def response_count(db: Session, filters: ReportFilters) -> int:
    return int(_responses(db, filters, func.count(SurveyResponse.id)).scalar() or 0)


def teacher_count(db: Session, filters: ReportFilters) -> int:
    return int(_responses(db, filters, func.count(func.distinct(Teaching.teacher_id))).scalar() or 0)


def question_averages(db: Session, filters: ReportFilters) -> List[QuestionAverage]:
    """
    One row per question, in form order. Questions without matching answers
    are kept with n=0 and mean=None.
    """
    agg_q = (
        db.query(SurveyAnswer.question_id, func.count(SurveyAnswer.id), func.avg(SurveyAnswer.value))
        .join(SurveyResponse, SurveyResponse.id == SurveyAnswer.response_id)
        .join(Teaching, Teaching.id == SurveyResponse.teaching_id)
        .join(Discipline, Discipline.id == Teaching.discipline_id)
    )
    agg_q = filters.apply(agg_q).group_by(SurveyAnswer.question_id)
    agg = {qid: (int(n), float(avg) if avg is not None else None) for qid, n, avg in agg_q.all()}

    rows = []
    questions = db.query(SurveyQuestion).order_by(SurveyQuestion.position, SurveyQuestion.id).all()
    for q in questions:
        n, mean = agg.get(q.id, (0, None))
        rows.append(QuestionAverage(
            question_id=q.id, code=q.code, text=q.text, area=q.area, n=n, mean=mean,
        ))
    return rows


def area_averages(questions: List[QuestionAverage]) -> List[AreaAverage]:
    """Mean of the per-question means in each area, areas in form order."""
    by_area: Dict[str, List[QuestionAverage]] = {}
    for q in questions:
        by_area.setdefault(q.area, []).append(q)

    return [
        AreaAverage(
            area=area,
            n_questions=len(items),
            mean=_mean([q.mean for q in items if q.mean is not None]),
        )
        for area, items in by_area.items()
    ]


def overall_average(questions: List[QuestionAverage]) -> Optional[float]:
    return _mean([q.mean for q in questions if q.mean is not None])


def comments(db: Session, filters: ReportFilters, limit: Optional[int] = None) -> List[CommentItem]:
    q = _responses(db, filters, SurveyResponse.comment, SurveyResponse.submitted_at).filter(
        SurveyResponse.comment.isnot(None),
        SurveyResponse.comment != "",
    ).order_by(SurveyResponse.submitted_at.desc(), SurveyResponse.id.desc())
    if limit:
        q = q.limit(limit)
    return [CommentItem(comment=c, submitted_at=ts) for c, ts in q.all()]


def daily_counts(db: Session, filters: ReportFilters) -> List[DailyCount]:
    day = func.date(SurveyResponse.submitted_at)
    q = (
        _responses(db, filters, day.label("day"), func.count(SurveyResponse.id))
        .group_by(day)
        .order_by(day)
    )
    return [DailyCount(day=str(d), count=int(c)) for d, c in q.all()]


# -------------------- gated results -------------------- #

def build_stats(db: Session, filters: ReportFilters, threshold: int) -> Union[StatsResult, InsufficientSample]:
    count = response_count(db, filters)
    if count < threshold:
        return InsufficientSample(count=count, threshold=threshold)

    questions = question_averages(db, filters)
    return StatsResult(
        count=count,
        threshold=threshold,
        questions=questions,
        areas=area_averages(questions),
        comments=comments(db, filters),
        overall=overall_average(questions),
    )


def build_dashboard(db: Session, filters: ReportFilters, threshold: int) -> Union[DashboardResult, InsufficientSample]:
    count = response_count(db, filters)
    if count < threshold:
        return InsufficientSample(count=count, threshold=threshold)

    questions = question_averages(db, filters)
    return DashboardResult(
        count=count,
        threshold=threshold,
        teachers_evaluated=teacher_count(db, filters),
        overall=overall_average(questions),
        questions=questions,
        areas=area_averages(questions),
        timeseries=daily_counts(db, filters),
        comments=comments(db, filters, limit=DASHBOARD_COMMENTS),
    )


def chart_payloads(result: DashboardResult) -> dict:
    """Chart.js-shaped data for the dashboard page."""
    return {
        "areas": {
            "type": "radar",
            "labels": [a.area for a in result.areas],
            "datasets": [{"label": "Média (0-2)", "data": [a.mean for a in result.areas]}],
        },
        "questions": {
            "type": "bar",
            "labels": [q.code for q in result.questions],
            "datasets": [{"label": "Média (0-2)", "data": [q.mean for q in result.questions]}],
        },
        "timeseries": {
            "type": "line",
            "labels": [d.day for d in result.timeseries],
            "datasets": [{"label": "Respostas", "data": [d.count for d in result.timeseries]}],
        },
    }
