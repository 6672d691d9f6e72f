# teacher_eval/api/deps/reports.py
from typing import Optional

from fastapi import Query, Request
from pydantic import ValidationError

from teacher_eval.core.exceptions import InputError
from teacher_eval.services.backups import BackupManager
from teacher_eval.services.filters import ReportFilters


def report_filters(
    course_id: Optional[str] = Query(None),
    semester_id: Optional[str] = Query(None),
    discipline_id: Optional[str] = Query(None),
    teacher_id: Optional[str] = Query(None),
    school_year_id: Optional[str] = Query(None),
    class_group_id: Optional[str] = Query(None),
) -> ReportFilters:
    """Filter query string; '' (an untouched "all" option) means unset."""
    try:
        return ReportFilters(
            course_id=course_id,
            semester_id=semester_id,
            discipline_id=discipline_id,
            teacher_id=teacher_id,
            school_year_id=school_year_id,
            class_group_id=class_group_id,
        )
    except ValidationError:
        raise InputError("Filter values must be numeric ids")


def anonymity_threshold(request: Request) -> int:
    return request.app.state.settings.ANONYMITY_THRESHOLD


def get_backups(request: Request) -> BackupManager:
    return BackupManager(request.app.state.settings, request.app.state.db.engine)
