# teacher_eval/api/v1/endpoints/responses.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from teacher_eval.db.session import get_db
from teacher_eval.schemas.survey import SubmitIn, SubmitOut
from teacher_eval.services.intake import Submission, submit_survey

router = APIRouter(prefix="/survey", tags=["survey"])


@router.post("/submit", response_model=SubmitOut, status_code=status.HTTP_201_CREATED)
def submit(data: SubmitIn, db: Session = Depends(get_db)):
    """
    Anonymous submission: one response plus one answer per valid
    (question, 0..2) pair. Missing course/semester/discipline/teacher -> 400.
    """
    result = submit_survey(db, Submission(**data.model_dump()))
    return SubmitOut(
        response_id=result.response_id,
        answers_saved=result.answers_saved,
        answers_skipped=result.answers_skipped,
    )
