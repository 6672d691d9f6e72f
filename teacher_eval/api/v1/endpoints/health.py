# teacher_eval/api/v1/endpoints/health.py
from fastapi import APIRouter, HTTPException, Request

router = APIRouter(tags=["health"])

@router.get("/healthz")
def healthz():
    return {"status": "ok"}

@router.get("/health/db")
def health_db(request: Request):
    if not request.app.state.db.check_connection():
        raise HTTPException(status_code=503, detail="Database unavailable")
    return {"db": "ok"}
