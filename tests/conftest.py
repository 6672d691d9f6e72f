"""
Teacher evaluation - test configuration and fixtures
"""
from typing import Dict, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from teacher_eval.core.config import Settings
from teacher_eval.main import create_app
from teacher_eval.models.catalog import Course, Discipline, Teaching
from teacher_eval.models.survey import SurveyQuestion

ADMIN_PASSWORD = "test-admin-password"
SESSION_SECRET = "test-session-secret-with-at-least-32-bytes"


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        ENV="dev",
        LOG_LEVEL="WARNING",
        DATABASE_URL=f"sqlite:///{tmp_path / 'test.sqlite'}",
        BACKUP_DIR=str(tmp_path / "backups"),
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        SESSION_SECRET=SESSION_SECRET,
        ANONYMITY_THRESHOLD=1,
        BACKUP_KEEP=3,
        SEED_ON_STARTUP=True,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def app(settings):
    """Fresh app on a temporary, seeded SQLite file"""
    application = create_app(settings)
    yield application
    application.state.db.dispose()


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def admin_client(app) -> TestClient:
    """Client carrying the admin cookie"""
    c = TestClient(app)
    resp = c.post("/api/v1/auth/login", json={"password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return c


@pytest.fixture
def db(app) -> Generator[Session, None, None]:
    session = app.state.db.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def teaching(db) -> Dict[str, int]:
    """Dimensions of the first seeded teaching, in submission shape"""
    t = db.query(Teaching).order_by(Teaching.id).first()
    return {
        "course_id": t.discipline.course_id,
        "semester_id": t.semester_id,
        "discipline_id": t.discipline_id,
        "teacher_id": t.teacher_id,
        "school_year_id": t.school_year_id,
        "class_group_id": t.class_group_id,
    }


@pytest.fixture
def question_ids(db) -> Dict[str, int]:
    """Question code -> id"""
    return {code: qid for qid, code in db.query(SurveyQuestion.id, SurveyQuestion.code).all()}


@pytest.fixture
def other_course_discipline(db, teaching) -> int:
    """A discipline that does not belong to the teaching's course"""
    return (
        db.query(Discipline.id)
        .join(Course, Course.id == Discipline.course_id)
        .filter(Course.id != teaching["course_id"])
        .first()[0]
    )
