"""
Survey intake: catalogs for the form, submission validation and storage
"""
import pytest
from sqlalchemy.exc import IntegrityError

from teacher_eval.core.exceptions import InputError
from teacher_eval.models.catalog import Teaching
from teacher_eval.models.survey import SurveyAnswer, SurveyResponse
from teacher_eval.services.intake import Submission, ensure_teaching, submit_survey


class TestEnsureTeaching:
    def test_same_tuple_returns_same_row(self, db, teaching):
        first, created = ensure_teaching(
            db,
            teacher_id=teaching["teacher_id"],
            discipline_id=teaching["discipline_id"],
            semester_id=teaching["semester_id"],
        )
        again, created_again = ensure_teaching(
            db,
            teacher_id=teaching["teacher_id"],
            discipline_id=teaching["discipline_id"],
            semester_id=teaching["semester_id"],
        )
        assert created is True
        assert created_again is False
        assert first == again

    def test_existing_seeded_teaching_is_reused(self, db, teaching):
        before = db.query(Teaching).count()
        _, created = ensure_teaching(
            db,
            teacher_id=teaching["teacher_id"],
            discipline_id=teaching["discipline_id"],
            semester_id=teaching["semester_id"],
            school_year_id=teaching["school_year_id"],
            class_group_id=teaching["class_group_id"],
        )
        assert created is False
        assert db.query(Teaching).count() == before


class TestSubmitSurvey:
    def test_stores_response_and_answers(self, db, teaching, question_ids):
        result = submit_survey(db, Submission(
            **teaching,
            answers={question_ids["Q1"]: 2, question_ids["Q2"]: 0, question_ids["Q3"]: 1},
            comment="  Boas aulas  ",
        ))
        assert result.answers_saved == 3
        assert result.answers_skipped == 0

        response = db.get(SurveyResponse, result.response_id)
        assert response.comment == "Boas aulas"
        assert sorted(a.value for a in response.answers) == [0, 1, 2]

    def test_invalid_answers_are_skipped(self, db, teaching, question_ids):
        result = submit_survey(db, Submission(
            **teaching,
            answers={
                str(question_ids["Q1"]): "2",
                f"q_{question_ids['Q2']}": 1,
                str(question_ids["Q3"]): 5,
                "99999": 1,
                "not-a-question": 0,
                str(question_ids["Q4"]): "\u00b2",
                str(question_ids["Q5"]): "--1",
                "\u00b2": 1,
            },
        ))
        assert result.answers_saved == 2
        assert result.answers_skipped == 6

    def test_no_valid_answer_is_rejected(self, db, teaching, question_ids):
        with pytest.raises(InputError):
            submit_survey(db, Submission(**teaching, answers={question_ids["Q1"]: 3}))
        assert db.query(SurveyResponse).count() == 0

    @pytest.mark.parametrize("field", ["course_id", "semester_id", "discipline_id", "teacher_id"])
    def test_missing_required_dimension(self, db, teaching, question_ids, field):
        data = dict(teaching, **{field: None})
        with pytest.raises(InputError) as exc:
            submit_survey(db, Submission(**data, answers={question_ids["Q1"]: 2}))
        assert field in exc.value.message

    def test_discipline_of_other_course_is_rejected(self, db, teaching, question_ids, other_course_discipline):
        data = dict(teaching, discipline_id=other_course_discipline)
        with pytest.raises(InputError):
            submit_survey(db, Submission(**data, answers={question_ids["Q1"]: 2}))

    def test_unknown_teacher_is_rejected(self, db, teaching, question_ids):
        data = dict(teaching, teacher_id=424242)
        with pytest.raises(InputError):
            submit_survey(db, Submission(**data, answers={question_ids["Q1"]: 2}))

    def test_answer_value_constraint_in_database(self, db, teaching, question_ids):
        result = submit_survey(db, Submission(**teaching, answers={question_ids["Q1"]: 1}))
        db.add(SurveyAnswer(response_id=result.response_id, question_id=question_ids["Q2"], value=3))
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()


class TestSurveyEndpoints:
    def test_options_split_shifts(self, client):
        resp = client.get("/api/v1/survey/options")
        assert resp.status_code == 200
        body = resp.json()
        assert len(body["courses"]) == 3
        shifts = {s["key"]: [c["name"] for c in s["class_groups"]] for s in body["shifts"]}
        assert shifts["day"] == ["Turma A", "Turma B"]
        assert shifts["evening"] == ["Única Pós-laboral"]

    def test_form_requires_period(self, client):
        resp = client.get("/api/v1/survey/form", params={"course_id": 1})
        assert resp.status_code == 400

    def test_form_lists_taught_disciplines(self, client, teaching):
        resp = client.get("/api/v1/survey/form", params={
            "course_id": teaching["course_id"],
            "semester_id": teaching["semester_id"],
            "school_year_id": teaching["school_year_id"],
        })
        assert resp.status_code == 200
        body = resp.json()
        assert teaching["discipline_id"] in [d["id"] for d in body["disciplines"]]
        teachers = body["teachers_by_discipline"][str(teaching["discipline_id"])]
        assert [t["id"] for t in teachers] == [teaching["teacher_id"]]
        assert len(body["questions"]) == 13
        assert body["scale"] == [0, 1, 2]

    def test_submit_created(self, client, teaching, question_ids):
        payload = dict(teaching, answers={str(question_ids["Q1"]): 2, str(question_ids["Q4"]): "x"})
        resp = client.post("/api/v1/survey/submit", json=payload)
        assert resp.status_code == 201
        body = resp.json()
        assert body["answers_saved"] == 1
        assert body["answers_skipped"] == 1
        assert body["response_id"] > 0

    def test_submit_without_course_is_400(self, client, teaching, question_ids):
        payload = dict(teaching, course_id="", answers={str(question_ids["Q1"]): 2})
        resp = client.post("/api/v1/survey/submit", json=payload)
        assert resp.status_code == 400
        assert "course_id" in resp.json()["detail"]
