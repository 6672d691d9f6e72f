"""
Database backups: creation, retention, download and restore
"""
import gzip
import shutil
import sqlite3

import pytest

from teacher_eval.core.exceptions import BackupError, InputError, NotFound
from teacher_eval.models.catalog import Teaching
from teacher_eval.models.survey import SurveyAnswer, SurveyResponse
from teacher_eval.services.backups import BACKUP_NAME_RE, BackupManager
from teacher_eval.services.intake import Submission, submit_survey


@pytest.fixture
def backups(app) -> BackupManager:
    return BackupManager(app.state.settings, app.state.db.engine)


def _tampered_copy(backups: BackupManager, tmp_path, sql: str) -> bytes:
    """Plain backup of the live data with one raw statement applied, checks off"""
    info = backups.create(compress=False, prune=False)
    copy = tmp_path / "tampered.sqlite"
    shutil.copyfile(backups.path_for(info.name), copy)
    conn = sqlite3.connect(str(copy))
    try:
        conn.execute("PRAGMA foreign_keys=OFF")
        conn.execute("PRAGMA ignore_check_constraints=ON")
        conn.execute(sql)
        conn.commit()
    finally:
        conn.close()
    return copy.read_bytes()


class TestBackupManager:
    def test_create_compressed(self, backups):
        info = backups.create()
        assert BACKUP_NAME_RE.match(info.name)
        assert info.compressed is True
        data = gzip.decompress(backups.path_for(info.name).read_bytes())
        assert data.startswith(b"SQLite format 3\x00")

    def test_create_plain(self, backups):
        info = backups.create(compress=False)
        assert info.name.endswith(".sqlite")
        assert backups.path_for(info.name).read_bytes().startswith(b"SQLite format 3\x00")

    def test_same_second_names_are_unique(self, backups):
        names = {backups.create(prune=False).name for _ in range(3)}
        assert len(names) == 3

    def test_retention_keeps_most_recent(self, backups):
        created = [backups.create(prune=False).name for _ in range(5)]
        removed = backups.prune(keep=2)
        assert len(removed) == 3
        assert [b.name for b in backups.list_backups()] == list(reversed(created))[:2]

    def test_create_prunes_to_setting(self, backups):
        for _ in range(5):
            backups.create()
        assert len(backups.list_backups()) == backups.settings.BACKUP_KEEP

    def test_unknown_name(self, backups):
        with pytest.raises(NotFound):
            backups.path_for("backup_20990101_000000.sqlite")
        with pytest.raises(NotFound):
            backups.path_for("../test.sqlite")

    def test_restore_replaces_data(self, backups, db, teaching, question_ids):
        submit_survey(db, Submission(**teaching, answers={question_ids["Q1"]: 2}))
        snapshot = backups.create(compress=False)

        submit_survey(db, Submission(**teaching, answers={question_ids["Q1"]: 1}))
        submit_survey(db, Submission(**teaching, answers={question_ids["Q1"]: 0}))
        assert db.query(SurveyResponse).count() == 3

        safety = backups.restore(backups.path_for(snapshot.name).read_bytes())
        db.expire_all()
        assert db.query(SurveyResponse).count() == 1
        assert safety.name != snapshot.name

    def test_restore_gzip_upload(self, backups, db, teaching, question_ids):
        snapshot = backups.create(compress=True)
        submit_survey(db, Submission(**teaching, answers={question_ids["Q1"]: 2}))

        backups.restore(backups.path_for(snapshot.name).read_bytes())
        db.expire_all()
        assert db.query(SurveyResponse).count() == 0

    def test_restore_rejects_garbage(self, backups):
        with pytest.raises(InputError):
            backups.restore(b"definitely not sqlite")
        assert backups.list_backups() == []

    def test_create_beyond_keep_in_one_second(self, backups):
        keep = backups.settings.BACKUP_KEEP
        for _ in range(keep + 2):
            info = backups.create(compress=False)
            names = [b.name for b in backups.list_backups()]
            assert names[0] == info.name
            assert backups.path_for(info.name).is_file()
        assert len(names) == keep

    def test_restore_rejects_corrupt_gzip(self, backups):
        with pytest.raises(InputError):
            backups.restore(b"\x1f\x8b\x08" + b"not really deflate data" * 4)
        assert backups.list_backups() == []

    def test_restore_with_out_of_range_answer_keeps_live_data(self, backups, db, teaching, question_ids, tmp_path):
        submit_survey(db, Submission(**teaching, answers={question_ids["Q1"]: 2}))
        upload = _tampered_copy(
            backups, tmp_path,
            "INSERT INTO survey_answer (response_id, question_id, value) "
            f"SELECT id, {question_ids['Q2']}, 5 FROM survey_response",
        )
        submit_survey(db, Submission(**teaching, answers={question_ids["Q1"]: 1}))
        teachings = db.query(Teaching).count()

        with pytest.raises(BackupError):
            backups.restore(upload)
        db.expire_all()
        assert db.query(SurveyResponse).count() == 2
        assert db.query(SurveyAnswer).count() == 2
        assert db.query(Teaching).count() == teachings

    def test_restore_with_dangling_reference_keeps_live_data(self, backups, db, teaching, question_ids, tmp_path):
        upload = _tampered_copy(
            backups, tmp_path,
            "INSERT INTO survey_response (teaching_id, submitted_at) VALUES (99999, '2026-01-01 10:00:00')",
        )
        submit_survey(db, Submission(**teaching, answers={question_ids["Q1"]: 1}))

        with pytest.raises(InputError):
            backups.restore(upload)
        db.expire_all()
        assert db.query(SurveyResponse).count() == 1
        assert db.query(SurveyResponse).filter_by(teaching_id=99999).count() == 0


class TestBackupEndpoints:
    def test_create_list_download(self, admin_client):
        resp = admin_client.post("/api/v1/admin/backups")
        assert resp.status_code == 201
        name = resp.json()["name"]

        listing = admin_client.get("/api/v1/admin/backups").json()
        assert listing["keep"] == 3
        assert [b["name"] for b in listing["items"]] == [name]

        download = admin_client.get(f"/api/v1/admin/backups/{name}")
        assert download.status_code == 200
        assert download.content[:2] == b"\x1f\x8b"

    def test_download_unknown_is_404(self, admin_client):
        resp = admin_client.get("/api/v1/admin/backups/backup_20990101_000000.sqlite.gz")
        assert resp.status_code == 404

    def test_cleanup(self, admin_client):
        for _ in range(3):
            admin_client.post("/api/v1/admin/backups", params={"compress": "false"})
        resp = admin_client.post("/api/v1/admin/backups/cleanup", params={"keep": 1})
        assert resp.status_code == 200
        assert len(resp.json()["removed"]) == 2
        assert len(admin_client.get("/api/v1/admin/backups").json()["items"]) == 1

    def test_cleanup_keep_must_be_positive(self, admin_client):
        resp = admin_client.post("/api/v1/admin/backups/cleanup", params={"keep": 0})
        assert resp.status_code == 400

    def test_restore(self, admin_client, teaching, question_ids):
        name = admin_client.post("/api/v1/admin/backups", params={"compress": "false"}).json()["name"]
        content = admin_client.get(f"/api/v1/admin/backups/{name}").content
        admin_client.post("/api/v1/survey/submit", json=dict(teaching, answers={str(question_ids["Q1"]): 2}))

        resp = admin_client.post(
            "/api/v1/admin/backups/restore",
            files={"file": (name, content, "application/octet-stream")},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["restored"] is True
        assert body["safety_backup"]["name"] != name
        assert admin_client.get("/api/v1/admin/reports/stats").json()["response_count"] == 0

    def test_restore_corrupt_gzip_is_400(self, admin_client):
        resp = admin_client.post(
            "/api/v1/admin/backups/restore",
            files={"file": ("x.sqlite.gz", b"\x1f\x8b\x08" + b"\x00garbage" * 8, "application/octet-stream")},
        )
        assert resp.status_code == 400

    def test_create_past_keep_returns_listed_backup(self, admin_client):
        for _ in range(5):
            resp = admin_client.post("/api/v1/admin/backups", params={"compress": "false"})
            assert resp.status_code == 201
            items = admin_client.get("/api/v1/admin/backups").json()["items"]
            assert items[0]["name"] == resp.json()["name"]
        assert len(items) == 3
