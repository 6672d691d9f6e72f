# teacher_eval/services/backups.py
"""
File backups of the SQLite database.

Backups are consistent copies taken with SQLite's online backup API,
named backup_YYYYMMDD_HHMMSS[_n].sqlite (or .sqlite.gz) and pruned to the
N most recent. Restore copies every application table from an uploaded
database into the live one inside a single transaction.
"""
from __future__ import annotations

import gzip
import logging
import re
import shutil
import sqlite3
import tempfile
import zlib
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from sqlalchemy.engine import Engine

from teacher_eval.core.config import Settings
from teacher_eval.core.exceptions import BackupError, InputError, NotFound
from teacher_eval.db.base import ALL_TABLES

logger = logging.getLogger(__name__)

BACKUP_NAME_RE = re.compile(r"^backup_(\d{8}_\d{6})(?:_(\d+))?\.sqlite(?:\.gz)?$")
GZIP_MAGIC = b"\x1f\x8b"
SQLITE_MAGIC = b"SQLite format 3\x00"


@dataclass
class BackupInfo:
    name: str
    size: int
    created_at: datetime
    compressed: bool


def _sort_key(path: Path):
    # timestamp from the name, then the same-second counter
    m = BACKUP_NAME_RE.match(path.name)
    return m.group(1), int(m.group(2) or 0)


def _info(path: Path) -> BackupInfo:
    st = path.stat()
    return BackupInfo(
        name=path.name,
        size=st.st_size,
        created_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        compressed=path.name.endswith(".gz"),
    )


class BackupManager:
    def __init__(self, settings: Settings, engine: Engine):
        self.settings = settings
        self.engine = engine
        self.directory = settings.backup_path

    # -------------------- listing -------------------- #

    def _files(self) -> List[Path]:
        if not self.directory.is_dir():
            return []
        files = [p for p in self.directory.iterdir() if p.is_file() and BACKUP_NAME_RE.match(p.name)]
        return sorted(files, key=_sort_key, reverse=True)

    def list_backups(self) -> List[BackupInfo]:
        return [_info(p) for p in self._files()]

    def path_for(self, name: str) -> Path:
        """Resolves a backup by name; anything else is NotFound."""
        if not BACKUP_NAME_RE.match(name or ""):
            raise NotFound(f"Backup not found: {name}")
        path = self.directory / name
        if not path.is_file():
            raise NotFound(f"Backup not found: {name}")
        return path

    # -------------------- create / prune -------------------- #

    def _target(self, compress: bool) -> Path:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        suffix = ".sqlite.gz" if compress else ".sqlite"
        # backups in the same second get a counter above every one already
        # used in that second, so a pruned name is never handed out again
        counters = [_sort_key(p)[1] for p in self._files() if _sort_key(p)[0] == stamp]
        if not counters:
            return self.directory / f"backup_{stamp}{suffix}"
        return self.directory / f"backup_{stamp}_{max(counters) + 1}{suffix}"

    def _copy_live(self, dest: Path) -> None:
        raw = self.engine.raw_connection()
        try:
            target = sqlite3.connect(str(dest))
            try:
                raw.driver_connection.backup(target)
            finally:
                target.close()
        finally:
            raw.close()

    def create(self, compress: Optional[bool] = None, prune: bool = True) -> BackupInfo:
        if compress is None:
            compress = self.settings.BACKUP_COMPRESS
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            target = self._target(compress)
            if compress:
                with tempfile.TemporaryDirectory() as tmp:
                    plain = Path(tmp) / "copy.sqlite"
                    self._copy_live(plain)
                    with open(plain, "rb") as src, gzip.open(target, "wb") as dst:
                        shutil.copyfileobj(src, dst)
            else:
                self._copy_live(target)
        except (OSError, sqlite3.Error) as e:
            logger.exception("Backup failed")
            raise BackupError(f"Backup failed: {e}")

        info = _info(target)
        logger.info("Backup created: %s", target.name)
        if prune:
            removed = self.prune()
            if target.name in removed:
                raise BackupError(f"Backup {target.name} was pruned right after creation")
        return info

    def prune(self, keep: Optional[int] = None) -> List[str]:
        """Deletes all but the `keep` most recent backups."""
        if keep is None:
            keep = self.settings.BACKUP_KEEP
        if keep < 1:
            raise InputError("keep must be at least 1")
        removed = []
        for path in self._files()[keep:]:
            try:
                path.unlink()
            except OSError as e:
                raise BackupError(f"Could not delete {path.name}: {e}")
            removed.append(path.name)
        if removed:
            logger.info("Pruned %d old backups", len(removed))
        return removed

    # -------------------- restore -------------------- #

    def _validate_upload(self, path: Path) -> None:
        with open(path, "rb") as f:
            if f.read(len(SQLITE_MAGIC)) != SQLITE_MAGIC:
                raise InputError("Uploaded file is not a SQLite database")
        try:
            conn = sqlite3.connect(f"file:{path}?mode=ro", uri=True)
            try:
                names = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise InputError(f"Uploaded database cannot be read: {e}")
        missing = [t for t in ALL_TABLES if t not in names]
        if missing:
            raise InputError(f"Uploaded database is missing tables: {', '.join(missing)}")

    def _replace_data(self, source: Path) -> None:
        """
        ATTACH the uploaded copy and replace every table's rows in one
        transaction. Any error rolls back and leaves the live data as is.
        """
        raw = self.engine.raw_connection()
        conn = raw.driver_connection
        try:
            conn.execute("PRAGMA foreign_keys=OFF")
            conn.execute("ATTACH DATABASE ? AS src", (str(source),))
            try:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    for table in ALL_TABLES:
                        conn.execute(f'DELETE FROM main."{table}"')
                    for table in reversed(ALL_TABLES):
                        cols = [r[1] for r in conn.execute(f'PRAGMA main.table_info("{table}")')]
                        src_cols = {r[1] for r in conn.execute(f'PRAGMA src.table_info("{table}")')}
                        common = ", ".join(f'"{c}"' for c in cols if c in src_cols)
                        conn.execute(
                            f'INSERT INTO main."{table}" ({common}) SELECT {common} FROM src."{table}"'
                        )
                    # foreign keys are off during the copy, so dangling rows are caught here
                    dangling = conn.execute("PRAGMA main.foreign_key_check").fetchall()
                    if dangling:
                        tables = sorted({row[0] for row in dangling})
                        raise InputError(f"Uploaded database has broken references in: {', '.join(tables)}")
                    conn.execute("COMMIT")
                except Exception:
                    conn.execute("ROLLBACK")
                    raise
            finally:
                conn.execute("DETACH DATABASE src")
                conn.execute("PRAGMA foreign_keys=ON")
        finally:
            raw.close()

    def restore(self, content: bytes) -> BackupInfo:
        """
        Replaces the live data with an uploaded .sqlite (or gzip of one).
        A safety backup of the current data is taken first.
        """
        if not content:
            raise InputError("Empty upload")
        with tempfile.TemporaryDirectory() as tmp:
            upload = Path(tmp) / "upload.sqlite"
            try:
                if content[:2] == GZIP_MAGIC:
                    content = gzip.decompress(content)
                upload.write_bytes(content)
            except (OSError, EOFError, zlib.error) as e:
                raise InputError(f"Could not read upload: {e}")

            self._validate_upload(upload)
            safety = self.create(prune=False)
            try:
                self._replace_data(upload)
            except sqlite3.Error as e:
                logger.exception("Restore failed")
                raise BackupError(f"Restore failed, live data unchanged: {e}")

        logger.info("Database restored from upload (safety backup %s)", safety.name)
        return safety
