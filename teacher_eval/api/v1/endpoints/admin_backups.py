# teacher_eval/api/v1/endpoints/admin_backups.py
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import FileResponse

from teacher_eval.api.deps.admin import require_admin, require_admin_strict
from teacher_eval.api.deps.reports import get_backups
from teacher_eval.core.exceptions import InputError
from teacher_eval.schemas.backups import BackupListOut, BackupOut, CleanupOut, RestoreOut
from teacher_eval.services.backups import BackupManager

router = APIRouter(prefix="/backups", tags=["admin/backups"])


@router.post("", response_model=BackupOut, status_code=201)
def create_backup(
    compress: Optional[bool] = Query(None, description="gzip the copy; defaults to BACKUP_COMPRESS"),
    backups: BackupManager = Depends(get_backups),
    _admin=Depends(require_admin),
):
    return BackupOut(**asdict(backups.create(compress=compress)))


@router.get("", response_model=BackupListOut)
def list_backups(backups: BackupManager = Depends(get_backups), _admin=Depends(require_admin)):
    return BackupListOut(
        directory=str(backups.directory),
        keep=backups.settings.BACKUP_KEEP,
        items=[BackupOut(**asdict(b)) for b in backups.list_backups()],
    )


@router.get("/{name}")
def download_backup(name: str, backups: BackupManager = Depends(get_backups), _admin=Depends(require_admin)):
    path = backups.path_for(name)
    media = "application/gzip" if name.endswith(".gz") else "application/vnd.sqlite3"
    return FileResponse(path, media_type=media, filename=name)


@router.post("/cleanup", response_model=CleanupOut)
def cleanup_backups(
    keep: Optional[int] = Query(None, description="How many recent backups to keep"),
    backups: BackupManager = Depends(get_backups),
    _admin=Depends(require_admin),
):
    if keep is None:
        keep = backups.settings.BACKUP_KEEP
    return CleanupOut(keep=keep, removed=backups.prune(keep))


# no get_db here: the restore rewrites the tables under an exclusive lock
@router.post("/restore", response_model=RestoreOut)
async def restore_backup(
    file: UploadFile = File(...),
    backups: BackupManager = Depends(get_backups),
    _admin=Depends(require_admin_strict),
):
    try:
        content = await file.read()
    finally:
        await file.close()
    if not content:
        raise InputError("Empty upload")
    safety = backups.restore(content)
    return RestoreOut(safety_backup=BackupOut(**asdict(safety)))
