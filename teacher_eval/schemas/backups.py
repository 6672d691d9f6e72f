from datetime import datetime
from typing import List
from pydantic import BaseModel, Field

class BackupOut(BaseModel):
    name: str
    size: int
    created_at: datetime
    compressed: bool

class BackupListOut(BaseModel):
    directory: str
    keep: int
    items: List[BackupOut] = Field(default_factory=list)

class CleanupOut(BaseModel):
    keep: int
    removed: List[str] = Field(default_factory=list)

class RestoreOut(BaseModel):
    restored: bool = True
    safety_backup: BackupOut
