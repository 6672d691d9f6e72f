from typing import List
from pydantic import BaseModel, Field

class SkippedRowOut(BaseModel):
    sheet: str
    row: int = Field(..., description="Row number (1-based, header included)")
    message: str

class InsertedCounts(BaseModel):
    courses: int = 0
    teachers: int = 0
    disciplines: int = 0
    semesters: int = 0
    school_years: int = 0
    class_groups: int = 0
    teachings: int = 0

class WorkbookImportOut(BaseModel):
    inserted: InsertedCounts
    sheets: List[str] = []
    wiped: bool = False
    dry_run: bool = False
    skipped: List[SkippedRowOut] = []
