# teacher_eval/db/base.py
from teacher_eval.db.base_class import Base  # noqa: F401

# Import every module that defines tables so Base.metadata is complete
# (create_all at startup, Alembic autogenerate, restore table list).
from teacher_eval.models import catalog  # noqa: F401
from teacher_eval.models import survey  # noqa: F401

# Delete order for wipes: children before parents.
# Restore inserts in the reverse order.
DATA_TABLES = (
    "survey_answer",
    "survey_response",
    "teaching",
    "discipline",
    "teacher",
    "course",
    "school_year",
    "class_group",
    "semester",
)
ALL_TABLES = DATA_TABLES + ("survey_question",)
