# teacher_eval/models/catalog.py
from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint, Index, func
from sqlalchemy.orm import relationship

from teacher_eval.db.base_class import Base

class Course(Base):
    __tablename__ = "course"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)

    disciplines = relationship("Discipline", back_populates="course")

class Discipline(Base):
    __tablename__ = "discipline"
    id = Column(Integer, primary_key=True, autoincrement=True)
    course_id = Column(Integer, ForeignKey("course.id"), nullable=False, index=True)
    name = Column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint("course_id", "name", name="uq_discipline_course_name"),
    )

    course = relationship("Course", back_populates="disciplines")

class Teacher(Base):
    __tablename__ = "teacher"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)

class Semester(Base):
    __tablename__ = "semester"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)

class SchoolYear(Base):
    __tablename__ = "school_year"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)  # ex.: 2025/2026

class ClassGroup(Base):
    __tablename__ = "class_group"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)  # ex.: Turma A, Pós-laboral

class Teaching(Base):
    """A teacher giving a discipline in one semester (and optionally year/class)."""
    __tablename__ = "teaching"
    id = Column(Integer, primary_key=True, autoincrement=True)
    teacher_id = Column(Integer, ForeignKey("teacher.id"), nullable=False, index=True)
    discipline_id = Column(Integer, ForeignKey("discipline.id"), nullable=False, index=True)
    semester_id = Column(Integer, ForeignKey("semester.id"), nullable=False)
    school_year_id = Column(Integer, ForeignKey("school_year.id"), nullable=True)
    class_group_id = Column(Integer, ForeignKey("class_group.id"), nullable=True)

    teacher = relationship("Teacher")
    discipline = relationship("Discipline")
    semester = relationship("Semester")
    school_year = relationship("SchoolYear")
    class_group = relationship("ClassGroup")

# SQLite treats NULLs as distinct in unique indexes, so the optional
# dimensions are coalesced to 0 (ids start at 1).
Index(
    "ux_teaching",
    Teaching.teacher_id,
    Teaching.discipline_id,
    Teaching.semester_id,
    func.coalesce(Teaching.school_year_id, 0),
    func.coalesce(Teaching.class_group_id, 0),
    unique=True,
)
