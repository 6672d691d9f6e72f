# teacher_eval/db/seed.py
from __future__ import annotations

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from teacher_eval.models.catalog import (
    Course, Discipline, Teacher, Semester, SchoolYear, ClassGroup, Teaching,
)
from teacher_eval.models.survey import SurveyQuestion

logger = logging.getLogger(__name__)

COURSES = ["Engenharia Informática", "Engenharia de Minas", "Processamento Mineral"]
SEMESTERS = ["1º Semestre", "2º Semestre", "Anual"]
SCHOOL_YEARS = ["2025"]
CLASS_GROUPS = ["Turma A", "Turma B", "Única Pós-laboral"]
DISCIPLINES_BY_COURSE = {
    "Engenharia Informática": ["Algoritmos", "Estruturas de Dados", "Redes de Computadores"],
    "Engenharia de Minas": ["Topografia", "Perfuração e Desmonte", "Ventilação de Minas"],
    "Processamento Mineral": ["Cominuição", "Classificação", "Flotação"],
}
TEACHERS = ["Docente A", "Docente B", "Docente C"]

# (code, text, area), answered on the 0-2 scale
QUESTIONS = [
    ("Q1", "Chega a tempo às aulas.", "Preparação"),
    ("Q2", "Comparece regularmente às aulas.", "Preparação"),
    ("Q3", "Responde efectivamente às questões formuladas.", "Metodologia"),
    ("Q4", "Ministra as aulas com segurança na matéria.", "Metodologia"),
    ("Q5", "Distribui o programa analítico e temático.", "Metodologia"),
    ("Q6", "Respeita os horários (pontualidade).", "Organização"),
    ("Q7", "Cumpre com o programa analítico e temático.", "Organização"),
    ("Q8", "Disponibiliza horário para consultas.", "Avaliação"),
    ("Q9", "Realiza consultas de acompanhamento.", "Avaliação"),
    ("Q10", "Avalia a matéria leccionada.", "Avaliação"),
    ("Q11", "Divulga as notas após os testes.", "Avaliação"),
    ("Q12", "Fornece o guião de correcção.", "Relação"),
    ("Q13", "Entrega os testes para reclamação.", "Relação"),
]


def seed_questions(db: Session) -> int:
    """Questions are seeded on their own so a wiped catalog keeps them."""
    if db.query(func.count(SurveyQuestion.id)).scalar():
        return 0
    for pos, (code, text, area) in enumerate(QUESTIONS, start=1):
        db.add(SurveyQuestion(code=code, text=text, area=area, position=pos))
    return len(QUESTIONS)


def seed_once(db: Session) -> bool:
    """
    Seeds demo reference data when the catalog is empty.
    Returns True when something was inserted.
    """
    inserted_questions = seed_questions(db)

    if db.query(func.count(Course.id)).scalar():
        db.commit()
        return bool(inserted_questions)

    courses = {name: Course(name=name) for name in COURSES}
    db.add_all(courses.values())
    semesters = [Semester(name=n) for n in SEMESTERS]
    years = [SchoolYear(name=n) for n in SCHOOL_YEARS]
    classes = [ClassGroup(name=n) for n in CLASS_GROUPS]
    teachers = [Teacher(name=n) for n in TEACHERS]
    db.add_all(semesters + years + classes + teachers)

    disciplines = []
    for cname, names in DISCIPLINES_BY_COURSE.items():
        for dname in names:
            disciplines.append(Discipline(course=courses[cname], name=dname))
    db.add_all(disciplines)
    db.flush()

    # one teaching per discipline, rotating teachers and semesters
    for idx, d in enumerate(disciplines):
        db.add(Teaching(
            teacher_id=teachers[idx % len(teachers)].id,
            discipline_id=d.id,
            semester_id=semesters[idx % len(semesters)].id,
            school_year_id=years[0].id,
            class_group_id=classes[0].id,
        ))

    db.commit()
    logger.info("Seeded %d courses, %d disciplines, %d questions",
                len(courses), len(disciplines), inserted_questions)
    return True
