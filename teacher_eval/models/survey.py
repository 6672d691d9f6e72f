# teacher_eval/models/survey.py
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from teacher_eval.db.base_class import Base

ANSWER_VALUES = (0, 1, 2)

class SurveyQuestion(Base):
    __tablename__ = "survey_question"
    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String, nullable=False, unique=True)   # Q1..Q13
    text = Column(Text, nullable=False)
    area = Column(String, nullable=False)                # Preparação, Metodologia, ...
    position = Column(Integer, nullable=False, default=0)

class SurveyResponse(Base):
    # One per submission. No respondent data is ever stored here.
    __tablename__ = "survey_response"
    id = Column(Integer, primary_key=True, autoincrement=True)
    teaching_id = Column(Integer, ForeignKey("teaching.id"), nullable=False, index=True)
    submitted_at = Column(DateTime, nullable=False, index=True)  # naive UTC
    comment = Column(Text, nullable=True)

    teaching = relationship("Teaching")
    answers = relationship("SurveyAnswer", back_populates="response", cascade="all, delete-orphan")

class SurveyAnswer(Base):
    __tablename__ = "survey_answer"
    id = Column(Integer, primary_key=True, autoincrement=True)
    response_id = Column(Integer, ForeignKey("survey_response.id"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("survey_question.id"), nullable=False, index=True)
    value = Column(Integer, nullable=False)

    __table_args__ = (
        CheckConstraint("value IN (0, 1, 2)", name="value_range"),
    )

    response = relationship("SurveyResponse", back_populates="answers")
    question = relationship("SurveyQuestion")
