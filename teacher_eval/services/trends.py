# teacher_eval/services/trends.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from teacher_eval.services.aggregation import QuestionAverage

STRENGTH_MIN = 1.5
WEAKNESS_MAX = 1.0
FALLBACK_SIZE = 3


@dataclass
class Trends:
    strengths: List[QuestionAverage] = field(default_factory=list)
    weaknesses: List[QuestionAverage] = field(default_factory=list)
    fallback: bool = False


def classify_trends(questions: List[QuestionAverage]) -> Trends:
    """
    Strength: mean >= 1.5. Weakness: mean < 1.0.
    When no question crosses either line, report the 3 best and up to 3 of
    the remaining worst, so no question is listed twice.
    Questions without answers are left out.
    """
    rated = [q for q in questions if q.mean is not None]
    strengths = sorted((q for q in rated if q.mean >= STRENGTH_MIN), key=lambda q: -q.mean)
    weaknesses = sorted((q for q in rated if q.mean < WEAKNESS_MAX), key=lambda q: q.mean)
    if strengths or weaknesses:
        return Trends(strengths=strengths, weaknesses=weaknesses)

    ranked = sorted(rated, key=lambda q: -q.mean)
    return Trends(
        strengths=ranked[:FALLBACK_SIZE],
        weaknesses=list(reversed(ranked[FALLBACK_SIZE:]))[:FALLBACK_SIZE],
        fallback=True,
    )
