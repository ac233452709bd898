"""Question source backed by the `question` table.

Needs an application context. Falls back to the built-in questions when the
table is empty so a fresh install can still play.
"""
import logging
from typing import List

from quizroom import db
from quizroom.models import QuestionRecord
from .questions import DEFAULT_QUESTIONS, Question

logger = logging.getLogger(__name__)


def load_questions(count: int) -> List[Question]:
    records = QuestionRecord.query.order_by(QuestionRecord.id).limit(count).all()
    if not records:
        logger.info(f"[questions] bank empty, using {min(count, len(DEFAULT_QUESTIONS))} default questions")
        return list(DEFAULT_QUESTIONS[:count])
    return [r.to_question() for r in records]


def seed_default_questions() -> int:
    for question in DEFAULT_QUESTIONS:
        db.session.add(QuestionRecord.from_question(question))
    db.session.commit()
    return len(DEFAULT_QUESTIONS)
