from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List


@dataclass(frozen=True)
class AnswerRecord:
    question_index: int
    answer: str
    is_correct: bool
    points_awarded: int
    time_spent: float
    submitted_at: float

    def to_dict(self):
        return {
            'question_index': self.question_index,
            'answer': self.answer,
            'is_correct': self.is_correct,
            'points_awarded': self.points_awarded,
            'time_spent': round(self.time_spent, 3),
            'submitted_at': self.submitted_at,
        }


@dataclass
class PlayerState:
    """One participant of a session. Owned and mutated only by its session."""
    username: str
    connection_ref: Any = None
    score: int = 0
    answers: List[AnswerRecord] = field(default_factory=list)

    def has_answered(self, question_index: int) -> bool:
        return any(a.question_index == question_index for a in self.answers)

    def record(self, answer: AnswerRecord) -> None:
        # Callers check has_answered first
        self.answers.append(answer)
        self.score += answer.points_awarded

    def to_dict(self):
        return {
            'username': self.username,
            'score': self.score,
            'answers': [a.to_dict() for a in self.answers],
        }


def build_leaderboard(players: Iterable[PlayerState]) -> List[Dict[str, Any]]:
    """Rank players by score, highest first.

    `sorted` is stable, so equal scores keep the order players joined in.
    """
    ranked = sorted(players, key=lambda p: -p.score)
    return [p.to_dict() for p in ranked]
