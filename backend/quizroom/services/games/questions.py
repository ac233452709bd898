import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .errors import InvalidRequest


@dataclass(frozen=True)
class Question:
    """A single multiple-choice quiz item.

    Options keep their display order. The correct answer is only ever read by
    the scoring code; `to_view` is what leaves the server.
    """
    text: str
    options: Tuple[str, ...]
    correct_answer: str
    points: int = 10

    def __post_init__(self):
        object.__setattr__(self, 'options', tuple(self.options))
        if not self.text:
            raise ValueError('Question text is required')
        if len(set(self.options)) < 2 or len(set(self.options)) != len(self.options):
            raise ValueError('A question needs at least two distinct options')
        if self.correct_answer not in self.options:
            raise ValueError(f"Correct answer {self.correct_answer!r} is not one of the options")
        if not isinstance(self.points, int) or isinstance(self.points, bool) or self.points <= 0:
            raise ValueError('Question points must be a positive integer')

    def to_view(self, time_per_question) -> Dict[str, Any]:
        return {
            'text': self.text,
            'options': list(self.options),
            'time_per_question': time_per_question,
            'points': self.points,
        }


@dataclass(frozen=True)
class GameSettings:
    questions_count: int = 10
    time_per_question: float = 30

    def to_dict(self):
        return {
            'questions_count': self.questions_count,
            'time_per_question': self.time_per_question,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]], defaults: Optional['GameSettings'] = None) -> 'GameSettings':
        """Build settings from a client payload, falling back to `defaults`
        for missing keys. Falsy values count as missing."""
        defaults = defaults or cls()
        data = data or {}
        if not isinstance(data, dict):
            raise InvalidRequest('settings must be an object', reason='InvalidSettings')
        try:
            count = int(data.get('questions_count') or defaults.questions_count)
            per_question = float(data.get('time_per_question') or defaults.time_per_question)
        except (TypeError, ValueError, OverflowError):
            raise InvalidRequest('settings values must be numbers', reason='InvalidSettings')
        if count <= 0 or not (math.isfinite(per_question) and per_question > 0):
            raise InvalidRequest('settings values must be positive', reason='InvalidSettings')
        if per_question.is_integer():
            per_question = int(per_question)
        return cls(questions_count=count, time_per_question=per_question)


DEFAULT_QUESTIONS: Tuple[Question, ...] = (
    Question(
        text='What is the capital of Vietnam?',
        options=('Hanoi', 'Ho Chi Minh City', 'Da Nang', 'Hai Phong'),
        correct_answer='Hanoi',
        points=10,
    ),
    Question(
        text='1 + 1 = ?',
        options=('1', '2', '3', '4'),
        correct_answer='2',
        points=10,
    ),
    Question(
        text='Which planet is known as the Red Planet?',
        options=('Venus', 'Mars', 'Jupiter', 'Mercury'),
        correct_answer='Mars',
        points=10,
    ),
    Question(
        text='How many sides does a hexagon have?',
        options=('5', '6', '7', '8'),
        correct_answer='6',
        points=10,
    ),
    Question(
        text='Which gas do plants absorb from the air?',
        options=('Oxygen', 'Nitrogen', 'Carbon dioxide', 'Helium'),
        correct_answer='Carbon dioxide',
        points=10,
    ),
)
