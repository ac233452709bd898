import math
from typing import Tuple

from .questions import Question


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_answer(question: Question, answer: str, time_spent: float, time_per_question: float) -> Tuple[bool, int]:
    """Score one answer to `question`.

    Exact string match decides correctness. A correct answer earns the
    question's base points plus one point per second left on the clock;
    a wrong answer earns nothing.
    """
    is_correct = answer == question.correct_answer
    if not is_correct:
        return False, 0
    time_bonus = max(0.0, time_per_question - time_spent)
    return True, round_half_up(question.points + time_bonus)
