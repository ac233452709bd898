import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from .errors import (
    DuplicateAnswer,
    DuplicateUsername,
    GameAlreadyStarted,
    InvalidRequest,
    InvalidState,
    RoomNotFound,
    UnknownPlayer,
)
from .players import AnswerRecord, PlayerState, build_leaderboard
from .questions import GameSettings, Question
from .scoring import score_answer

logger = logging.getLogger(__name__)

WAITING = 'waiting'
PLAYING = 'playing'
FINISHED = 'finished'


class GameSession:
    """State machine for one room: waiting -> playing -> finished.

    Every public method runs under the session's own lock, so answers,
    advances and removals for a room are serialized while other rooms run
    untouched. Validation always happens before mutation; a raised error
    means nothing changed.

    `on_empty` is called with the session, still under the lock, when the
    last player leaves. The registry uses it to drop the room.
    """

    def __init__(
        self,
        room_id: str,
        questions: Sequence[Question],
        settings: Optional[GameSettings] = None,
        min_players: int = 1,
        on_empty: Optional[Callable[['GameSession'], None]] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not questions:
            raise ValueError('A game needs at least one question')
        self.room_id = room_id
        self.questions = tuple(questions)
        self.settings = settings or GameSettings()
        self.min_players = max(1, int(min_players))
        self.players: Dict[str, PlayerState] = {}
        self.status = WAITING
        self.current_question_index = 0
        self.start_time: Optional[float] = None
        self.closed = False
        self._on_empty = on_empty
        self._clock = clock
        self._lock = threading.RLock()

    # ---- read side ----

    def roster(self) -> List[str]:
        with self._lock:
            return list(self.players)

    def leaderboard(self) -> List[Dict[str, Any]]:
        with self._lock:
            return build_leaderboard(self.players.values())

    def current_question(self) -> Optional[Question]:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None

    def question_view(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            question = self.current_question()
            if self.status != PLAYING or question is None:
                return None
            return question.to_view(self.settings.time_per_question)

    def all_answered(self) -> bool:
        with self._lock:
            return self._all_answered()

    def _all_answered(self) -> bool:
        idx = self.current_question_index
        return bool(self.players) and all(p.has_answered(idx) for p in self.players.values())

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            idx = self.current_question_index
            return {
                'room_id': self.room_id,
                'status': self.status,
                'players': list(self.players),
                'answered': [name for name, p in self.players.items() if p.has_answered(idx)],
                'current_question_index': idx,
                'total_questions': len(self.questions),
                'settings': self.settings.to_dict(),
                'question': self.question_view(),
                'start_time': self.start_time,
                'leaderboard': self.leaderboard(),
            }

    # ---- mutations ----

    def _ensure_open(self) -> None:
        if self.closed:
            raise RoomNotFound(self.room_id)

    def add_player(self, username: str, connection_ref: Any = None) -> List[str]:
        with self._lock:
            self._ensure_open()
            if not isinstance(username, str) or not username.strip():
                raise InvalidRequest('username is required', reason='MissingUsername')
            if username in self.players:
                raise DuplicateUsername(username)
            if self.status != WAITING:
                raise GameAlreadyStarted()
            self.players[username] = PlayerState(username=username, connection_ref=connection_ref)
            logger.info(f"[join] room={self.room_id} user={username} players={len(self.players)}")
            return list(self.players)

    def start_game(self) -> Dict[str, Any]:
        with self._lock:
            self._ensure_open()
            if self.status != WAITING:
                raise InvalidState('Game has already started or is finished', reason='AlreadyStarted')
            if len(self.players) < self.min_players:
                raise InvalidState(
                    f'At least {self.min_players} players are required to start',
                    reason='NotEnoughPlayers',
                )
            self.status = PLAYING
            self.current_question_index = 0
            self.start_time = self._clock()
            logger.info(f"[start] room={self.room_id} players={len(self.players)} questions={len(self.questions)}")
            return self.question_view()

    def submit_answer(self, username: str, answer: str) -> Dict[str, Any]:
        with self._lock:
            self._ensure_open()
            player = self.players.get(username) if isinstance(username, str) else None
            if player is None:
                raise UnknownPlayer(username)
            if self.status != PLAYING:
                raise InvalidState('Game is not in progress', reason='NotPlaying')
            if not isinstance(answer, str):
                raise InvalidRequest('answer must be a string', reason='InvalidAnswer')
            idx = self.current_question_index
            if player.has_answered(idx):
                raise DuplicateAnswer(username, idx)

            now = self._clock()
            time_spent = max(0.0, now - self.start_time)
            is_correct, points = score_answer(
                self.questions[idx], answer, time_spent, self.settings.time_per_question
            )
            player.record(AnswerRecord(
                question_index=idx,
                answer=answer,
                is_correct=is_correct,
                points_awarded=points,
                time_spent=time_spent,
                submitted_at=now,
            ))
            should_move_next = self._all_answered()
            logger.info(
                f"[answer] room={self.room_id} user={username} question={idx} "
                f"correct={is_correct} points={points} all_answered={should_move_next}"
            )
            return {
                'is_correct': is_correct,
                'points_awarded': points,
                'message': 'Correct answer!' if is_correct else 'Wrong answer!',
                'question_index': idx,
                'leaderboard': self.leaderboard(),
                'should_move_next': should_move_next,
            }

    def next_question(self, expected_index: Optional[int] = None) -> Dict[str, Any]:
        """Advance once every current player has answered.

        With `expected_index`, a call made for a question that has already
        moved on fails with StaleAdvance instead of skipping a question.
        """
        with self._lock:
            self._ensure_open()
            if self.status != PLAYING:
                raise InvalidState('Game is not in progress', reason='NotPlaying')
            if expected_index is not None and expected_index != self.current_question_index:
                raise InvalidState('Question has already advanced', reason='StaleAdvance')
            if not self._all_answered():
                raise InvalidState(
                    'Not all players have answered the current question',
                    reason='NotAllAnswered',
                )
            return self._advance()

    def force_advance(self, expected_index: int) -> Optional[Dict[str, Any]]:
        """Advance past `expected_index` whether or not everyone answered.

        Returns None when the session already moved on or is not playing.
        """
        with self._lock:
            if self.closed or self.status != PLAYING or self.current_question_index != expected_index:
                return None
            logger.info(f"[deadline] room={self.room_id} question={expected_index} forced advance")
            return self._advance()

    def _advance(self) -> Dict[str, Any]:
        self.current_question_index += 1
        total = len(self.questions)
        if self.current_question_index >= total:
            self.status = FINISHED
            logger.info(f"[finish] room={self.room_id} after question={self.current_question_index - 1}")
            return {
                'status': FINISHED,
                'question': None,
                'leaderboard': self.leaderboard(),
                'total_questions': total,
                'current_question_index': self.current_question_index,
            }
        self.start_time = self._clock()
        logger.info(f"[next] room={self.room_id} question={self.current_question_index}/{total}")
        return {
            'status': PLAYING,
            'question': self.question_view(),
            'leaderboard': self.leaderboard(),
            'total_questions': total,
            'current_question_index': self.current_question_index,
        }

    def close_if_empty(self) -> bool:
        with self._lock:
            if self.closed:
                return True
            if self.players:
                return False
            self.closed = True
            if self._on_empty is not None:
                self._on_empty(self)
            return True

    def remove_player(self, username: str) -> Dict[str, Any]:
        """Drop `username` from the room; absent names are not an error.

        When players remain mid-question, `should_move_next` reports whether
        the remaining players have all answered, so the caller advances
        explicitly instead of the room stalling on a departed player.
        """
        with self._lock:
            self._ensure_open()
            removed = self.players.pop(username, None) if isinstance(username, str) else None
            if removed is not None:
                logger.info(f"[leave] room={self.room_id} user={username} players={len(self.players)}")
            if self.close_if_empty():
                return {'players': [], 'room_deleted': True}
            return {
                'players': list(self.players),
                'leaderboard': self.leaderboard(),
                'room_deleted': False,
                'question_index': self.current_question_index,
                'should_move_next': (
                    removed is not None and self.status == PLAYING and self._all_answered()
                ),
            }
