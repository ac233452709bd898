import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence

from .errors import InvalidRequest, RoomNotFound
from .questions import DEFAULT_QUESTIONS, GameSettings, Question
from .session import GameSession

logger = logging.getLogger(__name__)

QuestionSource = Callable[[int], Sequence[Question]]


def _default_question_source(count: int) -> Sequence[Question]:
    return DEFAULT_QUESTIONS[:count]


class RoomRegistry:
    """All live rooms of this process, keyed by room id.

    The registry lock only guards the map itself. Game operations run under
    the owning session's lock, so rooms never wait on each other. When both
    locks are needed (last player leaving) the session lock is taken first.
    """

    def __init__(
        self,
        question_source: Optional[QuestionSource] = None,
        default_settings: Optional[GameSettings] = None,
        min_players: int = 1,
    ) -> None:
        self._rooms: Dict[str, GameSession] = {}
        self._lock = threading.Lock()
        self.question_source = question_source or _default_question_source
        self.default_settings = default_settings or GameSettings()
        self.min_players = min_players
        self._listeners: List[Callable[[str], None]] = []

    def init_app(self, app) -> None:
        from .question_bank import load_questions

        self.default_settings = GameSettings(
            questions_count=int(app.config.get('QUESTIONS_PER_GAME', 10)),
            time_per_question=app.config.get('TIME_PER_QUESTION_SEC', 30),
        )
        self.min_players = int(app.config.get('MIN_PLAYERS', 1))
        self.question_source = load_questions
        self.clear()
        app.extensions['rooms'] = self

    def on_room_deleted(self, listener: Callable[[str], None]) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    # ---- map access ----

    @staticmethod
    def normalize_room_id(room_id: Any) -> str:
        if room_id is None:
            raise InvalidRequest('room_id is required', reason='MissingRoomId')
        room_id = str(room_id).strip()
        if not room_id:
            raise InvalidRequest('room_id is required', reason='MissingRoomId')
        return room_id

    def get(self, room_id: str) -> Optional[GameSession]:
        with self._lock:
            return self._rooms.get(room_id)

    def require(self, room_id: str) -> GameSession:
        session = self.get(self.normalize_room_id(room_id))
        if session is None:
            raise RoomNotFound(room_id)
        return session

    def get_or_create(self, room_id: str, settings: Optional[Dict[str, Any]] = None) -> GameSession:
        """Return the room's session, creating it on first use.

        Settings only apply when this call creates the session.
        """
        room_id = self.normalize_room_id(room_id)
        existing = self.get(room_id)
        if existing is not None and not existing.closed:
            return existing
        # Load questions outside the map lock so a slow question source
        # never holds up other rooms.
        resolved = GameSettings.from_dict(settings, self.default_settings)
        questions = list(self.question_source(resolved.questions_count))
        with self._lock:
            session = self._rooms.get(room_id)
            if session is not None and not session.closed:
                return session
            session = GameSession(
                room_id,
                questions,
                settings=resolved,
                min_players=self.min_players,
                on_empty=self._discard,
            )
            self._rooms[room_id] = session
            logger.info(f"[create] room={room_id} questions={len(questions)} settings={resolved.to_dict()}")
            return session

    def destroy_if_empty(self, room_id: str) -> bool:
        session = self.get(room_id)
        if session is None:
            return False
        return session.close_if_empty()

    def _discard(self, session: GameSession) -> None:
        # Runs under the session lock
        with self._lock:
            if self._rooms.get(session.room_id) is not session:
                return
            del self._rooms[session.room_id]
        logger.info(f"[delete] room={session.room_id}")
        for listener in self._listeners:
            listener(session.room_id)

    def sessions(self) -> List[GameSession]:
        with self._lock:
            return list(self._rooms.values())

    def clear(self) -> None:
        with self._lock:
            self._rooms.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __contains__(self, room_id) -> bool:
        return self.get(room_id) is not None

    # ---- gateway operations ----

    def create_game(self, room_id: str, settings: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.get_or_create(room_id, settings).to_dict()

    def join_game(self, room_id: str, username: str, connection_ref: Any = None) -> List[str]:
        while True:
            session = self.get_or_create(room_id)
            try:
                return session.add_player(username, connection_ref)
            except RoomNotFound:
                # The last player left between lookup and join; start over
                # with a fresh room.
                continue

    def start_game(self, room_id: str) -> Dict[str, Any]:
        return self.require(room_id).start_game()

    def submit_answer(self, room_id: str, username: str, answer: str) -> Dict[str, Any]:
        return self.require(room_id).submit_answer(username, answer)

    def next_question(self, room_id: str, expected_index: Optional[int] = None) -> Dict[str, Any]:
        return self.require(room_id).next_question(expected_index)

    def force_advance(self, room_id: str, expected_index: int) -> Optional[Dict[str, Any]]:
        session = self.get(room_id)
        if session is None:
            return None
        return session.force_advance(expected_index)

    def leave_room(self, room_id: str, username: str) -> Dict[str, Any]:
        return self.require(room_id).remove_player(username)

    on_disconnect = leave_room

    def get_game(self, room_id: str) -> Optional[GameSession]:
        return self.get(self.normalize_room_id(room_id))

    def leaderboard(self, room_id: str) -> List[Dict[str, Any]]:
        return self.require(room_id).leaderboard()
