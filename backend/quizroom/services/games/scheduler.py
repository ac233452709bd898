import threading
import time
from typing import Dict, Optional, Tuple

from quizroom import rooms, socketio
from .session import PLAYING


# (room_id, question_index) -> (session, token)
_scheduled_question_keys: Dict[Tuple[str, int], Tuple[object, object]] = {}
_keys_lock = threading.Lock()


def deadline_enabled(app) -> bool:
    if not app.config.get('QUESTION_DEADLINE_ENABLED', True):
        return False
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return False
    return True


def schedule_question_deadline(app, room_id: str, question_index: int) -> None:
    """Force-advance the room's current question when its time runs out.

    - No-ops when disabled, and in TESTING unless ENABLE_SCHEDULER_IN_TESTS
    - Ensures a single timer per (room_id, question_index)
    - A timer whose question already advanced, or whose room was deleted,
      does nothing when it fires
    """
    if not deadline_enabled(app):
        return

    session = rooms.get(room_id)
    if session is None or session.status != PLAYING or session.current_question_index != question_index:
        return

    key = (room_id, question_index)
    token = object()
    with _keys_lock:
        existing = _scheduled_question_keys.get(key)
        if existing is not None and existing[0] is session:
            app.logger.info(f"[timer-skip] room={room_id} question={question_index} already scheduled")
            return
        _scheduled_question_keys[key] = (session, token)

    duration = session.settings.time_per_question
    app.logger.info(f"[timer-set] room={room_id} question={question_index} duration={duration}s")

    def _worker(expected_index: int, delay: float):
        # heartbeat sleep loop if enabled
        try:
            hb = float(app.config.get('TIMER_HEARTBEAT_SEC', 0))
        except (TypeError, ValueError):
            hb = 0
        if hb > 0:
            slept = 0.0
            while slept < delay:
                step = min(hb, delay - slept)
                time.sleep(step)
                slept += step
                app.logger.info(f"[timer-heartbeat] room={room_id} question={expected_index} remaining={max(0, delay - slept)}s")
        else:
            time.sleep(delay)

        with _keys_lock:
            entry = _scheduled_question_keys.get(key)
            if entry is None or entry[1] is not token:
                app.logger.info(f"[timer-cancelled] room={room_id} question={expected_index}")
                return
            del _scheduled_question_keys[key]

        # Target the session captured at scheduling time; a room recreated
        # under the same id is a different session and is left alone.
        result = session.force_advance(expected_index)
        if result is None:
            app.logger.info(f"[timer-abort] room={room_id} question={expected_index} already advanced")
            return

        from quizroom.socketio_events import NAMESPACE, room_channel
        payload = dict(result, reason='timeout')
        app.logger.info(f"[timer-fire] room={room_id} question={expected_index} status={result['status']}")
        socketio.emit('next_question', payload, to=room_channel(room_id), namespace=NAMESPACE)
        if result['status'] == PLAYING:
            schedule_question_deadline(app, room_id, result['current_question_index'])

    if app.config.get('TESTING'):
        _worker(question_index, duration)
    else:
        socketio.start_background_task(_worker, question_index, duration)


def cancel_question_deadline(room_id: str, question_index: Optional[int] = None) -> None:
    with _keys_lock:
        for key in list(_scheduled_question_keys):
            if key[0] == room_id and (question_index is None or key[1] == question_index):
                del _scheduled_question_keys[key]


def pending_deadlines(room_id: str):
    with _keys_lock:
        return sorted(idx for rid, idx in _scheduled_question_keys if rid == room_id)
