from flask_socketio import join_room, leave_room, emit
from flask import current_app, request
from quizroom import rooms, socketio
from quizroom.services.games.errors import GameError, InvalidState, RoomNotFound
from quizroom.services.games.scheduler import cancel_question_deadline, schedule_question_deadline
from quizroom.services.games.session import PLAYING
from typing import Dict, Any, List, Optional, Tuple
import threading

NAMESPACE = '/ws'


def room_channel(room_id: str) -> str:
    return f"room:{room_id}"


def _broadcast(room_id: str, event: str, payload: Dict[str, Any]) -> None:
    socketio.emit(event, payload, to=room_channel(room_id), namespace=NAMESPACE)


def _reply_error(exc: GameError, event: str) -> None:
    """Errors go back to the caller only, never to the room."""
    current_app.logger.info(f"[error] event={event} sid={_get_sid()} type={exc.kind} reason={exc.reason} msg={exc}")
    payload = exc.to_dict()
    payload['event'] = event
    emit('error', payload)


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws'})


def handle_create_game(data):
    data = data or {}
    try:
        room_id = rooms.normalize_room_id(data.get('room_id'))
        game = rooms.create_game(room_id, data.get('settings'))
    except GameError as exc:
        _reply_error(exc, 'create_game')
        return
    join_room(room_channel(room_id))
    _remember(room_id, None)
    _broadcast(room_id, 'game_created', {'game': game})


def handle_join_game(data):
    data = data or {}
    username = data.get('username')
    try:
        room_id = rooms.normalize_room_id(data.get('room_id'))
        players = rooms.join_game(room_id, username, _get_sid())
        leaderboard = rooms.leaderboard(room_id)
    except GameError as exc:
        _reply_error(exc, 'join_game')
        return
    join_room(room_channel(room_id))
    _remember(room_id, username)
    current_app.logger.info(f"[join] room={room_id} user={username} sid={_get_sid()}")
    _broadcast(room_id, 'player_joined', {'players': players, 'leaderboard': leaderboard})


def handle_start_game(data):
    data = data or {}
    try:
        room_id = rooms.normalize_room_id(data.get('room_id'))
        question = rooms.start_game(room_id)
        game = rooms.require(room_id).to_dict()
    except GameError as exc:
        _reply_error(exc, 'start_game')
        return
    _broadcast(room_id, 'game_started', {
        'question': question,
        'players': game['players'],
        'total_questions': game['total_questions'],
        'current_question_index': game['current_question_index'],
    })
    schedule_question_deadline(current_app._get_current_object(), room_id, 0)


def handle_submit_answer(data):
    data = data or {}
    username = data.get('username')
    try:
        room_id = rooms.normalize_room_id(data.get('room_id'))
        result = rooms.submit_answer(room_id, username, data.get('answer'))
    except GameError as exc:
        _reply_error(exc, 'submit_answer')
        return
    # Outcome for the player who answered
    emit('answer_submitted', {
        'is_correct': result['is_correct'],
        'points_awarded': result['points_awarded'],
        'message': result['message'],
    })
    _broadcast(room_id, 'answer_result', {
        'leaderboard': result['leaderboard'],
        'should_move_next': result['should_move_next'],
        'question_index': result['question_index'],
    })
    if result['should_move_next']:
        _advance(room_id, result['question_index'])


def handle_leave_room(data):
    data = data or {}
    username = data.get('username')
    try:
        room_id = rooms.normalize_room_id(data.get('room_id'))
        result = rooms.leave_room(room_id, username)
    except GameError as exc:
        _reply_error(exc, 'leave_room')
        return
    leave_room(room_channel(room_id))
    _forget(_get_sid(), room_id, username)
    _after_removal(room_id, username, result, reason='left')
    emit('left_room', {'room_id': room_id})


def handle_disconnect(reason=None):
    for room_id, username in _forget(_get_sid()):
        if not username:
            # Created a room but never joined it
            rooms.destroy_if_empty(room_id)
            continue
        try:
            result = rooms.on_disconnect(room_id, username)
        except RoomNotFound:
            continue
        current_app.logger.info(f"[disconnect] room={room_id} user={username}")
        _after_removal(room_id, username, result, reason='disconnected')


def handle_ping(data):
    emit('pong', data or {})


def _after_removal(room_id: str, username: Optional[str], result: Dict[str, Any], reason: str) -> None:
    if result['room_deleted']:
        return
    _broadcast(room_id, 'player_left', {
        'players': result['players'],
        'leaderboard': result['leaderboard'],
        'left_username': username,
        'reason': reason,
    })
    if result.get('should_move_next'):
        _advance(room_id, result['question_index'])


def _advance(room_id: str, expected_index: int) -> None:
    """Move the room past `expected_index` and tell everyone.

    Racing callers (last answer, removal, deadline) all name the question
    they saw; only the first one advances.
    """
    try:
        result = rooms.next_question(room_id, expected_index)
    except (InvalidState, RoomNotFound) as exc:
        current_app.logger.info(f"[advance-skip] room={room_id} question={expected_index} reason={exc.reason}")
        return
    cancel_question_deadline(room_id, expected_index)
    _broadcast(room_id, 'next_question', result)
    if result['status'] == PLAYING:
        schedule_question_deadline(current_app._get_current_object(), room_id, result['current_question_index'])

# ---- Socket context tracking ----

# sid -> [(room_id, username)]; username is None for a room only created
_sid_to_ctx: Dict[str, List[Tuple[str, Optional[str]]]] = {}
_ctx_lock = threading.Lock()

def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore

def _remember(room_id: str, username: Optional[str]) -> None:
    with _ctx_lock:
        seats = _sid_to_ctx.setdefault(_get_sid(), [])
        if (room_id, username) in seats:
            return
        if username:
            if (room_id, None) in seats:
                seats.remove((room_id, None))
        elif any(rid == room_id for rid, _ in seats):
            return
        seats.append((room_id, username))

def _forget(sid: str, room_id: Optional[str] = None, username: Optional[str] = None) -> List[Tuple[str, Optional[str]]]:
    """Drop one seat, or every seat of `sid` when no room is given."""
    with _ctx_lock:
        if room_id is None:
            return _sid_to_ctx.pop(sid, None) or []
        seats = _sid_to_ctx.get(sid, [])
        dropped = [seat for seat in seats if seat[0] == room_id and seat[1] in (username, None)]
        for seat in dropped:
            seats.remove(seat)
        if not seats:
            _sid_to_ctx.pop(sid, None)
        return dropped


def register_socketio_handlers(flask_app) -> None:
    """Register Socket.IO event handlers on namespace '/ws'."""
    with _ctx_lock:
        _sid_to_ctx.clear()
    rooms.on_room_deleted(cancel_question_deadline)

    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('create_game', handle_create_game, namespace=NAMESPACE)
    socketio.on_event('join_game', handle_join_game, namespace=NAMESPACE)
    socketio.on_event('start_game', handle_start_game, namespace=NAMESPACE)
    socketio.on_event('submit_answer', handle_submit_answer, namespace=NAMESPACE)
    socketio.on_event('leave_room', handle_leave_room, namespace=NAMESPACE)
    socketio.on_event('ping', handle_ping, namespace=NAMESPACE)
    flask_app.logger.debug(f"[socketio] handlers registered on {NAMESPACE}")
