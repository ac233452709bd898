from flask import Blueprint, jsonify, request, current_app
from quizroom import rooms, socketio
from quizroom.services.games.errors import GameError


rooms_api = Blueprint('rooms', __name__)


def _error_response(exc: GameError):
    current_app.logger.info(f"[http-error] path={request.path} type={exc.kind} reason={exc.reason}")
    return jsonify({'error': exc.message, 'type': exc.kind, 'reason': exc.reason}), exc.http_status


@rooms_api.route('/create', methods=['POST'])
def create_room():
    data = request.get_json(silent=True) or {}
    try:
        room_id = rooms.normalize_room_id(data.get('room_id'))
        existed = room_id in rooms
        game = rooms.create_game(room_id, data.get('settings'))
    except GameError as exc:
        return _error_response(exc)
    if not existed:
        from quizroom.socketio_events import NAMESPACE, room_channel
        socketio.emit('game_created', {'game': game}, to=room_channel(room_id), namespace=NAMESPACE)
    return jsonify({
        'message': 'Room already exists' if existed else 'New room created!',
        'game': game,
    }), 200 if existed else 201


@rooms_api.route('/active', methods=['GET'])
def get_active_rooms():
    return jsonify([
        {'room_id': s.room_id, 'status': s.status, 'players': s.roster()}
        for s in rooms.sessions()
    ])


@rooms_api.route('/<string:room_id>/state', methods=['GET'])
def get_room_state(room_id):
    try:
        game = rooms.require(room_id)
    except GameError as exc:
        return _error_response(exc)
    payload = game.to_dict()
    payload['durations'] = {'question': game.settings.time_per_question}
    return jsonify(payload)


@rooms_api.route('/<string:room_id>/leaderboard', methods=['GET'])
def get_room_leaderboard(room_id):
    try:
        leaderboard = rooms.leaderboard(room_id)
    except GameError as exc:
        return _error_response(exc)
    return jsonify({'room_id': room_id, 'leaderboard': leaderboard})
