from flask import Blueprint, current_app, jsonify
from quizroom import rooms
import time

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the quiz room server!'})

@main.route('/health')
def health():
    started_at = current_app.config.get('STARTED_AT') or time.time()
    return jsonify({
        'status': 'OK',
        'uptime': round(time.time() - started_at, 3),
        'timestamp': time.time(),
        'rooms': len(rooms),
    }), 200
