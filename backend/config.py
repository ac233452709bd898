import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///quizroom.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Comma separated list of allowed browser origins
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', 'http://localhost:3000,http://127.0.0.1:3000').split(',') if o.strip()]
    # Game defaults, used when a room is created without settings
    QUESTIONS_PER_GAME = int(os.environ.get('QUESTIONS_PER_GAME', '10'))
    TIME_PER_QUESTION_SEC = int(os.environ.get('TIME_PER_QUESTION_SEC', '30'))
    # Minimum players before the host may start
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '1'))
    # Force-advance a question once its time runs out. 0 disables.
    QUESTION_DEADLINE_ENABLED = os.environ.get('QUESTION_DEADLINE_ENABLED', '1') not in ('0', 'false', 'False', '')
    # Optional: heartbeat interval for deadline timer logs (sec). 0 disables.
    TIMER_HEARTBEAT_SEC = int(os.environ.get('TIMER_HEARTBEAT_SEC', '0'))
