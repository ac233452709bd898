"""Errors raised by the game core.

Every error is returned to the caller of the operation that raised it and is
never broadcast to the room. Raising always happens before any mutation, so a
failed operation leaves the session untouched.
"""


class GameError(Exception):
    """Base class for all game errors."""

    kind = 'GameError'
    reason = 'Error'
    http_status = 400

    def __init__(self, message=None, reason=None):
        if reason is not None:
            self.reason = reason
        super().__init__(message or self.reason)

    @property
    def message(self) -> str:
        return str(self)

    def to_dict(self):
        return {
            'message': self.message,
            'type': self.kind,
            'reason': self.reason,
        }


class NotFound(GameError):
    kind = 'NotFound'
    http_status = 404


class Conflict(GameError):
    kind = 'Conflict'
    http_status = 409


class InvalidState(GameError):
    kind = 'InvalidState'


class InvalidRequest(GameError):
    """Malformed input from the gateway (missing room id, bad settings)."""
    kind = 'InvalidRequest'


# ---- NotFound ----

class RoomNotFound(NotFound):
    reason = 'RoomNotFound'

    def __init__(self, room_id):
        self.room_id = room_id
        super().__init__(f"Room {room_id} not found")


class UnknownPlayer(NotFound):
    reason = 'UnknownPlayer'

    def __init__(self, username):
        self.username = username
        super().__init__(f"Player {username} not found")


# ---- Conflict ----

class DuplicateUsername(Conflict):
    reason = 'DuplicateUsername'

    def __init__(self, username):
        self.username = username
        super().__init__(f"Username {username} already exists in this room")


class GameAlreadyStarted(Conflict):
    reason = 'GameAlreadyStarted'

    def __init__(self):
        super().__init__("Game already started")


class DuplicateAnswer(Conflict):
    reason = 'DuplicateAnswer'

    def __init__(self, username, question_index):
        self.username = username
        self.question_index = question_index
        super().__init__("You have already answered this question")
