import threading

import pytest

from quizroom.services.games.errors import InvalidRequest, InvalidState, RoomNotFound
from quizroom.services.games.questions import GameSettings, Question
from quizroom.services.games.registry import RoomRegistry


@pytest.fixture()
def registry(questions):
    return RoomRegistry(question_source=lambda count: questions[:count])


def test_get_or_create_applies_settings_only_on_creation(registry):
    first = registry.get_or_create('R1', {'questions_count': 1, 'time_per_question': 15})
    again = registry.get_or_create('R1', {'questions_count': 2, 'time_per_question': 5})
    assert first is again
    assert first.settings == GameSettings(questions_count=1, time_per_question=15)
    assert len(first.questions) == 1


def test_default_settings_and_question_source():
    seen = []
    q = Question(text='q', options=('a', 'b'), correct_answer='a')

    def source(count):
        seen.append(count)
        return [q] * count

    registry = RoomRegistry(question_source=source, default_settings=GameSettings(questions_count=3, time_per_question=12))
    session = registry.get_or_create('R1')
    assert seen == [3]
    assert session.settings.time_per_question == 12
    assert len(session.questions) == 3


def test_invalid_settings_and_room_id(registry):
    with pytest.raises(InvalidRequest):
        registry.get_or_create('R1', {'questions_count': -1})
    for bad in ('nan', 'inf', float('nan'), float('inf')):
        with pytest.raises(InvalidRequest):
            registry.get_or_create('R1', {'time_per_question': bad})
    with pytest.raises(InvalidRequest):
        registry.get_or_create('   ')
    assert len(registry) == 0


def test_join_creates_room_lazily(registry):
    assert registry.get_game('R9') is None
    assert registry.join_game('R9', 'A', 'sid-a') == ['A']
    assert registry.get_game('R9').status == 'waiting'


def test_operations_on_missing_room(registry):
    with pytest.raises(RoomNotFound):
        registry.start_game('nope')
    with pytest.raises(RoomNotFound):
        registry.submit_answer('nope', 'A', 'x')
    with pytest.raises(RoomNotFound):
        registry.leave_room('nope', 'A')
    assert registry.force_advance('nope', 0) is None


def test_last_player_leaving_deletes_room(registry):
    deleted = []
    registry.on_room_deleted(deleted.append)
    registry.join_game('R1', 'A')
    registry.join_game('R1', 'B')
    assert registry.leave_room('R1', 'A')['room_deleted'] is False
    assert registry.on_disconnect('R1', 'B') == {'players': [], 'room_deleted': True}
    assert registry.get_game('R1') is None
    assert deleted == ['R1']


def test_destroy_if_empty_only_removes_empty_rooms(registry):
    registry.create_game('R1')
    registry.join_game('R2', 'A')
    assert registry.destroy_if_empty('R1') is True
    assert registry.destroy_if_empty('R2') is False
    assert 'R1' not in registry
    assert 'R2' in registry


def test_join_after_room_deleted_gets_fresh_room(registry):
    registry.join_game('R1', 'A')
    stale = registry.get_game('R1')
    registry.leave_room('R1', 'A')
    assert registry.join_game('R1', 'A') == ['A']
    assert registry.get_game('R1') is not stale


def test_concurrent_answers_signal_advance_exactly_once(registry):
    names = [f'p{i}' for i in range(40)]
    for name in names:
        registry.join_game('R1', name)
    registry.start_game('R1')

    barrier = threading.Barrier(len(names))
    results = []
    lock = threading.Lock()

    def answer(name):
        barrier.wait()
        result = registry.submit_answer('R1', name, 'Paris')
        with lock:
            results.append(result)

    threads = [threading.Thread(target=answer, args=(n,)) for n in names]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(results) == len(names)
    assert sum(1 for r in results if r['should_move_next']) == 1


def test_removal_racing_with_last_answer_advances_once(registry):
    for _ in range(25):
        registry.join_game('R1', 'A')
        registry.join_game('R1', 'B')
        registry.join_game('R1', 'C')
        registry.start_game('R1')
        registry.submit_answer('R1', 'A', 'Paris')

        barrier = threading.Barrier(2)
        signals = []

        def submit():
            barrier.wait()
            signals.append(registry.submit_answer('R1', 'B', 'Lyon'))

        def leave():
            barrier.wait()
            signals.append(registry.leave_room('R1', 'C'))

        threads = [threading.Thread(target=submit), threading.Thread(target=leave)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        advanced = 0
        for signal in signals:
            if signal.get('should_move_next'):
                try:
                    registry.next_question('R1', signal['question_index'])
                    advanced += 1
                except InvalidState:
                    pass
        assert advanced == 1
        assert registry.get_game('R1').current_question_index == 1

        registry.leave_room('R1', 'A')
        registry.leave_room('R1', 'B')
        assert registry.get_game('R1') is None


def test_rooms_are_independent(registry):
    registry.join_game('R1', 'A')
    registry.join_game('R2', 'A')
    registry.start_game('R1')
    assert registry.get_game('R1').status == 'playing'
    assert registry.get_game('R2').status == 'waiting'
