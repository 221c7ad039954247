import re
import threading

import pytest

from pianovs.models import Note
from pianovs.services.game import Phase, Room, RoomFullError, RoomRegistry

GOOD = [Note('C4', 0, 300), Note('E4', 400, 300)]
BAD = [Note('D4', 0, 300), Note('F4', 400, 300)]


def started_room():
    room = Room(id='abcd1234')
    room.add_player('sid-a', 'Alice')
    room.add_player('sid-b', 'Bob')
    return room


def test_second_player_starts_recording():
    room = Room(id='abcd1234')
    assert room.add_player('sid-a', 'Alice') == 0
    assert room.phase == Phase.WAITING
    assert room.add_player('sid-b', 'Bob') == 1
    assert room.phase == Phase.RECORDING
    assert room.current_turn == 0
    with pytest.raises(RoomFullError):
        room.add_player('sid-c', 'Carol')
    assert room.sids() == ['sid-a', 'sid-b']


def test_turn_flip_and_letters():
    room = started_room()
    assert room.submit_melody(0, GOOD)
    assert room.phase == Phase.REPLAYING
    outcome = room.submit_attempt(1, BAD)
    assert not outcome.success
    assert outcome.letters == ['', 'M']
    assert outcome.current_turn == 1
    assert room.phase == Phase.RECORDING
    assert room.melody is None


def test_successful_attempt_adds_no_letter():
    room = started_room()
    room.submit_melody(0, GOOD)
    outcome = room.submit_attempt(1, list(GOOD))
    assert outcome.success
    assert room.letters == ['', '']
    assert room.current_turn == 1


def test_fifth_failure_ends_the_game():
    room = started_room()
    room.letters = ['', 'MAGI']
    room.current_turn = 0
    room.submit_melody(0, GOOD)
    outcome = room.submit_attempt(1, BAD)
    assert outcome.game_over
    assert outcome.loser == 1
    assert outcome.letters == ['', 'MAGIC']
    assert room.phase == Phase.ENDED
    assert room.submit_melody(0, GOOD) is False


def test_full_game_of_failures_for_one_player():
    room = started_room()
    outcome = None
    for _ in range(5):
        # keep player 1 on the replaying side
        room.current_turn = 0
        room.phase = Phase.RECORDING
        room.submit_melody(0, GOOD)
        outcome = room.submit_attempt(1, BAD)
    assert outcome.game_over and outcome.loser == 1
    assert room.letters[1] == 'MAGIC'


def test_next_letter_stops_at_full_word():
    room = started_room()
    room.letters = ['MAGIC', '']
    assert room.next_letter(0) == ''
    assert room.next_letter(1) == 'M'


def test_out_of_turn_actions_are_ignored():
    room = started_room()
    assert room.submit_melody(1, GOOD) is False
    assert room.phase == Phase.RECORDING and room.melody is None
    # nothing to replay yet
    assert room.submit_attempt(1, GOOD) is None
    room.submit_melody(0, GOOD)
    # the recorder cannot replay their own melody, nor re-record
    assert room.submit_attempt(0, GOOD) is None
    assert room.submit_melody(0, BAD) is False
    assert room.melody == GOOD
    assert room.letters == ['', '']


def test_new_game_resets_and_needs_two_players():
    lonely = Room(id='00000000')
    lonely.add_player('sid-a', 'Alice')
    assert lonely.new_game() is False
    assert lonely.phase == Phase.WAITING

    room = started_room()
    room.submit_melody(0, GOOD)
    room.submit_attempt(1, BAD)
    room.forfeit(0)
    assert room.phase == Phase.ENDED
    assert room.new_game()
    assert room.phase == Phase.RECORDING
    assert room.letters == ['', '']
    assert room.current_turn == 0
    assert room.melody is None


def test_forfeit_from_any_phase():
    room = started_room()
    room.submit_melody(0, GOOD)
    assert room.forfeit(1)
    assert room.phase == Phase.ENDED
    assert room.forfeit(None) is False


def test_custom_target_word():
    room = Room(id='abcd1234', target_word='MAGE')
    room.add_player('sid-a', 'Alice')
    room.add_player('sid-b', 'Bob')
    room.letters = ['', 'MAG']
    room.submit_melody(0, GOOD)
    outcome = room.submit_attempt(1, BAD)
    assert outcome.game_over and outcome.letters[1] == 'MAGE'


def test_registry_create_get_remove():
    registry = RoomRegistry()
    room = registry.create()
    assert re.fullmatch(r'[0-9a-f]{8}', room.id)
    assert registry.get(room.id) is room
    assert room.id in registry
    assert len(registry) == 1
    assert registry.remove(room.id) is room
    assert room.closed
    assert registry.get(room.id) is None
    assert registry.remove(room.id) is None
    assert registry.get(None) is None


def test_registry_ids_unique_under_concurrency():
    registry = RoomRegistry()
    ids = []
    lock = threading.Lock()

    def worker():
        made = [registry.create().id for _ in range(250)]
        with lock:
            ids.extend(made)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(ids) == 2000
    assert len(set(ids)) == 2000
    assert len(registry) == 2000


def test_registry_passes_target_word_to_rooms():
    assert RoomRegistry(target_word='MAGE').create().target_word == 'MAGE'
