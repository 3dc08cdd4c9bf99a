import pytest

from signull.services.game import lobby
from signull.services.game.errors import GameError
from signull.services.game.state import Phase, PlayMode, Role, ScoreEvent, Settings


def test_new_room_creator_is_host_and_setter():
    room = lobby.new_room('BAKU42', 'p1', '  Sam ', Settings(direct_guesses=4), 5.0)
    assert room.host_id == 'p1'
    assert room.setter_id == 'p1'
    assert room.players['p1'].name == 'Sam'
    assert room.players['p1'].role is Role.SETTER
    assert room.direct_guesses_left == 4
    assert room.phase is Phase.LOBBY


def test_join_and_rejoin(room_factory):
    room = room_factory(phase=Phase.LOBBY, guessers=('A',))
    assert lobby.join(room, 'B', 'Bea', 9.0) is Role.GUESSER
    room.players['B'].online = False
    assert lobby.join(room, 'B', 'Someone else', 10.0) is Role.GUESSER
    assert room.players['B'].online is True
    assert room.players['B'].name == 'Bea'
    assert len(room.players) == 3


def test_join_rejections(room_factory):
    room = room_factory(phase=Phase.LOBBY, guessers=('A', 'B'), max_players=3)
    with pytest.raises(GameError) as exc:
        lobby.join(room, 'C', 'Cy', 1.0)
    assert exc.value.code == 'ROOM_FULL'

    room = room_factory(phase=Phase.LOBBY)
    with pytest.raises(GameError) as exc:
        lobby.join(room, 'E', 'x' * 21, 1.0)
    assert exc.value.code == 'INVALID_NAME'

    room.phase = Phase.ENDED
    with pytest.raises(GameError) as exc:
        lobby.join(room, 'E', 'Eve', 1.0)
    assert exc.value.code == 'INVALID_PHASE'


def test_returning_player_score_rebuilt_from_events(room_factory, check_scores):
    room = room_factory(phase=Phase.LOBBY, guessers=('A',))
    room.players['A'].score = 15
    room.score_events.append(ScoreEvent('A', 15, 'signull_resolved', 1.0))
    lobby.leave(room, 'A')
    lobby.join(room, 'A', 'Ann', 2.0)
    assert room.players['A'].score == 15
    check_scores(room)


def test_leave_hands_roles_to_earliest_joiner(room_factory):
    room = room_factory(phase=Phase.SETTING)
    assert lobby.leave(room, 'S') is False
    assert room.host_id == 'A'
    assert room.setter_id == 'A'
    assert room.players['A'].role is Role.SETTER

    for pid in ('A', 'B', 'C'):
        assert lobby.leave(room, pid) is False
    assert lobby.leave(room, 'D') is True
    assert room.host_id is None

    with pytest.raises(GameError) as exc:
        lobby.leave(room, 'D')
    assert exc.value.code == 'PLAYER_NOT_FOUND'


def test_set_presence(room_factory):
    room = room_factory()
    lobby.set_presence(room, 'A', False, 20.0)
    assert room.players['A'].online is False
    assert room.players['A'].last_active == 20.0
    with pytest.raises(GameError):
        lobby.set_presence(room, 'ghost', True, 21.0)


def test_update_settings_merges_patch(room_factory):
    room = room_factory(phase=Phase.LOBBY)
    settings = lobby.update_settings(room, 'S', {'play_mode': 'free', 'direct_guesses': 5})
    assert settings.play_mode is PlayMode.FREE
    assert settings.connects_required == 2
    assert room.direct_guesses_left == 5


@pytest.mark.parametrize('patch, field', [
    ({'play_mode': 'chaos'}, 'play_mode'),
    ({'connects_required': 0}, 'connects_required'),
    ({'max_players': 2}, 'max_players'),
    ({'max_players': 13}, 'max_players'),
    ({'max_players': 4}, 'max_players'),
    ({'time_limit_seconds': 5}, 'time_limit_seconds'),
    ({'time_limit_seconds': 301}, 'time_limit_seconds'),
    ({'prefix_mode': 'yes'}, 'prefix_mode'),
    ({'connects_required': True}, 'connects_required'),
    ({'colour': 'red'}, 'colour'),
])
def test_update_settings_validation(room_factory, patch, field):
    # five players seated, so max_players=4 is too small
    room = room_factory(phase=Phase.LOBBY)
    with pytest.raises(GameError) as exc:
        lobby.update_settings(room, 'S', patch)
    assert exc.value.code == 'INVALID_SETTINGS'
    assert exc.value.details == {'field': field}


def test_update_settings_guards(room_factory):
    room = room_factory(phase=Phase.LOBBY)
    with pytest.raises(GameError) as exc:
        lobby.update_settings(room, 'A', {'play_mode': 'free'})
    assert exc.value.code == 'NOT_HOST'

    room.phase = Phase.SIGNULLS
    with pytest.raises(GameError) as exc:
        lobby.update_settings(room, 'S', {'play_mode': 'free'})
    assert exc.value.code == 'INVALID_PHASE'
