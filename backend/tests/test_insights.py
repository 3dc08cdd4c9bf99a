from signull.services.game.insights import compute_insights
from signull.services.game.state import SignullConnect, SignullEntry, SignullStatus


def _add(room, sid, creator, word, status, correct=(), wrong=()):
    entry = SignullEntry(id=sid, player_id=creator, word=word, clue='clue', stage=0, status=status)
    for pid in correct:
        entry.connects.append(SignullConnect(pid, word, True, 1.0))
    for pid in wrong:
        entry.connects.append(SignullConnect(pid, 'NOPE', False, 1.0))
    room.ledger.add(entry)
    return entry


def _types(insights):
    return [i.type for i in insights]


def test_dynamic_duo_with_longest_word_fallback(room_factory):
    room = room_factory()
    _add(room, 'sn_1', 'A', 'OX', SignullStatus.FAILED, correct=['B'])
    _add(room, 'sn_2', 'A', 'OXEN', SignullStatus.FAILED, correct=['B'])
    _add(room, 'sn_3', 'B', 'OAK', SignullStatus.FAILED, correct=['A'])
    _add(room, 'sn_4', 'B', 'ORB', SignullStatus.FAILED, correct=['A'])
    _add(room, 'sn_5', 'C', 'OXBOW', SignullStatus.RESOLVED, correct=['D'])

    insights = compute_insights(room, 100.0)
    assert _types(insights) == ['dynamic_duo', 'longest_word_vibe']
    duo, vibe = insights
    assert duo.player_ids == ['A', 'B']
    assert duo.metadata == {'connects': 4}
    assert vibe.player_ids == ['C']
    assert vibe.metadata == {'word': 'OXBOW', 'length': 5}
    assert duo.id != vibe.id


def test_all_tied_duos_are_reported(room_factory):
    room = room_factory()
    for i, (creator, connector) in enumerate([('A', 'B'), ('A', 'B'), ('B', 'A'), ('B', 'A'),
                                              ('C', 'D'), ('C', 'D'), ('D', 'C'), ('D', 'C')]):
        _add(room, f'sn_{i}', creator, 'OX', SignullStatus.FAILED, correct=[connector])

    insights = compute_insights(room, 100.0)
    assert _types(insights) == ['dynamic_duo', 'dynamic_duo']
    assert [i.player_ids for i in insights] == [['A', 'B'], ['C', 'D']]


def test_og_interceptor(room_factory):
    room = room_factory()
    for i in range(3):
        _add(room, f'sn_{i}', 'A', 'OX', SignullStatus.BLOCKED, correct=['S'])

    insights = compute_insights(room, 100.0)
    assert _types(insights) == ['og_interceptor']
    assert insights[0].player_ids == ['S']
    assert insights[0].metadata['percentage'] == 100


def test_og_interceptor_needs_three_signulls(room_factory):
    room = room_factory()
    for i in range(2):
        _add(room, f'sn_{i}', 'A', 'OX', SignullStatus.BLOCKED, correct=['S'])
    assert compute_insights(room, 100.0) == []


def test_signull_machine(room_factory):
    room = room_factory()
    _add(room, 'sn_1', 'A', 'OX', SignullStatus.RESOLVED, correct=['C'])
    _add(room, 'sn_2', 'A', 'OXEN', SignullStatus.RESOLVED, correct=['D'])
    _add(room, 'sn_3', 'B', 'OXYGENATE', SignullStatus.RESOLVED, correct=['C'])

    insights = compute_insights(room, 100.0)
    assert _types(insights) == ['signull_machine', 'longest_word_vibe']
    assert insights[0].player_ids == ['A']
    assert insights[0].metadata == {'count': 2, 'total': 3, 'percentage': 67}
    assert insights[1].metadata['word'] == 'OXYGENATE'


def test_knows_it_all_ignores_own_signulls(room_factory):
    room = room_factory()
    for i in range(3):
        _add(room, f'sn_{i}', 'A', 'OX', SignullStatus.FAILED, correct=['C'], wrong=['B'])

    insights = compute_insights(room, 100.0)
    assert _types(insights) == ['knows_it_all']
    assert insights[0].player_ids == ['C']
    assert insights[0].metadata == {'percentage': 100, 'correct': 3, 'total': 3}


def test_only_top_two_by_priority(room_factory):
    room = room_factory()
    for i in range(3):
        _add(room, f'sn_{i}', 'A', 'OX', SignullStatus.BLOCKED, correct=['S', 'C'])
    _add(room, 'sn_9', 'B', 'OXEN', SignullStatus.BLOCKED, correct=['S'])

    insights = compute_insights(room, 100.0)
    assert _types(insights) == ['og_interceptor', 'knows_it_all']


def test_nothing_notable_and_nothing_resolved(room_factory):
    room = room_factory()
    _add(room, 'sn_1', 'A', 'OX', SignullStatus.FAILED, wrong=['B', 'C', 'D'])
    assert compute_insights(room, 100.0) == []
