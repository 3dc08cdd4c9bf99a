"""End-of-game highlights computed from the signull history."""

from typing import Dict, List, Tuple

from .state import GameInsight, Room, SignullStatus


MAX_INSIGHTS = 2

DYNAMIC_DUO = 'dynamic_duo'
OG_INTERCEPTOR = 'og_interceptor'
SIGNULL_MACHINE = 'signull_machine'
KNOWS_IT_ALL = 'knows_it_all'
LONGEST_WORD_VIBE = 'longest_word_vibe'

PRIORITY = {
    DYNAMIC_DUO: 1,
    OG_INTERCEPTOR: 2,
    SIGNULL_MACHINE: 3,
    KNOWS_IT_ALL: 4,
    LONGEST_WORD_VIBE: 5,
}


def _percent(ratio: float) -> int:
    return int(round(ratio * 100))


class _Ids:
    def __init__(self, now: float):
        self.stamp = int(now * 1000)
        self.counter = 0

    def __call__(self) -> str:
        self.counter += 1
        return f"insight_{self.stamp}_{self.counter:x}"


def _name(room: Room, player_id: str, fallback: str) -> str:
    player = room.players.get(player_id)
    return player.name if player else fallback


def _dynamic_duos(room: Room, new_id) -> List[GameInsight]:
    guessers = room.guesser_ids()
    # mutual[creator][connector] = correct connects by connector on creator's signulls
    mutual: Dict[str, Dict[str, int]] = {}
    for entry in room.ledger.entries():
        for c in entry.connects:
            if c.is_correct and c.player_id in guessers and c.player_id != entry.player_id:
                row = mutual.setdefault(entry.player_id, {})
                row[c.player_id] = row.get(c.player_id, 0) + 1

    pairs: List[Tuple[str, str, int]] = []
    for i, p1 in enumerate(guessers):
        for p2 in guessers[i + 1:]:
            one = mutual.get(p1, {}).get(p2, 0)
            two = mutual.get(p2, {}).get(p1, 0)
            if one >= 2 and two >= 2:
                pairs.append((p1, p2, one + two))
    if not pairs:
        return []

    best = max(total for _, _, total in pairs)
    return [
        GameInsight(
            id=new_id(),
            type=DYNAMIC_DUO,
            player_ids=[p1, p2],
            title=f"{_name(room, p1, 'Player')} & {_name(room, p2, 'Player')} are on the same wavelength!",
            subtitle=f"Connected to each other's signulls {total} times",
            metadata={'connects': total},
        )
        for p1, p2, total in pairs if total == best
    ]


def _og_interceptor(room: Room, new_id) -> List[GameInsight]:
    entries = room.ledger.entries()
    if len(entries) < 3 or not room.setter_id:
        return []
    blocked = sum(1 for e in entries if e.status is SignullStatus.BLOCKED)
    rate = blocked / len(entries)
    if rate < 0.7:
        return []
    return [GameInsight(
        id=new_id(),
        type=OG_INTERCEPTOR,
        player_ids=[room.setter_id],
        title=f"{_name(room, room.setter_id, 'Setter')} is the OG Interceptor!",
        subtitle=f"Blocked {_percent(rate)}% of all signulls",
        metadata={'percentage': _percent(rate), 'blocked': blocked, 'total': len(entries)},
    )]


def _signull_machine(room: Room, new_id) -> List[GameInsight]:
    resolved = [e for e in room.ledger.entries() if e.status is SignullStatus.RESOLVED]
    if len(resolved) < 2:
        return []
    counts: Dict[str, int] = {}
    for e in resolved:
        counts[e.player_id] = counts.get(e.player_id, 0) + 1
    # first creator in signull order wins a 50/50 split
    for pid, count in counts.items():
        ratio = count / len(resolved)
        if ratio >= 0.5:
            return [GameInsight(
                id=new_id(),
                type=SIGNULL_MACHINE,
                player_ids=[pid],
                title=f"{_name(room, pid, 'Player')} is a Signull Machine!",
                subtitle=f"Created {count} of {len(resolved)} resolved signulls",
                metadata={'count': count, 'total': len(resolved), 'percentage': _percent(ratio)},
            )]
    return []


def _knows_it_all(room: Room, new_id) -> List[GameInsight]:
    guessers = set(room.guesser_ids())
    stats: Dict[str, List[int]] = {}
    for entry in room.ledger.entries():
        for c in entry.connects:
            if c.player_id in guessers and c.player_id != entry.player_id:
                correct_total = stats.setdefault(c.player_id, [0, 0])
                correct_total[1] += 1
                if c.is_correct:
                    correct_total[0] += 1

    best = None
    for pid, (correct, total) in stats.items():
        if total < 3 or correct / total < 0.7:
            continue
        key = (correct / total, total)
        if best is None or key > best[0]:
            best = (key, pid, correct, total)
    if best is None:
        return []
    _, pid, correct, total = best
    rate = correct / total
    return [GameInsight(
        id=new_id(),
        type=KNOWS_IT_ALL,
        player_ids=[pid],
        title=f"{_name(room, pid, 'Player')} knows-it-all!",
        subtitle=f"Connected correctly {_percent(rate)}% of the time",
        metadata={'percentage': _percent(rate), 'correct': correct, 'total': total},
    )]


def _longest_word_vibe(room: Room, new_id) -> List[GameInsight]:
    resolved = [e for e in room.ledger.entries() if e.status is SignullStatus.RESOLVED]
    if not resolved:
        return []
    longest = resolved[0]
    for e in resolved[1:]:
        if len(e.word) > len(longest.word):
            longest = e
    return [GameInsight(
        id=new_id(),
        type=LONGEST_WORD_VIBE,
        player_ids=[longest.player_id],
        title=f"{_name(room, longest.player_id, 'Someone')} made everyone vibe on \"{longest.word}\"!",
        subtitle=f"That's a {len(longest.word)}-letter connection. Crazy!",
        metadata={'word': longest.word, 'length': len(longest.word)},
    )]


def compute_insights(room: Room, now: float) -> List[GameInsight]:
    """Return at most two insights, highest priority first.

    The longest-word fallback only fills a slot the four notable insights
    left open.
    """
    new_id = _Ids(now)
    found: List[GameInsight] = []
    for finder in (_dynamic_duos, _og_interceptor, _signull_machine, _knows_it_all):
        found.extend(finder(room, new_id))
    found.sort(key=lambda i: PRIORITY[i.type])
    top = found[:MAX_INSIGHTS]
    if len(top) < MAX_INSIGHTS:
        top.extend(_longest_word_vibe(room, new_id))
    return top[:MAX_INSIGHTS]
