import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bluffbridge.models import BELIEVE, BLANK_FACE, CHALLENGE, DECLARABLE_VALUES, ChallengePhase, Rules
from bluffbridge.registry import RoomRegistry


@dataclass
class AutoplayResult:
    snapshot: Dict[str, Any]
    turns: int
    log: List[str] = field(default_factory=list)


def play_bot_game(
    players: int = 2,
    rules: Optional[Rules] = None,
    seed: Optional[int] = None,
    challenge_rate: float = 0.3,
    bluff_rate: float = 0.2,
    max_turns: int = 1000,
) -> AutoplayResult:
    """Run a whole game through a private registry with naive bots.

    Bots tell the truth unless the die shows a blank or they decide to
    bluff, and challenge at random with ``challenge_rate``.
    """
    registry = RoomRegistry(rules=rules, seed=seed)
    bots = [f"bot-{n}" for n in range(1, players + 1)]
    room = registry.create_room(bots[0], "Bot 1")
    for n, sid in enumerate(bots[1:], start=2):
        registry.join_room(sid, room.code, f"Bot {n}")
    registry.start_game(bots[0], room.code)

    choices = random.Random(seed)
    log: List[str] = []
    turns = 0
    while not room.game.finished and turns < max_turns:
        actor = room.game.active_player.id
        face = registry.roll(actor, room.code)
        turns += 1
        if face is None:
            log.append(room.game.last_action)
            continue

        if face == BLANK_FACE or choices.random() < bluff_rate:
            declared = choices.choice(DECLARABLE_VALUES)
        else:
            declared = face
        registry.declare(actor, room.code, declared)

        state = room.game.state
        if isinstance(state, ChallengePhase):
            for seat in state.pending():
                decider = room.game.players[seat].id
                decision = CHALLENGE if choices.random() < challenge_rate else BELIEVE
                registry.decide(decider, room.code, decision)
        log.append(room.game.last_action)

    return AutoplayResult(snapshot=registry.snapshot(room.code), turns=turns, log=log)
