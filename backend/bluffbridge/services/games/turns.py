"""Turn sequencing for a single room's game.

Every public function here takes the game it acts on and either applies
the action completely or raises ``ProtocolViolation`` before touching
anything. Callers are expected to hold the room lock.
"""
import logging
import random
from typing import List, Optional, Sequence

from bluffbridge.errors import InvariantViolation, ProtocolViolation
from bluffbridge.models import (
    DECISIONS,
    DECLARABLE_VALUES,
    DIE_FACES,
    ChallengePhase,
    DeclarePhase,
    EndPhase,
    Face,
    Game,
    GamePlayer,
    RollPhase,
    Rules,
    Seat,
)
from .resolution import compute_eligible_seats, resolve_challenge_round
from .scoring import has_movable_token, place_from_reserve, score, staged_count, token_total

logger = logging.getLogger(__name__)

REASON_INSTANT_WIN = "staging threshold reached"
REASON_STAGING_FULL = "staging full"
REASON_NO_MOVES = "no movable tokens"
REASON_OPPONENT_LEFT = "opponent left"


def roll_die(rng: random.Random) -> Face:
    return rng.choice(DIE_FACES)


def new_game(seats: Sequence[Seat], rules: Rules) -> Game:
    """Snapshot the seated players into a fresh game in the ROLL phase."""
    players = [
        GamePlayer(id=seat.sid, name=seat.name, color=seat.color, reserve=rules.tokens_per_player)
        for seat in seats
    ]
    for p in players:
        place_from_reserve(p)
    return Game(players=players, rules=rules, last_action="Game started")


# ---- End of game ----

def _end(game: Game, winner_id: Optional[str], reason: str, tied_ids: Optional[List[str]] = None) -> None:
    game.state = EndPhase(winner_id=winner_id, reason=reason, tied_ids=list(tied_ids or []))
    logger.info(f"[game-end] winner={winner_id} reason={reason!r} staging={len(game.staging)}")


def _end_by_score(game: Game, reason: str) -> None:
    # players who left keep their stairs and still count
    best = max(score(game.staging, p.id) for p in game.players)
    tied = [p.id for p in game.players if score(game.staging, p.id) == best]
    # Ties are reported in full; the first in seat order is named winner.
    _end(game, tied[0], f"{reason} ({best} points)", tied)


def check_end_conditions(game: Game) -> bool:
    if game.finished:
        return True

    for p in game.players:
        if staged_count(game.staging, p.id) >= game.rules.instant_win_staged:
            _end(game, p.id, REASON_INSTANT_WIN)
            return True

    if len(game.staging) >= game.rules.staging_slots:
        _end_by_score(game, REASON_STAGING_FULL)
        return True

    if not any(p.present and has_movable_token(p) for p in game.players):
        _end_by_score(game, REASON_NO_MOVES)
        return True

    return False


def _next_seat(game: Game) -> int:
    return (game.turn_seat + 1) % len(game.players)


def _pass_absent_turns(game: Game) -> None:
    while not game.finished and not game.active_player.present:
        game.last_action = f"{game.active_player.name} is gone, turn passed"
        game.turn_seat = _next_seat(game)
        check_end_conditions(game)


def _finish_turn(game: Game) -> None:
    if check_end_conditions(game):
        return
    game.turn_seat = _next_seat(game)
    game.state = RollPhase()
    _pass_absent_turns(game)


# ---- Player actions ----

def _require_turn(game: Game, seat: Optional[int], phase_cls) -> None:
    if game.finished:
        raise ProtocolViolation("game is over")
    if not isinstance(game.state, phase_cls):
        raise ProtocolViolation(f"not in {phase_cls.phase.value} phase")
    if seat != game.turn_seat:
        raise ProtocolViolation(f"seat {seat} is not the turn seat")


def roll(game: Game, seat: Optional[int], rng: random.Random) -> Optional[Face]:
    """Roll for the active seat.

    Returns the hidden face, to be revealed to the roller only, or None
    when the active player had nothing to move and the turn was passed.
    """
    _require_turn(game, seat, RollPhase)
    actor = game.active_player

    if not has_movable_token(actor):
        game.last_action = f"{actor.name} has no tokens to move, turn passed"
        game.turn_seat = _next_seat(game)
        if not check_end_conditions(game):
            _pass_absent_turns(game)
        return None

    place_from_reserve(actor)
    face = roll_die(rng)
    game.state = DeclarePhase(roll=face)
    game.last_action = f"{actor.name} rolled (hidden)"
    return face


def declare(game: Game, seat: Optional[int], value) -> None:
    _require_turn(game, seat, DeclarePhase)
    try:
        declared = int(value)
    except (TypeError, ValueError):
        raise ProtocolViolation(f"invalid declaration {value!r}")
    if declared not in DECLARABLE_VALUES:
        raise ProtocolViolation(f"invalid declaration {value!r}")

    hidden = game.state.roll
    eligible = compute_eligible_seats(game)
    game.state = ChallengePhase(roll=hidden, declared=declared, eligible=eligible)
    game.last_action = f"{game.active_player.name} declared {declared}"

    if not eligible:
        game.last_action = f"{game.active_player.name} declared {declared}, nobody can answer, moves {declared}"
        _resolve(game)


def decide(game: Game, seat: Optional[int], decision) -> None:
    if game.finished:
        raise ProtocolViolation("game is over")
    state = game.state
    if not isinstance(state, ChallengePhase):
        raise ProtocolViolation("not in CHALLENGE phase")
    if seat is None or seat not in state.eligible:
        raise ProtocolViolation(f"seat {seat} may not decide")
    if seat in state.decisions:
        raise ProtocolViolation(f"seat {seat} already decided")
    if decision not in DECISIONS:
        raise ProtocolViolation(f"invalid decision {decision!r}")

    state.decisions[seat] = decision
    pending = state.pending()
    if pending:
        game.last_action = f"Decisions: {len(state.decisions)}/{len(state.eligible)}"
        return
    _resolve(game)


def _resolve(game: Game) -> None:
    state = game.state
    challengers = state.challengers
    reveal = resolve_challenge_round(game, state.roll, state.declared, challengers)
    actor = game.active_player

    if challengers:
        game.last_reveal = reveal
        verdict = "truthful" if reveal.truthful else "lie or blank"
        game.last_action = (
            f"Revealed {reveal.roll}: {verdict}, {len(challengers)} challenger(s)"
        )
    elif state.eligible:
        game.last_action = f"Everyone believed {actor.name}, moves {state.declared}"
    _finish_turn(game)


def depart(game: Game, player_id: str) -> None:
    """Handle a player leaving mid-game.

    Fewer than two players left ends the game in favour of whoever stays.
    Otherwise the player remains on the board but no longer takes part.
    """
    if game.finished:
        return
    seat = game.seat_of(player_id)
    if seat is None:
        return
    game.players[seat].present = False
    remaining = [p for p in game.players if p.present]
    if len(remaining) < 2:
        winner = remaining[0].id if remaining else None
        game.last_action = f"{game.players[seat].name} left"
        _end(game, winner, REASON_OPPONENT_LEFT)
        return

    game.last_action = f"{game.players[seat].name} left"
    state = game.state
    if seat == game.turn_seat:
        if isinstance(state, RollPhase):
            _pass_absent_turns(game)
        else:
            # the hidden roll is discarded with the abandoned turn
            _finish_turn(game)
        return

    if isinstance(state, ChallengePhase) and seat in state.eligible:
        state.eligible = [s for s in state.eligible if s != seat]
        state.decisions.pop(seat, None)
        if not state.pending():
            _resolve(game)


# ---- Consistency ----

def check_invariants(game: Game) -> None:
    rules = game.rules
    if len(game.staging) > rules.staging_slots:
        raise InvariantViolation(f"staging holds {len(game.staging)} > {rules.staging_slots}")
    if not 0 <= game.turn_seat < len(game.players):
        raise InvariantViolation(f"turn seat {game.turn_seat} out of range")
    for p in game.players:
        total = token_total(game.staging, p)
        if total != rules.tokens_per_player:
            raise InvariantViolation(f"player {p.id} holds {total} tokens, expected {rules.tokens_per_player}")
        if p.reserve < 0 or p.eliminated < 0:
            raise InvariantViolation(f"player {p.id} has negative counts")
        if p.on_bridge is not None and not 0 <= p.on_bridge < rules.track_length:
            raise InvariantViolation(f"player {p.id} off the bridge at {p.on_bridge}")
    state = game.state
    if isinstance(state, ChallengePhase) and game.turn_seat in state.eligible:
        raise InvariantViolation("active seat is eligible to decide")


def challengers_of(game: Game) -> List[int]:
    state = game.state
    if isinstance(state, ChallengePhase):
        return state.challengers
    return []


def decision_count(game: Game) -> int:
    state = game.state
    if isinstance(state, ChallengePhase):
        return len(state.decisions)
    return 0
