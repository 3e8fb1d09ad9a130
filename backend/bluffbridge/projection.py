"""Public view of a room, as broadcast in ``room:update``.

Computed fresh from the live room on every mutation and never stored. The
hidden roll only appears through ``lastReveal``, after a challenged round
has already resolved.
"""
from typing import Any, Dict, Optional

from bluffbridge.models import EndPhase, Game, Room
from bluffbridge.services.games.scoring import has_movable_token, score, staged_count
from bluffbridge.services.games.turns import challengers_of, decision_count


def game_to_dict(game: Game) -> Dict[str, Any]:
    state = game.state
    ended = state if isinstance(state, EndPhase) else None
    reveal = game.last_reveal
    rules = game.rules
    return {
        'started': True,
        'phase': game.phase.value,
        'turnSeat': game.turn_seat,
        'declared': getattr(state, 'declared', None),
        'lastAction': game.last_action,
        'winnerId': ended.winner_id if ended else None,
        'winnerReason': ended.reason if ended else None,
        'tiedIds': list(ended.tied_ids) if ended else [],
        'bridgeLen': rules.track_length,
        'stairsSlots': rules.staging_slots,
        'pawnsTotal': rules.tokens_per_player,
        'instantWinStairs': rules.instant_win_staged,
        'stairsOrder': list(game.staging),
        'challengers': challengers_of(game),
        'eligibleSeats': list(getattr(state, 'eligible', [])),
        'decisionsCount': decision_count(game),
        'lastReveal': {
            'roll': reveal.roll,
            'declared': reveal.declared,
            'truthful': reveal.truthful,
            'challengers': list(reveal.challengers),
        } if reveal else None,
        'players': [
            {
                'id': p.id,
                'name': p.name,
                'color': p.color,
                'reserve': p.reserve,
                'onBridge': p.on_bridge,
                'eliminated': p.eliminated,
                'stairsCount': staged_count(game.staging, p.id),
                'score': score(game.staging, p.id),
                'movable': has_movable_token(p),
                'present': p.present,
            }
            for p in game.players
        ],
    }


def _seat_number(room: Room, idx: int, sid: str) -> int:
    # once a game runs, seats are numbered like turnSeat and eligibleSeats,
    # which keep counting players who have left
    if room.game is not None:
        game_seat = room.game.seat_of(sid)
        if game_seat is not None:
            return game_seat
    return idx


def public_state(room: Room) -> Dict[str, Any]:
    game: Optional[Dict[str, Any]] = game_to_dict(room.game) if room.game else None
    return {
        'code': room.code,
        'hostId': room.host_id,
        'started': room.started,
        'players': [
            {'socketId': seat.sid, 'name': seat.name, 'color': seat.color, 'seat': _seat_number(room, idx, seat.sid)}
            for idx, seat in enumerate(room.seats)
        ],
        'game': game,
    }
