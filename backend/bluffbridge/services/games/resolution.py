from typing import List

from bluffbridge.models import BLANK_FACE, Face, Game, Reveal
from .scoring import advance, drop, has_movable_token, penalize, place_from_reserve, staged_count


def can_decide(game: Game, seat: int) -> bool:
    """Whether ``seat`` may believe or challenge the current declaration.

    The active player never decides. Anyone else needs something at stake:
    a token still to move, or at least one token on the stairs.
    """
    if seat == game.turn_seat:
        return False
    player = game.players[seat]
    if not player.present:
        return False
    if has_movable_token(player):
        return True
    return staged_count(game.staging, player.id) > 0


def compute_eligible_seats(game: Game) -> List[int]:
    return [seat for seat in range(len(game.players)) if can_decide(game, seat)]


def is_truthful(roll: Face, declared: int) -> bool:
    return roll != BLANK_FACE and roll == declared


def resolve_challenge_round(game: Game, roll: Face, declared: int, challengers: List[int]) -> Reveal:
    """Apply the outcome of a declaration to the board.

    ``challengers`` is in commit order; each penalty sees the stairs as
    left by the previous one.
    """
    actor = game.active_player
    truthful = is_truthful(roll, declared)

    if not challengers:
        advance(game.staging, actor, declared, game.rules)
    elif truthful:
        for seat in challengers:
            penalize(game.staging, game.players[seat])
        advance(game.staging, actor, declared, game.rules)
    else:
        place_from_reserve(actor)
        drop(actor)
        for seat in challengers:
            advance(game.staging, game.players[seat], declared, game.rules)

    return Reveal(roll=roll, declared=declared, truthful=truthful, challengers=list(challengers))
