from typing import List, NamedTuple

from bluffbridge.models import GamePlayer, Rules


class Move(NamedTuple):
    moved: bool
    staged: bool


def has_movable_token(player: GamePlayer) -> bool:
    return player.reserve > 0 or player.on_bridge is not None


def place_from_reserve(player: GamePlayer) -> bool:
    """Put a reserve token at the start of the bridge if none is on it."""
    if player.on_bridge is not None:
        return False
    if player.reserve <= 0:
        return False
    player.reserve -= 1
    player.on_bridge = 0
    return True


def drop(player: GamePlayer) -> bool:
    """Knock the player's token off the bridge and bring on the next one."""
    if player.on_bridge is None:
        return False
    player.on_bridge = None
    player.eliminated += 1
    place_from_reserve(player)
    return True


def advance(staging: List[str], player: GamePlayer, steps: int, rules: Rules) -> Move:
    """Move the player's bridge token forward by ``steps``.

    A token reaching the end of the bridge climbs onto the stairs when a
    slot is free. When the stairs are already full the token has nowhere to
    go and counts as eliminated; the caller ends the game in that case.
    """
    if player.on_bridge is None and not place_from_reserve(player):
        return Move(moved=False, staged=False)

    new_pos = player.on_bridge + steps
    if new_pos < rules.track_length:
        player.on_bridge = new_pos
        return Move(moved=True, staged=False)

    player.on_bridge = None
    staged = len(staging) < rules.staging_slots
    if staged:
        staging.append(player.id)
    else:
        player.eliminated += 1
    place_from_reserve(player)
    return Move(moved=True, staged=staged)


def remove_one_staged(staging: List[str], player_id: str) -> bool:
    """Remove the player's lowest stair; later stairs shift down one point."""
    try:
        staging.remove(player_id)
    except ValueError:
        return False
    return True


def penalize(staging: List[str], player: GamePlayer) -> bool:
    """Take one token from a player who lost a challenge.

    The bridge token falls if there is one; otherwise the lowest stair is
    forfeited. Either way the token ends up eliminated.
    """
    if drop(player):
        return True
    if remove_one_staged(staging, player.id):
        player.eliminated += 1
        return True
    return False


def score(staging: List[str], player_id: str) -> int:
    return sum(idx + 1 for idx, pid in enumerate(staging) if pid == player_id)


def staged_count(staging: List[str], player_id: str) -> int:
    return sum(1 for pid in staging if pid == player_id)


def token_total(staging: List[str], player: GamePlayer) -> int:
    on_bridge = 1 if player.on_bridge is not None else 0
    return player.reserve + on_bridge + player.eliminated + staged_count(staging, player.id)
