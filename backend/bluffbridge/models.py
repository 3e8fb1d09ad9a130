import random
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

PLAYER_COLORS: List[str] = ["#ff5a5f", "#4dabf7", "#69db7c", "#ffd43b"]
ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 5
NAME_MAX_LENGTH = 12
DEFAULT_PLAYER_NAME = "Player"

BLANK_FACE = "X"
DIE_FACES: Tuple[Union[int, str], ...] = (1, 2, 3, 4, BLANK_FACE, BLANK_FACE)
DECLARABLE_VALUES: Tuple[int, ...] = (1, 2, 3, 4)

BELIEVE = "believe"
CHALLENGE = "challenge"
DECISIONS = (BELIEVE, CHALLENGE)

Face = Union[int, str]


@dataclass(frozen=True)
class Rules:
    track_length: int = 8
    staging_slots: int = 10
    tokens_per_player: int = 7
    instant_win_staged: int = 3

    @classmethod
    def from_config(cls, config) -> "Rules":
        return cls(
            track_length=int(config.get("TRACK_LENGTH", cls.track_length)),
            staging_slots=int(config.get("STAGING_SLOTS", cls.staging_slots)),
            tokens_per_player=int(config.get("TOKENS_PER_PLAYER", cls.tokens_per_player)),
            instant_win_staged=int(config.get("INSTANT_WIN_STAGED", cls.instant_win_staged)),
        )


class Phase(str, Enum):
    ROLL = "ROLL"
    DECLARE = "DECLARE"
    CHALLENGE = "CHALLENGE"
    RESOLVE = "RESOLVE"
    END = "END"


@dataclass
class RollPhase:
    phase = Phase.ROLL


@dataclass
class DeclarePhase:
    roll: Face
    phase = Phase.DECLARE


@dataclass
class ChallengePhase:
    roll: Face
    declared: int
    eligible: List[int]
    # seat -> decision, in commit order
    decisions: Dict[int, str] = field(default_factory=dict)
    phase = Phase.CHALLENGE

    @property
    def challengers(self) -> List[int]:
        return [seat for seat, d in self.decisions.items() if d == CHALLENGE]

    def pending(self) -> List[int]:
        return [seat for seat in self.eligible if seat not in self.decisions]


@dataclass
class EndPhase:
    winner_id: Optional[str]
    reason: str
    tied_ids: List[str] = field(default_factory=list)
    phase = Phase.END


PhaseState = Union[RollPhase, DeclarePhase, ChallengePhase, EndPhase]


@dataclass
class GamePlayer:
    id: str
    name: str
    color: str
    reserve: int
    on_bridge: Optional[int] = None
    eliminated: int = 0
    present: bool = True


@dataclass
class Reveal:
    """Outcome of a challenged round, public once it has resolved."""
    roll: Face
    declared: int
    truthful: bool
    challengers: List[int]


@dataclass
class Game:
    players: List[GamePlayer]
    rules: Rules
    turn_seat: int = 0
    state: PhaseState = field(default_factory=RollPhase)
    staging: List[str] = field(default_factory=list)
    last_action: Optional[str] = None
    last_reveal: Optional[Reveal] = None

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def active_player(self) -> GamePlayer:
        return self.players[self.turn_seat]

    @property
    def finished(self) -> bool:
        return isinstance(self.state, EndPhase)

    def seat_of(self, player_id: str) -> Optional[int]:
        for idx, p in enumerate(self.players):
            if p.id == player_id:
                return idx
        return None


@dataclass
class Seat:
    sid: str
    name: str
    color: Optional[str] = None


@dataclass
class Room:
    code: str
    host_id: str
    seats: List[Seat] = field(default_factory=list)
    started: bool = False
    game: Optional[Game] = None
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)
    rng: Optional[random.Random] = field(default=None, repr=False, compare=False)

    def seat_index(self, sid: str) -> Optional[int]:
        for idx, seat in enumerate(self.seats):
            if seat.sid == sid:
                return idx
        return None

    def recolor(self) -> None:
        for idx, seat in enumerate(self.seats):
            seat.color = PLAYER_COLORS[idx % len(PLAYER_COLORS)]


def clean_name(value) -> str:
    if value is None:
        return DEFAULT_PLAYER_NAME
    text = "".join(ch for ch in str(value) if ch.isprintable())
    text = " ".join(text.split())
    if not text:
        return DEFAULT_PLAYER_NAME
    return text[:NAME_MAX_LENGTH]
