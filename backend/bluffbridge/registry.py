"""Live rooms, their seats, and dispatch of player actions.

The registry is the only place that knows which connection sits where. All
work on a room happens while holding that room's lock, so actions for one
room are applied and broadcast strictly in arrival order. When both locks
are needed the room lock is taken first.
"""
import copy
import logging
import random
import threading
from typing import Any, Callable, Dict, List, Optional

from bluffbridge.errors import (
    AlreadyStarted,
    InvariantViolation,
    NotEnoughPlayers,
    NotHost,
    ProtocolViolation,
    RoomFull,
    RoomNotFound,
)
from bluffbridge.models import ROOM_CODE_ALPHABET, ROOM_CODE_LENGTH, Face, Room, Rules, Seat, clean_name
from bluffbridge.projection import public_state
from bluffbridge.services.games import turns

logger = logging.getLogger(__name__)


class Broadcaster:
    """Outbound side of the transport. The default drops everything."""

    def subscribe(self, sid: str, code: str) -> None:
        pass

    def unsubscribe(self, sid: str, code: str) -> None:
        pass

    def room_update(self, code: str, snapshot: Dict[str, Any]) -> None:
        pass

    def private_roll(self, sid: str, roll: Face) -> None:
        pass


def normalize_code(code) -> str:
    return str(code or '').strip().upper()


class RoomRegistry:
    def __init__(
        self,
        rules: Optional[Rules] = None,
        broadcaster: Optional[Broadcaster] = None,
        rng_factory: Optional[Callable[[], random.Random]] = None,
        seed: Optional[int] = None,
        max_seats: int = 4,
        min_players: int = 2,
        shuffle_seats: bool = True,
    ) -> None:
        self.rules = rules or Rules()
        self.broadcaster = broadcaster or Broadcaster()
        self.max_seats = max_seats
        self.min_players = min_players
        self.shuffle_seats = shuffle_seats
        self._seed_source = random.Random(seed)
        self._rng_factory = rng_factory or (lambda: random.Random(self._seed_source.getrandbits(64)))
        self._rooms: Dict[str, Room] = {}
        self._sid_to_code: Dict[str, str] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config, broadcaster: Optional[Broadcaster] = None) -> "RoomRegistry":
        seed = config.get('RNG_SEED')
        return cls(
            rules=Rules.from_config(config),
            broadcaster=broadcaster,
            seed=int(seed) if seed not in (None, '') else None,
            max_seats=int(config.get('MAX_SEATS', 4)),
            min_players=int(config.get('MIN_PLAYERS', 2)),
            shuffle_seats=bool(config.get('SHUFFLE_SEATS', True)),
        )

    # ---- Lookup ----

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)

    def __contains__(self, code) -> bool:
        with self._lock:
            return normalize_code(code) in self._rooms

    def lookup(self, code) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(normalize_code(code))

    def room_of(self, sid: str) -> Optional[Room]:
        with self._lock:
            code = self._sid_to_code.get(sid)
            return self._rooms.get(code) if code else None

    def codes(self) -> List[str]:
        with self._lock:
            return list(self._rooms)

    def snapshot(self, code) -> Optional[Dict[str, Any]]:
        room = self.lookup(code)
        if room is None:
            return None
        with room.lock:
            return public_state(room)

    def _generate_code(self) -> str:
        while True:
            code = ''.join(self._seed_source.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))
            if code not in self._rooms:
                return code

    def _publish(self, room: Room) -> None:
        self.broadcaster.room_update(room.code, public_state(room))

    # ---- Membership ----

    def create_room(self, sid: str, name=None) -> Room:
        self.leave(sid)
        with self._lock:
            code = self._generate_code()
            room = Room(code=code, host_id=sid, seats=[Seat(sid=sid, name=clean_name(name))], rng=self._rng_factory())
            room.recolor()
            self._rooms[code] = room
            self._sid_to_code[sid] = code
        logger.info(f"[room-create] room={code} host={sid}")
        with room.lock:
            self.broadcaster.subscribe(sid, code)
            self._publish(room)
        return room

    def join_room(self, sid: str, code, name=None) -> Room:
        code = normalize_code(code)
        current = self.room_of(sid)
        if current is not None and current.code == code:
            return current
        room = self.lookup(code)
        if room is None:
            raise RoomNotFound()
        # checked before leaving so a rejected join keeps the current seat
        with room.lock:
            if room.started:
                raise AlreadyStarted()
            if len(room.seats) >= self.max_seats:
                raise RoomFull(f"Room is full (max {self.max_seats} players)")
        if current is not None:
            self.leave(sid)

        with room.lock:
            with self._lock:
                if self._rooms.get(code) is not room:
                    raise RoomNotFound()
            if room.started:
                raise AlreadyStarted()
            if len(room.seats) >= self.max_seats:
                raise RoomFull(f"Room is full (max {self.max_seats} players)")
            room.seats.append(Seat(sid=sid, name=clean_name(name)))
            room.recolor()
            with self._lock:
                self._sid_to_code[sid] = code
            logger.info(f"[room-join] room={code} sid={sid} seats={len(room.seats)}")
            self.broadcaster.subscribe(sid, code)
            self._publish(room)
        return room

    def leave(self, sid: str) -> Optional[Room]:
        """Remove ``sid`` from whatever room it sits in. Safe to repeat."""
        room = self.room_of(sid)
        if room is None:
            return None
        with room.lock:
            idx = room.seat_index(sid)
            with self._lock:
                self._sid_to_code.pop(sid, None)
            if idx is None:
                return None
            room.seats.pop(idx)
            self.broadcaster.unsubscribe(sid, room.code)
            logger.info(f"[room-leave] room={room.code} sid={sid} seats={len(room.seats)}")

            if not room.seats:
                with self._lock:
                    self._rooms.pop(room.code, None)
                logger.info(f"[room-close] room={room.code}")
                return room

            if room.host_id == sid:
                room.host_id = room.seats[0].sid
            room.recolor()
            if room.game is not None:
                try:
                    self._apply(room, turns.depart, sid)
                except InvariantViolation:
                    # logged by _apply; the seat is gone either way
                    pass
            self._publish(room)
        return room

    # ---- Game actions ----

    def _room_for_action(self, code) -> Room:
        room = self.lookup(code)
        if room is None:
            raise ProtocolViolation(f"unknown room {code!r}")
        return room

    def _apply(self, room: Room, action, *args):
        """Run ``action`` against a copy of the game and keep it if sound."""
        candidate = copy.deepcopy(room.game)
        result = action(candidate, *args)
        try:
            turns.check_invariants(candidate)
        except InvariantViolation:
            logger.exception(f"[invariant] room={room.code} action={getattr(action, '__name__', action)} discarded")
            raise
        room.game = candidate
        return result

    def start_game(self, sid: str, code) -> Room:
        room = self._room_for_action(code)
        with room.lock:
            if room.host_id != sid:
                raise NotHost()
            if room.started:
                raise ProtocolViolation(f"room {room.code} already started")
            if len(room.seats) < self.min_players:
                raise NotEnoughPlayers(f"At least {self.min_players} players are required to start")
            if self.shuffle_seats:
                room.rng.shuffle(room.seats)
            game = turns.new_game(room.seats, self.rules)
            turns.check_invariants(game)
            room.game = game
            room.started = True
            logger.info(f"[game-start] room={room.code} order={[s.sid for s in room.seats]}")
            self._publish(room)
        return room

    def roll(self, sid: str, code) -> Optional[Face]:
        room = self._room_for_action(code)
        with room.lock:
            if room.game is None:
                raise ProtocolViolation("no game in progress")
            face = self._apply(room, turns.roll, room.game.seat_of(sid), room.rng)
            if face is not None:
                self.broadcaster.private_roll(sid, face)
            self._publish(room)
        return face

    def declare(self, sid: str, code, value) -> None:
        room = self._room_for_action(code)
        with room.lock:
            if room.game is None:
                raise ProtocolViolation("no game in progress")
            self._apply(room, turns.declare, room.game.seat_of(sid), value)
            self._publish(room)

    def decide(self, sid: str, code, decision) -> None:
        room = self._room_for_action(code)
        with room.lock:
            if room.game is None:
                raise ProtocolViolation("no game in progress")
            self._apply(room, turns.decide, room.game.seat_of(sid), decision)
            self._publish(room)
