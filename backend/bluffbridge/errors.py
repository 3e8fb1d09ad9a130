class ProtocolViolation(Exception):
    """An action a well-behaved client cannot send; ignored without reply."""


class InvariantViolation(Exception):
    """The game state broke one of its own rules; always a programming error."""


class RoomError(Exception):
    """Rejection surfaced to the sender as an ``error:msg``."""

    message = "Request rejected"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message


class RoomNotFound(RoomError):
    message = "Room not found"


class AlreadyStarted(RoomError):
    message = "This game has already started"


class RoomFull(RoomError):
    message = "Room is full (max 4 players)"


class NotHost(RoomError):
    message = "Only the host can start the game"


class NotEnoughPlayers(RoomError):
    message = "At least 2 players are required to start"
