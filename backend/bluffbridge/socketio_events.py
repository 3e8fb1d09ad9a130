from functools import wraps

from flask import current_app, request
from flask_socketio import emit, join_room, leave_room

from bluffbridge import socketio
from bluffbridge.errors import InvariantViolation, ProtocolViolation, RoomError
from bluffbridge.registry import Broadcaster, RoomRegistry


class SocketIOBroadcaster(Broadcaster):
    """Delivers registry output over Socket.IO; one Socket.IO room per game room."""

    def __init__(self, namespace: str = '/ws') -> None:
        self.namespace = namespace

    def subscribe(self, sid: str, code: str) -> None:
        join_room(code, sid=sid, namespace=self.namespace)

    def unsubscribe(self, sid: str, code: str) -> None:
        leave_room(code, sid=sid, namespace=self.namespace)

    def room_update(self, code, snapshot):
        socketio.emit('room:update', snapshot, to=code, namespace=self.namespace)

    def private_roll(self, sid, roll):
        socketio.emit('game:privateRoll', {'roll': roll}, to=sid, namespace=self.namespace)


def _registry() -> RoomRegistry:
    return current_app.extensions['room_registry']


def _get_sid() -> str:
    # type: ignore: request.sid exists in Socket.IO context
    return request.sid  # type: ignore


def _quietly(handler):
    """Drop actions a well-behaved client could not have sent."""
    @wraps(handler)
    def wrapper(data=None):
        try:
            handler(data or {})
        except ProtocolViolation as exc:
            current_app.logger.debug(f"[ignored] event={handler.__name__} sid={_get_sid()} reason={exc}")
        except InvariantViolation:
            # already logged with traceback by the registry; the last good state stands
            pass
    return wrapper


def _rejecting(handler):
    """Report user-facing rejections to the sender only."""
    @wraps(handler)
    def wrapper(data=None):
        try:
            handler(data or {})
        except RoomError as exc:
            emit('error:msg', {'text': exc.message})
    return wrapper


def handle_connect(auth=None):
    emit('connected', {'message': 'Connected to /ws'})


def handle_disconnect(reason=None):
    _registry().leave(_get_sid())


@_rejecting
def handle_room_create(data):
    _registry().create_room(_get_sid(), data.get('name'))


@_rejecting
def handle_room_join(data):
    _registry().join_room(_get_sid(), data.get('code'), data.get('name'))


def handle_room_leave(data=None):
    room = _registry().leave(_get_sid())
    if room is None:
        return
    emit('room:left', {'code': room.code})


@_quietly
@_rejecting
def handle_game_start(data):
    _registry().start_game(_get_sid(), data.get('code'))


@_quietly
def handle_game_roll(data):
    _registry().roll(_get_sid(), data.get('code'))


@_quietly
def handle_game_declare(data):
    _registry().declare(_get_sid(), data.get('code'), data.get('value'))


@_quietly
def handle_challenge_decision(data):
    _registry().decide(_get_sid(), data.get('code'), data.get('decision'))


def register_socketio_handlers(namespace: str = '/ws') -> None:
    """Register Socket.IO event handlers on ``namespace``."""
    socketio.on_event('connect', handle_connect, namespace=namespace)
    socketio.on_event('disconnect', handle_disconnect, namespace=namespace)
    socketio.on_event('room:create', handle_room_create, namespace=namespace)
    socketio.on_event('room:join', handle_room_join, namespace=namespace)
    socketio.on_event('room:leave', handle_room_leave, namespace=namespace)
    socketio.on_event('game:start', handle_game_start, namespace=namespace)
    socketio.on_event('game:roll', handle_game_roll, namespace=namespace)
    socketio.on_event('game:declare', handle_game_declare, namespace=namespace)
    socketio.on_event('game:challengeDecision', handle_challenge_decision, namespace=namespace)
