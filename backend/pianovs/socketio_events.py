import json
from typing import Any, Dict, Optional

from flask import current_app, request
from pianovs import get_connections, get_registry, socketio
from pianovs.models import parse_melody
from pianovs.services.game import Room, RoomFullError

NAMESPACE = '/ws'


def send_to(sid: Optional[str], payload: Dict[str, Any]) -> None:
    """Best-effort delivery; a socket that is already gone just misses it."""
    if not sid:
        return
    socketio.emit('message', payload, to=sid, namespace=NAMESPACE)


def broadcast(room: Room, payload: Dict[str, Any], exclude: Optional[str] = None) -> None:
    for sid in room.sids():
        if sid != exclude:
            send_to(sid, payload)


class ConnectionHandler:
    """Protocol state of one socket: which room it sits in and as which player."""

    def __init__(self, sid: str, registry):
        self.sid = sid
        self.registry = registry
        self.room_id: Optional[str] = None
        self.player_index: Optional[int] = None
        self._dispatch = {
            'create-room': self.create_room,
            'join-room': self.join_room,
            'melody-submit': self.submit_melody,
            'attempt-submit': self.submit_attempt,
            'new-game': self.new_game,
            'forfeit': self.forfeit,
        }

    def handle(self, data: Any) -> None:
        try:
            msg = json.loads(data) if isinstance(data, (str, bytes)) else data
        except ValueError:
            current_app.logger.debug(f"[drop] sid={self.sid} unparseable payload")
            return
        if not isinstance(msg, dict):
            current_app.logger.debug(f"[drop] sid={self.sid} payload is not an object")
            return
        action = self._dispatch.get(msg.get('type')) if isinstance(msg.get('type'), str) else None
        if action is None:
            current_app.logger.debug(f"[drop] sid={self.sid} unknown type={msg.get('type')!r}")
            return
        try:
            action(msg)
        except ValueError as exc:
            current_app.logger.debug(f"[drop] sid={self.sid} type={msg['type']} malformed: {exc}")

    def _current_room(self) -> Optional[Room]:
        if self.room_id is None:
            return None
        return self.registry.get(self.room_id)

    def _name(self, msg: Dict[str, Any], default: str) -> str:
        name = msg.get('name')
        return name.strip() if isinstance(name, str) and name.strip() else default

    # ---- handlers ----

    def create_room(self, msg: Dict[str, Any]) -> None:
        self.leave()
        room = self.registry.create()
        with room.lock:
            self.player_index = room.add_player(self.sid, self._name(msg, 'Player 1'))
            self.room_id = room.id
            send_to(self.sid, {'type': 'room-created', 'roomId': room.id, 'playerIndex': self.player_index})
        current_app.logger.info(f"[create] room={room.id} sid={self.sid}")

    def join_room(self, msg: Dict[str, Any]) -> None:
        room_id = msg.get('roomId')
        if not isinstance(room_id, str):
            raise ValueError('roomId must be a string')
        room_id = room_id.strip().lower()
        if self.room_id == room_id:
            return
        self.leave()

        room = self.registry.get(room_id)
        if room is None:
            send_to(self.sid, {'type': 'error', 'message': 'Room not found'})
            return
        with room.lock:
            if room.closed:
                send_to(self.sid, {'type': 'error', 'message': 'Room not found'})
                return
            try:
                index = room.add_player(self.sid, self._name(msg, 'Player 2'))
            except RoomFullError as exc:
                send_to(self.sid, {'type': 'error', 'message': str(exc)})
                return
            self.room_id = room.id
            self.player_index = index
            opponent = room.opponent_of(index)

            send_to(self.sid, {
                'type': 'room-joined',
                'roomId': room.id,
                'playerIndex': index,
                'opponentName': room.player_name(opponent),
            })
            send_to(room.sid_of(opponent), {'type': 'opponent-joined', 'opponentName': room.player_name(index)})
            broadcast(room, {'type': 'game-start', 'currentTurn': room.current_turn, 'letters': list(room.letters)})
        current_app.logger.info(f"[join] room={room.id} sid={self.sid} index={index}")

    def submit_melody(self, msg: Dict[str, Any]) -> None:
        room = self._current_room()
        if room is None:
            return
        raw = msg.get('notes')
        melody = parse_melody(raw)
        with room.lock:
            if room.closed or not room.submit_melody(self.player_index, melody, raw):
                current_app.logger.debug(f"[ignore] room={room.id} index={self.player_index} melody-submit out of turn")
                return
            send_to(room.sid_of(room.opponent_of(self.player_index)), {'type': 'melody-received', 'notes': raw})
        current_app.logger.info(f"[melody] room={room.id} recorder={self.player_index} events={len(melody)}")

    def submit_attempt(self, msg: Dict[str, Any]) -> None:
        room = self._current_room()
        if room is None:
            return
        attempt = parse_melody(msg.get('notes'))
        with room.lock:
            outcome = None if room.closed else room.submit_attempt(self.player_index, attempt)
            if outcome is None:
                current_app.logger.debug(f"[ignore] room={room.id} index={self.player_index} attempt-submit out of turn")
                return
            if outcome.game_over:
                broadcast(room, {'type': 'game-over', 'loser': outcome.loser, 'letters': outcome.letters})
            else:
                broadcast(room, {
                    'type': 'turn-result',
                    'success': outcome.success,
                    'letters': outcome.letters,
                    'currentTurn': outcome.current_turn,
                })
        current_app.logger.info(
            f"[attempt] room={room.id} index={self.player_index} events={len(attempt)} "
            f"success={outcome.success} letters={outcome.letters} game_over={outcome.game_over}"
        )

    def new_game(self, msg: Dict[str, Any]) -> None:
        room = self._current_room()
        if room is None:
            return
        with room.lock:
            if room.closed or not room.new_game():
                return
            broadcast(room, {'type': 'game-start', 'currentTurn': room.current_turn, 'letters': list(room.letters)})
        current_app.logger.info(f"[new-game] room={room.id} by={self.player_index}")

    def forfeit(self, msg: Dict[str, Any]) -> None:
        room = self._current_room()
        if room is None:
            return
        with room.lock:
            if room.closed or not room.forfeit(self.player_index):
                return
            broadcast(room, {'type': 'game-over', 'loser': self.player_index, 'letters': list(room.letters)})
        current_app.logger.info(f"[forfeit] room={room.id} loser={self.player_index}")

    def leave(self) -> None:
        """Tear down the current room, if any; rooms are never reused after a player goes."""
        room_id, self.room_id, self.player_index = self.room_id, None, None
        if room_id is None:
            return
        room = self.registry.get(room_id)
        if room is None:
            return
        with room.lock:
            if room.closed:
                return
            broadcast(room, {'type': 'opponent-disconnected'}, exclude=self.sid)
            self.registry.remove(room_id)
        current_app.logger.info(f"[teardown] room={room_id} left_by={self.sid}")


def _get_sid() -> str:
    return request.sid  # type: ignore


def handle_connect(auth=None):
    get_connections()[_get_sid()] = ConnectionHandler(_get_sid(), get_registry())
    current_app.logger.info(f"[connect] sid={_get_sid()}")


def handle_disconnect(reason=None):
    handler = get_connections().pop(_get_sid(), None)
    if handler is None:
        return
    handler.leave()
    current_app.logger.info(f"[disconnect] sid={handler.sid} reason={reason}")


def handle_message(data=None):
    connections = get_connections()
    handler = connections.get(_get_sid())
    if handler is None:
        # Connected before this app registered its handlers
        handler = connections[_get_sid()] = ConnectionHandler(_get_sid(), get_registry())
    handler.handle(data)


def register_socketio_handlers() -> None:
    """Register Socket.IO event handlers on namespace '/ws'.

    Clients send JSON objects with a ``type`` field through the plain
    ``message`` event (or ``json`` when sent with ``send(..., json=True)``).
    """
    socketio.on_event('connect', handle_connect, namespace=NAMESPACE)
    socketio.on_event('disconnect', handle_disconnect, namespace=NAMESPACE)
    socketio.on_event('message', handle_message, namespace=NAMESPACE)
    socketio.on_event('json', handle_message, namespace=NAMESPACE)
