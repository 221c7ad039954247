"""Game domain services: melody comparison, rooms and the room registry.

This package holds the transport-free game logic used by the socket
handlers and HTTP routes. Nothing here knows about Flask or Socket.IO.
"""

from .comparator import compare, quantize_duration
from .registry import RoomRegistry, generate_room_id
from .room import Phase, Player, Room, RoomError, RoomFullError, TurnOutcome

__all__ = [
    'compare',
    'quantize_duration',
    'RoomRegistry',
    'generate_room_id',
    'Phase',
    'Player',
    'Room',
    'RoomError',
    'RoomFullError',
    'TurnOutcome',
]
