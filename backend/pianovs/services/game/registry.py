import logging
import secrets
import threading
from typing import Dict, List, Optional

from .room import Room

logger = logging.getLogger(__name__)

# 4 random bytes render as 8 lowercase hex characters; clients spot room
# ids in URL paths by this length
ROOM_ID_BYTES = 4


def generate_room_id() -> str:
    return secrets.token_hex(ROOM_ID_BYTES)


class RoomRegistry:
    """Process-wide map of live rooms, created once per application."""

    def __init__(self, target_word: str = 'MAGIC'):
        self.target_word = target_word
        self._rooms: Dict[str, Room] = {}
        self._lock = threading.Lock()

    def create(self) -> Room:
        with self._lock:
            room_id = generate_room_id()
            while room_id in self._rooms:
                room_id = generate_room_id()
            room = Room(id=room_id, target_word=self.target_word)
            self._rooms[room_id] = room
        logger.info(f"[room-create] room={room_id} live={len(self._rooms)}")
        return room

    def get(self, room_id) -> Optional[Room]:
        if not isinstance(room_id, str):
            return None
        with self._lock:
            return self._rooms.get(room_id)

    def remove(self, room_id: str) -> Optional[Room]:
        with self._lock:
            room = self._rooms.pop(room_id, None)
        if room is not None:
            with room.lock:
                room.closed = True
            logger.info(f"[room-remove] room={room_id} live={len(self._rooms)}")
        return room

    def room_ids(self) -> List[str]:
        with self._lock:
            return list(self._rooms)

    def __contains__(self, room_id) -> bool:
        return self.get(room_id) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._rooms)
