import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pianovs.models import Melody
from .comparator import compare

MAX_PLAYERS = 2


class RoomError(Exception):
    pass


class RoomFullError(RoomError):
    pass


class Phase(str, Enum):
    WAITING = 'waiting'
    RECORDING = 'recording'
    REPLAYING = 'replaying'
    ENDED = 'ended'


@dataclass
class Player:
    sid: str
    name: str


@dataclass
class TurnOutcome:
    success: bool
    letters: List[str]
    current_turn: int
    game_over: bool = False
    loser: Optional[int] = None


@dataclass
class Room:
    """Authoritative state of one two-player game.

    Transitions return a falsy value and leave the room untouched when the
    caller is not allowed to act, either because it is the wrong player or
    because the phase does not accept that action. Callers hold ``lock``
    around a transition and the messages it produces.
    """
    id: str
    target_word: str = 'MAGIC'
    players: List[Player] = field(default_factory=list)
    current_turn: int = 0
    melody: Optional[Melody] = None
    # Event list as the recorder sent it, relayed to the replaying player
    raw_melody: Optional[List[Any]] = None
    letters: List[str] = field(default_factory=lambda: ['', ''])
    phase: Phase = Phase.WAITING
    closed: bool = False
    lock: Any = field(default_factory=threading.RLock, repr=False, compare=False)

    @property
    def is_full(self) -> bool:
        return len(self.players) >= MAX_PLAYERS

    def add_player(self, sid: str, name: str) -> int:
        if self.is_full:
            raise RoomFullError('Room is full')
        self.players.append(Player(sid=sid, name=name))
        index = len(self.players) - 1
        if self.is_full:
            self._reset()
        return index

    def is_member(self, index: Optional[int]) -> bool:
        return index is not None and 0 <= index < len(self.players)

    def opponent_of(self, index: int) -> int:
        return 1 - index

    def player_name(self, index: int) -> Optional[str]:
        return self.players[index].name if self.is_member(index) else None

    def sid_of(self, index: int) -> Optional[str]:
        return self.players[index].sid if self.is_member(index) else None

    def sids(self) -> List[str]:
        return [p.sid for p in self.players]

    def next_letter(self, index: int) -> str:
        current = self.letters[index]
        if len(current) >= len(self.target_word):
            return ''
        return self.target_word[len(current)]

    def submit_melody(self, index: int, melody: Melody, raw: Optional[List[Any]] = None) -> bool:
        if self.phase != Phase.RECORDING or index != self.current_turn:
            return False
        self.melody = melody
        self.raw_melody = raw
        self.phase = Phase.REPLAYING
        return True

    def submit_attempt(self, index: int, attempt: Melody) -> Optional[TurnOutcome]:
        if self.phase != Phase.REPLAYING or not self.is_member(index) or index == self.current_turn:
            return None

        success = compare(self.melody, attempt)
        if not success:
            self.letters[index] += self.next_letter(index)

        if len(self.letters[index]) >= len(self.target_word):
            self.phase = Phase.ENDED
            self.melody = None
            self.raw_melody = None
            return TurnOutcome(success=success, letters=list(self.letters),
                               current_turn=self.current_turn, game_over=True, loser=index)

        # Whoever just replayed records next
        self.current_turn = index
        self.melody = None
        self.raw_melody = None
        self.phase = Phase.RECORDING
        return TurnOutcome(success=success, letters=list(self.letters), current_turn=self.current_turn)

    def new_game(self) -> bool:
        if not self.is_full:
            return False
        self._reset()
        return True

    def forfeit(self, index: int) -> bool:
        if not self.is_member(index):
            return False
        self.phase = Phase.ENDED
        self.melody = None
        self.raw_melody = None
        return True

    def _reset(self) -> None:
        self.letters = ['', '']
        self.current_turn = 0
        self.melody = None
        self.raw_melody = None
        self.phase = Phase.RECORDING

    def to_dict(self) -> Dict[str, Any]:
        return {
            'room_id': self.id,
            'phase': self.phase.value,
            'player_count': len(self.players),
            'joinable': not self.closed and not self.is_full,
            'current_turn': self.current_turn,
            'letters': list(self.letters),
        }
