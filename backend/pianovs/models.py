import math
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, List, Optional, Tuple, Union

# Legacy clients record single keys without a duration
DEFAULT_DURATION_MS = 300


@dataclass(frozen=True)
class Note:
    pitch: str
    timestamp: int
    duration: int = DEFAULT_DURATION_MS


@dataclass(frozen=True)
class Chord:
    pitches: FrozenSet[str]
    timestamp: int
    duration: int = DEFAULT_DURATION_MS

    def __post_init__(self):
        if len(self.pitches) < 2:
            raise ValueError('a chord needs at least two pitches')


@dataclass(frozen=True)
class Rest:
    timestamp: int
    duration: int = DEFAULT_DURATION_MS


NoteEvent = Union[Note, Chord, Rest]
Melody = List[NoteEvent]


def _millis(value: Any, field: str) -> int:
    # bool is an int subclass; a JSON true is never a time
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f'{field} must be a number')
    if isinstance(value, float) and not math.isfinite(value):
        raise ValueError(f'{field} must be finite')
    return int(value)


def parse_event(data: Dict[str, Any]) -> NoteEvent:
    """Build a NoteEvent from its wire form.

    The variant is picked by the fields present: a multi-pitch field
    (``pitches``, or ``notes`` from older senders) makes a chord, a single
    ``pitch`` (or legacy ``note``) makes a note, anything else is a rest.
    """
    if not isinstance(data, dict):
        raise ValueError('event must be an object')

    timestamp = _millis(data.get('timestamp'), 'timestamp')
    duration = data.get('duration')
    duration = DEFAULT_DURATION_MS if duration is None else _millis(duration, 'duration')
    if duration < 0:
        raise ValueError('duration must not be negative')

    multi = data.get('pitches', data.get('notes'))
    if multi is not None:
        if not isinstance(multi, list) or not all(isinstance(p, str) for p in multi):
            raise ValueError('pitches must be a list of strings')
        pitches = frozenset(multi)
        if len(pitches) >= 2:
            return Chord(pitches=pitches, timestamp=timestamp, duration=duration)
        if len(pitches) == 1:
            return Note(pitch=next(iter(pitches)), timestamp=timestamp, duration=duration)
        return Rest(timestamp=timestamp, duration=duration)

    single = data.get('pitch', data.get('note'))
    if single is not None:
        if not isinstance(single, str):
            raise ValueError('pitch must be a string')
        return Note(pitch=single, timestamp=timestamp, duration=duration)

    return Rest(timestamp=timestamp, duration=duration)


def parse_melody(raw: Any) -> Melody:
    if not isinstance(raw, list):
        raise ValueError('notes must be a list')
    return [parse_event(item) for item in raw]


def is_pitched(event: NoteEvent) -> bool:
    if isinstance(event, (Note, Chord)):
        return True
    if isinstance(event, Rest):
        return False
    raise TypeError(f'not a note event: {event!r}')


def pitch_set(event: NoteEvent) -> Tuple[str, ...]:
    """Sorted pitches sounding at this event; empty for a rest."""
    if isinstance(event, Note):
        return (event.pitch,)
    if isinstance(event, Chord):
        return tuple(sorted(event.pitches))
    if isinstance(event, Rest):
        return ()
    raise TypeError(f'not a note event: {event!r}')


def event_to_dict(event: NoteEvent) -> Dict[str, Any]:
    if isinstance(event, Note):
        return {'type': 'note', 'pitch': event.pitch,
                'timestamp': event.timestamp, 'duration': event.duration}
    if isinstance(event, Chord):
        return {'type': 'chord', 'pitches': sorted(event.pitches),
                'timestamp': event.timestamp, 'duration': event.duration}
    if isinstance(event, Rest):
        return {'type': 'rest', 'timestamp': event.timestamp, 'duration': event.duration}
    raise TypeError(f'not a note event: {event!r}')


def melody_to_list(melody: Optional[Melody]) -> List[Dict[str, Any]]:
    return [event_to_dict(e) for e in (melody or [])]
