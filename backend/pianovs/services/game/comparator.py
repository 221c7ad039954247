from typing import Optional

from pianovs.models import Melody, Rest, is_pitched, pitch_set

TIMING_TOLERANCE_MS = 300
MISMATCH_BUDGET = 1
# Upper bounds (ms) of the sixteenth, eighth, quarter and half buckets;
# anything longer is a whole note
DURATION_BUCKETS = (187, 375, 750, 1500)


def quantize_duration(ms: int) -> int:
    for index, upper in enumerate(DURATION_BUCKETS):
        if ms <= upper:
            return index
    return len(DURATION_BUCKETS)


def compare(reference: Optional[Melody], attempt: Optional[Melody]) -> bool:
    """Decide whether ``attempt`` is a good enough replay of ``reference``.

    Pitched events are aligned by position. Each differing pitch set,
    onset drifting more than 300 ms from its relative position, or
    duration landing two or more buckets away costs one mismatch, as does
    dropping every rest of a reference that has some. At most one
    mismatch is tolerated. A single-note melody answered with a single
    wrong note fails outright, since that one pitch is the whole melody.
    """
    if reference is None or attempt is None:
        return False

    ref_pitched = [e for e in reference if is_pitched(e)]
    att_pitched = [e for e in attempt if is_pitched(e)]

    if abs(len(ref_pitched) - len(att_pitched)) > 1:
        return False

    mismatches = 0
    for ref, att in zip(ref_pitched, att_pitched):
        if pitch_set(ref) != pitch_set(att):
            mismatches += 1
            if mismatches > MISMATCH_BUDGET:
                return False
            continue

        ref_offset = ref.timestamp - ref_pitched[0].timestamp
        att_offset = att.timestamp - att_pitched[0].timestamp
        if abs(ref_offset - att_offset) > TIMING_TOLERANCE_MS:
            mismatches += 1
            if mismatches > MISMATCH_BUDGET:
                return False

        if abs(quantize_duration(ref.duration) - quantize_duration(att.duration)) > 1:
            mismatches += 1
            if mismatches > MISMATCH_BUDGET:
                return False

    has_rests = any(isinstance(e, Rest) for e in reference)
    if has_rests and not any(isinstance(e, Rest) for e in attempt):
        mismatches += 1

    if len(ref_pitched) == len(att_pitched) == 1 and pitch_set(ref_pitched[0]) != pitch_set(att_pitched[0]):
        return False

    return mismatches <= MISMATCH_BUDGET
