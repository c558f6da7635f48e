"""
Student numbering engine.

A student number is ``{lga_digits}{school_code_padded}{sequence}`` where the
sequence is either the 1-based alphabetical rank of the learner's surname
among the school's distinct surnames (regular mode) or ``max + 1`` over every
number already issued to the school (late mode). A school holds at most
MAX_SEQUENCE numbers.

The functions here are pure: they take a roster or a list of existing numbers
and return new values. Database access lives in the registration service.
"""

from dataclasses import dataclass, replace
from typing import Dict, Hashable, Iterable, List, Optional, Sequence

from exam_portal.core.exceptions import SequenceExhausted

SEQUENCE_WIDTH = 4
SCHOOL_CODE_WIDTH = 3
MAX_SEQUENCE = 10 ** SEQUENCE_WIDTH - 1


@dataclass(frozen=True)
class SchoolPrefix:
    """Numbering prefix resolved from the school reference dataset"""
    lga_digits: str
    school_code_padded: str

    @classmethod
    def from_codes(cls, lga_code: str, school_code: str) -> "SchoolPrefix":
        return cls(
            lga_digits=str(lga_code).strip(),
            school_code_padded=str(school_code).strip().zfill(SCHOOL_CODE_WIDTH),
        )

    def __str__(self) -> str:
        return f"{self.lga_digits}{self.school_code_padded}"


@dataclass(frozen=True)
class RosterEntry:
    """One learner in a school's roster snapshot"""
    key: Hashable
    surname: str
    student_number: Optional[str] = None


def normalize_surname(surname: Optional[str]) -> str:
    return (surname or "").strip().upper()


def format_student_number(prefix: SchoolPrefix, sequence: int) -> str:
    """Raises SequenceExhausted once the sequence needs more than SEQUENCE_WIDTH digits."""
    if sequence > MAX_SEQUENCE:
        raise SequenceExhausted(str(prefix), sequence, MAX_SEQUENCE)
    return f"{prefix}{sequence:0{SEQUENCE_WIDTH}d}"


def sequence_of(student_number: Optional[str]) -> Optional[int]:
    """Trailing sequence digits of a student number, or None if they are not numeric."""
    if not student_number:
        return None
    tail = student_number[-SEQUENCE_WIDTH:]
    if not tail.isdigit():
        return None
    return int(tail)


def rank_surnames(surnames: Iterable[str]) -> Dict[str, int]:
    """
    Map each distinct normalized surname to its 1-based rank in ascending order.

    Learners sharing a surname share a rank.
    """
    distinct = sorted({normalize_surname(s) for s in surnames})
    return {surname: index for index, surname in enumerate(distinct, start=1)}


def recompute_student_numbers(
    prefix: Optional[SchoolPrefix],
    roster: Sequence[RosterEntry],
) -> List[RosterEntry]:
    """
    Renumber a whole roster by alphabetical surname rank.

    Must be given the full current roster: adding, renaming or removing one
    surname can shift every other learner's rank. Without a prefix the roster
    is returned unchanged.
    """
    if prefix is None:
        return list(roster)

    ranks = rank_surnames(entry.surname for entry in roster)
    return [
        replace(
            entry,
            student_number=format_student_number(prefix, ranks[normalize_surname(entry.surname)]),
        )
        for entry in roster
    ]


def next_sequence(existing_numbers: Iterable[Optional[str]]) -> int:
    """``max + 1`` over the trailing sequences of ``existing_numbers``; 1 when there are none."""
    current = 0
    for number in existing_numbers:
        seq = sequence_of(number)
        if seq is not None and seq > current:
            current = seq
    return current + 1


def incremental_student_numbers(
    prefix: SchoolPrefix,
    existing_numbers: Iterable[Optional[str]],
    count: int = 1,
) -> List[str]:
    """Consecutive late-mode numbers following the highest existing sequence."""
    start = next_sequence(existing_numbers)
    return [format_student_number(prefix, start + offset) for offset in range(count)]
