"""
Unique code generation (access PINs, account codes).

Every generator draws random candidates in a fixed format and checks them
against a store, retrying a bounded number of times. Running out of attempts
raises :class:`GenerationExhausted`; ordinary collisions are just another
loop iteration.
"""

import enum
import secrets
import string
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Protocol, Set

from exam_portal.config import settings
from exam_portal.core.exceptions import GenerationExhausted, InvalidCount
from exam_portal.core.logging import get_logger

logger = get_logger(__name__)

NONZERO_DIGITS = "123456789"
ACC_CODE_LENGTH = 10


class InsertOutcome(str, enum.Enum):
    INSERTED = "inserted"
    ALREADY_EXISTS = "already_exists"


class CodeStore(Protocol):
    """Existence checks over a namespace of codes"""

    async def exists_by_code(self, code: str) -> bool: ...

    async def check_many_exist(self, codes: Iterable[str]) -> Set[str]: ...


class ReservingCodeStore(CodeStore, Protocol):
    """A code store that can durably reserve codes on insert"""

    async def insert_if_absent(self, code: str) -> InsertOutcome: ...

    async def insert_many_if_absent(self, codes: Iterable[str]) -> Set[str]: ...


@dataclass(frozen=True)
class CodeFormat:
    """Fixed-length code over ``alphabet``; the first character may use a narrower ``leading`` set."""
    length: int
    alphabet: str = string.digits
    leading: Optional[str] = None

    @property
    def space(self) -> int:
        first = len(self.leading or self.alphabet)
        return first * len(self.alphabet) ** (self.length - 1)

    def draw(self) -> str:
        first = secrets.choice(self.leading or self.alphabet)
        rest = "".join(secrets.choice(self.alphabet) for _ in range(self.length - 1))
        return first + rest

    def draw_distinct(self, count: int, exclude: Iterable[str] = ()) -> List[str]:
        """
        ``count`` distinct candidates not in ``exclude``, fewer only when the
        code space itself cannot supply that many.
        """
        seen = set(exclude)
        target = min(count, max(self.space - len(seen), 0))
        drawn: List[str] = []
        while len(drawn) < target:
            candidate = self.draw()
            if candidate not in seen:
                seen.add(candidate)
                drawn.append(candidate)
        return drawn

    def matches(self, code: str) -> bool:
        if not code or len(code) != self.length:
            return False
        if code[0] not in (self.leading or self.alphabet):
            return False
        return all(ch in self.alphabet for ch in code)


def access_pin_format() -> CodeFormat:
    # 6 digits by default: 100000-999999
    return CodeFormat(length=settings.ACCESS_PIN_LENGTH, leading=NONZERO_DIGITS)


ACC_CODE_FORMAT = CodeFormat(length=ACC_CODE_LENGTH, leading=NONZERO_DIGITS)


@dataclass
class CodeBatch:
    """Codes reserved by a batch request"""
    requested: int
    codes: List[str] = field(default_factory=list)

    @property
    def shortfall(self) -> int:
        return self.requested - len(self.codes)

    @property
    def complete(self) -> bool:
        return self.shortfall == 0


async def generate_single_pin(
    store: ReservingCodeStore,
    code_format: Optional[CodeFormat] = None,
    max_attempts: Optional[int] = None,
) -> str:
    """
    Draw and reserve one access PIN.

    The PIN is inserted, not merely checked, so two concurrent callers can
    never both walk away with the same code.
    """
    code_format = code_format or access_pin_format()
    max_attempts = max_attempts or settings.CODE_MAX_ATTEMPTS

    for attempt in range(1, max_attempts + 1):
        candidate = code_format.draw()
        outcome = await store.insert_if_absent(candidate)
        if outcome is InsertOutcome.INSERTED:
            return candidate
        logger.debug("Access PIN collision", extra={"attempt": attempt})

    logger.error("Access PIN generation exhausted", extra={"attempts": max_attempts})
    raise GenerationExhausted("access PIN", max_attempts)


async def generate_pin_batch(
    store: ReservingCodeStore,
    count: int,
    code_format: Optional[CodeFormat] = None,
    max_attempts: Optional[int] = None,
) -> CodeBatch:
    """
    Reserve ``count`` access PINs with a constant number of store calls per round.

    Each round draws the missing number of distinct candidates, drops those
    already taken with one existence query and inserts the rest with one
    conflict-ignoring insert. A batch still short after ``max_attempts``
    rounds is returned with its ``shortfall`` set and logged as an error.
    """
    if count < 1 or count > settings.PIN_BATCH_MAX:
        raise InvalidCount(count, settings.PIN_BATCH_MAX)

    code_format = code_format or access_pin_format()
    max_attempts = max_attempts or settings.CODE_MAX_ATTEMPTS
    batch = CodeBatch(requested=count)

    for attempt in range(1, max_attempts + 1):
        candidates = code_format.draw_distinct(batch.shortfall, exclude=batch.codes)
        if not candidates:
            break
        taken = await store.check_many_exist(candidates)
        fresh = [c for c in candidates if c not in taken]
        inserted = await store.insert_many_if_absent(fresh) if fresh else set()
        batch.codes.extend(c for c in fresh if c in inserted)
        if batch.complete:
            return batch
        logger.debug(
            "Access PIN batch round short",
            extra={"attempt": attempt, "missing": batch.shortfall},
        )

    logger.error(
        "Access PIN batch incomplete",
        extra={"requested": count, "generated": len(batch.codes), "attempts": max_attempts},
    )
    return batch


async def generate_unique_acc_code(
    store: CodeStore,
    code_format: CodeFormat = ACC_CODE_FORMAT,
    max_attempts: Optional[int] = None,
) -> str:
    """Draw one 10-digit account code not present in ``store``."""
    max_attempts = max_attempts or settings.CODE_MAX_ATTEMPTS

    for _ in range(max_attempts):
        candidate = code_format.draw()
        if not await store.exists_by_code(candidate):
            return candidate

    logger.error("Account code generation exhausted", extra={"attempts": max_attempts})
    raise GenerationExhausted("account code", max_attempts)


async def generate_batch_acc_codes(
    store: CodeStore,
    count: int,
    code_format: CodeFormat = ACC_CODE_FORMAT,
    max_attempts: Optional[int] = None,
) -> List[str]:
    """
    ``count`` distinct account codes, checked against ``store`` with exactly one
    query per attempt.

    Raises :class:`GenerationExhausted` rather than returning a short list;
    callers must not register a partial batch.
    """
    if count < 1:
        return []
    max_attempts = max_attempts or settings.ACC_CODE_BATCH_ATTEMPTS
    accepted: List[str] = []

    for _ in range(max_attempts):
        candidates = code_format.draw_distinct(count - len(accepted), exclude=accepted)
        if not candidates:
            break
        existing = await store.check_many_exist(candidates)
        accepted.extend(c for c in candidates if c not in existing)
        if len(accepted) >= count:
            return accepted[:count]

    logger.error(
        "Account code batch generation exhausted",
        extra={"requested": count, "generated": len(accepted), "attempts": max_attempts},
    )
    raise GenerationExhausted("account code", max_attempts, produced=len(accepted), requested=count)
