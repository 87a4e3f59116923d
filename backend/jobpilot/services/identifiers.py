"""
Record id allocation for work experience and education entries.

Ids keep the millisecond-timestamp shape but are drawn from a per-profile
monotonic sequence, so two batches for the same user never reuse an id even
when they land in the same millisecond.
"""
import time
from typing import Callable, List, Optional, Sequence

from pydantic import BaseModel

EDUCATION_ID_OFFSET = 1000


def current_millis() -> int:
    return int(time.time() * 1000)


def _has_id(value) -> bool:
    return value is not None and value != ""


class IdAllocator:
    """
    Hands out ids for one batch.

    Args:
        last_issued: Highest id previously issued for this profile
        clock: Millisecond clock, injectable for tests
    """

    def __init__(self, last_issued: int = 0, clock: Callable[[], int] = current_millis):
        self.base = max(clock(), (last_issued or 0) + 1)
        self.last_issued = last_issued or 0

    def assign(self, records: Sequence[BaseModel], offset: int = 0) -> List[BaseModel]:
        """Fill in ``base + offset + index`` for every record lacking an id."""
        assigned = []
        for index, record in enumerate(records):
            if _has_id(record.id):
                assigned.append(record)
                continue
            new_id = self.base + offset + index
            self.last_issued = max(self.last_issued, new_id)
            assigned.append(record.model_copy(update={"id": new_id}))
        return assigned

    def assign_batch(self, work_experience: Sequence[BaseModel], education: Sequence[BaseModel]):
        """Assign work experience from ``base``; education starts past the work block."""
        education_offset = max(EDUCATION_ID_OFFSET, len(work_experience))
        return self.assign(work_experience), self.assign(education, offset=education_offset)


def highest_numeric_id(records: Sequence[BaseModel], default: Optional[int] = 0) -> Optional[int]:
    numeric = [r.id for r in records if isinstance(r.id, int)]
    return max(numeric, default=default)
