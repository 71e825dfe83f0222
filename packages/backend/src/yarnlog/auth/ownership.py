"""Ownership guard for per-user resources.

Learn: A resource that belongs to someone else must look exactly like a
resource that does not exist. There is deliberately no "forbidden" path
here. Both cases raise the same NotFoundError, so a caller can't probe
for other users' ids.
"""

from typing import Optional, Protocol, TypeVar

from yarnlog.errors import NotFoundError


class Owned(Protocol):
    user_id: int


T = TypeVar("T", bound=Owned)


def is_owner(owner_id: Optional[int], requester_id: int) -> bool:
    """Permit only on an exact id match."""
    return owner_id is not None and owner_id == requester_id


def guard_ownership(
    record: Optional[T], requester_id: int, not_found_message: str = "Not found"
) -> T:
    """Return `record` if the requester owns it, else raise NotFoundError."""
    if record is None or not is_owner(record.user_id, requester_id):
        raise NotFoundError(not_found_message)
    return record
