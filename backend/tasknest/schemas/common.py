"""
Shared field types and the base class for partial-update schemas.
"""

from datetime import datetime
from typing import Annotated, ClassVar

from pydantic import AfterValidator, BaseModel, Field, StringConstraints, model_validator

from tasknest.timeutils import to_naive_utc


MAX_ATTACHMENT_BYTES = 100 * 1024 * 1024
MAX_ESTIMATED_MINUTES = 525_600  # one year

Title = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=200)]
Tag = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
Category = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
Timestamp = Annotated[datetime, AfterValidator(to_naive_utc)]
Minutes = Annotated[int, Field(ge=0, le=MAX_ESTIMATED_MINUTES)]


def _dedupe(tags: list[str]) -> list[str]:
    return list(dict.fromkeys(tags))


TagList = Annotated[list[Tag], Field(max_length=20), AfterValidator(_dedupe)]


class PatchModel(BaseModel):
    """
    Base for explicit optional-field patches.

    Only fields the caller actually sent are applied (``exclude_unset``).
    Fields listed in ``NON_NULLABLE`` may be omitted but not sent as null.
    """

    NON_NULLABLE: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def _reject_nulls(self):
        for name in sorted(self.model_fields_set & self.NON_NULLABLE):
            if getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


def percentage(done: int, total: int) -> int:
    """Round-half-up share of ``done`` in ``total``; 0 for an empty total."""
    if total <= 0:
        return 0
    return (done * 200 + total) // (total * 2)
