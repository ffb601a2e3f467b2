"""Reference graph entities."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PrimaryOperationPolicy(str, Enum):
    """Rule picking the operation that supplies rename context."""

    FIRST_ENCOUNTERED = "first-encountered"
    MOST_SPECIFIC = "most-specific"
    ALPHABETICAL = "alphabetical"


class UsageType(str, Enum):
    """How an operation uses a schema."""

    REQUEST = "request"
    RESPONSE = "response"
    PARAMETER = "parameter"
    HEADER = "header"
    CALLBACK = "callback"


@dataclass(frozen=True)
class OperationRef:  # pylint: disable=too-many-instance-attributes
    """One operation's direct use of a schema.

    `order` is the discovery position during document traversal and is the
    tie-breaker for every primary-operation policy.
    """

    path: str
    method: str
    usage_type: UsageType
    order: int
    operation_id: str = ""
    tags: tuple[str, ...] = ()
    status_code: str = ""
    param_name: str = ""
    media_type: str = ""

    @property
    def identity(self) -> tuple[str, str, str, str]:
        return (self.path, self.method, self.usage_type.value, self.status_code)
