"""Comparator-time equivalency failures.

Configuring a policy never fails. These errors are raised while a policy is
being applied to two object graphs, and all of them carry structured data
for diagnostics.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class EquivalencyError(AssertionError):
    """Base class for equivalency failures."""
    message: str
    error_code: str
    path: str = ""
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "path": self.path,
            "context": self.context
        }

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


@dataclass
class CyclicReferenceError(EquivalencyError):
    """A node already on the traversal path was reached again."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_code="CYCLIC_REFERENCE",
            **kwargs
        )


@dataclass
class RecursionLimitError(EquivalencyError):
    """Nesting went deeper than the comparator allows."""
    depth: int = 0

    def __init__(self, message: str, depth: int = 0, **kwargs):
        super().__init__(
            message=message,
            error_code="MAX_RECURSION_DEPTH",
            **kwargs
        )
        self.depth = depth

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base["depth"] = self.depth
        return base


@dataclass
class MissingMemberError(EquivalencyError):
    """An expectation member has no counterpart on the subject."""
    member_name: str = ""

    def __init__(self, message: str, member_name: str = "", **kwargs):
        super().__init__(
            message=message,
            error_code="MISSING_MEMBER",
            **kwargs
        )
        self.member_name = member_name


@dataclass
class MemberTypeMismatchError(EquivalencyError):
    """A type-restricted override met a subject value of another type."""
    expected_type: Optional[str] = None
    actual_type: Optional[str] = None

    def __init__(
        self,
        message: str,
        expected_type: Optional[str] = None,
        actual_type: Optional[str] = None,
        **kwargs
    ):
        super().__init__(
            message=message,
            error_code="TYPE_MISMATCH",
            **kwargs
        )
        self.expected_type = expected_type
        self.actual_type = actual_type

    def to_dict(self) -> Dict[str, Any]:
        base = super().to_dict()
        base.update({
            "expected_type": self.expected_type,
            "actual_type": self.actual_type
        })
        return base
