"""Equivalency policy type definitions (Pydantic models).

Defines the switches a comparator reads from a policy and the member
metadata that selection, matching and ordering rules operate on.
"""

from enum import Enum
from typing import Any, Optional, Type

from pydantic import BaseModel, ConfigDict, Field


class CyclicReferenceHandling(str, Enum):
    """What the comparator does when a node reappears on its traversal path."""
    THROW_EXCEPTION = "throw_exception"
    IGNORE = "ignore"


class EnumEquivalencyHandling(str, Enum):
    """How enum members are compared."""
    BY_VALUE = "by_value"
    BY_NAME = "by_name"


class MemberKind(str, Enum):
    """Kind of slot a member occupies on its declaring type."""
    PROPERTY = "property"
    FIELD = "field"


class Member(BaseModel):
    """A named, typed slot on a type that participates in a comparison."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Member name as declared")
    declaring_type: Optional[Type[Any]] = Field(default=None, description="Type that declares the member")
    member_type: Optional[Type[Any]] = Field(default=None, description="Declared type of the member's value")
    kind: MemberKind = MemberKind.PROPERTY


class MemberInfo(BaseModel):
    """Metadata about the member currently being compared.

    This is what member predicates see: the name, the access path from the
    comparison root, the declaring type and both the compile-time and the
    runtime type of the value. Values themselves are never exposed here.
    """
    model_config = ConfigDict(frozen=True)

    name: str = ""
    path: str = Field(default="", description="Access path from the root, empty for the root")
    declaring_type: Optional[Type[Any]] = None
    runtime_type: Optional[Type[Any]] = None
    compile_time_type: Optional[Type[Any]] = None

    @classmethod
    def root(cls, compile_time_type: Optional[type], runtime_type: Optional[type] = None) -> "MemberInfo":
        """Build the context for the root of a comparison."""
        return cls(
            compile_time_type=compile_time_type,
            runtime_type=runtime_type or compile_time_type,
        )

    @property
    def is_root(self) -> bool:
        return not self.path

    @property
    def description(self) -> str:
        return f"member {self.path}" if self.path else "subject"

    def child(self, member: Member, runtime_type: Optional[type] = None) -> "MemberInfo":
        """Context for a member nested under this one.

        The runtime type defaults to the member's declared type, which is all
        that is known while members are still being selected.
        """
        path = f"{self.path}.{member.name}" if self.path else member.name
        return MemberInfo(
            name=member.name,
            path=path,
            declaring_type=member.declaring_type,
            runtime_type=runtime_type or member.member_type,
            compile_time_type=member.member_type,
        )

    def item(self, index: Any, runtime_type: Optional[type] = None) -> "MemberInfo":
        """Context for an item of the collection held by this member."""
        return MemberInfo(
            name=self.name,
            path=f"{self.path}[{index}]",
            declaring_type=self.declaring_type,
            runtime_type=runtime_type,
            compile_time_type=runtime_type,
        )
