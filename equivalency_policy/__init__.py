"""Equivalency Policy Engine v1.0 - Ordered rules + explainable configuration.

Configures how a structural equivalency comparison treats members,
collections, enums and cyclic references, and exposes that configuration
to the comparator as ordered, read-only rule lists.
"""

from .types import CyclicReferenceHandling, EnumEquivalencyHandling, Member, MemberInfo, MemberKind
from .members import (
    MemberPredicate,
    declared_by,
    member_named,
    member_path,
    member_path_matches,
    public_properties,
    runtime_type_is,
)
from .rules import (
    AssertionContext,
    AssertionRule,
    EquivalencyContext,
    EquivalencyStep,
    MatchingRule,
    OrderingRule,
    SelectionRule,
)
from .options import EquivalencyOptions, Restriction
from .snapshot import EffectivePolicy, compute_policy_hash, describe_policy
from .errors import (
    CyclicReferenceError,
    EquivalencyError,
    MemberTypeMismatchError,
    MissingMemberError,
    RecursionLimitError,
)
from .config import EquivalencySettings, apply_settings, load_settings, validate_settings
from .defaults import configure_defaults, configure_defaults_from_file, get_defaults, new_options, reset_defaults

__version__ = "1.0.0"

__all__ = [
    "CyclicReferenceHandling",
    "EnumEquivalencyHandling",
    "Member",
    "MemberInfo",
    "MemberKind",
    "MemberPredicate",
    "declared_by",
    "member_named",
    "member_path",
    "member_path_matches",
    "public_properties",
    "runtime_type_is",
    "AssertionContext",
    "AssertionRule",
    "EquivalencyContext",
    "EquivalencyStep",
    "MatchingRule",
    "OrderingRule",
    "SelectionRule",
    "EquivalencyOptions",
    "Restriction",
    "EffectivePolicy",
    "compute_policy_hash",
    "describe_policy",
    "CyclicReferenceError",
    "EquivalencyError",
    "MemberTypeMismatchError",
    "MissingMemberError",
    "RecursionLimitError",
    "EquivalencySettings",
    "apply_settings",
    "load_settings",
    "validate_settings",
    "configure_defaults",
    "configure_defaults_from_file",
    "get_defaults",
    "new_options",
    "reset_defaults",
]
