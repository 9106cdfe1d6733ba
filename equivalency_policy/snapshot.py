"""Frozen policy snapshots and policy diagnostics.

A comparator reads an EffectivePolicy rather than the mutable options
object, so one configuration can be shared by concurrent comparisons.
"""

import hashlib
import json
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict

from .rules import EquivalencyStep, MatchingRule, OrderingRule, SelectionRule
from .types import CyclicReferenceHandling, EnumEquivalencyHandling


class EffectivePolicy(BaseModel):
    """Immutable view of an equivalency configuration.

    Exposes the same attributes as EquivalencyOptions, so it can also seed
    new options.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    selection_rules: Tuple[SelectionRule, ...] = ()
    matching_rules: Tuple[MatchingRule, ...] = ()
    ordering_rules: Tuple[OrderingRule, ...] = ()
    user_equivalency_steps: Tuple[EquivalencyStep, ...] = ()

    is_recursive: bool = False
    is_infinite_recursion_allowed: bool = False
    cyclic_reference_handling: CyclicReferenceHandling = CyclicReferenceHandling.THROW_EXCEPTION
    enum_equivalency_handling: EnumEquivalencyHandling = EnumEquivalencyHandling.BY_VALUE
    use_runtime_typing: bool = False
    include_properties: bool = False

    def describe(self) -> str:
        return describe_policy(self)

    def __str__(self) -> str:
        return self.describe()


def freeze(config: Any) -> EffectivePolicy:
    """Capture the current state of a policy as an EffectivePolicy."""
    return EffectivePolicy(
        selection_rules=tuple(config.selection_rules),
        matching_rules=tuple(config.matching_rules),
        ordering_rules=tuple(config.ordering_rules),
        user_equivalency_steps=tuple(config.user_equivalency_steps),
        is_recursive=config.is_recursive,
        is_infinite_recursion_allowed=config.is_infinite_recursion_allowed,
        cyclic_reference_handling=config.cyclic_reference_handling,
        enum_equivalency_handling=config.enum_equivalency_handling,
        use_runtime_typing=config.use_runtime_typing,
        include_properties=config.include_properties,
    )


def describe_policy(config: Any) -> str:
    """Render the rules of a policy in the order a comparator applies them.

    The first line names the typing mode. Selection rules, matching rules
    and equivalency steps follow, one line each. Other switches and the
    ordering rules are not listed.
    """
    typing_mode = "runtime" if config.use_runtime_typing else "declared"
    lines = [f"- Use {typing_mode} types and members"]

    for rule in config.selection_rules:
        lines.append(f"- {rule}")

    for rule in config.matching_rules:
        lines.append(f"- {rule}")

    for step in config.user_equivalency_steps:
        lines.append(f"- {step}")

    return "".join(line + "\n" for line in lines)


def compute_policy_hash(config: Any) -> str:
    """Compute a SHA256 hash over the switches and rule descriptions.

    Rules are identified by their description, so two predicates that
    describe themselves identically hash the same.

    Returns:
        Hex-encoded SHA256 hash
    """
    data = _canonical_dict(config)

    # Canonical JSON: sorted keys, no extra whitespace
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"))

    hash_bytes = hashlib.sha256(canonical.encode("utf-8")).digest()
    return hash_bytes.hex()


def _canonical_dict(config: Any) -> Dict[str, Any]:
    def describe_all(rules) -> List[str]:
        return [f"{type(r).__name__}: {r}" for r in rules]

    return {
        "selection_rules": describe_all(config.selection_rules),
        "matching_rules": describe_all(config.matching_rules),
        "ordering_rules": describe_all(config.ordering_rules),
        "user_equivalency_steps": describe_all(config.user_equivalency_steps),
        "is_recursive": config.is_recursive,
        "is_infinite_recursion_allowed": config.is_infinite_recursion_allowed,
        "cyclic_reference_handling": config.cyclic_reference_handling.value,
        "enum_equivalency_handling": config.enum_equivalency_handling.value,
        "use_runtime_typing": config.use_runtime_typing,
        "include_properties": config.include_properties,
    }
