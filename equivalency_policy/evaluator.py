"""Applying a policy during a comparison.

These helpers are what a recursive comparator calls at every level of the
walk. Each one applies one rule list with its precedence:
- selection rules form a pipeline in list order
- matching rules: first non-None result wins
- ordering rules: any applicable rule makes the comparison strict
- equivalency steps: first step that claims the member wins
"""

import logging
from enum import Enum
from typing import Any, List, Optional, Sequence

from .errors import CyclicReferenceError, RecursionLimitError
from .rules import EquivalencyContext
from .types import CyclicReferenceHandling, EnumEquivalencyHandling, Member, MemberInfo

logger = logging.getLogger(__name__)

# Nesting depth at which the comparator gives up unless infinite recursion is allowed
MAX_RECURSION_DEPTH = 10


def select_members(config: Any, members: Sequence[Member], context: MemberInfo) -> List[Member]:
    """Run the selection pipeline.

    Args:
        config: Policy (options or EffectivePolicy)
        members: Candidate members, usually empty at the start of the pipeline
        context: Metadata of the object whose members are being selected

    Returns:
        The members that take part in the comparison
    """
    selected = list(members)
    for rule in config.selection_rules:
        selected = rule.select_members(selected, context, config)
    return selected


def match_member(
    config: Any,
    expectation_member: Member,
    subject_members: Sequence[Member],
    context: MemberInfo
) -> Optional[Member]:
    """Find the subject member matching an expectation member.

    Returns None when no rule produced a match, including when the policy
    has no matching rules at all. Rules may raise instead of returning None.
    """
    for rule in config.matching_rules:
        match = rule.match(expectation_member, subject_members, context, config)
        if match is not None:
            return match
    return None


def is_strict_ordering(config: Any, info: MemberInfo) -> bool:
    """Whether the collection held by this member must be compared in order."""
    for rule in config.ordering_rules:
        if rule.applies_to(info):
            return True
    return False


def run_user_steps(config: Any, context: EquivalencyContext) -> bool:
    """Give every user equivalency step a chance to handle the member.

    Returns:
        True if a step took over, in which case the default comparison must
        not run for this member
    """
    for step in config.user_equivalency_steps:
        if step.handle(context, config):
            logger.debug("Step '%s' handled %s", step, context.info.description)
            return True
    return False


def check_cyclic_reference(config: Any, ancestors: Sequence[Any], value: Any, path: str = "") -> bool:
    """Detect whether value is already on the current traversal path.

    Identity is what counts, not equality.

    Returns:
        True if the value is a repeated node and must be treated as equal
        without descending into it, False if it is new

    Raises:
        CyclicReferenceError: If the value repeats and the policy does not
            ignore cyclic references
    """
    if not any(ancestor is value for ancestor in ancestors):
        return False

    if config.cyclic_reference_handling == CyclicReferenceHandling.IGNORE:
        logger.debug("Ignoring cyclic reference at '%s'", path)
        return True

    where = f"member {path}" if path else "subject"
    raise CyclicReferenceError(
        f"Expected {where} to be equivalent, but it contains a cyclic reference.",
        path=path,
        context={"value_type": type(value).__name__}
    )


def check_recursion_depth(config: Any, depth: int, path: str = "") -> None:
    """Raise RecursionLimitError when depth reaches the limit."""
    if config.is_infinite_recursion_allowed:
        return
    if depth >= MAX_RECURSION_DEPTH:
        raise RecursionLimitError(
            f"The maximum recursion depth of {MAX_RECURSION_DEPTH} was reached at '{path}'.",
            depth=depth,
            path=path
        )


def enums_equivalent(config: Any, subject: Any, expectation: Any) -> bool:
    """Compare two enum members according to the policy's enum mode.

    A missing side only matches another missing side.
    """
    if subject is None or expectation is None:
        return subject is expectation

    if config.enum_equivalency_handling == EnumEquivalencyHandling.BY_NAME:
        return _enum_name(subject) == _enum_name(expectation)
    return _enum_value(subject) == _enum_value(expectation)


def _enum_name(member: Any) -> str:
    return member.name if isinstance(member, Enum) else str(member)


def _enum_value(member: Any) -> Any:
    return member.value if isinstance(member, Enum) else member
