"""Rule capabilities and the built-in rules a policy composes.

Each rule kind is a small capability interface. The policy only stores
rules and decides their order; the comparator calls them through the
helpers in evaluator.py. A rule's str() is the line it contributes to
EquivalencyOptions.describe().
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

from .errors import MemberTypeMismatchError, MissingMemberError
from .members import PredicateLike, as_predicate, evaluate_predicate, is_same_or_inherits, public_properties
from .types import Member, MemberInfo


@dataclass
class EquivalencyContext:
    """The member being compared along with both of its values."""
    info: MemberInfo
    subject: Any
    expectation: Any


@dataclass
class AssertionContext:
    """What an assertion action receives."""
    subject: Any
    expectation: Any
    info: MemberInfo

    @property
    def description(self) -> str:
        return self.info.description


AssertionAction = Callable[[AssertionContext], None]


# ============== CAPABILITIES ==============

class SelectionRule(ABC):
    """Decides which members take part in a comparison.

    Selection rules form a pipeline: each one receives the members the
    previous rule returned.
    """

    @abstractmethod
    def select_members(self, members: List[Member], context: MemberInfo, config: Any) -> List[Member]:
        ...

    def __str__(self) -> str:
        return self.__class__.__name__


class MatchingRule(ABC):
    """Finds the subject member that corresponds to an expectation member.

    Returns None when this rule has no opinion so the next rule is tried.
    """

    @abstractmethod
    def match(
        self,
        expectation_member: Member,
        subject_members: Sequence[Member],
        context: MemberInfo,
        config: Any
    ) -> Optional[Member]:
        ...

    def __str__(self) -> str:
        return self.__class__.__name__


class OrderingRule(ABC):
    """Decides whether a collection member must be compared in order."""

    @abstractmethod
    def applies_to(self, info: MemberInfo) -> bool:
        ...

    def __str__(self) -> str:
        return self.__class__.__name__


class EquivalencyStep(ABC):
    """Overrides how one member is compared.

    handle() returns True when the step took over the comparison, in which
    case no later step and no default comparison runs for that member.
    Failures are raised.
    """

    @abstractmethod
    def handle(self, context: EquivalencyContext, config: Any) -> bool:
        ...

    def __str__(self) -> str:
        return self.__class__.__name__


class AssertionRule(ABC):
    """A (predicate, action) override, registered through a step adaptor."""

    @abstractmethod
    def assert_equality(self, context: EquivalencyContext, config: Any) -> bool:
        ...


# ============== SELECTION RULES ==============

class AllPublicPropertiesSelectionRule(SelectionRule):
    """Adds every public property of the compared type."""

    def select_members(self, members: List[Member], context: MemberInfo, config: Any) -> List[Member]:
        target = context.runtime_type if config.use_runtime_typing else context.compile_time_type

        selected = list(members)
        names = {m.name for m in selected}
        for member in public_properties(target):
            if member.name not in names:
                selected.append(member)
                names.add(member.name)
        return selected

    def __str__(self) -> str:
        return "Include all non-private properties"


class ExcludeMemberByPredicateSelectionRule(SelectionRule):
    """Removes the members for which a predicate holds."""

    def __init__(self, predicate: PredicateLike):
        self.predicate = as_predicate(predicate)

    def select_members(self, members: List[Member], context: MemberInfo, config: Any) -> List[Member]:
        return [m for m in members if not evaluate_predicate(self.predicate, context.child(m))]

    def __str__(self) -> str:
        return f"Exclude member when {self.predicate}"


# ============== MATCHING RULES ==============

def _find_by_name(name: str, members: Sequence[Member]) -> Optional[Member]:
    for member in members:
        if member.name == name:
            return member
    return None


class MustMatchByNameRule(MatchingRule):
    """Requires an equally named member on the subject."""

    def match(self, expectation_member, subject_members, context, config):
        found = _find_by_name(expectation_member.name, subject_members)
        if found is None:
            path = context.child(expectation_member).path
            raise MissingMemberError(
                f"Expectation has member {path} that the other object does not have.",
                member_name=expectation_member.name,
                path=path
            )
        return found

    def __str__(self) -> str:
        return "Match member by name (or throw)"


class TryMatchByNameRule(MatchingRule):
    """Matches an equally named member and skips it when there is none."""

    def match(self, expectation_member, subject_members, context, config):
        return _find_by_name(expectation_member.name, subject_members)

    def __str__(self) -> str:
        return "Match member by name"


# ============== ORDERING RULES ==============

class ByteArrayOrderingRule(OrderingRule):
    """Byte sequences are always compared in order."""

    BYTE_TYPES = (bytes, bytearray, memoryview)

    def applies_to(self, info: MemberInfo) -> bool:
        return any(
            is_same_or_inherits(t, self.BYTE_TYPES)
            for t in (info.compile_time_type, info.runtime_type)
        )

    def __str__(self) -> str:
        return "Be strict about the order of items in byte arrays"


class MatchAllOrderingRule(OrderingRule):

    def applies_to(self, info: MemberInfo) -> bool:
        return True

    def __str__(self) -> str:
        return "Be strict about the order of collections"


class PredicateBasedOrderingRule(OrderingRule):

    def __init__(self, predicate: PredicateLike):
        self.predicate = as_predicate(predicate)

    def applies_to(self, info: MemberInfo) -> bool:
        return evaluate_predicate(self.predicate, info)

    def __str__(self) -> str:
        return f"Be strict about the order of collection items when {self.predicate}"


# ============== ASSERTION RULES ==============

class ActionAssertionRule(AssertionRule):
    """Runs an action instead of the default comparison when a predicate holds.

    When subject_type is narrower than object, the subject value must be an
    instance of it (or None) before the action runs.
    """

    def __init__(self, predicate: PredicateLike, action: AssertionAction, subject_type: type = object):
        self.predicate = as_predicate(predicate)
        self.action = action
        self.subject_type = subject_type

    def assert_equality(self, context: EquivalencyContext, config: Any) -> bool:
        if not evaluate_predicate(self.predicate, context.info):
            return False

        subject = context.subject
        if subject is not None and not isinstance(subject, self.subject_type):
            raise MemberTypeMismatchError(
                f"Expected {context.info.description} to be a {self.subject_type.__name__}, "
                f"but found a {type(subject).__name__}.",
                expected_type=self.subject_type.__name__,
                actual_type=type(subject).__name__,
                path=context.info.path
            )

        self.action(AssertionContext(
            subject=subject,
            expectation=context.expectation,
            info=context.info
        ))
        return True

    def __str__(self) -> str:
        if self.subject_type is object:
            return f"Invoke action when {self.predicate}"
        return f"Invoke action<{self.subject_type.__name__}> when {self.predicate}"


class AssertionRuleEquivalencyStepAdaptor(EquivalencyStep):
    """Lets an assertion rule take part in the equivalency step list."""

    def __init__(self, assertion_rule: AssertionRule):
        self.assertion_rule = assertion_rule

    def handle(self, context: EquivalencyContext, config: Any) -> bool:
        return self.assertion_rule.assert_equality(context, config)

    def __str__(self) -> str:
        return str(self.assertion_rule)
