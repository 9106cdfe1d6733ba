"""Fluent configuration of a structural equivalency comparison.

EquivalencyOptions owns the rule lists and switches a comparator reads.
Every mutator changes this instance in place and returns it, so chained
calls build up one shared object and later calls override earlier ones.
"""

import logging
from typing import Any, Iterable, List, Optional, Type

from .members import PredicateLike, as_predicate, runtime_type_is
from .ordering import OrderingRuleCollection
from .rules import (
    ActionAssertionRule,
    AllPublicPropertiesSelectionRule,
    AssertionAction,
    AssertionRule,
    AssertionRuleEquivalencyStepAdaptor,
    ByteArrayOrderingRule,
    EquivalencyStep,
    ExcludeMemberByPredicateSelectionRule,
    MatchAllOrderingRule,
    MatchingRule,
    MustMatchByNameRule,
    OrderingRule,
    PredicateBasedOrderingRule,
    SelectionRule,
    TryMatchByNameRule,
)
from .snapshot import EffectivePolicy, describe_policy, freeze
from .types import CyclicReferenceHandling, EnumEquivalencyHandling

logger = logging.getLogger(__name__)


class EquivalencyOptions:
    """Run-time behavior of a structural equivalency assertion.

    A fresh instance matches members by name (failing on missing ones),
    compares byte sequences in order, does not recurse, fails on cyclic
    references, compares enums by value and uses declared types.

    Args:
        defaults: Optional policy to start from. Any object exposing the
            read-only policy attributes works, typically another
            EquivalencyOptions or an EffectivePolicy. Every list is copied,
            so later changes to either side stay independent.
    """

    def __init__(self, defaults: Optional[Any] = None):
        self._selection_rules: List[SelectionRule] = []
        self._matching_rules: List[MatchingRule] = []
        self._user_equivalency_steps: List[EquivalencyStep] = []
        self._ordering_rules = OrderingRuleCollection()

        if defaults is None:
            self._is_recursive = False
            self._allow_infinite_recursion = False
            self._cyclic_reference_handling = CyclicReferenceHandling.THROW_EXCEPTION
            self._enum_equivalency_handling = EnumEquivalencyHandling.BY_VALUE
            self._use_runtime_typing = False
            self._include_properties = False

            self._add_matching_rule(MustMatchByNameRule())
            self._ordering_rules.add(ByteArrayOrderingRule())
        else:
            self._is_recursive = defaults.is_recursive
            self._allow_infinite_recursion = defaults.is_infinite_recursion_allowed
            self._cyclic_reference_handling = defaults.cyclic_reference_handling
            self._enum_equivalency_handling = defaults.enum_equivalency_handling
            self._use_runtime_typing = defaults.use_runtime_typing
            self._include_properties = defaults.include_properties

            self._selection_rules.extend(defaults.selection_rules)
            self._matching_rules.extend(defaults.matching_rules)
            self._user_equivalency_steps.extend(defaults.user_equivalency_steps)
            self._ordering_rules = OrderingRuleCollection(defaults.ordering_rules)

    # ============== READ-ONLY VIEW ==============

    @property
    def selection_rules(self):
        """Selection rules in evaluation order."""
        return tuple(self._selection_rules)

    @property
    def matching_rules(self):
        """Matching rules in evaluation order (most recently added first)."""
        return tuple(self._matching_rules)

    @property
    def ordering_rules(self):
        return tuple(self._ordering_rules)

    @property
    def user_equivalency_steps(self):
        """Equivalency steps in evaluation order (most recently added first)."""
        return tuple(self._user_equivalency_steps)

    @property
    def is_recursive(self) -> bool:
        return self._is_recursive

    @property
    def is_infinite_recursion_allowed(self) -> bool:
        return self._allow_infinite_recursion

    @property
    def cyclic_reference_handling(self) -> CyclicReferenceHandling:
        return self._cyclic_reference_handling

    @property
    def enum_equivalency_handling(self) -> EnumEquivalencyHandling:
        return self._enum_equivalency_handling

    @property
    def use_runtime_typing(self) -> bool:
        return self._use_runtime_typing

    @property
    def include_properties(self) -> bool:
        return self._include_properties

    # ============== FLUENT API ==============

    def using_all_declared_properties(self) -> "EquivalencyOptions":
        """Include the public properties defined on the declared type."""
        self._use_runtime_typing = False
        self._include_properties = True
        self._reconfigure_selection_rules()
        return self

    def using_all_runtime_properties(self) -> "EquivalencyOptions":
        """Include the public properties of the run-time type."""
        self._use_runtime_typing = True
        self._include_properties = True
        self._reconfigure_selection_rules()
        return self

    def exclude_member(
        self, predicate: PredicateLike, description: Optional[str] = None
    ) -> "EquivalencyOptions":
        """Exclude every (nested) member for which the predicate holds.

        The predicate sees member metadata, never values. The description,
        when given, replaces the one derived from the predicate in describe().
        """
        rule = ExcludeMemberByPredicateSelectionRule(as_predicate(predicate, description))
        return self._add_selection_rule(rule)

    def allow_missing_members(self) -> "EquivalencyOptions":
        """Match members by name and skip those the subject does not have.

        Replaces every previously registered matching rule.
        """
        self._matching_rules.clear()
        self._matching_rules.append(TryMatchByNameRule())
        return self

    def require_exact_name_match(self) -> "EquivalencyOptions":
        """Fail when an expectation member has no equally named subject member.

        Replaces every previously registered matching rule.
        """
        self._matching_rules.clear()
        self._matching_rules.append(MustMatchByNameRule())
        return self

    def include_nested_objects(self) -> "EquivalencyOptions":
        self._is_recursive = True
        return self

    def exclude_nested_objects(self) -> "EquivalencyOptions":
        """Compare nested complex members by equality instead of member by member."""
        self._is_recursive = False
        return self

    def ignore_cyclic_references(self) -> "EquivalencyOptions":
        self._cyclic_reference_handling = CyclicReferenceHandling.IGNORE
        return self

    def allow_infinite_recursion(self) -> "EquivalencyOptions":
        """Lift the recursion depth limit for nested comparisons."""
        self._allow_infinite_recursion = True
        return self

    def using(self, rule: Any) -> Any:
        """Register a rule, a step or an assertion action.

        Selection and ordering rules run after the existing ones. Matching
        rules, equivalency steps and assertion rules run before the existing
        ones. A plain callable is an assertion action: the returned
        Restriction says which members it applies to.
        """
        if isinstance(rule, SelectionRule):
            return self._add_selection_rule(rule)
        if isinstance(rule, MatchingRule):
            return self._add_matching_rule(rule)
        if isinstance(rule, OrderingRule):
            self._ordering_rules.add(rule)
            return self
        if isinstance(rule, EquivalencyStep):
            return self._add_equivalency_step(rule)
        if isinstance(rule, AssertionRule):
            return self._add_equivalency_step(AssertionRuleEquivalencyStepAdaptor(rule))
        if isinstance(rule, type):
            raise TypeError(f"Cannot use class {rule.__name__} as an equivalency rule; pass an instance")
        if callable(rule):
            return Restriction(self, rule)
        raise TypeError(f"Cannot use {type(rule).__name__} as an equivalency rule")

    def with_strict_ordering_for_all(self) -> "EquivalencyOptions":
        """Compare every collection in the order of the expectation."""
        self._ordering_rules.add(MatchAllOrderingRule())
        return self

    def with_strict_ordering_for(
        self, predicate: PredicateLike, description: Optional[str] = None
    ) -> "EquivalencyOptions":
        self._ordering_rules.add(PredicateBasedOrderingRule(as_predicate(predicate, description)))
        return self

    def comparing_enums_by_name(self) -> "EquivalencyOptions":
        self._enum_equivalency_handling = EnumEquivalencyHandling.BY_NAME
        return self

    def comparing_enums_by_value(self) -> "EquivalencyOptions":
        """Compare enums by their underlying value. This is the default."""
        self._enum_equivalency_handling = EnumEquivalencyHandling.BY_VALUE
        return self

    def clear_selection_rules(self) -> "EquivalencyOptions":
        """Remove all selection rules, including the default ones."""
        self._selection_rules.clear()
        self._use_runtime_typing = False
        self._include_properties = True
        logger.debug("Cleared selection rules; using declared types")
        return self

    def clear_matching_rules(self) -> "EquivalencyOptions":
        """Remove all matching rules, including the default one."""
        self._matching_rules.clear()
        logger.debug("Cleared matching rules")
        return self

    # ============== NON-FLUENT API ==============

    def remove_selection_rule(self, rule_type: Type[SelectionRule]) -> None:
        """Remove every selection rule that is an instance of rule_type."""
        self._selection_rules = [r for r in self._selection_rules if not isinstance(r, rule_type)]

    def remove_standard_selection_rules(self) -> None:
        self.remove_selection_rule(AllPublicPropertiesSelectionRule)
        self._use_runtime_typing = False
        self._include_properties = True

    def freeze(self) -> EffectivePolicy:
        """Read-only snapshot of the current configuration."""
        return freeze(self)

    def describe(self) -> str:
        """Multi-line summary of the rules in evaluation order."""
        return describe_policy(self)

    def __str__(self) -> str:
        return self.describe()

    # ============== INTERNALS ==============

    def _add_selection_rule(self, rule: SelectionRule) -> "EquivalencyOptions":
        self._selection_rules.append(rule)
        return self

    def _add_matching_rule(self, rule: MatchingRule) -> "EquivalencyOptions":
        self._matching_rules.insert(0, rule)
        return self

    def _add_equivalency_step(self, step: EquivalencyStep) -> "EquivalencyOptions":
        self._user_equivalency_steps.insert(0, step)
        return self

    def _reconfigure_selection_rules(self) -> None:
        self._selection_rules = list(self._create_selection_rules())
        logger.debug(
            "Regenerated selection rules (%s typing): %d rule(s)",
            "runtime" if self._use_runtime_typing else "declared",
            len(self._selection_rules)
        )

    def _create_selection_rules(self) -> Iterable[SelectionRule]:
        if self._include_properties:
            yield AllPublicPropertiesSelectionRule()


class Restriction:
    """Binds an assertion action to the members it overrides.

    Created by EquivalencyOptions.using(action). Each terminal method
    registers the override on the owning options and returns them.
    """

    def __init__(self, options: EquivalencyOptions, action: AssertionAction):
        self.options = options
        self.action = action

    def for_type(self, member_type: type) -> EquivalencyOptions:
        """Apply the action to members whose runtime type is member_type or a subclass."""
        rule = ActionAssertionRule(runtime_type_is(member_type), self.action, subject_type=member_type)
        return self.options.using(rule)

    def for_predicate(
        self, predicate: PredicateLike, description: Optional[str] = None
    ) -> EquivalencyOptions:
        """Apply the action to the members for which the predicate holds."""
        return self.options.using(ActionAssertionRule(as_predicate(predicate, description), self.action))
