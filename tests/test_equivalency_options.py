"""Tests for the equivalency options builder.

Validates:
1. Defaults of a fresh policy
2. Rule precedence (head vs tail insertion)
3. Selection rule regeneration and typing coupling
4. Clone independence
5. describe() output
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from equivalency_policy import (
    CyclicReferenceHandling,
    EnumEquivalencyHandling,
    EquivalencyOptions,
    Member,
    MemberInfo,
    Restriction,
    member_named,
)
from equivalency_policy.rules import (
    AllPublicPropertiesSelectionRule,
    AssertionRuleEquivalencyStepAdaptor,
    ByteArrayOrderingRule,
    EquivalencyStep,
    ExcludeMemberByPredicateSelectionRule,
    MatchAllOrderingRule,
    MatchingRule,
    MustMatchByNameRule,
    PredicateBasedOrderingRule,
    SelectionRule,
    TryMatchByNameRule,
    ActionAssertionRule,
)


# ============== FIXTURES ==============

class NamedSelectionRule(SelectionRule):
    """Selection rule that only identifies itself."""

    def __init__(self, label):
        self.label = label

    def select_members(self, members, context, config):
        return members

    def __str__(self):
        return f"Select {self.label}"


class NamedMatchingRule(MatchingRule):

    def __init__(self, label):
        self.label = label

    def match(self, expectation_member, subject_members, context, config):
        return None

    def __str__(self):
        return f"Match {self.label}"


class NamedStep(EquivalencyStep):

    def __init__(self, label):
        self.label = label

    def handle(self, context, config):
        return False

    def __str__(self):
        return f"Step {self.label}"


@pytest.fixture
def options():
    return EquivalencyOptions()


def _lines(options):
    return options.describe().splitlines()


# ============== TESTS ==============

class TestDefaults:
    """A fresh policy carries the built-in defaults."""

    def test_switch_defaults(self, options):
        assert options.is_recursive is False
        assert options.is_infinite_recursion_allowed is False
        assert options.cyclic_reference_handling == CyclicReferenceHandling.THROW_EXCEPTION
        assert options.enum_equivalency_handling == EnumEquivalencyHandling.BY_VALUE
        assert options.use_runtime_typing is False
        assert options.include_properties is False

    def test_rule_defaults(self, options):
        assert options.selection_rules == ()
        assert len(options.matching_rules) == 1
        assert isinstance(options.matching_rules[0], MustMatchByNameRule)
        assert len(options.ordering_rules) == 1
        assert isinstance(options.ordering_rules[0], ByteArrayOrderingRule)
        assert options.user_equivalency_steps == ()

    def test_views_are_read_only(self, options):
        """The exposed rule lists are tuples, not the internal lists."""
        assert isinstance(options.selection_rules, tuple)
        assert isinstance(options.matching_rules, tuple)
        assert isinstance(options.ordering_rules, tuple)
        assert isinstance(options.user_equivalency_steps, tuple)


class TestChaining:
    """Every mutator returns the same instance."""

    def test_mutators_return_self(self, options):
        assert options.exclude_member(member_named("Id")) is options
        assert options.require_exact_name_match() is options
        assert options.allow_missing_members() is options
        assert options.include_nested_objects() is options
        assert options.exclude_nested_objects() is options
        assert options.ignore_cyclic_references() is options
        assert options.allow_infinite_recursion() is options
        assert options.using_all_declared_properties() is options
        assert options.using_all_runtime_properties() is options
        assert options.with_strict_ordering_for_all() is options
        assert options.with_strict_ordering_for(member_named("items")) is options
        assert options.comparing_enums_by_name() is options
        assert options.comparing_enums_by_value() is options
        assert options.clear_selection_rules() is options
        assert options.clear_matching_rules() is options
        assert options.using(NamedSelectionRule("a")) is options

    def test_switch_toggles(self, options):
        options.include_nested_objects().ignore_cyclic_references().allow_infinite_recursion()

        assert options.is_recursive is True
        assert options.cyclic_reference_handling == CyclicReferenceHandling.IGNORE
        assert options.is_infinite_recursion_allowed is True

        options.exclude_nested_objects()
        assert options.is_recursive is False

    def test_enum_mode_last_write_wins(self, options):
        options.comparing_enums_by_name().comparing_enums_by_value()

        assert options.enum_equivalency_handling == EnumEquivalencyHandling.BY_VALUE

        options.comparing_enums_by_name()
        assert options.enum_equivalency_handling == EnumEquivalencyHandling.BY_NAME


class TestPrecedence:
    """Selection/ordering rules append; matching rules and steps prepend."""

    def test_selection_rules_in_insertion_order(self, options):
        first, second = NamedSelectionRule("first"), NamedSelectionRule("second")
        options.using(first).using(second)

        assert options.selection_rules == (first, second)

    def test_matching_rules_last_added_first(self, options):
        rule_a, rule_b = NamedMatchingRule("A"), NamedMatchingRule("B")
        options.using(rule_a).using(rule_b)

        assert options.matching_rules[0] is rule_b
        assert options.matching_rules[1] is rule_a
        assert isinstance(options.matching_rules[2], MustMatchByNameRule)

    def test_steps_last_added_first(self, options):
        step_a, step_b = NamedStep("A"), NamedStep("B")
        options.using(step_a).using(step_b)

        assert options.user_equivalency_steps == (step_b, step_a)

    def test_duplicates_are_kept(self, options):
        rule = NamedSelectionRule("dup")
        options.using(rule).using(rule)

        assert options.selection_rules == (rule, rule)

    def test_strict_ordering_for_all_appends(self, options):
        options.with_strict_ordering_for_all()

        assert len(options.ordering_rules) == 2
        assert isinstance(options.ordering_rules[0], ByteArrayOrderingRule)
        assert isinstance(options.ordering_rules[1], MatchAllOrderingRule)

    def test_strict_ordering_for_predicate_appends(self, options):
        options.with_strict_ordering_for(member_named("items"))

        assert isinstance(options.ordering_rules[-1], PredicateBasedOrderingRule)

    def test_assertion_rule_wrapped_at_head(self, options):
        step = NamedStep("existing")
        rule = ActionAssertionRule(member_named("price"), lambda ctx: None)
        options.using(step).using(rule)

        head = options.user_equivalency_steps[0]
        assert isinstance(head, AssertionRuleEquivalencyStepAdaptor)
        assert head.assertion_rule is rule
        assert options.user_equivalency_steps[1] is step

    def test_unknown_rule_kind_rejected(self, options):
        with pytest.raises(TypeError):
            options.using(42)

        with pytest.raises(TypeError):
            options.using(None)

    def test_rule_class_rejected(self, options):
        with pytest.raises(TypeError) as exc_info:
            options.using(NamedSelectionRule)

        assert "NamedSelectionRule" in str(exc_info.value)
        assert options.selection_rules == ()


class TestMatchingRuleReplacement:
    """require_exact_name_match/allow_missing_members replace the whole list."""

    def test_allow_missing_after_require_exact(self, options):
        options.using(NamedMatchingRule("custom"))
        options.require_exact_name_match().allow_missing_members()

        assert len(options.matching_rules) == 1
        assert isinstance(options.matching_rules[0], TryMatchByNameRule)

    def test_require_exact_after_allow_missing(self, options):
        options.allow_missing_members().require_exact_name_match()

        assert len(options.matching_rules) == 1
        assert isinstance(options.matching_rules[0], MustMatchByNameRule)

    def test_clear_matching_rules(self, options):
        options.clear_matching_rules()

        assert options.matching_rules == ()


class TestSelectionRegeneration:
    """Property inclusion rebuilds the selection list from scratch."""

    def test_runtime_properties_discard_custom_rules(self, options):
        options.exclude_member(member_named("Id")).using(NamedSelectionRule("custom"))

        options.using_all_runtime_properties()

        assert options.use_runtime_typing is True
        assert options.include_properties is True
        assert len(options.selection_rules) == 1
        assert isinstance(options.selection_rules[0], AllPublicPropertiesSelectionRule)

    def test_declared_properties_discard_custom_rules(self, options):
        options.using_all_runtime_properties().exclude_member(member_named("Id"))

        options.using_all_declared_properties()

        assert options.use_runtime_typing is False
        assert len(options.selection_rules) == 1
        assert isinstance(options.selection_rules[0], AllPublicPropertiesSelectionRule)

    def test_rules_added_after_regeneration_survive(self, options):
        options.using_all_declared_properties().exclude_member(member_named("Id"))

        assert isinstance(options.selection_rules[0], AllPublicPropertiesSelectionRule)
        assert isinstance(options.selection_rules[1], ExcludeMemberByPredicateSelectionRule)

    def test_clear_selection_rules_forces_declared_typing(self, options):
        options.using_all_runtime_properties()

        options.clear_selection_rules()

        assert options.selection_rules == ()
        assert options.use_runtime_typing is False
        assert options.include_properties is True

    def test_remove_standard_selection_rules(self, options):
        options.using_all_runtime_properties().exclude_member(member_named("Id"))

        options.remove_standard_selection_rules()

        assert len(options.selection_rules) == 1
        assert isinstance(options.selection_rules[0], ExcludeMemberByPredicateSelectionRule)
        assert options.use_runtime_typing is False
        assert options.include_properties is True

    def test_remove_selection_rule_by_type(self, options):
        options.using(NamedSelectionRule("a")).exclude_member(member_named("Id")).using(NamedSelectionRule("b"))

        options.remove_selection_rule(NamedSelectionRule)

        assert len(options.selection_rules) == 1
        assert isinstance(options.selection_rules[0], ExcludeMemberByPredicateSelectionRule)


class TestCloning:
    """Options cloned from defaults are independent by value."""

    def test_clone_copies_switches_and_rules(self, options):
        options.include_nested_objects().ignore_cyclic_references().comparing_enums_by_name()
        options.using_all_runtime_properties().with_strict_ordering_for_all()

        clone = EquivalencyOptions(options)

        assert clone.is_recursive is True
        assert clone.cyclic_reference_handling == CyclicReferenceHandling.IGNORE
        assert clone.enum_equivalency_handling == EnumEquivalencyHandling.BY_NAME
        assert clone.use_runtime_typing is True
        assert clone.include_properties is True
        assert clone.selection_rules == options.selection_rules
        assert clone.matching_rules == options.matching_rules
        assert clone.ordering_rules == options.ordering_rules
        assert clone.describe() == options.describe()

    def test_mutating_clone_leaves_source_untouched(self, options):
        clone = EquivalencyOptions(options)

        clone.exclude_member(member_named("Id"))
        clone.clear_matching_rules()
        clone.with_strict_ordering_for_all()
        clone.using(NamedStep("x"))

        assert options.selection_rules == ()
        assert len(options.matching_rules) == 1
        assert len(options.ordering_rules) == 1
        assert options.user_equivalency_steps == ()

    def test_mutating_source_leaves_clone_untouched(self, options):
        clone = EquivalencyOptions(options)

        options.using(NamedMatchingRule("late"))

        assert len(clone.matching_rules) == 1

    def test_clone_from_frozen_policy(self, options):
        options.exclude_member(member_named("Id")).allow_infinite_recursion()
        frozen = options.freeze()

        clone = EquivalencyOptions(frozen)
        clone.clear_selection_rules()

        assert clone.is_infinite_recursion_allowed is True
        assert len(frozen.selection_rules) == 1


class TestRestriction:
    """using(action) returns a Restriction that registers a step."""

    def test_using_callable_returns_restriction(self, options):
        restriction = options.using(lambda ctx: None)

        assert isinstance(restriction, Restriction)
        assert restriction.options is options
        assert options.user_equivalency_steps == ()

    def test_for_type_registers_step_and_returns_options(self, options):
        from decimal import Decimal

        result = options.using(lambda ctx: None).for_type(Decimal)

        assert result is options
        assert len(options.user_equivalency_steps) == 1
        assert str(options.user_equivalency_steps[0]) == "Invoke action<Decimal> when runtime type is Decimal"

    def test_for_predicate_inserts_at_head(self, options):
        options.using(lambda ctx: None).for_predicate(member_named("first"))
        options.using(lambda ctx: None).for_predicate(member_named("second"))

        assert "second" in str(options.user_equivalency_steps[0])
        assert "first" in str(options.user_equivalency_steps[1])

    def test_for_predicate_description(self, options):
        options.using(lambda ctx: None).for_predicate(member_named("price"))
        options.using(lambda ctx: None).for_predicate(lambda info: info.name == "total", "total amount")

        assert _lines(options)[2:] == [
            "- Invoke action when total amount",
            "- Invoke action when name == 'price'",
        ]


class TestDescribe:
    """describe() lists the typing mode and rules in evaluation order."""

    def test_fresh_policy(self, options):
        assert options.describe() == (
            "- Use declared types and members\n"
            "- Match member by name (or throw)\n"
        )

    def test_exclude_member_scenario(self, options):
        options.exclude_member(member_named("Id"))

        assert _lines(options) == [
            "- Use declared types and members",
            "- Exclude member when name == 'Id'",
            "- Match member by name (or throw)",
        ]

    def test_selection_rules_in_added_order(self, options):
        options.using(NamedSelectionRule("one")).using(NamedSelectionRule("two")).using(NamedSelectionRule("three"))

        assert _lines(options)[1:4] == ["- Select one", "- Select two", "- Select three"]

    def test_full_order(self, options):
        options.using_all_runtime_properties()
        options.using(NamedMatchingRule("custom"))
        options.using(NamedStep("A")).using(NamedStep("B"))

        assert _lines(options) == [
            "- Use runtime types and members",
            "- Include all non-private properties",
            "- Match custom",
            "- Match member by name (or throw)",
            "- Step B",
            "- Step A",
        ]

    def test_switches_do_not_add_lines(self, options):
        before = options.describe()

        options.ignore_cyclic_references().include_nested_objects().comparing_enums_by_name()
        options.with_strict_ordering_for_all().allow_infinite_recursion()

        assert options.describe() == before

    def test_named_function_predicate_description(self, options):
        def is_identifier(info):
            return info.name.endswith("Id")

        options.exclude_member(is_identifier)

        assert "- Exclude member when is_identifier" in _lines(options)

    def test_exclude_member_lambda_scenario(self):
        text = EquivalencyOptions().exclude_member(lambda m: m.name == "Id").describe()

        assert "Id" in text
        assert "- Exclude member when m.name == 'Id'" in text.splitlines()

    def test_explicit_description(self, options):
        options.exclude_member(lambda m: m.name.startswith("_"), description="private members")
        options.with_strict_ordering_for(lambda m: m.name == "lines", "order lines")

        assert "- Exclude member when private members" in _lines(options)
        assert str(options.ordering_rules[-1]) == "Be strict about the order of collection items when order lines"

    def test_str_is_describe(self, options):
        assert str(options) == options.describe()


class TestEndToEndSelection:
    """Configured rules applied to a context."""

    def test_excluded_member_is_filtered(self, options):
        options.exclude_member(member_named("Id"))
        members = [Member(name="Id", member_type=int), Member(name="Name", member_type=str)]

        selected = options.selection_rules[0].select_members(members, MemberInfo.root(dict), options)

        assert [m.name for m in selected] == ["Name"]
