"""Ordered collection of ordering rules."""

from typing import Iterable, Iterator, List, Optional

from .rules import OrderingRule


class OrderingRuleCollection:
    """Rules deciding whether collections are compared in order.

    Rules are evaluated in the order they were added. A collection is
    compared order-insensitively unless some rule applies to it.
    """

    def __init__(self, rules: Optional[Iterable[OrderingRule]] = None):
        self._rules: List[OrderingRule] = list(rules or [])

    def add(self, rule: OrderingRule) -> None:
        if not isinstance(rule, OrderingRule):
            raise TypeError(f"Expected an OrderingRule, got {type(rule).__name__}")
        self._rules.append(rule)

    def __iter__(self) -> Iterator[OrderingRule]:
        return iter(tuple(self._rules))

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"OrderingRuleCollection({[str(r) for r in self._rules]})"
