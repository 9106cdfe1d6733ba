"""Member predicates and member discovery.

Predicates are first-class values over MemberInfo rather than parsed
expressions. Each carries a human-readable description so that rules built
from it can describe themselves in policy diagnostics.
"""

import ast
import inspect
import re
from typing import Any, Callable, ClassVar, Dict, List, Optional, Tuple, Union, get_origin

from .types import Member, MemberInfo, MemberKind

PredicateFunc = Callable[[MemberInfo], bool]


class MemberPredicate:
    """A predicate over member metadata with a description attached."""

    def __init__(self, func: PredicateFunc, description: Optional[str] = None):
        self.func = func
        self.description = description or _callable_name(func)

    def __call__(self, info: MemberInfo) -> bool:
        return bool(self.func(info))

    def __and__(self, other: "MemberPredicate") -> "MemberPredicate":
        other = as_predicate(other)
        return MemberPredicate(
            lambda info: self(info) and other(info),
            f"({self.description}) and ({other.description})",
        )

    def __or__(self, other: "MemberPredicate") -> "MemberPredicate":
        other = as_predicate(other)
        return MemberPredicate(
            lambda info: self(info) or other(info),
            f"({self.description}) or ({other.description})",
        )

    def __invert__(self) -> "MemberPredicate":
        return MemberPredicate(lambda info: not self(info), f"not ({self.description})")

    def __str__(self) -> str:
        return self.description

    def __repr__(self) -> str:
        return f"MemberPredicate({self.description!r})"


PredicateLike = Union[MemberPredicate, PredicateFunc, None]


def as_predicate(predicate: PredicateLike, description: Optional[str] = None) -> MemberPredicate:
    """Wrap a plain callable; None becomes a predicate that never holds.

    A description, when given, overrides the one the predicate carries.
    """
    if predicate is None:
        return MemberPredicate(lambda info: False, description or "never")
    if isinstance(predicate, MemberPredicate):
        if description is None:
            return predicate
        return MemberPredicate(predicate.func, description)
    return MemberPredicate(predicate, description)


def evaluate_predicate(predicate: PredicateLike, info: MemberInfo) -> bool:
    """Evaluate a predicate against member metadata.

    Type mismatches inside the predicate count as a non-match.
    """
    if predicate is None:
        return False
    try:
        return bool(predicate(info))
    except (TypeError, ValueError):
        return False


def _callable_name(func: Any) -> str:
    name = getattr(func, "__name__", None)
    if name == "<lambda>":
        return _lambda_body(func) or "custom predicate"
    return name or "custom predicate"


def _lambda_body(func: Any) -> Optional[str]:
    """Recover the body of a lambda from its source, e.g. "m.name == 'Id'".

    Returns None when the source is unavailable or holds more than one lambda.
    """
    try:
        source = inspect.getsource(func)
    except (OSError, TypeError):
        return None

    start = source.find("lambda")
    if start < 0 or source.find("lambda", start + 1) >= 0:
        return None

    # getsource returns whole lines, so trim trailing text until the lambda parses
    text = source[start:]
    for end in range(len(text), 0, -1):
        try:
            node = ast.parse(text[:end].strip(), mode="eval").body
        except SyntaxError:
            continue
        if isinstance(node, ast.Tuple) and node.elts:
            node = node.elts[0]
        if isinstance(node, ast.Lambda):
            return ast.unparse(node.body)
    return None


# ============== PREDICATE FACTORIES ==============

def member_named(name: str) -> MemberPredicate:
    """Holds for members with exactly this name, at any depth."""
    return MemberPredicate(lambda info: info.name == name, f"name == {name!r}")


def member_path(path: str) -> MemberPredicate:
    """Holds for the member at exactly this path from the root."""
    return MemberPredicate(lambda info: info.path == path, f"path == {path!r}")


def member_path_matches(pattern: str) -> MemberPredicate:
    """Holds for members whose path matches a regular expression."""
    compiled = re.compile(pattern)
    return MemberPredicate(
        lambda info: bool(compiled.search(info.path)),
        f"path matches {pattern!r}",
    )


def runtime_type_is(member_type: type) -> MemberPredicate:
    """Holds for members whose runtime type is member_type or a subclass."""
    return MemberPredicate(
        lambda info: is_same_or_inherits(info.runtime_type, member_type),
        f"runtime type is {member_type.__name__}",
    )


def declared_by(declaring_type: type) -> MemberPredicate:
    """Holds for members declared on declaring_type or one of its subclasses."""
    return MemberPredicate(
        lambda info: is_same_or_inherits(info.declaring_type, declaring_type),
        f"declared by {declaring_type.__name__}",
    )


def is_same_or_inherits(actual: Optional[type], expected: Union[type, Tuple[type, ...]]) -> bool:
    if actual is None or not isinstance(actual, type):
        return False
    return issubclass(actual, expected)


# ============== MEMBER DISCOVERY ==============

def public_properties(cls: Optional[type]) -> List[Member]:
    """List the public properties of a type.

    Property descriptors and annotated class attributes (dataclass and model
    fields) both count. Members are returned base-first in declaration
    order; an override keeps its original position but reports the most
    derived declaring type.
    """
    if cls is None or not isinstance(cls, type):
        return []

    found: Dict[str, Member] = {}
    for klass in reversed(cls.__mro__):
        # pydantic's BaseModel exposes model_* properties that are not data
        if klass is object or klass.__module__.startswith("pydantic."):
            continue
        annotations = inspect.get_annotations(klass)
        for name, annotation in annotations.items():
            if name.startswith("_") or _is_class_var(annotation):
                continue
            found[name] = Member(
                name=name,
                declaring_type=klass,
                member_type=_as_class(annotation),
                kind=MemberKind.FIELD,
            )
        for name, attribute in klass.__dict__.items():
            if name.startswith("_") or not isinstance(attribute, property):
                continue
            returns = getattr(attribute.fget, "__annotations__", {}).get("return")
            found[name] = Member(
                name=name,
                declaring_type=klass,
                member_type=_as_class(returns),
                kind=MemberKind.PROPERTY,
            )
    return list(found.values())


def _is_class_var(annotation: Any) -> bool:
    if isinstance(annotation, str):
        return annotation.startswith(("ClassVar", "typing.ClassVar"))
    return annotation is ClassVar or get_origin(annotation) is ClassVar


def _as_class(annotation: Any) -> Optional[type]:
    # Parameterized generics such as list[int] pass isinstance(..., type)
    if isinstance(annotation, type) and get_origin(annotation) is None:
        return annotation
    return None
