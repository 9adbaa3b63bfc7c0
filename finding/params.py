"""Extraction of repeated filter groups from flat query parameters.

Two syntaxes exist for repeated groups. The non-numbered form describes a
single group (``itemFilter.name``), the numbered form a list of groups
(``itemFilter(0).name``, ``itemFilter(1).name``, ...). Values inside a group
may themselves be bare (``itemFilter.value``) or indexed
(``itemFilter.value(0)``). Mixing both forms for the same key is rejected.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Mapping, Optional, Tuple, TypeVar

from .errors import ErrorKind, FindingError

RawParameters = Mapping[str, str]

T = TypeVar("T")


class Syntax(Enum):
    """Repetition syntax used for a filter family."""

    NON_NUMBERED = "non-numbered"
    NUMBERED = "numbered"


@dataclass(frozen=True)
class ItemFilterParam:
    """Secondary name/value pair attached to an item filter."""

    name: str
    value: str


@dataclass(frozen=True)
class ItemFilter:
    """A named search refinement with one or more values."""

    name: str
    values: Tuple[str, ...]
    param: Optional[ItemFilterParam] = None

    @property
    def value(self) -> str:
        return self.values[0]

    @property
    def param_name(self) -> Optional[str]:
        return self.param.name if self.param else None

    @property
    def param_value(self) -> Optional[str]:
        return self.param.value if self.param else None


@dataclass(frozen=True)
class AspectFilter:
    """An aspect name together with the aspect values to match."""

    aspect_name: str
    value_names: Tuple[str, ...]


def parse_values(params: RawParameters, root: str) -> List[str]:
    """Return the ordered values stored under ``root``.

    Indexed keys ``root(0)``, ``root(1)``, ... are collected up to the first
    gap; the bare ``root`` key is used only when no indexed key exists.
    """

    if root in params and f"{root}(0)" in params:
        raise FindingError(
            ErrorKind.INVALID_FILTER_SYNTAX,
            f"finding: invalid filter syntax: both {root} and {root}(0) are present",
            code="InvalidFilterSyntax",
            value=root,
        )
    values = _indexed_values(params, root)
    if not values and root in params:
        values = [params[root]]
    if not values:
        raise FindingError(
            ErrorKind.INCOMPLETE_FILTER,
            f"finding: incomplete filter: missing value for {root}",
            code="IncompleteFilter",
            value=root,
        )
    return values


def _indexed_values(params: RawParameters, root: str) -> List[str]:
    values: List[str] = []
    idx = 0
    while True:
        key = f"{root}({idx})"
        if key not in params:
            return values
        values.append(params[key])
        idx += 1


def classify(params: RawParameters, family: str, field: Optional[str] = None) -> Optional[Syntax]:
    """Decide which repetition syntax ``family`` uses, if any."""

    suffix = f".{field}" if field else ""
    non_numbered = f"{family}{suffix}" in params
    numbered = f"{family}(0){suffix}" in params
    if non_numbered and numbered:
        raise FindingError(
            ErrorKind.INVALID_FILTER_SYNTAX,
            f"finding: invalid filter syntax: both {family}{suffix} and {family}(0){suffix} are present",
            code="InvalidFilterSyntax",
            value=family,
        )
    if non_numbered:
        return Syntax.NON_NUMBERED
    if numbered:
        return Syntax.NUMBERED
    return None


def _collect_groups(
    params: RawParameters,
    family: str,
    field: str,
    build: Callable[[str], T],
) -> List[T]:
    syntax = classify(params, family, field)
    if syntax is None:
        return []
    if syntax is Syntax.NON_NUMBERED:
        return [build(family)]
    groups: List[T] = []
    idx = 0
    while f"{family}({idx}).{field}" in params:
        groups.append(build(f"{family}({idx})"))
        idx += 1
    return groups


def parse_item_filters(params: RawParameters) -> List[ItemFilter]:
    """Extract every item filter, in request order, without validating values."""

    def build(prefix: str) -> ItemFilter:
        values = parse_values(params, f"{prefix}.value")
        param_name = params.get(f"{prefix}.paramName")
        param_value = params.get(f"{prefix}.paramValue")
        if (param_name is None) != (param_value is None):
            raise FindingError(
                ErrorKind.INCOMPLETE_FILTER,
                "finding: incomplete item filter: both paramName and paramValue must be specified together",
                code="IncompleteItemFilterParam",
                value=prefix,
            )
        param = None
        if param_name is not None and param_value is not None:
            param = ItemFilterParam(name=param_name, value=param_value)
        return ItemFilter(name=params[f"{prefix}.name"], values=tuple(values), param=param)

    return _collect_groups(params, "itemFilter", "name", build)


def parse_aspect_filters(params: RawParameters) -> List[AspectFilter]:
    """Extract every aspect filter, in request order."""

    named = "aspectFilter.aspectName" in params
    if not named and _has_aspect_values(params, "aspectFilter"):
        raise _incomplete_aspect_filter("aspectFilter")

    def build(prefix: str) -> AspectFilter:
        values = parse_values(params, f"{prefix}.aspectValueName")
        return AspectFilter(aspect_name=params[f"{prefix}.aspectName"], value_names=tuple(values))

    filters = _collect_groups(params, "aspectFilter", "aspectName", build)
    # Value names under the first unnamed index belong to no group.
    orphan = f"aspectFilter({len(filters)})"
    if not named and _has_aspect_values(params, orphan):
        raise _incomplete_aspect_filter(orphan)
    return filters


def _has_aspect_values(params: RawParameters, prefix: str) -> bool:
    return f"{prefix}.aspectValueName" in params or f"{prefix}.aspectValueName(0)" in params


def _incomplete_aspect_filter(prefix: str) -> FindingError:
    return FindingError(
        ErrorKind.INCOMPLETE_FILTER,
        "finding: incomplete aspect filter: aspectName and aspectValueName are required",
        code="IncompleteAspectFilter",
        value=prefix,
    )


def parse_output_selectors(params: RawParameters) -> List[str]:
    """Extract the requested output selectors; absent selectors are not an error."""

    if classify(params, "outputSelector") is None:
        return []
    return parse_values(params, "outputSelector")


__all__ = [
    "AspectFilter",
    "ItemFilter",
    "ItemFilterParam",
    "RawParameters",
    "Syntax",
    "classify",
    "parse_aspect_filters",
    "parse_item_filters",
    "parse_output_selectors",
    "parse_values",
]
