"""Selection of columns and computation of new ones.

:func:`select` picks a subset of the columns of a table.
Columns can be named explicitly, or matched by selectors
that look at the column names::

    select(table, "id", starts_with("customer"))

Explicitly named columns come out in the order they are named,
columns matched by selectors in the order they have in the table.
A column picked by more than one spec appears only once,
at the position of the first spec that picked it.

:func:`derive` instead adds new columns computed from the existing ones.
"""

import abc
import logging
import re
from typing import Any, Callable, Iterable

import pyarrow as pa

from ..errors import EmptySelectionError, KeyNotFoundError
from ..table import Table
from .expressions import Expression

logger = logging.getLogger(__name__)

__all__ = (
    "Selector",
    "select",
    "derive",
    "names",
    "starts_with",
    "contains_text",
    "matches_name",
    "everything",
    "exclude",
)


class Selector(abc.ABC):
    """Decides which columns of a table are selected."""

    @abc.abstractmethod
    def resolve(self, column_names: list[str]) -> list[str]:
        """Return the selected names, among ``column_names``."""
        ...


class NameSelector(Selector):
    """Select columns by their exact name, in the given order."""

    def __init__(self, *names: str) -> None:
        self.names = names

    def resolve(self, column_names: list[str]) -> list[str]:
        for name in self.names:
            if name not in column_names:
                raise KeyNotFoundError(name, column_names)
        return list(self.names)

    def __repr__(self) -> str:
        return f"names({', '.join(map(repr, self.names))})"


class PredicateSelector(Selector):
    """Select the columns whose name satisfies a predicate."""

    def __init__(self, predicate: Callable[[str], bool], description: str) -> None:
        self.predicate = predicate
        self.description = description

    def resolve(self, column_names: list[str]) -> list[str]:
        return [name for name in column_names if self.predicate(name)]

    def __repr__(self) -> str:
        return self.description


class ExcludeSelector(Selector):
    """Select all the columns except those picked by another selector."""

    def __init__(self, selector: Selector) -> None:
        self.selector = selector

    def resolve(self, column_names: list[str]) -> list[str]:
        excluded = set(self.selector.resolve(column_names))
        return [name for name in column_names if name not in excluded]

    def __repr__(self) -> str:
        return f"exclude({self.selector!r})"


def names(*column_names: str) -> Selector:
    """Columns with exactly these names, a missing one is an error."""
    return NameSelector(*column_names)


def starts_with(prefix: str) -> Selector:
    """Columns whose name starts with ``prefix``."""
    return PredicateSelector(lambda name: name.startswith(prefix), f"starts_with({prefix!r})")


def contains_text(text: str) -> Selector:
    """Columns whose name contains ``text``."""
    return PredicateSelector(lambda name: text in name, f"contains_text({text!r})")


def matches_name(regex: str) -> Selector:
    """Columns whose name matches the regular expression anywhere."""
    compiled = re.compile(regex)
    return PredicateSelector(
        lambda name: compiled.search(name) is not None, f"matches_name({regex!r})"
    )


def everything() -> Selector:
    """All the columns."""
    return PredicateSelector(lambda name: True, "everything()")


def exclude(*specs: Selector | str) -> Selector:
    """All the columns, except those picked by the specs."""
    if len(specs) == 1 and isinstance(specs[0], Selector):
        return ExcludeSelector(specs[0])
    return ExcludeSelector(_UnionSelector([_as_selector(spec) for spec in specs]))


class _UnionSelector(Selector):
    def __init__(self, selectors: Iterable[Selector]) -> None:
        self.selectors = list(selectors)

    def resolve(self, column_names: list[str]) -> list[str]:
        selected: dict[str, None] = {}
        for selector in self.selectors:
            selected.update(dict.fromkeys(selector.resolve(column_names)))
        return list(selected)

    def __repr__(self) -> str:
        return ", ".join(map(repr, self.selectors))


def _as_selector(spec: Selector | str) -> Selector:
    if isinstance(spec, Selector):
        return spec
    if isinstance(spec, str):
        return NameSelector(spec)
    raise TypeError(f"Expected a column name or a selector, got {type(spec).__name__}")


def select(table: Table, *specs: Selector | str, allow_empty: bool = True) -> Table:
    """Keep only the columns picked by the specs.

    >>> table = Table.from_pydict({"id": [1], "customer_name": ["Jo"], "customer_age": [30], "total": [10]})
    >>> select(table, "id", starts_with("customer")).column_names
    ['id', 'customer_name', 'customer_age']

    :param table: The table to select columns from.
    :param specs: Column names or :class:`Selector` objects.
    :param allow_empty: When ``False`` a selection that picks no columns is an error.
    """
    selector = _UnionSelector([_as_selector(spec) for spec in specs])
    selected = selector.resolve(table.column_names)
    if not selected and not allow_empty:
        raise EmptySelectionError(f"No columns of {table.column_names} match {selector!r}")

    logger.debug("Selected %d of %d columns", len(selected), table.num_columns)
    return Table(table.to_arrow().select(selected))


def derive(table: Table, **columns: Expression | str | Callable[[dict[str, Any]], Any]) -> Table:
    """Add columns computed from the other columns.

    Each new column is computed from an expression, an expression
    string or a callable that receives each row as a dictionary.
    Columns are computed in the order they are provided, so
    later columns can refer to the earlier ones.
    A column with the same name of an existing one replaces it.

    >>> table = Table.from_pydict({"Verbal": [100, 120], "Nonverbal": [90, 95]})
    >>> derive(table, total="Verbal + Nonverbal").column("total").to_pylist()
    [190, 215]
    """
    # Imported here as the expression language depends on the compute package.
    from ..expr.compiler import ensure_expression

    for name, value in columns.items():
        if isinstance(value, (Expression, str)):
            result = ensure_expression(value).apply(table.to_arrow())
            if isinstance(result, pa.Scalar):
                result = pa.array([result.as_py()] * table.num_rows, type=result.type)
        elif callable(value):
            result = [value(row) for row in table.rows()]
        else:
            raise TypeError(f"Column '{name}' must be an expression, got {type(value).__name__}")
        table = table.with_column(name, result)
    return table
