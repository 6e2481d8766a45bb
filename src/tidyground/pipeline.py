"""Composition of operations into pipelines.

Data wrangling is rarely a single operation. A typical
cleanup coerces the types of the columns, replaces dummy
values, joins with some lookup table and then filters
the interesting rows.

A :class:`Pipeline` names that sequence of stages, so that
it can be applied to multiple tables and reported on
when one of the stages fails:

>>> from tidyground.compute import filter, replace_dummy_table, sort
>>> from tidyground.table import Table
>>> cleanup = (
...     Pipeline()
...     .then(replace_dummy_table, [9999])
...     .then(filter, "score IS NOT NULL")
...     .then(sort, "score", descending=True)
... )
>>> table = Table.from_pydict({"id": [1, 2, 3], "score": [10, 9999, 20]})
>>> cleanup.run(table).to_pydict()
{'id': [3, 1], 'score': [20, 10]}

Each stage receives the table produced by the previous one.
The first stage that fails stops the pipeline and raises a
:class:`tidyground.errors.PipelineError` that tells which stage
failed, the original error is chained to it.
"""

import logging
from typing import Any, Callable, Iterable, Self

from .errors import PipelineError
from .table import Table
from .utils.inspect import get_qualname

logger = logging.getLogger(__name__)

__all__ = ("Stage", "Pipeline", "compose")


class Stage:
    """An operation with its arguments, waiting for the table to apply to.

    ``Stage(sort, "score", descending=True)(table)``
    is the same as ``sort(table, "score", descending=True)``.
    """

    def __init__(self, func: Callable[..., Table], *args: Any, **kwargs: Any) -> None:
        """
        :param func: The operation, receives the table as first argument.
        :param args: Additional positional arguments of the operation.
        :param kwargs: Additional keyword arguments of the operation.
        """
        if not callable(func):
            raise TypeError(f"Stage requires a callable, got {type(func).__name__}")
        self.func = func
        self.args = args
        self.kwargs = kwargs

    @property
    def name(self) -> str:
        """Name of the operation, used when reporting failures."""
        return get_qualname(self.func)

    def __call__(self, table: Table) -> Table:
        return self.func(table, *self.args, **self.kwargs)

    def __str__(self) -> str:
        args = [repr(arg) for arg in self.args]
        args += [f"{k}={v!r}" for k, v in self.kwargs.items()]
        return f"{self.name}({', '.join(args)})"

    __repr__ = __str__


class Pipeline:
    """An ordered sequence of stages, each one receiving the output of the previous one.

    Pipelines are immutable, :meth:`then` returns a new pipeline
    and the original one can still be used on its own.
    """

    def __init__(self, stages: Iterable[Stage | Callable[[Table], Table]] = ()) -> None:
        """
        :param stages: Callables that accept a table and return a new table.
        """
        self.stages = tuple(
            stage if isinstance(stage, Stage) else Stage(stage) for stage in stages
        )

    def then(self, func: Callable[..., Table], *args: Any, **kwargs: Any) -> Self:
        """Append a stage that calls ``func(table, *args, **kwargs)``."""
        return self.__class__(self.stages + (Stage(func, *args, **kwargs),))

    def __len__(self) -> int:
        return len(self.stages)

    def __str__(self) -> str:
        return " -> ".join(str(stage) for stage in self.stages) or "Pipeline()"

    def run(self, table: Table) -> Table:
        """Apply all the stages in order to the table.

        :raises PipelineError: when a stage fails or doesn't return a Table.
        """
        for index, stage in enumerate(self.stages):
            logger.debug("Running stage %d: %s on %d rows", index, stage, table.num_rows)
            try:
                result = stage(table)
            except Exception as err:
                logger.error("Stage %d (%s) failed: %s", index, stage.name, err)
                raise PipelineError(index, stage.name, err) from err

            if not isinstance(result, Table):
                err = TypeError(
                    f"Stage returned {type(result).__name__} instead of a Table"
                )
                logger.error("Stage %d (%s) failed: %s", index, stage.name, err)
                raise PipelineError(index, stage.name, err) from err
            table = result
        return table

    __call__ = run


def compose(table: Table, stages: Iterable[Stage | Callable[[Table], Table]]) -> Table:
    """Apply a sequence of stages to a table, see :meth:`Pipeline.run`."""
    return Pipeline(stages).run(table)
