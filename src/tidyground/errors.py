"""Errors raised by TidyGround operations.

All the errors share :class:`TidyGroundError` as their base class,
so that callers can catch any failure of a transformation without
catching unrelated exceptions.

No operation tries to recover from an error by silently
dropping rows or columns. Recovery, like turning unparsable
values into missing values, is always something the caller
has to request explicitly.
"""

from typing import Any


class TidyGroundError(Exception):
    """Base class for all TidyGround errors."""

    pass


class KeyNotFoundError(TidyGroundError, KeyError):
    """A referenced column or key does not exist in the table."""

    def __init__(self, name: str, available: list[str] | None = None) -> None:
        self.name = name
        self.available = available
        message = f"Column '{name}' not found"
        if available is not None:
            message += f", available columns are {available}"
        super().__init__(message)

    def __str__(self) -> str:
        # KeyError would otherwise quote the whole message.
        return self.args[0]


class ShapeMismatchError(TidyGroundError):
    """Row or column counts are incompatible with the requested operation."""

    pass


class SchemaMismatchError(TidyGroundError):
    """Two tables have incompatible column sets or column types."""

    pass


class ConversionError(TidyGroundError):
    """A value could not be converted to the requested column type.

    Raised by strict coercions, it points to the first
    offending value so that it can be fixed in the source data.
    """

    def __init__(self, row_index: int, raw_value: Any, target_type: Any) -> None:
        self.row_index = row_index
        self.raw_value = raw_value
        self.target_type = target_type
        super().__init__(
            f"Unable to convert {raw_value!r} at row {row_index} to {target_type}"
        )


class ColumnConflictError(TidyGroundError):
    """An operation would produce two columns with the same name."""

    pass


class AmbiguousColumnsError(TidyGroundError):
    """Column roles for a reshape can't be inferred unambiguously."""

    pass


class AmbiguousAggregationError(TidyGroundError):
    """More than one value ended up in a cell that expected exactly one."""

    pass


class EmptySelectionError(TidyGroundError):
    """A column selection matched no columns and that was not allowed."""

    pass


class PipelineError(TidyGroundError):
    """A stage of a pipeline failed.

    The original error is available as ``__cause__``.
    """

    def __init__(self, stage_index: int, stage_name: str, error: BaseException) -> None:
        self.stage_index = stage_index
        self.stage_name = stage_name
        self.error = error
        super().__init__(f"Stage {stage_index} ({stage_name}) failed: {error}")


class ExpressionError(TidyGroundError):
    """A predicate or derived-column expression string is malformed."""

    pass
