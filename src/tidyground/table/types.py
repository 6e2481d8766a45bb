"""Column types understood by TidyGround.

Data is stored in Arrow arrays, and each Arrow type is
mapped to one of the few logical types that a data wrangling
tutorial deals with::

    STRING       -> string
    CATEGORICAL  -> dictionary<values=string, indices=int32>
    INTEGER      -> int64
    FLOAT        -> float64
    DATE         -> date32
    DATETIME     -> timestamp[us]
    BOOLEAN      -> bool

Categorical columns are dictionary encoded arrays: the dictionary
is the set of levels and its order is the order of the levels.
"""

import enum

import pyarrow as pa


class ColumnType(enum.Enum):
    """Logical type of a column."""

    STRING = "string"
    CATEGORICAL = "categorical"
    INTEGER = "integer"
    FLOAT = "float"
    DATE = "date"
    DATETIME = "datetime"
    BOOLEAN = "boolean"
    NULL = "null"
    OTHER = "other"

    def __str__(self) -> str:
        return self.value

    def to_arrow(self, ordered: bool = False) -> pa.DataType:
        """The Arrow type used to store columns of this type."""
        if self is ColumnType.CATEGORICAL:
            return pa.dictionary(pa.int32(), pa.string(), ordered=ordered)
        try:
            return _ARROW_TYPES[self]
        except KeyError:
            raise ValueError(f"Column type {self} has no storage type") from None

    @classmethod
    def from_arrow(cls, dtype: pa.DataType) -> "ColumnType":
        """Detect the logical type of an Arrow type."""
        if pa.types.is_dictionary(dtype):
            return cls.CATEGORICAL
        if pa.types.is_string(dtype) or pa.types.is_large_string(dtype):
            return cls.STRING
        if pa.types.is_integer(dtype):
            return cls.INTEGER
        if pa.types.is_floating(dtype) or pa.types.is_decimal(dtype):
            return cls.FLOAT
        if pa.types.is_date(dtype):
            return cls.DATE
        if pa.types.is_timestamp(dtype):
            return cls.DATETIME
        if pa.types.is_boolean(dtype):
            return cls.BOOLEAN
        if pa.types.is_null(dtype):
            return cls.NULL
        return cls.OTHER

    @classmethod
    def parse(cls, value: "ColumnType | str") -> "ColumnType":
        """Accept both ColumnType members and their names, like ``"integer"``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(f"Unknown column type: {value!r}") from None

    @property
    def is_numeric(self) -> bool:
        return self in (ColumnType.INTEGER, ColumnType.FLOAT)


_ARROW_TYPES = {
    ColumnType.STRING: pa.string(),
    ColumnType.INTEGER: pa.int64(),
    ColumnType.FLOAT: pa.float64(),
    ColumnType.DATE: pa.date32(),
    ColumnType.DATETIME: pa.timestamp("us"),
    ColumnType.BOOLEAN: pa.bool_(),
    ColumnType.NULL: pa.null(),
}
