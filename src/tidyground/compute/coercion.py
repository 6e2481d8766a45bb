"""Conversion of columns between types.

Data loaded from text files usually arrives as strings,
with numbers that contain thousands separators (``"1,234"``),
dates written with month names (``"12 Jan 2020"``) and
placeholders standing in for missing data (``"9999"``).

:func:`coerce` converts such columns to their proper type.
By default conversion is strict and the first value that
can't be converted raises :class:`tidyground.errors.ConversionError`
pointing to the offending row. Setting ``strict=False`` turns
unparsable values into missing values instead, and reports
how many of them there were:

>>> options = CoercionOptions(strict=False, na_values=frozenset({9999}))
>>> result = coerce(["9999", "1,042", "n/a"], "integer", options)
>>> result.column.to_pylist()
[None, 1042, None]
>>> result.n_failed
1

Values listed in ``na_values`` are not failures, they are known
placeholders for missing data and are compared both with the raw
text and with the converted value.
"""

import dataclasses
import datetime
import functools
import logging
import re
from typing import Any, Callable, Iterable, Mapping, NamedTuple

import pyarrow as pa

from ..errors import ConversionError
from ..table import ColumnType, Table, categorical, decode, to_array

logger = logging.getLogger(__name__)

__all__ = ("CoercionOptions", "CoercionResult", "coerce", "coerce_table", "MONTH_NAMES")


MONTH_NAMES: dict[str, dict[str, str]] = {
    "en": {
        "jan": "January", "feb": "February", "mar": "March", "apr": "April",
        "jun": "June", "jul": "July", "aug": "August", "sep": "September",
        "sept": "September", "oct": "October", "nov": "November", "dec": "December",
    },
    "it": {
        "gennaio": "January", "febbraio": "February", "marzo": "March",
        "aprile": "April", "maggio": "May", "giugno": "June", "luglio": "July",
        "agosto": "August", "settembre": "September", "ottobre": "October",
        "novembre": "November", "dicembre": "December",
        "gen": "January", "feb": "February", "mar": "March", "apr": "April",
        "mag": "May", "giu": "June", "lug": "July", "ago": "August",
        "set": "September", "ott": "October", "nov": "November", "dic": "December",
    },
    "fr": {
        "janvier": "January", "février": "February", "mars": "March",
        "avril": "April", "mai": "May", "juin": "June", "juillet": "July",
        "août": "August", "septembre": "September", "octobre": "October",
        "novembre": "November", "décembre": "December",
        "janv": "January", "févr": "February", "avr": "April", "juil": "July",
        "sept": "September", "oct": "October", "nov": "November", "déc": "December",
    },
    "de": {
        "januar": "January", "februar": "February", "märz": "March",
        "april": "April", "mai": "May", "juni": "June", "juli": "July",
        "august": "August", "september": "September", "oktober": "October",
        "november": "November", "dezember": "December",
        "jan": "January", "feb": "February", "mär": "March", "apr": "April",
        "jun": "June", "jul": "July", "aug": "August", "sep": "September",
        "okt": "October", "nov": "November", "dez": "December",
    },
    "es": {
        "enero": "January", "febrero": "February", "marzo": "March",
        "abril": "April", "mayo": "May", "junio": "June", "julio": "July",
        "agosto": "August", "septiembre": "September", "octubre": "October",
        "noviembre": "November", "diciembre": "December",
        "ene": "January", "feb": "February", "mar": "March", "abr": "April",
        "may": "May", "jun": "June", "jul": "July", "ago": "August",
        "sep": "September", "oct": "October", "nov": "November", "dic": "December",
    },
}

TRUE_VALUES = frozenset({"true", "t", "yes", "y", "1"})
FALSE_VALUES = frozenset({"false", "f", "no", "n", "0"})
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1


@dataclasses.dataclass(frozen=True)
class CoercionOptions:
    """How values should be converted.

    :param date_format: A :meth:`datetime.datetime.strptime` pattern
                        for dates and datetimes, ISO 8601 when ``None``.
    :param locale: Language of the month names that can appear in dates,
                   they are translated to english full names before parsing.
    :param strict: Fail on the first value that can't be converted,
                   when ``False`` those values become missing.
    :param na_values: Placeholder values that mean missing data.
    :param month_names: Replaces the month names of the locale,
                        ``{"name or abbreviation": "English full name"}``.
    :param thousands_separator: Grouping separator removed from numbers.
    :param decimal_separator: Separator of the decimal part of numbers.
    """

    date_format: str | None = None
    locale: str = "en"
    strict: bool = True
    na_values: frozenset = frozenset()
    month_names: Mapping[str, str] | None = None
    thousands_separator: str = ","
    decimal_separator: str = "."

    def __post_init__(self) -> None:
        if self.month_names is None and self.locale not in MONTH_NAMES:
            raise ValueError(
                f"Unsupported locale {self.locale!r}, available: {sorted(MONTH_NAMES)}"
            )
        if self.thousands_separator == self.decimal_separator:
            raise ValueError("Thousands and decimal separators must differ")
        object.__setattr__(self, "na_values", frozenset(self.na_values))

    @functools.cached_property
    def months_regex(self) -> tuple[re.Pattern, dict[str, str]]:
        """Regular expression that finds month names, and their english replacement."""
        names = self.month_names
        if names is None:
            names = MONTH_NAMES[self.locale]
        names = {k.lower(): v for k, v in names.items()}
        # Longest names first, so that "sept" wins over "sep".
        alternatives = "|".join(re.escape(n) for n in sorted(names, key=len, reverse=True))
        return re.compile(rf"\b({alternatives})\b\.?", re.IGNORECASE), names


class CoercionResult(NamedTuple):
    """The converted column and how many values failed conversion."""

    column: pa.Array
    n_failed: int


def coerce(
    column: Any,
    target_type: ColumnType | str,
    options: CoercionOptions | None = None,
    levels: Iterable[str] | None = None,
    ordered: bool = False,
) -> CoercionResult:
    """Convert a column to ``target_type``.

    :param column: The column to convert, an Arrow array or a list of values.
    :param target_type: The :class:`tidyground.table.ColumnType` to convert to.
    :param options: How to parse the values, see :class:`CoercionOptions`.
    :param levels: For categorical targets, the allowed levels in their order.
                   Values outside of the levels can't be converted.
    :param ordered: For categorical targets, if the levels are ordered.
    """
    target = ColumnType.parse(target_type)
    options = options or CoercionOptions()
    values = decode(to_array(column)).to_pylist()

    if target is ColumnType.CATEGORICAL:
        labels, failed = _convert(values, _to_string, options, target)
        if levels is not None:
            levels = list(levels)
            allowed = set(levels)
            for idx, label in enumerate(labels):
                if label is not None and label not in allowed:
                    if options.strict:
                        raise ConversionError(idx, values[idx], target)
                    labels[idx] = None
                    failed += 1
        converted = categorical(pa.array(labels, type=pa.string()), levels, ordered)
    else:
        try:
            parser = PARSERS[target]
        except KeyError:
            raise ValueError(f"Can't convert columns to {target}") from None
        parsed, failed = _convert(values, parser, options, target)
        converted = pa.array(parsed, type=target.to_arrow())

    if failed:
        logger.warning(
            "%d values could not be converted to %s and became missing", failed, target
        )
    return CoercionResult(converted, failed)


def coerce_table(
    table: Table,
    types: Mapping[str, ColumnType | str],
    options: CoercionOptions | None = None,
) -> tuple[Table, dict[str, int]]:
    """Convert multiple columns of a table.

    Returns the new table and how many values failed
    conversion for each of the converted columns.
    """
    table.check_columns(types)
    failures = {}
    for name, target in types.items():
        result = coerce(table.column(name), target, options)
        table = table.with_column(name, result.column)
        failures[name] = result.n_failed
    return table, failures


def _convert(
    values: list[Any],
    parser: Callable[[Any, CoercionOptions], Any],
    options: CoercionOptions,
    target: ColumnType,
) -> tuple[list[Any], int]:
    """Apply ``parser`` to each value, dealing with missing and failed values."""
    na_texts = {str(v) for v in options.na_values}
    failed = 0
    result = []
    for idx, raw in enumerate(values):
        if raw is None:
            result.append(None)
            continue
        if isinstance(raw, str):
            text = raw.strip()
            if text in na_texts or (text == "" and target is not ColumnType.STRING):
                result.append(None)
                continue

        try:
            value = parser(raw, options)
        except (ValueError, TypeError, OverflowError):
            if options.strict:
                raise ConversionError(idx, raw, target) from None
            failed += 1
            result.append(None)
            continue

        if _is_na_value(value, options.na_values):
            value = None
        result.append(value)
    return result, failed


def _is_na_value(value: Any, na_values: frozenset) -> bool:
    # Booleans are equal to 0 and 1, they only match boolean dummies.
    return any(
        value == na and isinstance(value, bool) == isinstance(na, bool) for na in na_values
    )


def _clean_number(text: str, options: CoercionOptions) -> str:
    text = text.strip().replace(options.thousands_separator, "")
    if options.decimal_separator != ".":
        text = text.replace(options.decimal_separator, ".")
    return text


def _to_integer(value: Any, options: CoercionOptions) -> int:
    if isinstance(value, (bool, int)):
        number = int(value)
    elif isinstance(value, str):
        text = _clean_number(value, options)
        try:
            number = int(text)
        except ValueError:
            number = _float_to_integer(float(text))
    elif isinstance(value, float):
        number = _float_to_integer(value)
    else:
        raise TypeError(f"Can't convert {type(value).__name__} to integer")

    if not INT64_MIN <= number <= INT64_MAX:
        raise ValueError(f"{number} doesn't fit a 64 bit integer")
    return number


def _float_to_integer(value: float) -> int:
    if not value.is_integer():
        raise ValueError(f"{value} is not an integer number")
    return int(value)


def _to_float(value: Any, options: CoercionOptions) -> float:
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, str):
        return float(_clean_number(value, options))
    raise TypeError(f"Can't convert {type(value).__name__} to float")


def _to_boolean(value: Any, options: CoercionOptions) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_VALUES:
            return True
        if text in FALSE_VALUES:
            return False
    raise ValueError(f"{value!r} is not a boolean")


def _expand_months(text: str, options: CoercionOptions) -> str:
    regex, names = options.months_regex
    return regex.sub(lambda m: names[m.group(1).lower()], text.strip())


def _to_datetime(value: Any, options: CoercionOptions) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time())
    if isinstance(value, str):
        text = _expand_months(value, options)
        if options.date_format is None:
            return datetime.datetime.fromisoformat(text)
        return datetime.datetime.strptime(text, options.date_format)
    raise TypeError(f"Can't convert {type(value).__name__} to datetime")


def _to_date(value: Any, options: CoercionOptions) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    return _to_datetime(value, options).date()


def _to_string(value: Any, options: CoercionOptions) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return str(value)


PARSERS: dict[ColumnType, Callable[[Any, CoercionOptions], Any]] = {
    ColumnType.INTEGER: _to_integer,
    ColumnType.FLOAT: _to_float,
    ColumnType.BOOLEAN: _to_boolean,
    ColumnType.DATE: _to_date,
    ColumnType.DATETIME: _to_datetime,
    ColumnType.STRING: _to_string,
}
