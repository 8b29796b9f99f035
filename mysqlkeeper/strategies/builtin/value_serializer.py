"""
Conversion of MySQL driver values into SQL literals
"""
import datetime
import math
from decimal import Decimal
from typing import List, Sequence

from ...exceptions import UnsupportedValueError, ValueRetrievalError
from ...logger import LoggerService

logger = LoggerService.get_logger("ValueSerializer")

UNKNOWN_AS_NULL = "null"
UNKNOWN_AS_ERROR = "error"


def quote_identifier(name: str) -> str:
    return "`" + str(name).replace("`", "``") + "`"


def escape_string(text: str) -> str:
    return "'" + text.replace("'", "''").replace("\\", "\\\\") + "'"


def _fraction(micros: int) -> str:
    return f".{micros:06d}" if micros else ""


def _serialize_bytes(raw: bytes) -> str:
    # Text columns may arrive as bytes; anything that is not valid UTF-8 is binary
    try:
        text = bytes(raw).decode("utf-8")
    except UnicodeDecodeError:
        return "0x" + bytes(raw).hex()
    return escape_string(text)


def _serialize_datetime(value: datetime.datetime) -> str:
    if value.hour == 0 and value.minute == 0 and value.second == 0 and value.microsecond == 0:
        return f"'{value.year:04d}-{value.month:02d}-{value.day:02d}'"
    return (
        f"'{value.year:04d}-{value.month:02d}-{value.day:02d} "
        f"{value.hour:02d}:{value.minute:02d}:{value.second:02d}{_fraction(value.microsecond)}'"
    )


def _serialize_time(negative: bool, days: int, hours: int, minutes: int,
                    seconds: int, micros: int) -> str:
    sign = "-" if negative else ""
    total_hours = hours + days * 24
    return f"'{sign}{total_hours:02d}:{minutes:02d}:{seconds:02d}{_fraction(micros)}'"


def _serialize_timedelta(value: datetime.timedelta) -> str:
    negative = value < datetime.timedelta(0)
    interval = -value if negative else value
    hours, remainder = divmod(interval.seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return _serialize_time(negative, interval.days, hours, minutes, seconds, interval.microseconds)


def serialize_value(value, unknown_policy: str = UNKNOWN_AS_NULL) -> str:
    """
    Convert one column value into a literal that can be spliced into SQL.

    The mapping is total: every value yields exactly one literal. Values
    whose type has no known representation become NULL (logged) unless
    unknown_policy is "error", in which case UnsupportedValueError is raised.
    """
    if value is None:
        return "NULL"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return _serialize_bytes(value)
    if isinstance(value, str):
        return escape_string(value)
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return "NULL"
        return repr(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            return "NULL"
        return str(value)
    # datetime is a subclass of date, check it first
    if isinstance(value, datetime.datetime):
        return _serialize_datetime(value)
    if isinstance(value, datetime.date):
        return f"'{value.year:04d}-{value.month:02d}-{value.day:02d}'"
    if isinstance(value, datetime.timedelta):
        return _serialize_timedelta(value)
    if isinstance(value, datetime.time):
        return _serialize_time(False, 0, value.hour, value.minute, value.second, value.microsecond)
    if isinstance(value, (set, frozenset)):
        return escape_string(",".join(sorted(str(member) for member in value)))

    type_name = type(value).__name__
    if unknown_policy == UNKNOWN_AS_ERROR:
        raise UnsupportedValueError(f"Tipo de valor no soportado: {type_name}")
    logger.warning(f"Tipo de valor no soportado ({type_name}), se exporta como NULL")
    return "NULL"


def row_literals(row: Sequence, columns: Sequence[str], table: str,
                 unknown_policy: str = UNKNOWN_AS_NULL) -> List[str]:
    """Serialize one fetched row, cell by cell, in column order."""
    if row is None:
        raise ValueRetrievalError(f"Fila vacía recibida de la tabla {table}")
    literals = []
    for index, column in enumerate(columns):
        try:
            value = row[index]
        except (IndexError, KeyError, TypeError) as e:
            raise ValueRetrievalError(
                f"No se pudo obtener el valor de {table}.{column}: {e}"
            ) from e
        literals.append(serialize_value(value, unknown_policy))
    return literals
