"""
SQL Server type → canonical type → C# / DbType mapping.

Canonical types (closed set):
int, long, short, byte, decimal, double, float, datetime, datetimeoffset,
timespan, bool, guid, bytes, string

Every function here is total: unknown input resolves to "string".
"""

from enum import Enum
from typing import Optional

CANONICAL_TYPES = frozenset({
    "int", "long", "short", "byte",
    "decimal", "double", "float",
    "datetime", "datetimeoffset", "timespan",
    "bool", "guid", "bytes", "string",
})

_SQL_TO_CANONICAL = {
    # Integer family
    "int": "int",
    "integer": "int",
    "bigint": "long",
    "smallint": "short",
    "tinyint": "byte",

    # Decimal family
    "decimal": "decimal",
    "numeric": "decimal",
    "money": "decimal",
    "smallmoney": "decimal",

    # Floating point (float(53) is a double, real is single precision)
    "float": "double",
    "real": "float",

    # Date / time
    "datetime": "datetime",
    "datetime2": "datetime",
    "smalldatetime": "datetime",
    "date": "datetime",
    "time": "timespan",
    "datetimeoffset": "datetimeoffset",

    # Row-version markers, not dates
    "timestamp": "bytes",
    "rowversion": "bytes",

    # String family
    "varchar": "string",
    "nvarchar": "string",
    "char": "string",
    "nchar": "string",
    "text": "string",
    "ntext": "string",
    "xml": "string",

    # Binary family
    "varbinary": "bytes",
    "binary": "bytes",
    "image": "bytes",

    "bit": "bool",
    "uniqueidentifier": "guid",

    # Spatial / hierarchical / variant: string fallback
    "geography": "string",
    "geometry": "string",
    "hierarchyid": "string",
    "sql_variant": "string",
}

_CANONICAL_TO_CLR = {
    "int": "int",
    "long": "long",
    "short": "short",
    "byte": "byte",
    "decimal": "decimal",
    "float": "float",
    "double": "double",
    "datetime": "DateTime",
    "datetimeoffset": "DateTimeOffset",
    "timespan": "TimeSpan",
    "bool": "bool",
    "guid": "Guid",
    "bytes": "byte[]",
    "string": "string",
}

_CANONICAL_TO_DB_TYPE = {
    "int": "DbType.Int32",
    "long": "DbType.Int64",
    "short": "DbType.Int16",
    "byte": "DbType.Byte",
    "decimal": "DbType.Decimal",
    "float": "DbType.Single",
    "double": "DbType.Double",
    "datetime": "DbType.DateTime2",
    "datetimeoffset": "DbType.DateTimeOffset",
    "timespan": "DbType.Time",
    "bool": "DbType.Boolean",
    "guid": "DbType.Guid",
    "bytes": "DbType.Binary",
    "string": "DbType.String",
}

_REFERENCE_TYPES = frozenset({"string", "bytes"})


class TypeCategory(str, Enum):
    """
    Decides which type parameters the DDL visitor extracts.
    """
    STRING = "STRING"      # (length)
    DECIMAL = "DECIMAL"    # (precision[, scale])
    OTHER = "OTHER"


_STRING_PARAM_TYPES = frozenset({"varchar", "nvarchar", "char", "nchar"})
_DECIMAL_PARAM_TYPES = frozenset({"decimal", "numeric"})


def _normalize(name: Optional[str]) -> str:
    return (name or "").strip().lower()


def sql_to_canonical(sql_type: Optional[str]) -> str:
    """
    Map a SQL Server type name (case-insensitive, exact match) to a canonical type.
    """
    return _SQL_TO_CANONICAL.get(_normalize(sql_type), "string")


def is_value_type(canonical: Optional[str]) -> bool:
    """
    True when the canonical type needs a nullable marker to hold null.
    """
    return _normalize(canonical) not in _REFERENCE_TYPES


def canonical_to_target_type(canonical: Optional[str], nullable: bool = False) -> str:
    """
    C# type name for a canonical type, e.g. ("int", True) -> "int?",
    ("string", True) -> "string", ("bytes", False) -> "byte[]".
    """
    key = _normalize(canonical)
    base = _CANONICAL_TO_CLR.get(key, "string")

    if nullable and base not in ("string", "byte[]"):
        return f"{base}?"
    return base


def canonical_to_db_type(canonical: Optional[str]) -> str:
    """
    Parameter-binding tag used by generated data-access code.
    """
    return _CANONICAL_TO_DB_TYPE.get(_normalize(canonical), "DbType.String")


def type_category(sql_type: Optional[str]) -> TypeCategory:
    key = _normalize(sql_type)
    if key in _STRING_PARAM_TYPES:
        return TypeCategory.STRING
    if key in _DECIMAL_PARAM_TYPES:
        return TypeCategory.DECIMAL
    return TypeCategory.OTHER
