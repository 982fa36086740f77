# ============================================================================
# TYPE MAPPER TESTS
# ============================================================================
# PURPOSE: SQL Server → canonical → C# / DbType mapping tables
# ============================================================================
"""
Type mapper tests.

Run with:
    pytest tests/test_type_mapper.py -v
"""

import pytest

from schemagen.inference.type_mapper import (
    CANONICAL_TYPES,
    TypeCategory,
    canonical_to_db_type,
    canonical_to_target_type,
    is_value_type,
    sql_to_canonical,
    type_category,
)


# ============================================================================
# SQL → CANONICAL
# ============================================================================

class TestSqlToCanonical:

    @pytest.mark.parametrize("sql_type, expected", [
        ("int", "int"),
        ("bigint", "long"),
        ("smallint", "short"),
        ("tinyint", "byte"),
        ("decimal", "decimal"),
        ("numeric", "decimal"),
        ("money", "decimal"),
        ("float", "double"),
        ("real", "float"),
        ("datetime2", "datetime"),
        ("date", "datetime"),
        ("time", "timespan"),
        ("datetimeoffset", "datetimeoffset"),
        ("bit", "bool"),
        ("uniqueidentifier", "guid"),
        ("varbinary", "bytes"),
        ("rowversion", "bytes"),
        ("nvarchar", "string"),
        ("xml", "string"),
    ])
    def test_known_types(self, sql_type, expected):
        assert sql_to_canonical(sql_type) == expected

    def test_case_variations_map_identically(self):
        assert sql_to_canonical("VARCHAR") == sql_to_canonical("varchar") == sql_to_canonical("VarChar")

    @pytest.mark.parametrize("sql_type", ["", "   ", "geography_ext", "MYTYPE", None])
    def test_unknown_input_defaults_to_string(self, sql_type):
        assert sql_to_canonical(sql_type) == "string"

    @pytest.mark.parametrize("sql_type", ["int", "", "whatever", "DATETIME2", "bit"])
    def test_always_returns_canonical_type(self, sql_type):
        assert sql_to_canonical(sql_type) in CANONICAL_TYPES


# ============================================================================
# CANONICAL → C#
# ============================================================================

class TestCanonicalToTarget:

    def test_value_type_nullable_gets_marker(self):
        assert canonical_to_target_type("int", nullable=True) == "int?"
        assert canonical_to_target_type("datetime", nullable=True) == "DateTime?"

    def test_reference_types_never_get_marker(self):
        assert canonical_to_target_type("string", nullable=True) == "string"
        assert canonical_to_target_type("bytes", nullable=True) == "byte[]"

    def test_non_nullable(self):
        assert canonical_to_target_type("guid") == "Guid"
        assert canonical_to_target_type("decimal") == "decimal"

    def test_unknown_falls_back_to_string(self):
        assert canonical_to_target_type("nonsense", nullable=True) == "string"

    def test_is_value_type(self):
        assert is_value_type("int")
        assert is_value_type("bool")
        assert not is_value_type("string")
        assert not is_value_type("bytes")


class TestCanonicalToDbType:

    def test_known(self):
        assert canonical_to_db_type("int") == "DbType.Int32"
        assert canonical_to_db_type("float") == "DbType.Single"
        assert canonical_to_db_type("datetime") == "DbType.DateTime2"

    def test_fallback(self):
        assert canonical_to_db_type("mystery") == "DbType.String"
        assert canonical_to_db_type(None) == "DbType.String"


# ============================================================================
# PARAMETER CATEGORIES
# ============================================================================

class TestTypeCategory:

    @pytest.mark.parametrize("sql_type", ["varchar", "NVARCHAR", "char", "nchar"])
    def test_string_family(self, sql_type):
        assert type_category(sql_type) == TypeCategory.STRING

    @pytest.mark.parametrize("sql_type", ["decimal", "NUMERIC"])
    def test_decimal_family(self, sql_type):
        assert type_category(sql_type) == TypeCategory.DECIMAL

    @pytest.mark.parametrize("sql_type", ["int", "text", "varbinary", ""])
    def test_other(self, sql_type):
        assert type_category(sql_type) == TypeCategory.OTHER
