# ============================================================================
# SQL DDL ADAPTER TESTS
# ============================================================================
# PURPOSE: CREATE TABLE scripts → TableMetadata via the T-SQL grammar
# ============================================================================
"""
DDL parser tests.

Run with:
    pytest tests/test_sql_ddl_adapter.py -v
"""

import pytest

from schemagen.adapters.sql_ddl_adapter import (
    DdlAdapter,
    SqlDdlParser,
    strip_batch_separators,
    strip_create_schema,
)
from schemagen.pipeline.model_builder import SchemaModelBuilder
from schemagen.utils.exceptions import DdlParseError, SchemaGenError


# ============================================================================
# HELPERS
# ============================================================================

def _parse(sql):
    return SqlDdlParser().parse(sql)


def _single(sql):
    tables = _parse(sql)
    assert len(tables) == 1
    return tables[0]


# ============================================================================
# COLUMNS
# ============================================================================

class TestColumns:

    def test_simple_table(self):
        table = _single(
            "CREATE TABLE Products ("
            " Id INT PRIMARY KEY IDENTITY(1,1) NOT NULL,"
            " Name NVARCHAR(100) NOT NULL"
            ");"
        )

        assert table.name == "Products"
        assert table.schema == ""
        assert [c.name for c in table.columns] == ["Id", "Name"]

        id_col = table.get_column("Id")
        assert id_col.sql_type.upper() == "INT"
        assert id_col.is_primary_key
        assert id_col.is_identity
        assert not id_col.is_nullable

        name_col = table.get_column("Name")
        assert name_col.sql_type.upper() == "NVARCHAR"
        assert name_col.max_length == 100
        assert not name_col.is_nullable
        assert not name_col.is_primary_key
        assert not name_col.is_identity

    def test_nullability(self):
        table = _single(
            "CREATE TABLE TestTable ("
            " Id INT NOT NULL,"
            " OptionalField NVARCHAR(100) NULL,"
            " RequiredField NVARCHAR(100) NOT NULL,"
            " Unspecified NVARCHAR(20)"
            ");"
        )

        assert table.get_column("OptionalField").is_nullable
        assert not table.get_column("RequiredField").is_nullable
        assert table.get_column("Unspecified").is_nullable

    def test_decimal_precision_and_scale(self):
        table = _single("CREATE TABLE Products (Id INT NOT NULL, Price DECIMAL(18,2) NOT NULL);")

        price = table.get_column("Price")
        assert price.sql_type.upper() == "DECIMAL"
        assert price.precision == 18
        assert price.scale == 2
        assert price.max_length is None

    def test_nvarchar_max_has_no_length(self):
        table = _single("CREATE TABLE Notes (Id INT NOT NULL, Body NVARCHAR(MAX) NULL);")
        assert table.get_column("Body").max_length is None

    def test_function_default_keeps_name_only(self):
        table = _single(
            "CREATE TABLE Orders ("
            " Id INT PRIMARY KEY IDENTITY(1,1) NOT NULL,"
            " CreatedAt DATETIME2 NULL DEFAULT GETDATE()"
            ");"
        )

        created = table.get_column("CreatedAt")
        assert created.default_value is not None
        assert created.default_value.upper() == "GETDATE"

    def test_literal_defaults_kept_verbatim(self):
        table = _single(
            "CREATE TABLE Flags ("
            " Id INT NOT NULL,"
            " IsActive BIT NOT NULL DEFAULT 1,"
            " Label NVARCHAR(20) NOT NULL DEFAULT 'none'"
            ");"
        )

        assert table.get_column("IsActive").default_value == "1"
        assert table.get_column("Label").default_value == "none"
        assert table.get_column("Id").default_value is None


# ============================================================================
# KEYS
# ============================================================================

class TestKeys:

    def test_foreign_key(self):
        tables = _parse(
            "CREATE TABLE Categories (Id INT PRIMARY KEY NOT NULL, Name NVARCHAR(50) NOT NULL);"
            "CREATE TABLE Products ("
            " Id INT PRIMARY KEY NOT NULL,"
            " CategoryId INT NULL,"
            " FOREIGN KEY (CategoryId) REFERENCES Categories(Id)"
            ");"
        )

        assert [t.name for t in tables] == ["Categories", "Products"]
        products = tables[1]
        assert len(products.foreign_keys) == 1

        fk = products.foreign_keys[0]
        assert fk.column_name == "CategoryId"
        assert fk.referenced_table == "Categories"
        assert fk.referenced_column == "Id"

    def test_foreign_key_without_referenced_column_defaults_to_id(self):
        table = _single(
            "CREATE TABLE Products ("
            " Id INT NOT NULL,"
            " CategoryId INT NULL,"
            " FOREIGN KEY (CategoryId) REFERENCES Categories"
            ");"
        )

        assert table.foreign_keys[0].referenced_column == "Id"

    def test_composite_foreign_key_keeps_first_column(self):
        table = _single(
            "CREATE TABLE OrderLines ("
            " OrderId INT NOT NULL,"
            " LineNumber INT NOT NULL,"
            " FOREIGN KEY (OrderId, LineNumber) REFERENCES Orders(Id, LineNumber)"
            ");"
        )

        assert len(table.foreign_keys) == 1
        assert table.foreign_keys[0].column_name == "OrderId"
        assert table.foreign_keys[0].referenced_column == "Id"

    def test_table_level_primary_key_marks_column(self):
        table = _single(
            "CREATE TABLE Orders ("
            " Id INT NOT NULL,"
            " Total DECIMAL(10,2) NULL,"
            " CONSTRAINT PK_Orders PRIMARY KEY (Id)"
            ");"
        )

        assert table.get_column("Id").is_primary_key
        assert not table.get_column("Total").is_primary_key


# ============================================================================
# SCRIPTS
# ============================================================================

class TestScripts:

    def test_multiple_tables(self):
        tables = _parse(
            "CREATE TABLE Categories (Id INT NOT NULL);"
            "CREATE TABLE Products (Id INT NOT NULL);"
            "CREATE TABLE Orders (Id INT NOT NULL, OrderDate DATETIME2 NOT NULL);"
        )
        assert [t.name for t in tables] == ["Categories", "Products", "Orders"]

    def test_create_schema_is_stripped_and_schema_carried(self, catalog_sql):
        tables = _parse(catalog_sql)

        assert [t.name for t in tables] == ["Categories", "Products", "Companies"]
        assert tables[0].schema == ""
        assert tables[2].schema == "acme"

    def test_strip_create_schema(self):
        cleaned = strip_create_schema("CREATE SCHEMA acme;\ncreate schema [hr]\nCREATE TABLE T (Id INT);")
        assert "SCHEMA" not in cleaned.upper()
        assert "CREATE TABLE T" in cleaned

    def test_non_table_statements_ignored(self):
        tables = _parse(
            "CREATE TABLE Categories (Id INT NOT NULL, Name NVARCHAR(50) NOT NULL);"
            "INSERT INTO Categories (Id, Name) VALUES (1, 'Tools');"
        )
        assert len(tables) == 1

    @pytest.mark.parametrize("sql", ["", "   \n\t", None])
    def test_empty_input(self, sql):
        assert _parse(sql) == []

    def test_malformed_sql_raises_aggregated_error(self):
        with pytest.raises(DdlParseError) as exc_info:
            _parse("CREATE TABLE T (Id INT NOTAVALIDKEYWORD);")

        assert "SQL parsing errors" in str(exc_info.value)
        assert exc_info.value.errors

    def test_parse_error_is_schemagen_error(self):
        with pytest.raises(SchemaGenError):
            _parse("CREATE TABLE T (Id INT NOTAVALIDKEYWORD);")

    def test_parser_is_a_ddl_adapter(self):
        assert isinstance(SqlDdlParser(), DdlAdapter)


# ============================================================================
# TYPE NAMES THROUGH THE GRAMMAR
# ============================================================================

class TestTypeNames:

    @pytest.mark.parametrize("declared, sql_type, canonical", [
        ("INT", "int", "int"),
        ("BIGINT", "bigint", "long"),
        ("SMALLINT", "smallint", "short"),
        ("TINYINT", "tinyint", "byte"),
        ("DECIMAL(10,2)", "decimal", "decimal"),
        ("NUMERIC(10,2)", "numeric", "decimal"),
        ("MONEY", "money", "decimal"),
        ("SMALLMONEY", "smallmoney", "decimal"),
        ("FLOAT", "float", "double"),
        ("REAL", "real", "float"),
        ("DATETIME", "datetime", "datetime"),
        ("DATETIME2", "datetime2", "datetime"),
        ("SMALLDATETIME", "smalldatetime", "datetime"),
        ("DATE", "date", "datetime"),
        ("TIME", "time", "timespan"),
        ("DATETIMEOFFSET", "datetimeoffset", "datetimeoffset"),
        ("VARCHAR(50)", "varchar", "string"),
        ("NVARCHAR(50)", "nvarchar", "string"),
        ("CHAR(10)", "char", "string"),
        ("NCHAR(10)", "nchar", "string"),
        ("TEXT", "text", "string"),
        ("NTEXT", "ntext", "string"),
        ("XML", "xml", "string"),
        ("VARBINARY(MAX)", "varbinary", "bytes"),
        ("BINARY(16)", "binary", "bytes"),
        ("IMAGE", "image", "bytes"),
        ("TIMESTAMP", "timestamp", "bytes"),
        ("ROWVERSION", "rowversion", "bytes"),
        ("BIT", "bit", "bool"),
        ("UNIQUEIDENTIFIER", "uniqueidentifier", "guid"),
        ("GEOGRAPHY", "geography", "string"),
        ("GEOMETRY", "geometry", "string"),
        ("HIERARCHYID", "hierarchyid", "string"),
        ("SQL_VARIANT", "sql_variant", "string"),
    ])
    def test_declared_type_survives_parse_and_build(self, declared, sql_type, canonical):
        tables = _parse(f"CREATE TABLE Samples (Id INT NOT NULL, Col {declared} NULL);")
        entity = SchemaModelBuilder().build(tables).entities[0]

        assert tables[0].get_column("Col").sql_type == sql_type
        assert entity.get_property("Col").type == canonical

    def test_real_and_float_not_conflated(self):
        table = _single("CREATE TABLE Measures (Ratio real NOT NULL, Amount Float NOT NULL);")

        assert table.get_column("Ratio").sql_type == "real"
        assert table.get_column("Amount").sql_type == "float"

    def test_bracketed_names_resolve(self):
        table = _single("CREATE TABLE [acme].[Measures] ([Ratio] REAL NOT NULL);")

        assert table.schema == "acme"
        assert table.get_column("Ratio").sql_type == "real"


# ============================================================================
# DEFAULT FUNCTION NAMES
# ============================================================================

class TestDefaultFunctions:

    @pytest.mark.parametrize("default_sql, expected", [
        ("GETDATE()", "GETDATE"),
        ("SYSDATETIME()", "SYSDATETIME"),
        ("SYSUTCDATETIME()", "SYSUTCDATETIME"),
        ("SUSER_SNAME()", "SUSER_SNAME"),
        ("NEWID()", "NEWID"),
        ("(getdate())", "getdate"),
        ("CURRENT_TIMESTAMP", "CURRENT_TIMESTAMP"),
    ])
    def test_function_name_as_written(self, default_sql, expected):
        table = _single(f"CREATE TABLE Audits (Id INT NOT NULL, Stamp DATETIME2 NULL DEFAULT {default_sql});")
        assert table.get_column("Stamp").default_value == expected

    def test_literal_defaults_unaffected(self):
        table = _single(
            "CREATE TABLE Flags ("
            " Id INT NOT NULL DEFAULT (0),"
            " Label NVARCHAR(20) NOT NULL DEFAULT 'GETDATE()'"
            ");"
        )

        assert table.get_column("Id").default_value == "0"
        assert table.get_column("Label").default_value == "GETDATE()"


# ============================================================================
# BATCHES AND MALFORMED SCRIPTS
# ============================================================================

class TestBatches:

    def test_go_separated_batches(self):
        tables = _parse(
            "CREATE TABLE Products (Id INT NOT NULL)\n"
            "GO\n"
            "CREATE TABLE Orders (Id INT NOT NULL)\n"
            "go\n"
        )
        assert [t.name for t in tables] == ["Products", "Orders"]

    def test_go_with_semicolons_and_count(self):
        tables = _parse(
            "CREATE TABLE Products (Id INT NOT NULL);\n"
            "GO 2\n"
            "CREATE TABLE Orders (Id INT NOT NULL);\n"
            "GO\n"
        )
        assert [t.name for t in tables] == ["Products", "Orders"]

    def test_strip_batch_separators_keeps_lines(self):
        script = "CREATE TABLE A (Id INT)\nGO\nCREATE TABLE B (Id INT)\n"
        cleaned = strip_batch_separators(script)

        assert cleaned.count("\n") == script.count("\n")
        assert "GO" not in cleaned
        # Column names containing GO are untouched
        assert strip_batch_separators("  Cargo INT,\n") == "  Cargo INT,\n"

    def test_go_only_script_is_empty(self):
        assert _parse("GO\nGO\n") == []


class TestMalformedScripts:

    def test_misspelled_create_table(self):
        with pytest.raises(DdlParseError):
            _parse("CREATE TABLEX T (Id INT);")

    def test_empty_column_definition(self):
        with pytest.raises(DdlParseError) as exc_info:
            _parse("CREATE TABLE T (Id INT,, Name INT);")

        assert exc_info.value.errors[0][0] == 1
        assert "Empty column definition" in exc_info.value.errors[0][1]

    def test_other_create_statements_allowed(self):
        tables = _parse(
            "CREATE TABLE Products (Id INT NOT NULL, Name NVARCHAR(50) NOT NULL);\n"
            "CREATE INDEX IX_Products_Name ON Products (Name);\n"
        )
        assert [t.name for t in tables] == ["Products"]
