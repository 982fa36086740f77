"""
Adapter: SQL Server DDL script → List[TableMetadata]

Responsibilities:
- Strip CREATE SCHEMA statements and GO batch separators (text-level, line based)
- Parse the script with the sqlglot T-SQL grammar
- Aggregate every grammar error into one DdlParseError
- Recover source spellings the grammar normalizes away (type names,
  default function names) from the script's own tokens
- Walk CREATE TABLE nodes and flatten them into TableMetadata

DOES NOT:
- Singularize names or map types (see SchemaModelBuilder)
- Support composite primary / foreign keys
- Validate references between tables
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

import sqlglot
from sqlglot import exp
from sqlglot.errors import ErrorLevel, ParseError, SqlglotError, TokenError
from sqlglot.tokens import Token, TokenType

from schemagen.canonical.table import ColumnMetadata, ForeignKeyMetadata, TableMetadata
from schemagen.inference.type_mapper import TypeCategory, type_category
from schemagen.observability.logger import log_event
from schemagen.utils.exceptions import DdlParseError

logger = logging.getLogger(__name__)

DIALECT = "tsql"

# The grammar accepts CREATE SCHEMA but only schema qualification of table
# names matters here. Naive: a CREATE SCHEMA spanning several lines or sharing
# a line with another statement is not stripped.
_CREATE_SCHEMA_PATTERN = re.compile(
    r"^[ \t]*CREATE[ \t]+SCHEMA\b[^;\n]*;?[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)

# GO (optionally "GO <count>") alone on a line ends a batch
_BATCH_SEPARATOR_PATTERN = re.compile(
    r"^[ \t]*GO(?:[ \t]+\d+)?[ \t]*;?[ \t]*$",
    re.IGNORECASE | re.MULTILINE,
)

_CREATE_COMMAND = re.compile(r"^\s*CREATE\s+(\w+)", re.IGNORECASE)
_CREATE_TABLE_TEXT = re.compile(r"\bCREATE\s+TABLE\b", re.IGNORECASE)
_STRING_LITERAL = re.compile(r"N?'(?:[^']|'')*'")

# Object kinds T-SQL can CREATE; anything else after CREATE is a typo
_CREATABLE_OBJECTS = frozenset({
    "AGGREGATE", "APPLICATION", "ASSEMBLY", "ASYMMETRIC", "AVAILABILITY",
    "BROKER", "CERTIFICATE", "CLUSTERED", "COLUMN", "COLUMNSTORE", "CONTRACT",
    "CREDENTIAL", "CRYPTOGRAPHIC", "DATABASE", "DEFAULT", "ENDPOINT", "EVENT",
    "EXTERNAL", "FULLTEXT", "FUNCTION", "INDEX", "LOGIN", "MASTER", "MESSAGE",
    "NONCLUSTERED", "OR", "PARTITION", "PRIMARY", "PROC", "PROCEDURE", "QUEUE",
    "REMOTE", "RESOURCE", "ROLE", "ROUTE", "RULE", "SCHEMA", "SEARCH",
    "SECURITY", "SELECTIVE", "SEQUENCE", "SERVER", "SERVICE", "SPATIAL",
    "STATISTICS", "SYMMETRIC", "SYNONYM", "TABLE", "TRIGGER", "TYPE", "UNIQUE",
    "USER", "VIEW", "WORKLOAD", "XML",
})

# First word of a table-level constraint inside CREATE TABLE ( ... )
_TABLE_CONSTRAINT_KEYWORDS = frozenset({
    "CONSTRAINT", "PRIMARY", "FOREIGN", "UNIQUE", "CHECK", "INDEX", "PERIOD",
})

# Functions T-SQL calls without parentheses
_NILADIC_FUNCTIONS = frozenset({
    "CURRENT_TIMESTAMP", "CURRENT_USER", "SESSION_USER", "SYSTEM_USER", "USER",
})

# Preferred spelling first: when the grammar folds two names onto one node
# type, the first name listed wins.
_SQL_SERVER_TYPE_NAMES = (
    "int", "bigint", "smallint", "tinyint",
    "decimal", "numeric", "money", "smallmoney",
    "float", "real",
    "datetime", "datetime2", "smalldatetime", "date", "time", "datetimeoffset",
    "rowversion", "timestamp",
    "nvarchar", "varchar", "nchar", "char", "text", "ntext", "xml",
    "varbinary", "binary", "image",
    "bit", "uniqueidentifier",
    "geography", "geometry", "hierarchyid", "sql_variant",
)

_KNOWN_TYPE_NAMES = frozenset(_SQL_SERVER_TYPE_NAMES)


def _build_type_name_index() -> Dict[str, str]:
    """
    Map grammar type nodes back to SQL Server type names by asking the
    grammar how it reads each known name. Only used when the source
    spelling of a column type cannot be recovered from the tokens.
    """
    index: Dict[str, str] = {}
    for name in _SQL_SERVER_TYPE_NAMES:
        try:
            data_type = exp.DataType.build(name, dialect=DIALECT, udt=True)
        except (SqlglotError, ValueError) as e:
            logger.debug("Type %s not understood by the %s grammar: %s", name, DIALECT, e)
            continue
        if data_type is None or data_type.this == exp.DataType.Type.USERDEFINED:
            continue
        index.setdefault(data_type.this.name, name)
    return index


_TYPE_NAME_INDEX = _build_type_name_index()


def strip_create_schema(sql_text: str) -> str:
    """
    Remove CREATE SCHEMA statements before parsing.
    """
    return _CREATE_SCHEMA_PATTERN.sub("", sql_text)


def strip_batch_separators(sql_text: str) -> str:
    """
    Replace GO lines with a statement terminator. Line numbers are kept.
    """
    return _BATCH_SEPARATOR_PATTERN.sub(";", sql_text)


# --------------------------------------------------
# Source tokens
# --------------------------------------------------
@dataclass
class ColumnSource:
    """
    Spellings taken from the script text for one column definition.
    """
    type_name: Optional[str] = None           # lower-cased, known SQL Server types only
    default_function: Optional[str] = None    # as written, e.g. "SYSDATETIME"


ColumnKey = Tuple[str, str, str]               # (schema, table, column), lower-cased


def column_key(schema: Optional[str], table: str, column: str) -> ColumnKey:
    return ((schema or "").lower(), table.lower(), column.lower())


class ColumnSourceScanner:
    """
    Walks the token stream of a script and records, per CREATE TABLE column,
    the type name and default function exactly as written.

    Also reports empty elements in a column list ("(Id INT,, Name INT)"),
    which the grammar accepts silently.
    """

    def __init__(self, dialect: str = DIALECT):
        self.dialect = dialect
        self.columns: Dict[ColumnKey, ColumnSource] = {}
        self.errors: List[Tuple[Optional[int], str]] = []

    def scan(self, sql_text: str) -> "ColumnSourceScanner":
        tokens = sqlglot.tokenize(sql_text, read=self.dialect)
        i = 0
        while i < len(tokens) - 1:
            if tokens[i].token_type == TokenType.CREATE and tokens[i + 1].token_type == TokenType.TABLE:
                i = self._scan_create_table(tokens, i + 2)
            else:
                i += 1
        return self

    def _scan_create_table(self, tokens: List[Token], start: int) -> int:
        name_parts = []
        i = start
        while i < len(tokens) and tokens[i].token_type not in (TokenType.L_PAREN, TokenType.SEMICOLON):
            if tokens[i].token_type != TokenType.DOT:
                name_parts.append(tokens[i].text)
            i += 1

        if i >= len(tokens) or tokens[i].token_type != TokenType.L_PAREN or not name_parts:
            return i

        table = name_parts[-1]
        schema = name_parts[-2] if len(name_parts) > 1 else ""

        elements, end = self._split_elements(tokens, i + 1)
        for element, separator in elements:
            if not element:
                self.errors.append(
                    (separator.line, f"Empty column definition in CREATE TABLE {table}")
                )
                continue
            self._scan_element(schema, table, element)
        return end

    @staticmethod
    def _split_elements(tokens: List[Token], start: int):
        """
        Split a parenthesized list on top-level commas. Each element is
        returned with the token that ended it.
        """
        elements = []
        current: List[Token] = []
        depth = 1
        i = start
        while i < len(tokens):
            token = tokens[i]
            if token.token_type == TokenType.L_PAREN:
                depth += 1
            elif token.token_type == TokenType.R_PAREN:
                depth -= 1
                if depth == 0:
                    elements.append((current, token))
                    return elements, i + 1

            if depth == 1 and token.token_type == TokenType.COMMA:
                elements.append((current, token))
                current = []
            else:
                current.append(token)
            i += 1

        # Unbalanced; the grammar has already rejected the script
        return elements, i

    def _scan_element(self, schema: str, table: str, element: List[Token]) -> None:
        first = element[0]
        if first.token_type != TokenType.IDENTIFIER:
            words = first.text.split()
            if words and words[0].upper() in _TABLE_CONSTRAINT_KEYWORDS:
                return

        source = ColumnSource()
        if len(element) > 1 and element[1].text.lower() in _KNOWN_TYPE_NAMES:
            source.type_name = element[1].text.lower()
        source.default_function = self._default_function(element)

        self.columns.setdefault(column_key(schema, table, first.text), source)

    @staticmethod
    def _default_function(element: List[Token]) -> Optional[str]:
        for i, token in enumerate(element):
            if token.token_type in (TokenType.IDENTIFIER, TokenType.STRING) or token.text.upper() != "DEFAULT":
                continue

            # DEFAULT (GETDATE()) is as common as DEFAULT GETDATE()
            j = i + 1
            while j < len(element) and element[j].token_type == TokenType.L_PAREN:
                j += 1
            if j >= len(element):
                return None

            candidate = element[j]
            followed_by_paren = j + 1 < len(element) and element[j + 1].token_type == TokenType.L_PAREN
            if followed_by_paren and candidate.token_type != TokenType.STRING:
                return candidate.text
            if candidate.text.upper() in _NILADIC_FUNCTIONS:
                return candidate.text
            return None
        return None


class DdlAdapter(ABC):
    """
    Narrow boundary around the SQL grammar. Downstream components only ever
    see TableMetadata, so the grammar library can be swapped here.
    """

    @abstractmethod
    def parse(self, sql_text: str) -> List[TableMetadata]:
        ...


class CreateTableVisitor:
    """
    Collects one TableMetadata per CREATE TABLE node.
    """

    def __init__(self, sources: Optional[Dict[ColumnKey, ColumnSource]] = None):
        self.tables: List[TableMetadata] = []
        self.sources = sources or {}

    def visit(self, statement: Optional[exp.Expression]) -> None:
        if statement is None:
            return

        if isinstance(statement, exp.Create):
            if (statement.args.get("kind") or "").upper() == "TABLE":
                self.visit_create_table(statement)
            return

        # Other statements (INSERT, ALTER ...) carry no table metadata

    # --------------------------------------------------
    # CREATE TABLE
    # --------------------------------------------------
    def visit_create_table(self, node: exp.Create) -> None:
        target = node.this
        if isinstance(target, exp.Schema):
            table_ref = target.this
            definitions = target.expressions
        else:
            table_ref = target
            definitions = []

        table = TableMetadata(
            name=self._table_name(table_ref) or "UnknownTable",
            schema=self._schema_name(table_ref),
        )

        for definition in definitions:
            if isinstance(definition, exp.ColumnDef):
                source = self.sources.get(column_key(table.schema, table.name, definition.name or ""))
                table.columns.append(self._extract_column(definition, source or ColumnSource()))

        primary_key_columns = set()

        for constraint in self._table_constraints(definitions):
            if isinstance(constraint, exp.PrimaryKey):
                primary_key_columns.update(self._key_column_names(constraint))
            elif isinstance(constraint, exp.ForeignKey):
                foreign_key = self._extract_foreign_key(constraint)
                if foreign_key is not None:
                    table.foreign_keys.append(foreign_key)

        for column in table.columns:
            if column.name in primary_key_columns:
                column.is_primary_key = True

        self.tables.append(table)

    @staticmethod
    def _table_constraints(definitions: List[exp.Expression]) -> List[exp.Expression]:
        # CONSTRAINT <name> PRIMARY KEY (...) wraps the actual key node
        flat = []
        for definition in definitions:
            if isinstance(definition, exp.Constraint):
                flat.extend(definition.expressions)
            elif not isinstance(definition, exp.ColumnDef):
                flat.append(definition)
        return flat

    # --------------------------------------------------
    # Columns
    # --------------------------------------------------
    def _extract_column(self, column_def: exp.ColumnDef, source: ColumnSource) -> ColumnMetadata:
        column = ColumnMetadata(name=column_def.name or "UnknownColumn")

        data_type = column_def.args.get("kind")
        if isinstance(data_type, exp.DataType):
            column.sql_type = source.type_name or self._type_name(data_type)
            self._extract_type_parameters(column, data_type)

        nullability_seen = False
        for constraint in column_def.args.get("constraints") or []:
            kind = constraint.args.get("kind")

            if isinstance(kind, exp.NotNullColumnConstraint) and not nullability_seen:
                column.is_nullable = bool(kind.args.get("allow_null"))
                nullability_seen = True

            elif isinstance(kind, exp.PrimaryKeyColumnConstraint):
                column.is_primary_key = True

            elif isinstance(kind, exp.AutoIncrementColumnConstraint):
                column.is_identity = True

            elif isinstance(kind, exp.GeneratedAsIdentityColumnConstraint):
                # GENERATED ALWAYS AS (<expr>) is a computed column, not an identity
                if kind.args.get("expression") is None:
                    column.is_identity = True

            elif isinstance(kind, exp.DefaultColumnConstraint):
                column.default_value = self._extract_default_value(kind.this, source.default_function)

        return column

    @staticmethod
    def _type_name(data_type: exp.DataType) -> str:
        if data_type.this == exp.DataType.Type.USERDEFINED:
            return str(data_type.args.get("kind") or "unknown")
        type_key = data_type.this.name
        return _TYPE_NAME_INDEX.get(type_key, type_key.lower())

    def _extract_type_parameters(self, column: ColumnMetadata, data_type: exp.DataType) -> None:
        params = [self._literal_int(p) for p in data_type.expressions]
        category = type_category(column.sql_type)

        if category == TypeCategory.STRING and params:
            column.max_length = params[0]

        elif category == TypeCategory.DECIMAL and params and params[0] is not None:
            column.precision = params[0]
            if len(params) > 1:
                column.scale = params[1]

    @staticmethod
    def _literal_int(node: exp.Expression) -> Optional[int]:
        if isinstance(node, exp.DataTypeParam):
            node = node.this
        # MAX and other non-numeric parameters carry no length
        if isinstance(node, exp.Literal) and not node.is_string:
            try:
                return int(node.this)
            except ValueError:
                return None
        return None

    @staticmethod
    def _extract_default_value(
        expression: Optional[exp.Expression], function_name: Optional[str] = None
    ) -> Optional[str]:
        """
        Literals are kept verbatim, function calls by name only, as written:
        DEFAULT SYSDATETIME() -> "SYSDATETIME", DEFAULT 0 -> "0", DEFAULT 'x' -> "x".
        """
        if expression is None:
            return None

        expression = expression.unnest()

        if isinstance(expression, exp.Literal):
            return expression.this

        if isinstance(expression, exp.Neg) and isinstance(expression.this, exp.Literal):
            return f"-{expression.this.this}"

        if isinstance(expression, exp.National):
            return expression.this

        # CURRENT_USER and friends may come back as a bare column reference
        if function_name and isinstance(expression, (exp.Func, exp.Column)):
            return function_name

        if isinstance(expression, exp.Anonymous):
            return expression.name

        if isinstance(expression, exp.Func):
            rendered = expression.sql(dialect=DIALECT)
            return rendered.split("(", 1)[0].strip() or None

        return None

    # --------------------------------------------------
    # Keys
    # --------------------------------------------------
    @staticmethod
    def _column_ref_name(node: exp.Expression) -> Optional[str]:
        if isinstance(node, exp.Ordered):
            node = node.this
        name = node.name if node is not None else None
        return name or None

    def _key_column_names(self, key: exp.PrimaryKey) -> List[str]:
        names = []
        for item in key.expressions:
            name = self._column_ref_name(item)
            if name:
                names.append(name)
        return names

    def _extract_foreign_key(self, constraint: exp.ForeignKey) -> Optional[ForeignKeyMetadata]:
        columns = constraint.expressions
        if not columns:
            return None

        # Only the first column of a composite key is kept
        column_name = self._column_ref_name(columns[0])
        if not column_name:
            return None

        reference = constraint.args.get("reference")
        if reference is None:
            return None

        target = reference.this
        if isinstance(target, exp.Schema):
            referenced_table = self._table_name(target.this)
            referenced_columns = target.expressions
        else:
            referenced_table = self._table_name(target)
            referenced_columns = []

        if not referenced_table:
            return None

        referenced_column = "Id"
        if referenced_columns:
            referenced_column = self._column_ref_name(referenced_columns[0]) or "Id"

        return ForeignKeyMetadata(
            column_name=column_name,
            referenced_table=referenced_table,
            referenced_column=referenced_column,
        )

    # --------------------------------------------------
    # Names
    # --------------------------------------------------
    @staticmethod
    def _table_name(table_ref: Optional[exp.Expression]) -> Optional[str]:
        if table_ref is None:
            return None
        return table_ref.name or None

    @staticmethod
    def _schema_name(table_ref: Optional[exp.Expression]) -> str:
        if isinstance(table_ref, exp.Table):
            return table_ref.db or ""
        return ""


class SqlDdlParser(DdlAdapter):
    """
    sqlglot-backed DDL parser (T-SQL dialect).
    """

    def __init__(self, dialect: str = DIALECT):
        self.dialect = dialect

    def parse(self, sql_text: str) -> List[TableMetadata]:
        cleaned = strip_batch_separators(strip_create_schema(sql_text or ""))
        if not cleaned.replace(";", "").strip():
            return []

        log_event("DDL_PARSE_STARTED", {"dialect": self.dialect, "characters": len(cleaned)})

        try:
            statements = self._parse_statements(cleaned)
            sources = self._scan_sources(cleaned)
        except DdlParseError as e:
            log_event("DDL_PARSE_FAILED", {"dialect": self.dialect, "error_count": len(e.errors)})
            raise

        visitor = CreateTableVisitor(sources)
        for statement in statements:
            visitor.visit(statement)

        logger.debug("Visited %d statement(s), found %d table(s)", len(statements), len(visitor.tables))
        log_event(
            "DDL_PARSE_COMPLETED",
            {"table_count": len(visitor.tables), "tables": [t.name for t in visitor.tables]},
        )
        return visitor.tables

    def _parse_statements(self, sql_text: str) -> List[Optional[exp.Expression]]:
        try:
            statements = sqlglot.parse(
                sql_text,
                read=self.dialect,
                error_level=ErrorLevel.RAISE,
            )
        except ParseError as e:
            raise DdlParseError(self._collect_errors(e)) from e
        except TokenError as e:
            raise DdlParseError([(None, str(e))]) from e

        errors = []
        for statement in statements:
            if isinstance(statement, exp.Command):
                error = self._check_command(statement.sql(dialect=self.dialect))
                if error:
                    errors.append((None, error))
        if errors:
            raise DdlParseError(errors)

        return statements

    def _scan_sources(self, sql_text: str) -> Dict[ColumnKey, ColumnSource]:
        scanner = ColumnSourceScanner(self.dialect).scan(sql_text)
        if scanner.errors:
            raise DdlParseError(scanner.errors)
        return scanner.columns

    @staticmethod
    def _check_command(text: str) -> Optional[str]:
        """
        Statements the grammar could only keep as opaque text. Returns an
        error message when table definitions would be lost.
        """
        snippet = text[:120]
        match = _CREATE_COMMAND.match(text)

        if match is None:
            # Dynamic SQL inside string literals is not a table definition
            if _CREATE_TABLE_TEXT.search(_STRING_LITERAL.sub("''", text)):
                return f"CREATE TABLE not separated from the preceding statement: {snippet}"
            return None

        kind = match.group(1).upper()
        if kind == "TABLE":
            return f"Unsupported CREATE TABLE syntax: {snippet}"
        if kind not in _CREATABLE_OBJECTS:
            return f"Unknown CREATE statement: {snippet}"
        return None

    @staticmethod
    def _collect_errors(error: ParseError) -> List[Tuple[Optional[int], str]]:
        collected = []
        for item in error.errors or []:
            collected.append((item.get("line"), item.get("description") or str(error)))
        if not collected:
            collected.append((None, str(error)))
        return collected
