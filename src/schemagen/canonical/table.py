from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ColumnMetadata:
    """
    One column of a parsed CREATE TABLE statement.
    """
    name: str
    sql_type: str = ""

    max_length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None

    is_nullable: bool = True
    is_primary_key: bool = False
    is_identity: bool = False
    default_value: Optional[str] = None


@dataclass
class ForeignKeyMetadata:
    """
    Single-column foreign key. Composite keys keep only their first column.
    """
    column_name: str
    referenced_table: str
    referenced_column: str = "Id"


@dataclass
class TableMetadata:
    """
    Flat record produced by the DDL visitor for one CREATE TABLE.
    Discarded once converted into the canonical model.
    """
    name: str
    schema: str = ""
    columns: List[ColumnMetadata] = field(default_factory=list)
    foreign_keys: List[ForeignKeyMetadata] = field(default_factory=list)

    def get_column(self, name: str) -> Optional[ColumnMetadata]:
        for column in self.columns:
            if column.name == name:
                return column
        return None
