"""
Pipeline step: TableMetadata → CanonicalSchema

Responsibilities:
- One Entity per table, named with the singularized table name
- Carry schema qualification through to the entity
- Columns → Properties (via type_mapper)
- Foreign keys → one-to-many Relationships

Runs AFTER the DDL adapter
Runs BEFORE document serialization / merge
"""

from typing import List

from schemagen.canonical.entity import Entity, Property, Relationship
from schemagen.canonical.schema import CanonicalSchema
from schemagen.canonical.table import ColumnMetadata, ForeignKeyMetadata, TableMetadata
from schemagen.inference.type_mapper import sql_to_canonical
from schemagen.observability.logger import log_event
from schemagen.pipeline.naming import singularize

RELATIONSHIP_ONE_TO_MANY = "one-to-many"


class SchemaModelBuilder:
    """
    Converts parsed tables into the canonical schema model.
    """

    def build(self, tables: List[TableMetadata]) -> CanonicalSchema:
        entities = [self._convert_table(table) for table in tables]

        # Generated entity classes need a [Key]; keyless tables still build
        keyless = [e.qualified_name for e in entities if e.primary_key is None]
        if keyless:
            log_event("MODEL_BUILD_WARNING", {"reason": "no primary key", "entities": keyless})

        log_event(
            "MODEL_BUILD_COMPLETED",
            {
                "entity_count": len(entities),
                "entities": [e.qualified_name for e in entities],
                "keyless_entities": keyless,
            },
        )
        return CanonicalSchema(entities=entities)

    def _convert_table(self, table: TableMetadata) -> Entity:
        return Entity(
            name=singularize(table.name),
            schema=table.schema,
            properties=[self._convert_column(c) for c in table.columns],
            relationships=[self._convert_foreign_key(fk) for fk in table.foreign_keys],
        )

    @staticmethod
    def _convert_column(column: ColumnMetadata) -> Property:
        return Property(
            name=column.name,
            type=sql_to_canonical(column.sql_type),
            is_primary_key=column.is_primary_key,
            is_identity=column.is_identity,
            is_required=not column.is_nullable,
            max_length=column.max_length,
            precision=column.precision,
            scale=column.scale,
            default_value=column.default_value,
        )

    @staticmethod
    def _convert_foreign_key(foreign_key: ForeignKeyMetadata) -> Relationship:
        return Relationship(
            type=RELATIONSHIP_ONE_TO_MANY,
            target_entity=singularize(foreign_key.referenced_table),
            foreign_key=foreign_key.column_name,
            principal_key=foreign_key.referenced_column,
        )
