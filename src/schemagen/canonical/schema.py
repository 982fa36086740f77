from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from schemagen.canonical.entity import Entity


@dataclass
class CanonicalSchema:
    """
    Canonical, dialect-independent schema representation.

    Lifecycle:
    DDL adapter → TableMetadata → SchemaModelBuilder → CanonicalSchema → Merger → Code generator
    """
    entities: List[Entity] = field(default_factory=list)

    # Convenience helpers
    def get_entity(self, name: str, schema: Optional[str] = None) -> Optional[Entity]:
        """
        Retrieve an entity by name, optionally restricted to a schema.
        """
        for entity in self.entities:
            if entity.name != name:
                continue
            if schema is None or entity.schema == schema:
                return entity
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"entities": [e.to_dict() for e in self.entities]}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CanonicalSchema":
        data = data or {}
        return cls(entities=[Entity.from_dict(e) for e in data.get("entities") or []])
