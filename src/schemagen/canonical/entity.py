from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from schemagen.pipeline.naming import build_qualified_name


@dataclass
class Property:
    """
    Canonical representation of a column.
    `type` is always one of the canonical type tags (see type_mapper).
    """
    name: str
    type: str = "string"

    is_primary_key: bool = False
    is_identity: bool = False
    is_required: bool = False

    max_length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    default_value: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "is_primary_key": self.is_primary_key,
            "is_identity": self.is_identity,
            "max_length": self.max_length,
            "is_required": self.is_required,
            "precision": self.precision,
            "scale": self.scale,
            "default_value": self.default_value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Property":
        return cls(
            name=data["name"],
            type=data.get("type") or "string",
            is_primary_key=bool(data.get("is_primary_key", False)),
            is_identity=bool(data.get("is_identity", False)),
            is_required=bool(data.get("is_required", False)),
            max_length=data.get("max_length"),
            precision=data.get("precision"),
            scale=data.get("scale"),
            default_value=data.get("default_value"),
        )


@dataclass
class Relationship:
    type: str
    target_entity: str
    foreign_key: str
    principal_key: str = "Id"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "target_entity": self.target_entity,
            "foreign_key": self.foreign_key,
            "principal_key": self.principal_key,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Relationship":
        return cls(
            type=data.get("type") or "one-to-many",
            target_entity=data["target_entity"],
            foreign_key=data["foreign_key"],
            principal_key=data.get("principal_key") or "Id",
        )


@dataclass
class Entity:
    """
    Canonical representation of a table, named in the singular.
    """
    name: str
    schema: str = ""
    properties: List[Property] = field(default_factory=list)
    relationships: List[Relationship] = field(default_factory=list)

    @property
    def qualified_name(self) -> str:
        return build_qualified_name(self.schema, self.name)

    @property
    def primary_key(self) -> Optional[Property]:
        for prop in self.properties:
            if prop.is_primary_key:
                return prop
        return None

    def get_property(self, name: str) -> Optional[Property]:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "schema": self.schema,
            "properties": [p.to_dict() for p in self.properties],
            "relationships": [r.to_dict() for r in self.relationships],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Entity":
        return cls(
            name=data["name"],
            schema=data.get("schema") or "",
            properties=[Property.from_dict(p) for p in data.get("properties") or []],
            relationships=[
                Relationship.from_dict(r) for r in data.get("relationships") or []
            ],
        )
