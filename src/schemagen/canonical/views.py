"""
View descriptors.

Views are authored by hand in views.yaml (snake_case keys) rather than
derived from DDL. Each view maps to one SQL file and one generated
view-model class.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ValidationConfig:
    """
    Validation rules rendered as DataAnnotations on the generated member.
    """
    required: bool = False
    range: Optional[List[Any]] = None           # [min, max]
    max_length: Optional[int] = None
    min_length: Optional[int] = None
    pattern: Optional[str] = None
    error_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "required": self.required,
            "range": list(self.range) if self.range is not None else None,
            "max_length": self.max_length,
            "min_length": self.min_length,
            "pattern": self.pattern,
            "error_message": self.error_message,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["ValidationConfig"]:
        if data is None:
            return None
        rng = data.get("range")
        return cls(
            required=bool(data.get("required", False)),
            range=list(rng) if rng is not None else None,
            max_length=data.get("max_length"),
            min_length=data.get("min_length"),
            pattern=data.get("pattern"),
            error_message=data.get("error_message"),
        )


@dataclass
class ViewParameter:
    name: str
    type: str = "string"
    nullable: bool = False
    default: Optional[str] = None
    validation: Optional[ValidationConfig] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "nullable": self.nullable,
            "default": self.default,
            "validation": self.validation.to_dict() if self.validation else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ViewParameter":
        default = data.get("default")
        return cls(
            name=data["name"],
            type=data.get("type") or "string",
            nullable=bool(data.get("nullable", False)),
            default=str(default) if default is not None else None,
            validation=ValidationConfig.from_dict(data.get("validation")),
        )


@dataclass
class ViewProperty:
    name: str
    type: str = "string"
    nullable: bool = False
    max_length: Optional[int] = None
    validation: Optional[ValidationConfig] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "nullable": self.nullable,
            "max_length": self.max_length,
            "validation": self.validation.to_dict() if self.validation else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ViewProperty":
        return cls(
            name=data["name"],
            type=data.get("type") or "string",
            nullable=bool(data.get("nullable", False)),
            max_length=data.get("max_length"),
            validation=ValidationConfig.from_dict(data.get("validation")),
        )


@dataclass
class ViewDefinition:
    name: str
    description: Optional[str] = None
    sql_file: Optional[str] = None
    generate_partial: bool = True

    # Applications allowed to display this view; feeds the merge step
    applications: List[str] = field(default_factory=list)

    parameters: List[ViewParameter] = field(default_factory=list)
    properties: List[ViewProperty] = field(default_factory=list)

    @property
    def has_parameters(self) -> bool:
        return bool(self.parameters)

    @property
    def has_properties(self) -> bool:
        return bool(self.properties)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "sql_file": self.sql_file,
            "generate_partial": self.generate_partial,
            "applications": list(self.applications),
            "parameters": [p.to_dict() for p in self.parameters],
            "properties": [p.to_dict() for p in self.properties],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ViewDefinition":
        generate_partial = data.get("generate_partial")
        return cls(
            name=data["name"],
            description=data.get("description"),
            sql_file=data.get("sql_file"),
            generate_partial=True if generate_partial is None else bool(generate_partial),
            applications=[str(a) for a in data.get("applications") or []],
            parameters=[ViewParameter.from_dict(p) for p in data.get("parameters") or []],
            properties=[ViewProperty.from_dict(p) for p in data.get("properties") or []],
        )


@dataclass
class ViewsDocument:
    """
    Root of views.yaml.
    """
    views: List[ViewDefinition] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.views

    def to_dict(self) -> Dict[str, Any]:
        return {"views": [v.to_dict() for v in self.views]}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ViewsDocument":
        data = data or {}
        return cls(views=[ViewDefinition.from_dict(v) for v in data.get("views") or []])
