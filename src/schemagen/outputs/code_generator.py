import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    Template,
    TemplateError,
    TemplateNotFound,
)

from schemagen.canonical.document import MergedDocument
from schemagen.canonical.entity import Entity, Property
from schemagen.canonical.views import ValidationConfig, ViewDefinition
from schemagen.inference.type_mapper import (
    canonical_to_db_type,
    canonical_to_target_type,
    is_value_type,
)
from schemagen.observability.logger import log_event
from schemagen.pipeline.naming import is_default_schema, schema_directory_name
from schemagen.utils.exceptions import CodeGenerationError, TemplateNotFoundError

logger = logging.getLogger(__name__)

ENTITY_TEMPLATE = "entity.cs.j2"
VIEW_TEMPLATE = "view_model.cs.j2"

GENERATED_SUFFIX = ".generated"
SOURCE_EXTENSION = ".cs"

DEFAULT_TEMPLATES_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "templates"
)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TemplateSet:
    """
    Where templates live and which file renders which kind of output.
    """
    directory: str = DEFAULT_TEMPLATES_DIR
    entity_template: str = ENTITY_TEMPLATE
    view_template: str = VIEW_TEMPLATE

    @classmethod
    def from_env(cls) -> "TemplateSet":
        return cls(directory=os.getenv("SCHEMAGEN_TEMPLATES_DIR") or DEFAULT_TEMPLATES_DIR)


# --------------------------------------------------
# Template filters
# --------------------------------------------------
def _cs_string(value) -> str:
    escaped = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


_INTEGER_LITERAL = re.compile(r"^[-+]?\d+$")
_REAL_LITERAL = re.compile(r"^[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?$")
_GUID_LITERAL = re.compile(r"^\{?[0-9a-fA-F]{8}(-[0-9a-fA-F]{4}){3}-[0-9a-fA-F]{12}\}?$")
_TIMESPAN_LITERAL = re.compile(r"^-?(\d+\.)?\d{1,2}:\d{2}(:\d{2}(\.\d{1,7})?)?$")

_BOOL_LITERALS = {"1": "true", "true": "true", "0": "false", "false": "false"}
_INTEGER_SUFFIXES = {"int": "", "short": "", "byte": "", "long": "L"}
_REAL_SUFFIXES = {"decimal": "m", "double": "", "float": "f"}
_PARSED_TYPES = {"datetime": "DateTime", "datetimeoffset": "DateTimeOffset"}


def _invalid_default(value: str, canonical: str) -> CodeGenerationError:
    return CodeGenerationError(f"Default {value!r} is not a valid {canonical} value")


def _cs_literal(value: Optional[str], canonical: str) -> Optional[str]:
    """
    C# initializer expression for a parameter default.

    Values that would not compile for the parameter's type raise
    CodeGenerationError instead of being written out.
    """
    if value is None:
        return None
    kind = (canonical or "").lower()
    text = str(value).strip()

    if kind == "string":
        return _cs_string(value)

    if kind == "bool":
        if text.lower() not in _BOOL_LITERALS:
            raise _invalid_default(text, kind)
        return _BOOL_LITERALS[text.lower()]

    if kind in _INTEGER_SUFFIXES:
        if not _INTEGER_LITERAL.match(text):
            raise _invalid_default(text, kind)
        return f"{text}{_INTEGER_SUFFIXES[kind]}"

    if kind in _REAL_SUFFIXES:
        if not _REAL_LITERAL.match(text):
            raise _invalid_default(text, kind)
        return f"{text}{_REAL_SUFFIXES[kind]}"

    if kind == "guid":
        if not _GUID_LITERAL.match(text):
            raise _invalid_default(text, kind)
        return f"Guid.Parse({_cs_string(text)})"

    if kind in _PARSED_TYPES:
        try:
            datetime.fromisoformat(text)
        except ValueError:
            raise _invalid_default(text, kind) from None
        return f"{_PARSED_TYPES[kind]}.Parse({_cs_string(text)}, CultureInfo.InvariantCulture)"

    if kind == "timespan":
        if not _TIMESPAN_LITERAL.match(text):
            raise _invalid_default(text, kind)
        return f"TimeSpan.Parse({_cs_string(text)}, CultureInfo.InvariantCulture)"

    # bytes has no initializer form
    raise _invalid_default(text, kind or "unknown")


def _initializer(canonical: str, nullable: bool, default: Optional[str] = None) -> str:
    literal = _cs_literal(default, canonical)
    if literal is not None:
        return f" = {literal};"
    if (canonical or "").lower() == "string" and not nullable:
        return " = string.Empty;"
    return ""


def _navigation_name(foreign_key: str, target_entity: str) -> str:
    # CategoryId -> Category; falls back to the target entity name
    if len(foreign_key) > 2 and foreign_key.endswith("Id"):
        return foreign_key[:-2]
    return target_entity


def _property_annotations(prop: Property) -> List[str]:
    attributes = []
    if prop.is_primary_key:
        attributes.append("[Key]")
    if prop.is_identity:
        attributes.append("[DatabaseGenerated(DatabaseGeneratedOption.Identity)]")
    if prop.is_required and not prop.is_identity and not is_value_type(prop.type):
        attributes.append("[Required]")
    if prop.max_length:
        attributes.append(f"[MaxLength({prop.max_length})]")
    if prop.precision is not None:
        attributes.append(
            f'[Column(TypeName = "decimal({prop.precision}, {prop.scale or 0})")]'
        )
    return attributes


def _validation_annotations(validation: Optional[ValidationConfig], max_length: Optional[int] = None) -> List[str]:
    attributes = []
    error_suffix = ""
    if validation and validation.error_message:
        error_suffix = f", ErrorMessage = {_cs_string(validation.error_message)}"

    if validation:
        if validation.required:
            if error_suffix:
                attributes.append(f"[Required(ErrorMessage = {_cs_string(validation.error_message)})]")
            else:
                attributes.append("[Required]")
        if validation.range and len(validation.range) == 2:
            low, high = validation.range
            attributes.append(f"[Range({low}, {high}{error_suffix})]")
        if validation.min_length is not None:
            attributes.append(f"[MinLength({validation.min_length})]")
        if validation.max_length is not None:
            attributes.append(f"[MaxLength({validation.max_length})]")
        if validation.pattern:
            attributes.append(f"[RegularExpression({_cs_string(validation.pattern)}{error_suffix})]")

    if max_length is not None and not (validation and validation.max_length is not None):
        attributes.append(f"[MaxLength({max_length})]")
    return attributes


def build_environment(directory: str) -> Environment:
    env = Environment(
        loader=FileSystemLoader(directory),
        undefined=StrictUndefined,
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
    env.filters["clr_type"] = canonical_to_target_type
    env.filters["db_type"] = canonical_to_db_type
    env.filters["cs_string"] = _cs_string
    env.filters["initializer"] = _initializer
    env.filters["navigation_name"] = _navigation_name
    env.filters["property_annotations"] = _property_annotations
    env.filters["validation_annotations"] = _validation_annotations
    return env


class CodeGenerator:
    """
    Renders entities and views into C# source files.

    Entities: <entities_dir>[/<Schema>]/<Name>.cs, overwritten every run.
    Views:    <views_dir>/<Name>.generated.cs when generate_partial is set
              (the companion <Name>.cs belongs to the user and is never
              written), otherwise <views_dir>/<Name>.cs.
    """

    def __init__(
        self,
        templates: Optional[TemplateSet] = None,
        output_root: str = ".",
        entities_subdir: str = "Generated",
        views_subdir: str = "ViewModels",
        entity_namespace: str = "DotNetWebApp.Models.Generated",
        view_namespace: str = "DotNetWebApp.Models.ViewModels",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.templates = templates or TemplateSet.from_env()
        self.output_root = output_root
        self.entities_dir = os.path.join(output_root, entities_subdir)
        self.views_dir = os.path.join(output_root, views_subdir)
        self.entity_namespace = entity_namespace
        self.view_namespace = view_namespace
        self.clock = clock or _utc_now
        self._env = build_environment(self.templates.directory)

    # --------------------------------------------------
    # Templates
    # --------------------------------------------------
    def _load_template(self, name: str) -> Template:
        try:
            return self._env.get_template(name)
        except TemplateNotFound as e:
            raise TemplateNotFoundError(name, self.templates.directory) from e

    @staticmethod
    def _render(template: Template, subject: str, **context) -> str:
        try:
            return template.render(**context)
        except (TemplateError, CodeGenerationError) as e:
            raise CodeGenerationError(f"Failed to render {template.name} for {subject}: {e}") from e

    def _generated_date(self) -> str:
        return self.clock().strftime("%Y-%m-%d %H:%M:%S")

    # --------------------------------------------------
    # Entry points
    # --------------------------------------------------
    def generate(self, document: MergedDocument) -> int:
        """
        Render every entity and view. Returns the number of files written.
        """
        # Both templates are resolved before anything is written
        entity_template = self._load_template(self.templates.entity_template)
        view_template = self._load_template(self.templates.view_template)
        generated_date = self._generated_date()

        count = self._render_entities(
            entity_template, document.data_model.entities, self.entities_dir, generated_date
        )
        count += self._render_views(
            view_template, document.views.views, self.views_dir, generated_date
        )

        log_event(
            "CODE_GENERATION_COMPLETED",
            {
                "entity_files": len(document.data_model.entities),
                "view_files": len(document.views.views),
                "total_files": count,
                "output_root": self.output_root,
            },
        )
        return count

    def generate_entities(self, entities: Iterable[Entity], output_dir: Optional[str] = None) -> int:
        template = self._load_template(self.templates.entity_template)
        return self._render_entities(
            template, list(entities), output_dir or self.entities_dir, self._generated_date()
        )

    def generate_views(self, views: Iterable[ViewDefinition], output_dir: Optional[str] = None) -> int:
        template = self._load_template(self.templates.view_template)
        return self._render_views(
            template, list(views), output_dir or self.views_dir, self._generated_date()
        )

    # --------------------------------------------------
    # Rendering
    # --------------------------------------------------
    def _render_entities(self, template: Template, entities: List[Entity], output_dir: str, generated_date: str) -> int:
        os.makedirs(output_dir, exist_ok=True)
        count = 0

        for entity in entities:
            entity_dir = output_dir
            namespace = self.entity_namespace
            if not is_default_schema(entity.schema):
                schema_dir = schema_directory_name(entity.schema)
                entity_dir = os.path.join(output_dir, schema_dir)
                namespace = f"{namespace}.{schema_dir}"

            content = self._render(
                template,
                entity.qualified_name,
                entity=entity,
                generated_date=generated_date,
                namespace=namespace,
            )
            self._write(os.path.join(entity_dir, f"{entity.name}{SOURCE_EXTENSION}"), content)
            count += 1

        return count

    def _render_views(self, template: Template, views: List[ViewDefinition], output_dir: str, generated_date: str) -> int:
        os.makedirs(output_dir, exist_ok=True)
        count = 0

        for view in views:
            content = self._render(
                template,
                view.name,
                view=view,
                generated_date=generated_date,
                has_parameters=view.has_parameters,
                has_properties=view.has_properties,
                namespace=self.view_namespace,
            )
            file_name = view_file_name(view)
            self._write(os.path.join(output_dir, file_name), content)
            count += 1

        return count

    @staticmethod
    def _write(path: str, content: str) -> None:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        logger.debug("Wrote %s", path)
        log_event("FILE_GENERATED", {"path": path})


def view_file_name(view: ViewDefinition) -> str:
    if view.generate_partial:
        return f"{view.name}{GENERATED_SUFFIX}{SOURCE_EXTENSION}"
    return f"{view.name}{SOURCE_EXTENSION}"
