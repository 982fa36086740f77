import json
import os
from typing import Any, Dict, Optional, Tuple

import yaml

from schemagen.canonical.applications import ApplicationsDocument
from schemagen.canonical.document import MergedDocument
from schemagen.canonical.schema import CanonicalSchema
from schemagen.canonical.views import ViewsDocument
from schemagen.outputs.naming_conventions import (
    DocumentSource,
    NamingConvention,
    decode_keys,
    encode_keys,
)
from schemagen.utils.exceptions import DocumentError


class YAMLSchemaExporter:
    """
    Exports canonical documents into YAML format.
    Works with any document exposing to_dict() with snake_case keys.
    """

    def __init__(self, document, convention: NamingConvention = NamingConvention.CAMEL_CASE):
        """
        :param document: CanonicalSchema / ViewsDocument / MergedDocument / data document
        :param convention: key naming convention used in the output
        """
        self.document = document
        self.convention = convention

    def export_to_string(self) -> str:
        """
        Export document as YAML string
        """
        payload = self.document.to_dict() if hasattr(self.document, "to_dict") else self.document
        return yaml.safe_dump(
            encode_keys(payload, self.convention),
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
        )

    def export_to_file(self, file_path: str):
        """
        Export document to YAML file, creating the parent directory if needed
        """
        parent = os.path.dirname(file_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(file_path, "w", encoding="utf-8") as f:
            f.write(self.export_to_string())


class DataDocument:
    """
    data.yaml: dataModel + views, no applications.
    """

    def __init__(self, data_model: CanonicalSchema, views: Optional[ViewsDocument] = None):
        self.data_model = data_model
        self.views = views or ViewsDocument()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data_model": self.data_model.to_dict(),
            "views": self.views.to_dict(),
        }


# ------------------------------------------
# Readers
# ------------------------------------------
def parse_document(text: str, convention: NamingConvention, source: str = "<string>") -> Dict[str, Any]:
    """
    Parse YAML (JSON is a subset) and normalize keys to snake_case.
    An empty document yields {}.
    """
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise DocumentError(f"Malformed document {source}: {e}") from e

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise DocumentError(
            f"Document {source} must contain a mapping at the top level, got {type(raw).__name__}"
        )
    return decode_keys(raw, convention)


def read_document(source: DocumentSource) -> Dict[str, Any]:
    if not os.path.exists(source.path):
        raise FileNotFoundError(f"Document not found: {source.path}")

    with open(source.path, "r", encoding="utf-8") as f:
        text = f.read()

    if source.path.lower().endswith(".json"):
        try:
            raw = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as e:
            raise DocumentError(f"Malformed document {source.path}: {e}") from e
        if not isinstance(raw, dict):
            raise DocumentError(f"Document {source.path} must contain an object at the top level")
        return decode_keys(raw, source.convention)

    return parse_document(text, source.convention, source=source.path)


def load_data_document(text: str) -> Tuple[CanonicalSchema, ViewsDocument]:
    """
    data.yaml → (data model, views). Both sections are optional.
    """
    data = parse_document(text, NamingConvention.CAMEL_CASE)
    return CanonicalSchema.from_dict(data.get("data_model")), ViewsDocument.from_dict(data.get("views"))


def load_views_document(text: str) -> ViewsDocument:
    return ViewsDocument.from_dict(parse_document(text, NamingConvention.SNAKE_CASE))


def load_merged_document(text: str) -> MergedDocument:
    return MergedDocument.from_dict(parse_document(text, NamingConvention.CAMEL_CASE))


def read_data_document(path: str) -> Tuple[CanonicalSchema, ViewsDocument]:
    data = read_document(DocumentSource(path, NamingConvention.CAMEL_CASE))
    return CanonicalSchema.from_dict(data.get("data_model")), ViewsDocument.from_dict(data.get("views"))


def read_views_document(path: str) -> ViewsDocument:
    return ViewsDocument.from_dict(read_document(DocumentSource(path, NamingConvention.SNAKE_CASE)))


def read_applications_document(path: str) -> ApplicationsDocument:
    """
    Applications come from either a camelCase YAML file or the PascalCase
    `Applications` section of a JSON settings file.
    """
    if path.lower().endswith(".json"):
        data = read_document(DocumentSource(path, NamingConvention.PASCAL_CASE))
    else:
        data = read_document(DocumentSource(path, NamingConvention.CAMEL_CASE))
    return ApplicationsDocument.from_dict(data)


def generate_data_yaml(data_model: CanonicalSchema, views: Optional[ViewsDocument] = None) -> str:
    return YAMLSchemaExporter(DataDocument(data_model, views)).export_to_string()
