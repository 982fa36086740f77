"""
Naming helpers shared by the model builder and the code generator.

Responsibilities:
- Singularize table names into entity names
- Build schema-qualified names ("acme:Product")
- Derive schema output directory names ("acme" -> "Acme")
"""

from typing import Optional

DEFAULT_SCHEMA = "dbo"


def singularize(plural_name: str) -> str:
    """
    Suffix heuristic, no exception dictionary:
    - "ies" -> "y"   (Categories -> Category)
    - "es"  -> drop  (Boxes -> Box)
    - "s"   -> drop  (Products -> Product)

    Lossy for irregular words: "Series" -> "Sery", "Status" -> "Statu".
    """
    lowered = plural_name.lower()

    if lowered.endswith("ies"):
        return plural_name[:-3] + "y"

    if lowered.endswith("es"):
        return plural_name[:-2]

    if lowered.endswith("s"):
        return plural_name[:-1]

    return plural_name


def build_qualified_name(schema: Optional[str], entity_name: str) -> str:
    """
    "schema:Entity", or just "Entity" when no schema is set.
    """
    if not schema or not schema.strip():
        return entity_name
    return f"{schema}:{entity_name}"


def split_qualified_name(qualified_name: str):
    """
    Inverse of build_qualified_name. Returns (schema, name); schema is "" when absent.
    """
    if ":" in qualified_name:
        schema, name = qualified_name.split(":", 1)
        return schema, name
    return "", qualified_name


def is_default_schema(schema: Optional[str]) -> bool:
    return not schema or not schema.strip() or schema.strip().lower() == DEFAULT_SCHEMA


def schema_directory_name(schema: str) -> str:
    """
    Capitalize the first letter only: "acme" -> "Acme", "hrData" -> "HrData".
    """
    return schema[:1].upper() + schema[1:]
