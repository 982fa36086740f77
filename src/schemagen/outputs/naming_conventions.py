"""
Key naming conventions for serialized documents.

data.yaml / app.yaml    -> camelCase   (isPrimaryKey, dataModel)
views.yaml              -> snake_case  (sql_file, generate_partial)
appsettings.json        -> PascalCase  (Applications, SpaSections)

In memory every document uses snake_case keys. The convention is carried
alongside each document reference; it is never guessed from file content.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])([A-Z])")


class NamingConvention(str, Enum):
    CAMEL_CASE = "camelCase"
    SNAKE_CASE = "snake_case"
    PASCAL_CASE = "PascalCase"


@dataclass(frozen=True)
class DocumentSource:
    """
    A document path tagged with the key convention it is written in.
    """
    path: str
    convention: NamingConvention


def to_snake(key: str) -> str:
    return _WORD_BOUNDARY.sub(r"_\1", key).lower()


def to_camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_pascal(key: str) -> str:
    camel = to_camel(key)
    return camel[:1].upper() + camel[1:]


_ENCODERS = {
    NamingConvention.CAMEL_CASE: to_camel,
    NamingConvention.SNAKE_CASE: lambda key: key,
    NamingConvention.PASCAL_CASE: to_pascal,
}

_DECODERS = {
    NamingConvention.CAMEL_CASE: to_snake,
    NamingConvention.SNAKE_CASE: lambda key: key,
    NamingConvention.PASCAL_CASE: to_snake,
}


def _convert(data: Any, convert_key, drop_nulls: bool) -> Any:
    if isinstance(data, dict):
        return {
            convert_key(str(k)): _convert(v, convert_key, drop_nulls)
            for k, v in data.items()
            if not (drop_nulls and v is None)
        }
    if isinstance(data, list):
        return [_convert(item, convert_key, drop_nulls) for item in data]
    return data


def encode_keys(data: Any, convention: NamingConvention) -> Any:
    """
    snake_case keys → `convention` keys. Null values are dropped.
    """
    return _convert(data, _ENCODERS[convention], drop_nulls=True)


def decode_keys(data: Any, convention: NamingConvention) -> Any:
    """
    `convention` keys → snake_case keys.
    """
    return _convert(data, _DECODERS[convention], drop_nulls=False)
