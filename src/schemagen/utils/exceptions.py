from typing import List, Optional, Tuple


class SchemaGenError(Exception):
    """
    Base exception for all schemagen errors
    """
    pass


class DdlParseError(SchemaGenError):
    """
    Raised when the SQL grammar rejects the DDL script.
    Carries every (line, message) pair reported by the grammar.
    """

    def __init__(self, errors: List[Tuple[Optional[int], str]]):
        self.errors = list(errors)
        lines = [
            f"Line {line}: {message}" if line is not None else message
            for line, message in self.errors
        ]
        super().__init__("SQL parsing errors:\n" + "\n".join(lines))


class DocumentError(SchemaGenError):
    """
    Raised when a YAML / JSON document cannot be read or has the wrong shape
    """
    pass


class CodeGenerationError(SchemaGenError):
    """
    Raised when source files cannot be rendered
    """
    pass


class TemplateNotFoundError(CodeGenerationError):
    """
    Raised when a required template file is missing
    """

    def __init__(self, template_name: str, search_path: str):
        self.template_name = template_name
        self.search_path = search_path
        super().__init__(
            f"Template not found: {template_name} (searched in {search_path})"
        )
