import os
from typing import Dict, Optional

import yaml

from schemagen.adapters.sql_ddl_adapter import SqlDdlParser
from schemagen.canonical.applications import ApplicationsDocument
from schemagen.canonical.views import ViewsDocument
from schemagen.observability.logger import RunTimer, generate_run_id, log_event
from schemagen.outputs.code_generator import CodeGenerator, TemplateSet
from schemagen.outputs.yaml_schema_exporter import (
    DataDocument,
    YAMLSchemaExporter,
    read_applications_document,
    read_views_document,
)
from schemagen.pipeline.document_merger import SchemaDocumentMerger
from schemagen.pipeline.model_builder import SchemaModelBuilder
from schemagen.utils.exceptions import DocumentError

DEFAULT_NAMESPACE = "DotNetWebApp.Models"


class ConfigExecutor:
    """
    Executes the full generation pipeline using YAML configuration.

    DDL → data.yaml → merged app.yaml → entity and view-model sources.
    """

    def __init__(self, config_path: str):
        self.config_path = config_path
        self.base_dir = os.path.dirname(os.path.abspath(config_path))
        self.config = self._load_config()

    # ------------------------------------------
    # Load YAML
    # ------------------------------------------
    def _load_config(self) -> Dict:
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, "r", encoding="utf-8") as f:
            try:
                config = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise DocumentError(f"Malformed config {self.config_path}: {e}") from e

        if not isinstance(config, dict):
            raise DocumentError(f"Config {self.config_path} must contain a mapping")
        return config

    def _path(self, value: Optional[str]) -> Optional[str]:
        # Relative paths are relative to the config file, not the working directory
        if not value:
            return None
        return os.path.normpath(os.path.join(self.base_dir, value))

    def _required_path(self, section: str, key: str) -> str:
        path = self._path((self.config.get(section) or {}).get(key))
        if path is None:
            raise DocumentError(f"Config {self.config_path} is missing {section}.{key}")
        return path

    # ------------------------------------------
    # Build Code Generator
    # ------------------------------------------
    def _build_generator(self) -> CodeGenerator:
        output_cfg = self.config.get("output") or {}
        namespace = output_cfg.get("namespace") or DEFAULT_NAMESPACE

        templates_dir = self._path(output_cfg.get("templates_dir"))
        templates = TemplateSet(directory=templates_dir) if templates_dir else TemplateSet.from_env()

        return CodeGenerator(
            templates=templates,
            output_root=self.base_dir,
            entities_subdir=output_cfg.get("entities_dir") or "Generated",
            views_subdir=output_cfg.get("views_dir") or "ViewModels",
            entity_namespace=f"{namespace}.Generated",
            view_namespace=f"{namespace}.ViewModels",
        )

    # ------------------------------------------
    # Execute Pipeline
    # ------------------------------------------
    def execute(self) -> Dict:
        run_id = generate_run_id()
        timer = RunTimer()
        documents = self.config.get("documents") or {}

        sql_file = self._required_path("source", "sql_file")
        data_yaml_path = self._required_path("documents", "data_yaml")
        app_yaml_path = self._required_path("documents", "app_yaml")
        views_path = self._path(documents.get("views_yaml"))
        applications_path = self._path(documents.get("applications"))

        log_event(
            "PIPELINE_STARTED",
            {"run_id": run_id, "config": self.config_path, "sql_file": sql_file},
        )

        try:
            if not os.path.exists(sql_file):
                raise FileNotFoundError(f"SQL file not found: {sql_file}")
            with open(sql_file, "r", encoding="utf-8") as f:
                tables = SqlDdlParser().parse(f.read())

            schema = SchemaModelBuilder().build(tables)

            views = ViewsDocument()
            if views_path and os.path.exists(views_path):
                views = read_views_document(views_path)
            elif views_path:
                log_event("VIEWS_DOCUMENT_WARNING", {"run_id": run_id, "missing": views_path})

            YAMLSchemaExporter(DataDocument(schema, views)).export_to_file(data_yaml_path)

            applications = ApplicationsDocument()
            if applications_path:
                applications = read_applications_document(applications_path)

            merger = SchemaDocumentMerger()
            document = merger.merge(schema, views, applications)
            YAMLSchemaExporter(document).export_to_file(app_yaml_path)

            files = self._build_generator().generate(document)

        except Exception as e:
            log_event(
                "PIPELINE_FAILED",
                {"run_id": run_id, "error": str(e), "duration_seconds": timer.duration()},
            )
            raise

        result = {
            "run_id": run_id,
            "tables": len(tables),
            "entities": len(schema.entities),
            "views": len(views.views),
            "applications": len(document.applications),
            "files": files,
            "data_yaml": data_yaml_path,
            "app_yaml": app_yaml_path,
        }

        log_event(
            "PIPELINE_COMPLETED",
            {**result, "duration_seconds": timer.duration()},
        )
        return result
