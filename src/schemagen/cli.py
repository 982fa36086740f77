import argparse
import os
import sys

from schemagen.adapters.sql_ddl_adapter import SqlDdlParser
from schemagen.execution.config_executor import DEFAULT_NAMESPACE, ConfigExecutor
from schemagen.outputs.code_generator import CodeGenerator, TemplateSet
from schemagen.outputs.yaml_schema_exporter import (
    YAMLSchemaExporter,
    generate_data_yaml,
    read_applications_document,
    read_data_document,
    read_views_document,
)
from schemagen.pipeline.document_merger import SchemaDocumentMerger
from schemagen.pipeline.model_builder import SchemaModelBuilder


class C:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"


def cprint(text: str, color: str = C.RESET, bold: bool = False, stream=None):
    prefix = (C.BOLD if bold else "") + color
    print(f"{prefix}{text}{C.RESET}", file=stream or sys.stdout)


def _read_text(path: str) -> str:
    if not os.path.exists(path):
        raise FileNotFoundError(f"File not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _write_text(path: str, content: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)


def _templates(args: argparse.Namespace) -> TemplateSet:
    if args.templates_dir:
        return TemplateSet(directory=args.templates_dir)
    return TemplateSet.from_env()


# ------------------------------------------
# Commands
# ------------------------------------------
def _cmd_parse(args: argparse.Namespace) -> None:
    tables = SqlDdlParser().parse(_read_text(args.input))
    if not tables:
        cprint("[WARNING] No CREATE TABLE statements found", C.YELLOW, bold=True, stream=sys.stderr)

    schema = SchemaModelBuilder().build(tables)
    _write_text(args.output, generate_data_yaml(schema))

    cprint(f"[INFO] Parsed {len(tables)} table(s):", C.DIM)
    for table in tables:
        print(f"- {table.name} ({len(table.columns)} columns)")
    cprint(f"\n[DONE] Data model written to: {args.output}", C.GREEN, bold=True)


def _cmd_merge_views(args: argparse.Namespace) -> None:
    merged = SchemaDocumentMerger().merge_views_into_data(
        _read_text(args.data_yaml), _read_text(args.views_yaml)
    )
    _write_text(args.data_yaml, merged)
    cprint(f"\n[DONE] Views merged into: {args.data_yaml}", C.GREEN, bold=True)


def _cmd_merge_apps(args: argparse.Namespace) -> None:
    schema, views = read_data_document(args.data_yaml)
    applications = read_applications_document(args.applications)

    document = SchemaDocumentMerger().merge(schema, views, applications)
    YAMLSchemaExporter(document).export_to_file(args.output)

    cprint(
        f"[INFO] Applications={len(document.applications)}  "
        f"Entities={len(schema.entities)}  Views={len(views.views)}",
        C.DIM,
    )
    cprint(f"\n[DONE] Application document written to: {args.output}", C.GREEN, bold=True)


def _cmd_generate(args: argparse.Namespace) -> None:
    generator = CodeGenerator(
        templates=_templates(args),
        entity_namespace=f"{args.namespace}.Generated",
        view_namespace=f"{args.namespace}.ViewModels",
    )

    if args.mode == "entities":
        if not args.data_yaml:
            raise ValueError("--mode=entities requires a data YAML path")
        schema, _ = read_data_document(args.data_yaml)
        count = generator.generate_entities(schema.entities, args.output_dir or "Generated")
        cprint(f"\n[DONE] Generated {count} entity file(s)", C.GREEN, bold=True)
        return

    views_path = args.views_yaml
    if not views_path:
        raise ValueError("--mode=views requires --views-yaml")
    if not os.path.exists(views_path):
        cprint(f"[WARNING] Views file not found: {views_path}", C.YELLOW, bold=True, stream=sys.stderr)
        cprint("Generated 0 view model(s)", C.DIM)
        return

    views = read_views_document(views_path)
    count = generator.generate_views(views.views, args.output_dir or "ViewModels")
    cprint(f"\n[DONE] Generated {count} view model(s)", C.GREEN, bold=True)


def _cmd_run(args: argparse.Namespace) -> None:
    result = ConfigExecutor(args.config).execute()

    cprint(f"[INFO] Run={result['run_id']}", C.DIM)
    for stage in ("tables", "entities", "views", "applications", "files"):
        print(f"- {stage}: {result[stage]}")
    cprint(f"\n[DONE] Application document written to: {result['app_yaml']}", C.GREEN, bold=True)


# ------------------------------------------
# Parser
# ------------------------------------------
def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schemagen",
        description="SQL Server DDL to data model and C# source generator",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("parse", help="Parse DDL into a data YAML document")
    p.add_argument("input", help="SQL DDL script")
    p.add_argument("output", help="Data YAML to write")
    p.set_defaults(func=_cmd_parse)

    p = sub.add_parser("merge-views", help="Merge a views YAML into a data YAML in place")
    p.add_argument("data_yaml")
    p.add_argument("views_yaml")
    p.set_defaults(func=_cmd_merge_views)

    p = sub.add_parser("merge-apps", help="Write the merged application document")
    p.add_argument("applications", help="Applications file (.json settings or .yaml)")
    p.add_argument("data_yaml")
    p.add_argument("output")
    p.set_defaults(func=_cmd_merge_apps)

    p = sub.add_parser("generate", help="Render C# sources from templates")
    p.add_argument("data_yaml", nargs="?", help="Data YAML (entities mode)")
    p.add_argument("--mode", choices=["entities", "views"], default="entities")
    p.add_argument("--views-yaml", help="Views YAML (views mode)")
    p.add_argument("--output-dir", help="Directory for generated files")
    p.add_argument("--templates-dir", help="Template directory override")
    p.add_argument("--namespace", default=DEFAULT_NAMESPACE, help="Root namespace")
    p.set_defaults(func=_cmd_generate)

    p = sub.add_parser("run", help="Run the full pipeline from a YAML config")
    p.add_argument("--config", required=True, help="Pipeline YAML config")
    p.set_defaults(func=_cmd_run)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    try:
        cprint(f"\n[START] schemagen {args.command}", C.BLUE, bold=True)
        args.func(args)
        cprint("[COMPLETE] schemagen finished", C.GREEN, bold=True)

    except Exception as e:
        cprint(f"\n[FAILED] schemagen {args.command} failed.", C.RED, bold=True, stream=sys.stderr)
        cprint(str(e), C.RED, stream=sys.stderr)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
