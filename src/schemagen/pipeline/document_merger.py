"""
Pipeline step: data model + views + applications → MergedDocument

Responsibilities:
- Combine the canonical schema with hand-authored view definitions
- Attach application definitions and derive their view visibility
- Re-serialize everything with one canonical (camelCase) convention

Tolerated, not errors:
- No views document, or an empty one → empty views section
- No applications document → empty applications list
- A view naming an unknown application → that name is ignored
"""

import copy
import logging
from typing import Optional

from schemagen.canonical.applications import ApplicationsDocument
from schemagen.canonical.document import MergedDocument
from schemagen.canonical.schema import CanonicalSchema
from schemagen.canonical.views import ViewsDocument
from schemagen.observability.logger import log_event
from schemagen.outputs.naming_conventions import NamingConvention
from schemagen.outputs.yaml_schema_exporter import (
    DataDocument,
    YAMLSchemaExporter,
    load_data_document,
    load_views_document,
)

logger = logging.getLogger(__name__)


class SchemaDocumentMerger:
    """
    Merges independently authored documents into one application document.
    """

    def merge(
        self,
        schema: CanonicalSchema,
        views: Optional[ViewsDocument] = None,
        applications: Optional[ApplicationsDocument] = None,
    ) -> MergedDocument:
        document = MergedDocument(
            applications=copy.deepcopy(applications.applications) if applications else [],
            data_model=schema,
            views=views if views is not None else ViewsDocument(),
        )

        added = self.populate_application_views(document)

        log_event(
            "DOCUMENT_MERGE_COMPLETED",
            {
                "entity_count": len(document.data_model.entities),
                "view_count": len(document.views.views),
                "application_count": len(document.applications),
                "view_links_added": added,
            },
        )
        return document

    def populate_application_views(self, document: MergedDocument) -> int:
        """
        For each view listing applications, add the view name to each named
        application's views. Set semantics: re-adding a name (in any letter
        case) is a no-op. Returns the number of names actually added.
        """
        if document.views.is_empty() or not document.applications:
            return 0

        apps = ApplicationsDocument(document.applications)
        added = 0

        for view in document.views.views:
            for app_name in view.applications:
                app = apps.get_application(app_name)
                if app is None:
                    logger.debug("View %s references unknown application %s", view.name, app_name)
                    continue
                if app.add_view(view.name):
                    added += 1

        return added

    def serialize(self, document: MergedDocument) -> str:
        return YAMLSchemaExporter(document, NamingConvention.CAMEL_CASE).export_to_string()

    def merge_views_into_data(self, data_yaml: str, views_yaml: str) -> str:
        """
        Replace the views section of a camelCase data document with the
        contents of a snake_case views document.
        """
        data_model, _ = load_data_document(data_yaml)
        views = load_views_document(views_yaml)

        log_event(
            "DOCUMENT_MERGE_COMPLETED",
            {
                "entity_count": len(data_model.entities),
                "view_count": len(views.views),
            },
        )
        return YAMLSchemaExporter(DataDocument(data_model, views)).export_to_string()
