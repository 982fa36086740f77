from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from schemagen.canonical.applications import ApplicationInfo, ApplicationsDocument
from schemagen.canonical.schema import CanonicalSchema
from schemagen.canonical.views import ViewsDocument


@dataclass
class MergedDocument:
    """
    Data model + views + per-application visibility.
    Produced and consumed within a single generation run.
    """
    applications: List[ApplicationInfo] = field(default_factory=list)
    data_model: CanonicalSchema = field(default_factory=CanonicalSchema)
    views: ViewsDocument = field(default_factory=ViewsDocument)

    def get_application(self, name: str) -> Optional[ApplicationInfo]:
        return ApplicationsDocument(self.applications).get_application(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "applications": [a.to_dict() for a in self.applications],
            "data_model": self.data_model.to_dict(),
            "views": self.views.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "MergedDocument":
        data = data or {}
        return cls(
            applications=ApplicationsDocument.from_dict(data).applications,
            data_model=CanonicalSchema.from_dict(data.get("data_model")),
            views=ViewsDocument.from_dict(data.get("views")),
        )
