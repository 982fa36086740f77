from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class Theme:
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    background_color: Optional[str] = None
    text_color: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primary_color": self.primary_color,
            "secondary_color": self.secondary_color,
            "background_color": self.background_color,
            "text_color": self.text_color,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["Theme"]:
        if data is None:
            return None
        return cls(
            primary_color=data.get("primary_color"),
            secondary_color=data.get("secondary_color"),
            background_color=data.get("background_color"),
            text_color=data.get("text_color"),
        )


@dataclass
class SpaSectionConfiguration:
    dashboard_nav: Optional[str] = None
    dashboard_title: Optional[str] = None
    settings_nav: Optional[str] = None
    settings_title: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dashboard_nav": self.dashboard_nav,
            "dashboard_title": self.dashboard_title,
            "settings_nav": self.settings_nav,
            "settings_title": self.settings_title,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["SpaSectionConfiguration"]:
        if data is None:
            return None
        return cls(
            dashboard_nav=data.get("dashboard_nav"),
            dashboard_title=data.get("dashboard_title"),
            settings_nav=data.get("settings_nav"),
            settings_title=data.get("settings_title"),
        )


@dataclass
class ApplicationInfo:
    """
    One application and the entity / view names it may display.

    `entities` is authored directly (qualified names such as "acme:Product").
    `views` is populated by the merge step from each view's application list.
    """
    name: str
    title: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    schema: Optional[str] = None

    entities: List[str] = field(default_factory=list)
    views: List[str] = field(default_factory=list)

    theme: Optional[Theme] = None
    spa_sections: Optional[SpaSectionConfiguration] = None

    def add_view(self, view_name: str) -> bool:
        """
        Case-insensitive set insert. Returns False when already present.
        """
        lowered = view_name.lower()
        if any(v.lower() == lowered for v in self.views):
            return False
        self.views.append(view_name)
        return True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "icon": self.icon,
            "schema": self.schema,
            "entities": list(self.entities),
            "views": list(self.views),
            "theme": self.theme.to_dict() if self.theme else None,
            "spa_sections": self.spa_sections.to_dict() if self.spa_sections else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApplicationInfo":
        return cls(
            name=data["name"],
            title=data.get("title"),
            description=data.get("description"),
            icon=data.get("icon"),
            schema=data.get("schema"),
            entities=[str(e) for e in data.get("entities") or []],
            views=[str(v) for v in data.get("views") or []],
            theme=Theme.from_dict(data.get("theme")),
            spa_sections=SpaSectionConfiguration.from_dict(data.get("spa_sections")),
        )


@dataclass
class ApplicationsDocument:
    applications: List[ApplicationInfo] = field(default_factory=list)

    def get_application(self, name: str) -> Optional[ApplicationInfo]:
        lowered = name.lower()
        for app in self.applications:
            if app.name.lower() == lowered:
                return app
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"applications": [a.to_dict() for a in self.applications]}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ApplicationsDocument":
        data = data or {}
        return cls(
            applications=[
                ApplicationInfo.from_dict(a) for a in data.get("applications") or []
            ]
        )
