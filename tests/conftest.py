# ============================================================================
# SHARED TEST FIXTURES
# ============================================================================
# PURPOSE: Sample DDL, views and application documents used across tests
# ============================================================================
"""
Shared fixtures. Everything here is plain text written to tmp_path;
no database or network is needed.
"""

import json
import logging
from datetime import datetime, timezone

import pytest

from schemagen.observability.logger import LOGGER_NAME


CATALOG_SQL = """\
CREATE SCHEMA acme;

CREATE TABLE Categories (
    Id INT PRIMARY KEY IDENTITY(1,1) NOT NULL,
    Name NVARCHAR(50) NOT NULL
);

CREATE TABLE Products (
    Id INT PRIMARY KEY IDENTITY(1,1) NOT NULL,
    Name NVARCHAR(100) NOT NULL,
    Price DECIMAL(18,2) NULL,
    CategoryId INT NULL,
    CreatedAt DATETIME2 NULL DEFAULT GETDATE(),
    FOREIGN KEY (CategoryId) REFERENCES Categories(Id)
);

CREATE TABLE acme.Companies (
    Id INT PRIMARY KEY IDENTITY(1,1) NOT NULL,
    Name NVARCHAR(200) NOT NULL,
    IsActive BIT NOT NULL DEFAULT 1
);
"""

VIEWS_YAML = """\
views:
  - name: ProductSalesView
    description: Product sales summary
    sql_file: sql/views/ProductSalesView.sql
    generate_partial: true
    applications:
      - admin
      - Reporting
      - missing-app
    parameters:
      - name: TopN
        type: int
        nullable: false
        default: "10"
        validation:
          required: true
          range: [1, 1000]
    properties:
      - name: ProductName
        type: string
        max_length: 100
      - name: TotalSold
        type: int
        nullable: true
  - name: CategoryList
    sql_file: sql/views/CategoryList.sql
    generate_partial: false
    applications:
      - admin
    properties:
      - name: CategoryName
        type: string
"""

APPLICATIONS_YAML = """\
applications:
  - name: admin
    title: Administration
    icon: settings
    entities:
      - Product
      - acme:Company
    views: []
  - name: reporting
    title: Reporting
    entities:
      - Category
    spaSections:
      dashboardNav: Overview
"""

APPSETTINGS_JSON = """\
{
  "ConnectionStrings": {"Default": "Server=.;Database=App"},
  "Applications": [
    {
      "Name": "admin",
      "Title": "Administration",
      "Entities": ["Product"],
      "Theme": {"PrimaryColor": "#336699"}
    }
  ]
}
"""


@pytest.fixture
def catalog_sql():
    return CATALOG_SQL


@pytest.fixture
def views_yaml():
    return VIEWS_YAML


@pytest.fixture
def applications_yaml():
    return APPLICATIONS_YAML


@pytest.fixture
def appsettings_json():
    return APPSETTINGS_JSON


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2026, 1, 15, 9, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def write_file(tmp_path):
    """Write text under tmp_path and return the full path."""
    def _write(name, content):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def logged_events():
    """Structured events emitted through log_event during the test, as dicts."""
    events = []

    class _Collector(logging.Handler):
        def emit(self, record):
            # Module loggers propagate here too; keep only log_event lines
            if record.name == LOGGER_NAME:
                events.append(json.loads(record.getMessage()))

    event_logger = logging.getLogger(LOGGER_NAME)
    handler = _Collector(level=logging.DEBUG)
    previous_level = event_logger.level
    event_logger.addHandler(handler)
    event_logger.setLevel(logging.DEBUG)
    try:
        yield events
    finally:
        event_logger.removeHandler(handler)
        event_logger.setLevel(previous_level)
