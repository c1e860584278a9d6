"""
Shared test fixtures.
"""

import sys
from pathlib import Path

# Add project root to Python path
project_dir = Path(__file__).parent.parent
sys.path.insert(0, str(project_dir))

import pytest
from typing import Generator

from services import session_store
from services.history_service import HistoryService, InMemorySnapshotRepository, get_snapshot_repository
from services.field_mapping_service import FieldMappingEngine
from services.schema_service import SchemaDesigner
from tests.factories import FEED_HEADERS, DatasetFactory


# ===================
# SAMPLE FEEDS
# ===================

@pytest.fixture
def sample_csv() -> str:
    """Three-product CSV feed covering every standard field plus `color`."""
    return (
        "product_id,title,description,price,currency,category,image_url,link,brand,availability,color\n"
        'P-1,Wireless Headphones,"Noise cancelling, 30h battery",99.99,USD,Electronics > Audio > Headphones,'
        "https://img.example.com/1.jpg,https://shop.example.com/p/1,Sonic,in stock,black\n"
        "P-2,Bluetooth Speaker,Waterproof speaker,49.5,USD,Electronics > Audio > Speakers,"
        "https://img.example.com/2.jpg,https://shop.example.com/p/2,Sonic,in stock,blue\n"
        "P-3,Running Shoes,Lightweight trainers,75,EUR,Sports > Footwear,"
        "https://img.example.com/3.jpg,https://shop.example.com/p/3,Stride,out of stock,red\n"
    )


@pytest.fixture
def sample_json() -> str:
    return (
        '[{"product_id": "P-1", "title": "Desk Lamp", "price": 24.0, "in_stock": true,'
        ' "tags": ["home", "light"]},'
        ' {"product_id": "P-2", "title": "Desk Chair", "dimensions": {"h": 90, "w": 60}}]'
    )


@pytest.fixture
def sample_xml() -> str:
    return (
        "<?xml version=\"1.0\" encoding=\"UTF-8\"?>\n"
        "<products>\n"
        "  <product sku=\"P-1\">\n"
        "    <title>Desk Lamp</title>\n"
        "    <price>24.00</price>\n"
        "  </product>\n"
        "  <product sku=\"P-2\">\n"
        "    <title>Desk Chair</title>\n"
        "    <category>Home &gt; Office</category>\n"
        "  </product>\n"
        "</products>\n"
    )


# ===================
# PIPELINE OBJECTS
# ===================

@pytest.fixture
def dataset():
    """Parsed dataset with FEED_HEADERS and three rows."""
    return DatasetFactory.create(headers=FEED_HEADERS, row_count=3)


@pytest.fixture
def engine(dataset) -> FieldMappingEngine:
    """Mapping engine with auto-mapping applied to FEED_HEADERS."""
    return FieldMappingEngine(dataset.headers)


@pytest.fixture
def designer() -> SchemaDesigner:
    return SchemaDesigner()


@pytest.fixture
def history() -> HistoryService:
    """History over a fresh, private repository."""
    return HistoryService(InMemorySnapshotRepository())


# ===================
# GLOBAL STATE
# ===================

@pytest.fixture(autouse=True)
def reset_process_state() -> Generator:
    """Clear workflow sessions and the process-wide history between tests."""
    session_store._sessions.clear()
    get_snapshot_repository().clear()
    yield
    session_store._sessions.clear()
    get_snapshot_repository().clear()


# ===================
# API TEST CLIENT
# ===================

@pytest.fixture
def test_client():
    """
    Create FastAPI test client.

    Usage:
        def test_endpoint(test_client):
            response = test_client.get("/health")
            assert response.status_code == 200
    """
    from fastapi.testclient import TestClient
    from main import app

    return TestClient(app)
