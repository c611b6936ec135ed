import os
import sys
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

CONFIG_KEYS = [
    "SMARTY_AUTH_ID",
    "SMARTY_AUTH_TOKEN",
    "GOOGLE_MAPS_API_KEY",
    "GHL_API_KEY",
    "GHL_LOCATION_ID",
    "GHL_PIPELINE_ID",
    "GHL_PIPELINE_STAGE_ID",
]


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Start every test with no provider credentials configured."""
    for key in CONFIG_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def smarty_env(monkeypatch):
    monkeypatch.setenv("SMARTY_AUTH_ID", "test-id")
    monkeypatch.setenv("SMARTY_AUTH_TOKEN", "test-token")


@pytest.fixture
def google_env(monkeypatch):
    monkeypatch.setenv("GOOGLE_MAPS_API_KEY", "test-key")


@pytest.fixture
def crm_env(monkeypatch):
    monkeypatch.setenv("GHL_API_KEY", "pit-test-key")
    monkeypatch.setenv("GHL_LOCATION_ID", "loc-123")


@pytest.fixture
def pipeline_env(crm_env, monkeypatch):
    monkeypatch.setenv("GHL_PIPELINE_ID", "pipe-1")
    monkeypatch.setenv("GHL_PIPELINE_STAGE_ID", "stage-1")


@pytest.fixture
def sample_draft():
    return {
        "address": "123 Main St, Springfield, IL 62701",
        "contactName": "John Doe",
        "contactNumber": "(555) 123-4567",
        "contactEmail": "john.doe@example.com",
        "corporationName": "Main Street Fuel Inc",
        "dba": "Main Street Mart",
        "hoursOfOperation": "24",
        "building": "$100,000",
        "bpp": "$50,000",
        "bi": "$0",
    }
