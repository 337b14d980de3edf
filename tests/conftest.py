"""Pytest configuration and shared fixtures for pricing engine tests."""

import os
import sys
import pytest
from unittest.mock import AsyncMock, MagicMock


# ============================================================================
# Ensure local imports work (config/, models/, services/, utils/)
# ============================================================================
#
# The codebase uses absolute imports like `from models...` / `from services...`.
# This guarantees the project root is importable as the top-level module root.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


from models.costs import CostInputs, PricingConfig  # noqa: E402
from models.rates import CommissionStructure, RateDefaults, RawRepProfile  # noqa: E402
from services.rate_resolver import resolve_rates  # noqa: E402
from tests.fixtures.mock_pricing_data import InMemoryEstimateStore  # noqa: E402


# ============================================================================
# Firebase Mocks
# ============================================================================

@pytest.fixture
def mock_firestore_client():
    """Mock Firestore client."""
    client = MagicMock()

    # Set up chain: client.collection().document()
    collection_mock = MagicMock()
    document_mock = MagicMock()
    client.collection.return_value = collection_mock
    collection_mock.document.return_value = document_mock

    # Mock async methods
    document_mock.get = AsyncMock(return_value=MagicMock(
        exists=True,
        id="test-estimate-id",
        to_dict=lambda: {"pricingState": "current"}
    ))
    document_mock.set = AsyncMock()
    document_mock.update = AsyncMock()

    return client


@pytest.fixture
def mock_firestore_service(mock_firestore_client):
    """FirestoreService with mocked client."""
    from services.firestore_service import FirestoreService

    return FirestoreService(db=mock_firestore_client)


# ============================================================================
# Rate Fixtures
# ============================================================================

@pytest.fixture
def make_rate():
    """Build a resolved RateConfig from keyword rates."""
    def _make(
        rep_id: str = "rep-1",
        commission_percent: float = 50.0,
        structure: CommissionStructure = CommissionStructure.PROFIT_SPLIT,
        overhead_percent: float = 10.0,
        personal_overhead_percent=None,
        display_name=None,
    ):
        profile = RawRepProfile(
            rep_id=rep_id,
            display_name=display_name,
            overhead_percent=overhead_percent,
            personal_overhead_percent=personal_overhead_percent,
            commission_percent=commission_percent,
            commission_structure=structure,
        )
        return resolve_rates(profile, RateDefaults.strict())

    return _make


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def sample_pricing_config():
    """Company pricing configuration."""
    return PricingConfig(
        overhead_percent=10.0,
        target_margin_percent=30.0,
        waste_factor_percent=10.0,
        contingency_percent=5.0,
    )


@pytest.fixture
def sample_costs():
    """Typical roofing job base costs."""
    return CostInputs(
        material_base_cost=12000.0,
        labor_base_cost=8000.0,
        waste_factor_percent=10.0,
        contingency_percent=5.0,
        fixed_costs=500.0,
        area_sq_ft=2500.0,
    )


@pytest.fixture
def in_memory_store():
    """Seeded in-memory estimate store."""
    return InMemoryEstimateStore.seeded()
