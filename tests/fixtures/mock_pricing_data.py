"""Mock pricing data for tests.

Sample representative profiles, a cost template, estimate inputs and an
in-memory estimate store with optional per-call delays for ordering tests.
"""

import asyncio
from typing import Any, Dict, List, Optional

from models.costs import CostInputs, PricingConfig
from models.estimate import EstimateInputs, EstimateState
from models.rates import RawRepProfile


# =============================================================================
# REP PROFILES
# =============================================================================


REP_PROFILES: Dict[str, Dict[str, Any]] = {
    # Profit split, personal overhead override
    "rep-alice": {
        "displayName": "Alice Moreno",
        "overheadPercent": 10.0,
        "personalOverheadPercent": 5.0,
        "commissionPercent": 50.0,
        "commissionStructure": "profit_split",
    },
    # Profit split, company overhead only; same effective overhead as Bob
    "rep-bob": {
        "displayName": "Bob Keller",
        "overheadPercent": 5.0,
        "personalOverheadPercent": None,
        "commissionPercent": 40.0,
        "commissionStructure": "profit_split",
    },
    # Profit split with a different effective overhead
    "rep-carol": {
        "displayName": "Carol Diaz",
        "overheadPercent": 10.0,
        "personalOverheadPercent": 8.0,
        "commissionPercent": 50.0,
        "commissionStructure": "profit_split",
    },
    # Percentage of contract
    "rep-dan": {
        "displayName": "Dan Osei",
        "overheadPercent": 10.0,
        "commissionPercent": 10.0,
        "commissionStructure": "sales_percentage",
    },
    # Incomplete profile; relies on defaults
    "rep-eve": {
        "displayName": "Eve Park",
    },
}


SAMPLE_TEMPLATE: Dict[str, Any] = {
    "templateId": "tpl-shingle-standard",
    "materialBaseCostPerUnit": 4.0,
    "laborBaseCostPerUnit": 3.0,
    "complexityMultipliers": {"simple": 1.0, "moderate": 1.15, "complex": 1.3},
    "seasonalMultipliers": {"spring": 1.0, "summer": 1.05, "winter": 1.1},
    "locationMultipliers": {"metro": 1.0, "mountains": 1.2},
    "fixedCosts": 500.0,
}


def sample_profile(rep_id: str) -> Optional[RawRepProfile]:
    data = REP_PROFILES.get(rep_id)
    if data is None:
        return None
    return RawRepProfile.model_validate({**data, "repId": rep_id})


def sample_inputs(
    estimate_id: str = "est-001",
    primary_rep_id: str = "rep-alice",
    secondary_rep_id: Optional[str] = None,
) -> EstimateInputs:
    return EstimateInputs(
        estimate_id=estimate_id,
        costs=CostInputs(
            material_base_cost=12000.0,
            labor_base_cost=8000.0,
            waste_factor_percent=10.0,
            contingency_percent=5.0,
            fixed_costs=500.0,
            area_sq_ft=2500.0,
        ),
        pricing=PricingConfig(
            overhead_percent=10.0,
            target_margin_percent=30.0,
            waste_factor_percent=10.0,
            contingency_percent=5.0,
        ),
        primary_rep_id=primary_rep_id,
        secondary_rep_id=secondary_rep_id,
    )


# =============================================================================
# IN-MEMORY STORE
# =============================================================================


class InMemoryEstimateStore:
    """In-memory estimate store for coordinator tests."""

    def __init__(self):
        self.profiles: Dict[str, RawRepProfile] = {}
        self.inputs: Dict[str, EstimateInputs] = {}
        self.breakdowns: Dict[str, Dict[str, Any]] = {}
        self.breakdown_versions: Dict[str, int] = {}
        self.errors: Dict[str, Dict[str, Any]] = {}
        self.states: Dict[str, EstimateState] = {}
        self.saved_versions: List[tuple] = []
        # Seconds to sleep in get_rep_profile, keyed by rep ID
        self.profile_delays: Dict[str, float] = {}

    @classmethod
    def seeded(cls) -> "InMemoryEstimateStore":
        store = cls()
        for rep_id in REP_PROFILES:
            store.profiles[rep_id] = sample_profile(rep_id)
        store.inputs["est-001"] = sample_inputs("est-001", "rep-alice")
        store.inputs["est-002"] = sample_inputs("est-002", "rep-bob", "rep-alice")
        store.inputs["est-003"] = sample_inputs("est-003", "rep-dan")
        return store

    async def get_rep_profile(self, rep_id: str) -> Optional[RawRepProfile]:
        delay = self.profile_delays.get(rep_id)
        if delay:
            await asyncio.sleep(delay)
        return self.profiles.get(rep_id)

    async def get_estimate_inputs(self, estimate_id: str) -> Optional[EstimateInputs]:
        await asyncio.sleep(0)
        return self.inputs.get(estimate_id)

    async def save_estimate_inputs(self, inputs: EstimateInputs) -> None:
        self.inputs[inputs.estimate_id] = inputs

    async def list_estimates_for_rep(self, rep_id: str) -> List[str]:
        return [
            estimate_id
            for estimate_id, inputs in self.inputs.items()
            if rep_id in (inputs.primary_rep_id, inputs.secondary_rep_id)
        ]

    async def update_pricing_state(self, estimate_id: str, state: EstimateState, version: int) -> None:
        self.states[estimate_id] = state

    async def save_breakdown(self, estimate_id: str, breakdown: Dict[str, Any], version: int) -> None:
        self.breakdowns[estimate_id] = breakdown
        self.breakdown_versions[estimate_id] = version
        self.states[estimate_id] = EstimateState.CURRENT
        self.errors.pop(estimate_id, None)
        self.saved_versions.append((estimate_id, version))

    async def save_recompute_error(self, estimate_id: str, error: Dict[str, Any], version: int) -> None:
        self.errors[estimate_id] = {**error, "version": version}
        self.states[estimate_id] = EstimateState.STALE
