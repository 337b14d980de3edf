"""Estimate recompute coordinator.

Keeps stored breakdowns consistent with the inputs they were priced from.
Representative reassignment, rate edits and manual overrides each make the
estimate stale; the coordinator re-runs the full pipeline and replaces the
whole breakdown.

Ordering per estimate:
- every trigger bumps a monotonic version and returns immediately after
  enqueuing its recompute task
- tasks for one estimate run one at a time, in trigger order, under a
  per-estimate lock; each applies its input change so later triggers see it
- only the latest version may write a breakdown; an older one completing
  is discarded (last trigger wins, not last completion)

Different estimates share nothing and recompute independently.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Protocol, Set

import structlog

from config.errors import EngineError, ErrorCode, PricingError, StoreError
from models.breakdown import EstimateBreakdown
from models.estimate import (
    EstimateInputs,
    EstimateState,
    ManualOverride,
    RecomputeTrigger,
    RepAssignmentChanged,
)
from models.rates import RateDefaults, RawRepProfile
from services.breakdown_service import compute_breakdown_for_reps
from utils.recompute_logger import (
    log_breakdown,
    log_engine_error,
    log_recompute_discarded,
    log_recompute_start,
)

logger = structlog.get_logger()

InputsChange = Callable[[EstimateInputs], EstimateInputs]


class EstimateStore(Protocol):
    """Persistence the coordinator depends on (FirestoreService implements it)."""

    async def get_rep_profile(self, rep_id: str) -> Optional[RawRepProfile]: ...

    async def get_estimate_inputs(self, estimate_id: str) -> Optional[EstimateInputs]: ...

    async def save_estimate_inputs(self, inputs: EstimateInputs) -> None: ...

    async def list_estimates_for_rep(self, rep_id: str) -> List[str]: ...

    async def update_pricing_state(self, estimate_id: str, state: EstimateState, version: int) -> None: ...

    async def save_breakdown(self, estimate_id: str, breakdown: Dict, version: int) -> None: ...

    async def save_recompute_error(self, estimate_id: str, error: Dict, version: int) -> None: ...


@dataclass
class RecomputeOutcome:
    """Result of one triggered recompute."""

    estimate_id: str
    version: int
    trigger: RecomputeTrigger
    breakdown: Optional[EstimateBreakdown] = None
    error: Optional[PricingError] = None
    discarded: bool = False

    @property
    def succeeded(self) -> bool:
        return self.breakdown is not None and self.error is None and not self.discarded


@dataclass
class _EstimateEntry:
    """In-memory recompute state for one estimate."""

    version: int = 0
    state: EstimateState = EstimateState.STALE
    breakdown: Optional[EstimateBreakdown] = None
    breakdown_version: int = 0
    error: Optional[PricingError] = None
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    latest_task: Optional["asyncio.Task[RecomputeOutcome]"] = None


class RecomputeCoordinator:
    """Serializes and versions breakdown recomputes per estimate."""

    def __init__(self, store: EstimateStore, rate_defaults: Optional[RateDefaults] = None):
        """Initialize RecomputeCoordinator.

        Args:
            store: Estimate store (Firestore in production).
            rate_defaults: Commission fallbacks for incomplete rep profiles.
                The overhead fallback always comes from the estimate's
                pricing configuration.
        """
        self.store = store
        self.rate_defaults = rate_defaults or RateDefaults()
        self._entries: Dict[str, _EstimateEntry] = {}
        self._tasks: Set[asyncio.Task] = set()

    def _entry(self, estimate_id: str) -> _EstimateEntry:
        entry = self._entries.get(estimate_id)
        if entry is None:
            entry = _EstimateEntry()
            self._entries[estimate_id] = entry
        return entry

    # -------------------------------------------------------------------------
    # Triggers
    # -------------------------------------------------------------------------

    def trigger(
        self,
        estimate_id: str,
        trigger: RecomputeTrigger,
        change: Optional[InputsChange] = None,
    ) -> int:
        """Mark an estimate stale and enqueue its recompute.

        Must be called from a running event loop. Returns without waiting
        for the recompute.

        Args:
            estimate_id: The estimate document ID.
            trigger: What made the breakdown stale.
            change: Optional edit applied to the stored inputs first.

        Returns:
            The version assigned to this trigger.
        """
        entry = self._entry(estimate_id)
        entry.version += 1
        version = entry.version
        entry.state = EstimateState.STALE

        task = asyncio.get_running_loop().create_task(
            self._run(estimate_id, version, trigger, change)
        )
        entry.latest_task = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        logger.info("recompute_enqueued", estimate_id=estimate_id, version=version, trigger=trigger.value)
        return version

    def on_rep_assignment_changed(self, event: RepAssignmentChanged) -> int:
        """Reassign representatives and recompute."""
        def change(inputs: EstimateInputs) -> EstimateInputs:
            return inputs.model_copy(update={
                "primary_rep_id": event.primary_rep_id,
                "secondary_rep_id": event.secondary_rep_id,
                "split": event.split,
            })

        return self.trigger(event.estimate_id, RecomputeTrigger.REP_REASSIGNMENT, change)

    def on_manual_override(self, override: ManualOverride) -> int:
        """Apply a manual override and recompute."""
        return self.trigger(override.estimate_id, RecomputeTrigger.MANUAL_OVERRIDE, override.apply)

    async def on_rate_changed(self, rep_id: str) -> Dict[str, int]:
        """Recompute every estimate the rep is assigned to.

        Args:
            rep_id: Representative whose rate profile was edited.

        Returns:
            Mapping of estimate ID to the version enqueued for it.
        """
        estimate_ids = await self.store.list_estimates_for_rep(rep_id)
        logger.info("rate_change_fanout", rep_id=rep_id, estimate_count=len(estimate_ids))
        return {
            estimate_id: self.trigger(estimate_id, RecomputeTrigger.RATE_CHANGE)
            for estimate_id in estimate_ids
        }

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def state(self, estimate_id: str) -> EstimateState:
        return self._entry(estimate_id).state

    def current_version(self, estimate_id: str) -> int:
        return self._entry(estimate_id).version

    def current_breakdown(self, estimate_id: str) -> Optional[EstimateBreakdown]:
        return self._entry(estimate_id).breakdown

    def last_error(self, estimate_id: str) -> Optional[PricingError]:
        return self._entry(estimate_id).error

    def can_finalize(self, estimate_id: str) -> bool:
        """True only when the latest trigger produced a breakdown without error."""
        entry = self._entry(estimate_id)
        return (
            entry.state == EstimateState.CURRENT
            and entry.error is None
            and entry.breakdown is not None
            and entry.breakdown_version == entry.version
        )

    async def wait(self, estimate_id: str) -> Optional[RecomputeOutcome]:
        """Wait for the latest enqueued recompute of an estimate."""
        task = self._entry(estimate_id).latest_task
        if task is None:
            return None
        return await task

    async def recompute(
        self,
        estimate_id: str,
        trigger: RecomputeTrigger,
        change: Optional[InputsChange] = None,
    ) -> RecomputeOutcome:
        """Trigger a recompute and wait for its outcome."""
        self.trigger(estimate_id, trigger, change)
        return await self._entry(estimate_id).latest_task

    async def drain(self) -> None:
        """Wait for every pending recompute."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # -------------------------------------------------------------------------
    # Recompute
    # -------------------------------------------------------------------------

    def _is_superseded(self, estimate_id: str, version: int) -> bool:
        return version < self._entry(estimate_id).version

    def _discard(self, estimate_id: str, version: int, trigger: RecomputeTrigger) -> RecomputeOutcome:
        log_recompute_discarded(estimate_id, version, self._entry(estimate_id).version)
        return RecomputeOutcome(estimate_id=estimate_id, version=version, trigger=trigger, discarded=True)

    async def _load_inputs(self, estimate_id: str, change: Optional[InputsChange]) -> EstimateInputs:
        inputs = await self.store.get_estimate_inputs(estimate_id)
        if inputs is None:
            raise StoreError(
                code=ErrorCode.ESTIMATE_NOT_FOUND,
                message=f"Estimate {estimate_id} has no pricing inputs",
                estimate_id=estimate_id,
            )
        if change is not None:
            inputs = change(inputs)
            await self.store.save_estimate_inputs(inputs)
        return inputs

    async def _price(self, inputs: EstimateInputs):
        primary_profile = await self.store.get_rep_profile(inputs.primary_rep_id)
        secondary_profile = None
        if inputs.secondary_rep_id is not None:
            secondary_profile = await self.store.get_rep_profile(inputs.secondary_rep_id)

        return compute_breakdown_for_reps(
            inputs.costs,
            inputs.pricing,
            primary_profile,
            secondary_profile,
            split=inputs.split,
            defaults=self.rate_defaults,
            primary_rep_id=inputs.primary_rep_id,
            secondary_rep_id=inputs.secondary_rep_id,
        )

    async def _run(
        self,
        estimate_id: str,
        version: int,
        trigger: RecomputeTrigger,
        change: Optional[InputsChange],
    ) -> RecomputeOutcome:
        entry = self._entry(estimate_id)
        async with entry.lock:
            try:
                # Input edits apply even when superseded; later triggers build on them.
                inputs = await self._load_inputs(estimate_id, change)

                if self._is_superseded(estimate_id, version):
                    return self._discard(estimate_id, version, trigger)

                log_recompute_start(estimate_id, version, trigger.value)
                entry.state = EstimateState.RECOMPUTING
                await self.store.update_pricing_state(estimate_id, EstimateState.RECOMPUTING, version)

                result = await self._price(inputs)

                if self._is_superseded(estimate_id, version):
                    return self._discard(estimate_id, version, trigger)

                if isinstance(result, EngineError):
                    await self.store.save_recompute_error(estimate_id, result.to_dict(), version)
                    log_engine_error(estimate_id, version, result.to_dict())
                    # A trigger that arrived during the write owns the state now.
                    if not self._is_superseded(estimate_id, version):
                        entry.state = EstimateState.STALE
                        entry.error = result
                    return RecomputeOutcome(
                        estimate_id=estimate_id, version=version, trigger=trigger, error=result
                    )

                data = result.to_firestore_dict()
                await self.store.save_breakdown(estimate_id, data, version)
                entry.breakdown = result
                entry.breakdown_version = version
                entry.error = None
                log_breakdown(estimate_id, version, data)

                if self._is_superseded(estimate_id, version):
                    # The write marked the document current; a newer version is still queued.
                    logger.info(
                        "recompute_superseded_after_write",
                        estimate_id=estimate_id,
                        version=version,
                        latest_version=entry.version,
                    )
                    await self.store.update_pricing_state(estimate_id, EstimateState.STALE, entry.version)
                else:
                    entry.state = EstimateState.CURRENT
                return RecomputeOutcome(
                    estimate_id=estimate_id, version=version, trigger=trigger, breakdown=result
                )

            except StoreError as e:
                logger.error(
                    "recompute_store_failed",
                    estimate_id=estimate_id,
                    version=version,
                    code=e.code,
                    error=e.message,
                )
                if not self._is_superseded(estimate_id, version):
                    entry.state = EstimateState.STALE
                    entry.error = e
                return RecomputeOutcome(estimate_id=estimate_id, version=version, trigger=trigger, error=e)


def create_coordinator(store: Optional[EstimateStore] = None) -> RecomputeCoordinator:
    """Build a coordinator wired to Firestore and the configured rate defaults."""
    from config.settings import settings
    from services.firestore_service import FirestoreService

    return RecomputeCoordinator(store or FirestoreService(), rate_defaults=settings.rate_defaults())
