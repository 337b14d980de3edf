"""Firestore service for the pricing engine.

Provides the estimate store operations the recompute coordinator needs:
rep profiles, pricing inputs, and breakdown writes.
"""

from typing import Dict, Any, Optional, List
import inspect
import structlog

from firebase_admin import firestore

from config.errors import StoreError, ErrorCode
from models.estimate import EstimateInputs, EstimateState
from models.rates import RawRepProfile

logger = structlog.get_logger()


class FirestoreService:
    """Service for Firestore operations.

    Handles all database operations for rep profiles, estimate pricing
    inputs and breakdown updates.

    Note: Firebase Admin SDK for Python is synchronous. Methods are
    marked async for interface compatibility but operations are sync.
    """

    COLLECTION_ESTIMATES = "estimates"
    COLLECTION_PROFILES = "profiles"

    FIELD_INPUTS = "pricingInputs"
    FIELD_BREAKDOWN = "breakdown"
    FIELD_VERSION = "breakdownVersion"
    FIELD_STATE = "pricingState"
    FIELD_ERROR = "pricingError"

    def __init__(self, db=None):
        """Initialize FirestoreService.

        Args:
            db: Optional Firestore client. If not provided, uses default.
        """
        self._db = db

    @property
    def db(self):
        """Get Firestore client (lazy initialization)."""
        if self._db is None:
            self._db = firestore.client()
        return self._db

    async def _maybe_await(self, result: Any) -> Any:
        """Await result if it is awaitable (supports AsyncMock in unit tests)."""
        if inspect.isawaitable(result):
            return await result
        return result

    async def get_rep_profile(self, rep_id: str) -> Optional[RawRepProfile]:
        """Fetch a representative's rate profile.

        Args:
            rep_id: The profile (user) document ID.

        Returns:
            RawRepProfile or None if not found.

        Raises:
            StoreError: If Firestore operation fails.
        """
        try:
            doc_ref = self.db.collection(self.COLLECTION_PROFILES).document(rep_id)
            doc = await self._maybe_await(doc_ref.get())
        except Exception as e:
            logger.error("firestore_get_profile_failed", rep_id=rep_id, error=str(e))
            raise StoreError(
                code=ErrorCode.FIRESTORE_ERROR,
                message=f"Failed to get rep profile: {str(e)}",
                details={"rep_id": rep_id}
            )

        if not doc.exists:
            return None
        return RawRepProfile.model_validate({**(doc.to_dict() or {}), "repId": rep_id})

    async def get_estimate_inputs(self, estimate_id: str) -> Optional[EstimateInputs]:
        """Fetch the pricing inputs stored on an estimate.

        Args:
            estimate_id: The estimate document ID.

        Returns:
            EstimateInputs or None if the estimate or its inputs are missing.

        Raises:
            StoreError: If Firestore operation fails.
        """
        try:
            doc_ref = self.db.collection(self.COLLECTION_ESTIMATES).document(estimate_id)
            doc = await self._maybe_await(doc_ref.get())
        except Exception as e:
            logger.error("firestore_get_failed", estimate_id=estimate_id, error=str(e))
            raise StoreError(
                code=ErrorCode.FIRESTORE_ERROR,
                message=f"Failed to get estimate: {str(e)}",
                estimate_id=estimate_id
            )

        if not doc.exists:
            return None
        inputs = (doc.to_dict() or {}).get(self.FIELD_INPUTS)
        if not inputs:
            return None
        return EstimateInputs.model_validate({**inputs, "estimateId": estimate_id})

    async def update_estimate(
        self,
        estimate_id: str,
        data: Dict[str, Any]
    ) -> None:
        """Update estimate document.

        Args:
            estimate_id: The estimate document ID.
            data: Fields to update (supports dot notation for nested fields).

        Raises:
            StoreError: If Firestore operation fails.
        """
        try:
            doc_ref = self.db.collection(self.COLLECTION_ESTIMATES).document(estimate_id)

            data["updatedAt"] = firestore.SERVER_TIMESTAMP

            await self._maybe_await(doc_ref.update(data))
            logger.info("estimate_updated", estimate_id=estimate_id, fields=list(data.keys()))

        except Exception as e:
            logger.error("firestore_update_failed", estimate_id=estimate_id, error=str(e))
            raise StoreError(
                code=ErrorCode.FIRESTORE_WRITE_FAILED,
                message=f"Failed to update estimate: {str(e)}",
                estimate_id=estimate_id
            )

    async def save_estimate_inputs(self, inputs: EstimateInputs) -> None:
        """Replace the pricing inputs stored on an estimate."""
        await self.update_estimate(inputs.estimate_id, {self.FIELD_INPUTS: inputs.to_firestore_dict()})

    async def list_estimates_for_rep(self, rep_id: str) -> List[str]:
        """List estimate IDs where the rep is primary or secondary.

        Args:
            rep_id: The representative ID.

        Returns:
            Estimate IDs, primary assignments first, without duplicates.

        Raises:
            StoreError: If Firestore operation fails.
        """
        estimate_ids: List[str] = []
        try:
            coll_ref = self.db.collection(self.COLLECTION_ESTIMATES)
            for field in ("primaryRepId", "secondaryRepId"):
                query = coll_ref.where(f"{self.FIELD_INPUTS}.{field}", "==", rep_id)
                for doc in query.stream():
                    estimate_ids.append(doc.id)
        except Exception as e:
            logger.error("firestore_list_for_rep_failed", rep_id=rep_id, error=str(e))
            raise StoreError(
                code=ErrorCode.FIRESTORE_ERROR,
                message=f"Failed to list estimates for rep: {str(e)}",
                details={"rep_id": rep_id}
            )
        return list(dict.fromkeys(estimate_ids))

    async def update_pricing_state(self, estimate_id: str, state: EstimateState, version: int) -> None:
        """Record the recompute state of an estimate.

        The write is unconditional. Version ordering comes from the
        RecomputeCoordinator, which serializes recomputes per estimate within
        one process; two processes recomputing the same estimate can still
        overwrite each other (last write wins).
        """
        await self.update_estimate(estimate_id, {
            self.FIELD_STATE: state.value,
            "pricingVersion": version,
        })

    async def save_breakdown(
        self,
        estimate_id: str,
        breakdown: Dict[str, Any],
        version: int
    ) -> None:
        """Replace the estimate's breakdown in a single document update.

        No version precondition is checked against the stored document: the
        ordering guarantee (an older version never overwrites a newer one)
        holds per process, where the RecomputeCoordinator serializes writes
        and re-checks supersession after each one.

        Args:
            estimate_id: The estimate document ID.
            breakdown: Firestore dict from EstimateBreakdown.to_firestore_dict().
            version: Recompute version that produced the breakdown.

        Raises:
            StoreError: If Firestore operation fails.
        """
        await self.update_estimate(estimate_id, {
            self.FIELD_BREAKDOWN: breakdown,
            self.FIELD_VERSION: version,
            self.FIELD_STATE: EstimateState.CURRENT.value,
            self.FIELD_ERROR: firestore.DELETE_FIELD,
        })
        logger.info("breakdown_saved", estimate_id=estimate_id, version=version)

    async def save_recompute_error(
        self,
        estimate_id: str,
        error: Dict[str, Any],
        version: int
    ) -> None:
        """Record an engine error; the estimate stays stale and unfinalizable.

        Args:
            estimate_id: The estimate document ID.
            error: EngineError.to_dict() payload.
            version: Recompute version that failed.
        """
        await self.update_estimate(estimate_id, {
            self.FIELD_ERROR: {**error, "version": version},
            self.FIELD_STATE: EstimateState.STALE.value,
        })
        logger.warning("recompute_error_saved", estimate_id=estimate_id, version=version, code=error.get("code"))
