"""
Price an estimate from the command line.

Two modes:

- Local quote: read a JSON request and print the breakdown (or the engine
  error) as JSON. Nothing is written anywhere.
- Stored estimate: recompute estimates/{estimateId} in Firestore through the
  recompute coordinator, the same path a rep reassignment or rate edit takes.

Request format (local quote):

  {
    "costs": {"materialBaseCost": 12000, "laborBaseCost": 8000,
              "wasteFactorPercent": 10, "contingencyPercent": 5,
              "fixedCosts": 500, "areaSqFt": 2500},
    "pricing": {"overheadPercent": 10, "targetMarginPercent": 30,
                "wasteFactorPercent": 10, "contingencyPercent": 5},
    "primaryRep": {"repId": "rep-1", "commissionPercent": 50,
                   "commissionStructure": "profit_split"},
    "secondaryRep": {"repId": "rep-2", "commissionPercent": 10,
                     "commissionStructure": "sales_percentage"},
    "split": {"primaryPercent": 70, "secondaryPercent": 30}
  }

"costs" may be replaced by "template" + "job" to expand a per-unit cost
template. "pricing" defaults to the company settings.

Usage:
  python scripts/quote_estimate.py --request quote.json
  python scripts/quote_estimate.py --request - < quote.json
  FIRESTORE_EMULATOR_HOST=127.0.0.1:8081 python scripts/quote_estimate.py --estimate-id est-123
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, Dict, Optional

import structlog

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from config.errors import EngineError  # noqa: E402
from config.settings import settings  # noqa: E402
from models.assignment import SplitPercentages  # noqa: E402
from models.costs import CostInputs, CostTemplate, JobDetails, PricingConfig  # noqa: E402
from models.estimate import RecomputeTrigger  # noqa: E402
from models.rates import RawRepProfile  # noqa: E402
from services.breakdown_service import build_cost_inputs, compute_breakdown_for_reps  # noqa: E402

# Configure logging
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(settings.log_level.upper())),
    logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
)
logger = structlog.get_logger()


def _load_request(path: str) -> Dict[str, Any]:
    if path == "-":
        return json.load(sys.stdin)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _optional_profile(data: Optional[Dict[str, Any]]) -> Optional[RawRepProfile]:
    if data is None:
        return None
    return RawRepProfile.model_validate(data)


def quote(request: Dict[str, Any]) -> Dict[str, Any]:
    """Price a local quote request.

    Returns:
        {"ok": True, "breakdown": {...}} or {"ok": False, "error": {...}}.
    """
    pricing = (
        PricingConfig.model_validate(request["pricing"])
        if "pricing" in request
        else settings.pricing_config()
    )
    if "costs" in request:
        costs = CostInputs.model_validate(request["costs"])
    else:
        costs = build_cost_inputs(
            CostTemplate.model_validate(request["template"]),
            JobDetails.model_validate(request["job"]),
            pricing,
        )

    split = request.get("split")
    result = compute_breakdown_for_reps(
        costs,
        pricing,
        _optional_profile(request.get("primaryRep")),
        _optional_profile(request.get("secondaryRep")),
        split=SplitPercentages.model_validate(split) if split else None,
        defaults=settings.rate_defaults(),
    )
    if isinstance(result, EngineError):
        return {"ok": False, "error": result.to_dict()}
    return {"ok": True, "breakdown": result.to_firestore_dict()}


async def recompute_stored(estimate_id: str, project_id: str) -> Dict[str, Any]:
    """Recompute a stored estimate through the coordinator."""
    # Import firebase_admin lazily so local quotes never touch it.
    import firebase_admin

    from services.recompute_coordinator import create_coordinator

    if settings.is_emulator_mode:
        os.environ.setdefault("FIRESTORE_EMULATOR_HOST", settings.firestore_emulator_host)

    if not firebase_admin._apps:
        # For emulator usage, credentials are not required. Providing projectId helps routing.
        firebase_admin.initialize_app(options={"projectId": project_id})

    coordinator = create_coordinator()
    outcome = await coordinator.recompute(estimate_id, RecomputeTrigger.MANUAL_OVERRIDE)
    if outcome.error is not None:
        return {"ok": False, "version": outcome.version, "error": outcome.error.to_dict()}
    return {"ok": True, "version": outcome.version, "breakdown": outcome.breakdown.to_firestore_dict()}


def main() -> int:
    parser = argparse.ArgumentParser(description="Price an estimate with guaranteed margin")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--request", help="JSON request file, or - for stdin")
    source.add_argument("--estimate-id", help="Recompute a stored Firestore estimate")
    parser.add_argument(
        "--project-id",
        required=False,
        help="Firebase project id (if not set, uses FIREBASE_PROJECT_ID / GCLOUD_PROJECT)",
    )
    parser.add_argument("--out", required=False, help="Write the JSON result here instead of stdout")
    args = parser.parse_args()

    try:
        settings.validate()
    except ValueError as e:
        logger.error("invalid_settings", error=str(e))
        return 3

    if args.request:
        result = quote(_load_request(args.request))
    else:
        project_id = (
            args.project_id
            or settings.firebase_project_id
            or os.environ.get("GCLOUD_PROJECT")
            or "pricing-engine-dev"
        )
        result = asyncio.run(recompute_stored(args.estimate_id, project_id))

    output = json.dumps(result, indent=2, sort_keys=True)
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(output)
        print(f"Wrote {args.out}")
    else:
        print(output)

    return 0 if result["ok"] else 1


if __name__ == "__main__":
    raise SystemExit(main())
