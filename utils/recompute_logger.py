"""Recompute Logger for the pricing engine.

Provides highly visible, formatted logging for estimate recomputes
with distinctive visual markers that stand out in log streams.
"""

import json
import structlog
from typing import Dict, Any
from datetime import datetime, timezone

logger = structlog.get_logger()

# Visual markers for different log types
BANNER_WIDTH = 80
RECOMPUTE_BANNER_CHAR = "═"
DISCARD_BANNER_CHAR = "░"
ERROR_BANNER_CHAR = "!"


def _create_banner(char: str, text: str, width: int = BANNER_WIDTH) -> str:
    """Create a centered banner with given character."""
    text_with_spaces = f" {text} "
    padding = (width - len(text_with_spaces)) // 2
    return char * padding + text_with_spaces + char * (width - padding - len(text_with_spaces))


def _format_json(data: Dict[str, Any], indent: int = 2) -> str:
    """Format dictionary as pretty JSON string."""
    try:
        return json.dumps(data, indent=indent, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(data)


def _money(value: float) -> str:
    return f"${value:,.2f}"


def log_recompute_start(estimate_id: str, version: int, trigger: str) -> None:
    """Log when a recompute starts."""
    print("\n")
    print(RECOMPUTE_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(RECOMPUTE_BANNER_CHAR, f"▶ RECOMPUTE: {trigger.upper()}"))
    print(RECOMPUTE_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Estimate ID  : {estimate_id}")
    print(f"║ Version      : {version}")
    print(f"║ Timestamp    : {datetime.now(timezone.utc).isoformat()}")
    print(RECOMPUTE_BANNER_CHAR * BANNER_WIDTH)

    logger.info(
        "recompute_start_logged",
        estimate_id=estimate_id,
        version=version,
        trigger=trigger
    )


def log_breakdown(estimate_id: str, version: int, breakdown: Dict[str, Any]) -> None:
    """Log a freshly stored breakdown with its money figures."""
    print("\n")
    print(RECOMPUTE_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(RECOMPUTE_BANNER_CHAR, "✓ BREAKDOWN CURRENT"))
    print(RECOMPUTE_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Estimate ID        : {estimate_id}")
    print(f"║ Version            : {version}")
    print(f"║ Selling Price      : {_money(breakdown.get('sellingPrice', 0.0))}")
    print(f"║ Overhead           : {_money(breakdown.get('overheadAmount', 0.0))}")
    print(f"║ Primary Commission : {_money(breakdown.get('primaryCommissionAmount', 0.0))}")
    print(f"║ Second Commission  : {_money(breakdown.get('secondaryCommissionAmount', 0.0))}")
    print(f"║ Company Net        : {_money(breakdown.get('companyNet', 0.0))}")
    print(RECOMPUTE_BANNER_CHAR * BANNER_WIDTH)
    print("\n")

    logger.info(
        "breakdown_logged",
        estimate_id=estimate_id,
        version=version,
        selling_price=breakdown.get("sellingPrice"),
        company_net=breakdown.get("companyNet")
    )


def log_recompute_discarded(estimate_id: str, version: int, current_version: int) -> None:
    """Log a recompute superseded by a newer trigger."""
    print("\n")
    print(DISCARD_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(DISCARD_BANNER_CHAR, "↷ RECOMPUTE SUPERSEDED"))
    print(DISCARD_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Estimate ID      : {estimate_id}")
    print(f"║ Stale Version    : {version}")
    print(f"║ Current Version  : {current_version}")
    print(DISCARD_BANNER_CHAR * BANNER_WIDTH)

    logger.info(
        "recompute_discarded_logged",
        estimate_id=estimate_id,
        version=version,
        current_version=current_version
    )


def log_engine_error(estimate_id: str, version: int, error: Dict[str, Any]) -> None:
    """Log an engine error that blocks finalization."""
    print("\n")
    print(ERROR_BANNER_CHAR * BANNER_WIDTH)
    print(_create_banner(ERROR_BANNER_CHAR, "✗ BREAKDOWN REJECTED"))
    print(ERROR_BANNER_CHAR * BANNER_WIDTH)
    print(f"║ Estimate ID  : {estimate_id}")
    print(f"║ Version      : {version}")
    print(f"║ Code         : {error.get('code')}")
    print(f"║ Message      : {error.get('message')}")
    print(ERROR_BANNER_CHAR * BANNER_WIDTH)
    for line in _format_json(error.get("details", {})).split("\n"):
        print(f"  {line}")
    print(ERROR_BANNER_CHAR * BANNER_WIDTH)
    print("\n")

    logger.error(
        "engine_error_logged",
        estimate_id=estimate_id,
        version=version,
        code=error.get("code")
    )
