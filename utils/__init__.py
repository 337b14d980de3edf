"""Utility modules for the pricing engine."""

from utils.recompute_logger import (
    log_recompute_start,
    log_breakdown,
    log_recompute_discarded,
    log_engine_error,
)

__all__ = [
    "log_recompute_start",
    "log_breakdown",
    "log_recompute_discarded",
    "log_engine_error",
]
