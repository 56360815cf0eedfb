"""Distribution - batch planning and request orchestration."""

from claimdrop.distribution.batching import plan_batches
from claimdrop.distribution.orchestrator import DistributionOrchestrator

__all__ = ["plan_batches", "DistributionOrchestrator"]
