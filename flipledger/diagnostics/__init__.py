"""Balancing diagnostics for pack catalogs."""

from .checklist import ChecklistIssue, run_checklist
from .distribution import DistributionResult, DrawSimulator

__all__ = ["ChecklistIssue", "DistributionResult", "DrawSimulator", "run_checklist"]
