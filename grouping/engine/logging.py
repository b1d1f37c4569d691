"""
Generation Logger - records placement decisions for one heuristic run.

Tracks fallback placements, avoidance violations left in the output,
feasibility warnings and local search progress.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Any

logger = logging.getLogger(__name__)


class GenerationLogger:
    """Collects diagnostics for a single generation run."""

    def __init__(self, debug_mode: bool = False) -> None:
        self.debug_mode = debug_mode
        self.fallback_placements: list[dict[str, str]] = []
        self.violations: dict[str, list[str]] = defaultdict(list)
        self.feasibility_warnings: list[str] = []
        self.progress: list[str] = []

    def log_fallback(self, student_id: str, group_id: str, reason: str) -> None:
        """A student could not get a compatible group and took the least-bad one."""
        self.fallback_placements.append({"student_id": student_id, "group_id": group_id, "reason": reason})
        logger.info(f"[FALLBACK] {student_id} -> {group_id}: {reason}")

    def log_feasibility_warning(self, warning: str) -> None:
        self.feasibility_warnings.append(warning)
        logger.warning(f"[FEASIBILITY] {warning}")

    def log_violation(self, constraint_type: str, details: str) -> None:
        """Record an avoidance constraint the final partition still breaks."""
        self.violations[constraint_type].append(details)
        logger.info(f"[VIOLATION] {constraint_type}: {details}")

    def log_progress(self, message: str) -> None:
        self.progress.append(message)
        if self.debug_mode:
            logger.debug(f"[SEARCH] {message}")

    def get_summary(self) -> dict[str, Any]:
        return {
            "fallback_placements": list(self.fallback_placements),
            "violations": {key: list(value) for key, value in self.violations.items()},
            "feasibility_warnings": list(self.feasibility_warnings),
            "progress": list(self.progress),
        }
