"""
Grouping engine - constraint model, assignment heuristic and candidate generation.
"""

from .catalog import ALGORITHM_CATALOG, AlgorithmVariant, get_algorithm_label, get_variant
from .constraint_model import ConstraintModel, StudentConstraints, build_constraint_model
from .feasibility import check_feasibility
from .generator import generate_candidates
from .group_sizing import derive_group_specs, split_capacities
from .heuristic import check_partition, generate_partition

__all__ = [
    "ALGORITHM_CATALOG",
    "AlgorithmVariant",
    "ConstraintModel",
    "StudentConstraints",
    "build_constraint_model",
    "check_feasibility",
    "check_partition",
    "derive_group_specs",
    "generate_candidates",
    "generate_partition",
    "get_algorithm_label",
    "get_variant",
    "split_capacities",
]
