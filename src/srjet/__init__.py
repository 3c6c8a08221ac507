"""srjet: inflow and initial state of a magnetized relativistic jet.

Primary user-facing API lives in :mod:`srjet.problem` (host callbacks) and
:mod:`srjet.boundary` (inflow construction).
"""

from __future__ import annotations

from ._version import __version__
from .params import JetContext, JetParameters, RegimeState, derive_context
from .profiles import smoothstep
from .fieldline import FootpointConvergenceError, RootResult, fieldline_radius, footpoint_radii, footpoint_radius
from .potential import flux_function, poloidal_field, poloidal_profile, vector_potential
from .grid import CylindricalGrid, MeshSize
from .state import FaceField, MeshBlockState, cell_centered_field, primitive_to_conserved
from .boundary import InflowState, inflow_state, jet_inner_x3, lorentz_factor, reflect_across_inner_boundary
from .refinement import DEREFINE, NO_CHANGE, REFINE, refinement_condition
from .problem import UserMeshData, init_user_mesh_data, problem_generator
from .pipeline import PipelineResult, run_pipeline

__all__ = [
    "__version__",
    "JetParameters",
    "JetContext",
    "RegimeState",
    "derive_context",
    "smoothstep",
    "RootResult",
    "FootpointConvergenceError",
    "footpoint_radius",
    "footpoint_radii",
    "fieldline_radius",
    "flux_function",
    "vector_potential",
    "poloidal_profile",
    "poloidal_field",
    "MeshSize",
    "CylindricalGrid",
    "FaceField",
    "MeshBlockState",
    "cell_centered_field",
    "primitive_to_conserved",
    "InflowState",
    "inflow_state",
    "lorentz_factor",
    "reflect_across_inner_boundary",
    "jet_inner_x3",
    "REFINE",
    "NO_CHANGE",
    "DEREFINE",
    "refinement_condition",
    "UserMeshData",
    "init_user_mesh_data",
    "problem_generator",
    "PipelineResult",
    "run_pipeline",
]
