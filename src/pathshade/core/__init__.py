"""Core sampling building blocks.

Components:
    vec: Vector helpers (dot, reflect, orthonormal basis)
    rng: Caller-owned uniform random streams
    sampling: Uniform and cosine-weighted hemisphere sampling

All in-kernel helpers are Taichi functions; random streams are Taichi
data-oriented objects passed to kernels as templates.
"""

from .rng import DEFAULT_STREAM_LENGTH, RandomStreams
from .sampling import cosine_weighted_hemisphere_surface, uniform_hemisphere_surface
from .vec import (
    create_orthonormal_basis,
    cross,
    dot,
    length,
    local_to_world,
    normalize,
    reflect,
    vec3,
)

__all__ = [
    "vec3",
    "length",
    "normalize",
    "dot",
    "cross",
    "reflect",
    "create_orthonormal_basis",
    "local_to_world",
    "RandomStreams",
    "DEFAULT_STREAM_LENGTH",
    "uniform_hemisphere_surface",
    "cosine_weighted_hemisphere_surface",
]
