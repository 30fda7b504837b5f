"""Surface shading models for a Taichi Monte Carlo path tracer.

This package provides the materials a path tracer consults at every path
vertex, with support for:
- BRDF evaluation for externally chosen directions (next event estimation)
- Importance-sampled continuation directions with matching pdfs
- Ideal dielectrics with Fresnel-weighted Russian roulette and delta pdfs
- Explicit, caller-owned random streams for reentrant parallel sampling

Subpackages:
    core: Vector helpers, random streams and hemisphere sampling
    materials: Material models, type-tag dispatch and batch shading
    scene: Scene-level material table for kernels mixing materials

Modules:
    estimator: Monte Carlo directional albedo (white furnace) estimates
"""

__version__ = "0.1.0"
