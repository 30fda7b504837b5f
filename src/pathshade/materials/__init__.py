"""Materials module for BRDF models.

This module implements the surface shading models of the path tracer:

Components:
    base: Material interface, Color, DELTA, type tags and errors
    lambertian: Ideal diffuse reflection (uniform and cosine-weighted sampling)
    phong: Normalized Phong glossy reflection
    dielectric: Smooth glass with exact Fresnel and total internal reflection
    emissive: Pure light sources (no BRDF)
    shading: Type-tag dispatch and host-side batch shading

Each scattering material provides, as Taichi functions:
    - eval_*(): Evaluate the BRDF for a given direction pair
    - sample_*(): Importance sample a direction, returning
      (direction, pdf, brdf, delta)

and, on the host, Material.eval() / Material.sample() plus the batch
entry points evaluate_batch() / sample_batch().
"""

from .base import (
    BLACK,
    DELTA,
    Color,
    Material,
    MaterialContractError,
    MaterialType,
    ScatterSample,
)
from .dielectric import (
    IdealDielectric,
    eval_dielectric,
    fresnel_reflectance,
    sample_dielectric,
)
from .emissive import Emissive
from .lambertian import (
    LambertianCosine,
    LambertianSimple,
    eval_lambertian,
    sample_lambertian_cosine,
    sample_lambertian_simple,
)
from .phong import NormalizedPhong, eval_phong, sample_phong
from .shading import (
    ScatterBatch,
    eval_material,
    evaluate_batch,
    sample_batch,
    sample_material,
)

__all__ = [
    # Interface
    "Material",
    "MaterialType",
    "MaterialContractError",
    "Color",
    "BLACK",
    "DELTA",
    "ScatterSample",
    "ScatterBatch",
    # Lambertian
    "LambertianSimple",
    "LambertianCosine",
    "eval_lambertian",
    "sample_lambertian_simple",
    "sample_lambertian_cosine",
    # Phong
    "NormalizedPhong",
    "eval_phong",
    "sample_phong",
    # Dielectric
    "IdealDielectric",
    "eval_dielectric",
    "sample_dielectric",
    "fresnel_reflectance",
    # Emissive
    "Emissive",
    # Dispatch and batch shading
    "eval_material",
    "sample_material",
    "evaluate_batch",
    "sample_batch",
]
