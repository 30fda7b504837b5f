"""Lambertian (ideal diffuse) material implementations.

This module implements the Lambertian BRDF, which models ideal diffuse
reflection: the reflected radiance is the same in every direction.

The Lambertian BRDF is:
    f_r(wi, wo) = albedo / pi

Two sampling strategies are provided for the same BRDF:
    LambertianSimple:  uniform hemisphere, pdf = 1 / (2 * pi)
    LambertianCosine:  cosine-weighted hemisphere, pdf = cos(theta) / pi

With cosine-weighted sampling the estimator weight
(BRDF * cos_theta) / pdf collapses to the albedo, which removes the variance
the uniform strategy carries.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathshade.materials.lambertian import (
    ...     eval_lambertian, sample_lambertian_cosine
    ... )
    >>> # Use within a Taichi kernel:
    >>> # direction, pdf, brdf, delta = sample_lambertian_cosine(
    >>> #     rng, stream, albedo, normal
    >>> # )
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathshade.core.sampling import (
    cosine_weighted_hemisphere_surface,
    uniform_hemisphere_surface,
)
from pathshade.core.vec import create_orthonormal_basis, vec3
from pathshade.materials.base import (
    Color,
    Material,
    MaterialType,
    _check_reflectance,
)


@dataclass(frozen=True)
class LambertianSimple(Material):
    """Perfect diffuse reflector sampled uniformly over the hemisphere.

    Attributes:
        albedo: The diffuse reflectance color (RGB, each component in [0, 1]).
    """

    material_type = MaterialType.LAMBERTIAN_SIMPLE

    albedo: Color

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", Color.from_sequence(self.albedo))
        _check_reflectance("Albedo", self.albedo)

    def reflectance(self) -> Color:
        return self.albedo


@dataclass(frozen=True)
class LambertianCosine(LambertianSimple):
    """Perfect diffuse reflector with cosine-weighted importance sampling."""

    material_type = MaterialType.LAMBERTIAN_COSINE


@ti.func
def eval_lambertian(albedo: vec3) -> vec3:
    """Evaluate the Lambertian BRDF.

    The BRDF is constant for all direction pairs:
        f_r = albedo / pi

    Args:
        albedo: The diffuse reflectance color (RGB).

    Returns:
        The BRDF value (albedo / pi).
    """
    return albedo / tm.pi


@ti.func
def sample_lambertian_simple(
    rng: ti.template(),
    stream: ti.i32,
    albedo: vec3,
    normal: vec3,
):
    """Sample a direction uniformly over the hemisphere around normal.

    Args:
        rng: The caller's RandomStreams.
        stream: Index of the stream owned by the calling path.
        albedo: The diffuse reflectance color (RGB).
        normal: The surface normal (should be normalized).

    Returns:
        A tuple of (direction, pdf, brdf, delta) where:
        - direction: The sampled direction (unit, upper hemisphere).
        - pdf: 1 / (2 * pi).
        - brdf: The BRDF value (albedo / pi).
        - delta: Always 0.
    """
    tangent, binormal = create_orthonormal_basis(normal)
    direction = uniform_hemisphere_surface(rng, stream, normal, tangent, binormal)
    pdf = 1.0 / (2.0 * tm.pi)
    brdf = eval_lambertian(albedo)
    return direction, pdf, brdf, 0


@ti.func
def sample_lambertian_cosine(
    rng: ti.template(),
    stream: ti.i32,
    albedo: vec3,
    normal: vec3,
):
    """Sample a direction from the cosine-weighted hemisphere around normal.

    The pdf is computed from the sampled direction as dot(normal, direction)
    / pi without clamping. The sampler never produces a direction below the
    horizon, so a non-positive pdf only appears for a degenerate frame.

    Args:
        rng: The caller's RandomStreams.
        stream: Index of the stream owned by the calling path.
        albedo: The diffuse reflectance color (RGB).
        normal: The surface normal (should be normalized).

    Returns:
        A tuple of (direction, pdf, brdf, delta) where:
        - direction: The sampled direction (unit, upper hemisphere).
        - pdf: cos(theta) / pi for the sampled direction.
        - brdf: The BRDF value (albedo / pi).
        - delta: Always 0.
    """
    tangent, binormal = create_orthonormal_basis(normal)
    direction = cosine_weighted_hemisphere_surface(rng, stream, normal, tangent, binormal)
    pdf = tm.dot(normal, direction) / tm.pi
    brdf = eval_lambertian(albedo)
    return direction, pdf, brdf, 0
