"""Ideal dielectric (smooth glass) material implementation.

This module implements a perfectly smooth interface between vacuum (index 1)
and a dielectric of index ``ior``. Light is either mirrored or refracted,
never scattered, so the BSDF is a Dirac delta in direction.

Key physics:
    - Snell's law for refraction: n1 * sin(theta1) = n2 * sin(theta2)
    - Exact Fresnel reflectance for unpolarized light (average of the
      parallel and perpendicular coefficients)
    - Total internal reflection when cos^2(theta_t) < 0
    - Radiance scales by (n1 / n2) ** 2 when crossing the interface

Delta bookkeeping:
    The true BRDF is delta(wo - w_specular) / cos(theta). It cannot be
    represented, but the same delta appears in the pdf and cancels in the
    estimator. ``eval_dielectric`` therefore returns albedo * DELTA / cos and
    sampled pdfs are DELTA scaled by the branch probability.

Reflection vs refraction is decided by Russian roulette with the Fresnel
reflectance as the probability of reflecting.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathshade.materials.dielectric import sample_dielectric
    >>> # Use within a Taichi kernel:
    >>> # direction, pdf, brdf, delta = sample_dielectric(
    >>> #     rng, stream, albedo, ior, incoming, normal
    >>> # )
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathshade.core.vec import reflect, vec3
from pathshade.materials.base import (
    DELTA,
    Color,
    Material,
    MaterialType,
    _check_reflectance,
)

# Index of refraction of the surrounding medium (vacuum)
OUTSIDE_IOR = 1.0


@dataclass(frozen=True)
class IdealDielectric(Material):
    """Smooth glass-like material.

    Attributes:
        albedo: Tint applied to both reflected and transmitted light
            (RGB, each component in [0, 1]).
        ior: Index of refraction. Common values:
            - Water: 1.33
            - Glass: 1.5
            - Diamond: 2.4
    """

    material_type = MaterialType.IDEAL_DIELECTRIC

    albedo: Color
    ior: float = 1.5

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", Color.from_sequence(self.albedo))
        object.__setattr__(self, "ior", float(self.ior))
        _check_reflectance("Albedo", self.albedo)
        if self.ior < 1.0:
            raise ValueError(
                f"Index of refraction = {self.ior} is less than 1.0. "
                "IOR must be >= 1.0 for physically meaningful materials."
            )

    def reflectance(self) -> Color:
        return self.albedo

    def parameter(self) -> float:
        return self.ior


@ti.func
def fresnel_reflectance(cos_i: ti.f32, cos_t: ti.f32, eta: ti.f32) -> ti.f32:
    """Compute the exact Fresnel reflectance for unpolarized light.

    Args:
        cos_i: Cosine of the incident angle (non-negative).
        cos_t: Cosine of the transmitted angle (non-negative).
        eta: Relative index n1 / n2 across the interface.

    Returns:
        The fraction of light reflected, in [0, 1].
    """
    r_parallel = (eta * cos_i - cos_t) / (eta * cos_i + cos_t)
    r_perpendicular = (cos_i - eta * cos_t) / (cos_i + eta * cos_t)
    return 0.5 * (r_parallel * r_parallel + r_perpendicular * r_perpendicular)


@ti.func
def eval_dielectric(albedo: vec3, normal: vec3, outgoing: vec3) -> vec3:
    """Evaluate the delta-stripped dielectric BRDF.

    Only meaningful for directions produced by sample_dielectric. Fresnel
    weights are not included; the sampler applies them.

    Args:
        albedo: The tint color (RGB).
        normal: The surface normal as given by the geometry.
        outgoing: The specular direction.

    Returns:
        albedo * DELTA / dot(normal, outgoing).
    """
    return albedo * DELTA / tm.dot(normal, outgoing)


@ti.func
def sample_dielectric(
    rng: ti.template(),
    stream: ti.i32,
    albedo: vec3,
    ior: ti.f32,
    incoming: vec3,
    normal: vec3,
):
    """Choose between specular reflection and refraction.

    Under total internal reflection the mirror direction is returned without
    consuming a draw. Otherwise one draw selects reflection with probability
    Fr. Both branches scale the BRDF value by eval_dielectric taken at the
    *mirror* direction; the refraction branch keeps that cosine on purpose.

    Args:
        rng: The caller's RandomStreams.
        stream: Index of the stream owned by the calling path.
        albedo: The tint color (RGB).
        ior: Index of refraction of the object.
        incoming: Direction the ray travels when it hits the surface.
        normal: The surface normal as given by the geometry (either side).

    Returns:
        A tuple of (direction, pdf, brdf, delta) where:
        - direction: The reflected or refracted direction.
        - pdf: DELTA, DELTA * Fr or DELTA * (1 - Fr).
        - brdf: The matching delta-stripped BRDF value.
        - delta: Always 1.
    """
    # Normal facing against the ray
    oriented_normal = normal
    if tm.dot(normal, incoming) >= 0.0:
        oriented_normal = -normal
    into = tm.dot(normal, oriented_normal) > 0.0

    # Relative index n1 / n2 along the ray
    eta = OUTSIDE_IOR / ior
    if not into:
        eta = ior / OUTSIDE_IOR

    # Snell's law
    cos_i = tm.dot(incoming, oriented_normal)
    cos2t = 1.0 - eta * eta * (1.0 - cos_i * cos_i)

    reflection_dir = reflect(incoming, oriented_normal)
    direction = reflection_dir
    pdf = DELTA
    brdf = eval_dielectric(albedo, normal, reflection_dir)

    # cos2t < 0 is total internal reflection: keep the mirror branch as is
    if cos2t >= 0.0:
        cos_t = ti.sqrt(cos2t)
        refraction_dir = incoming * eta - oriented_normal * (cos_i * eta + cos_t)

        fr = fresnel_reflectance(-cos_i, cos_t, eta)
        # Radiance is compressed or expanded by the squared index ratio
        ft = (1.0 - fr) * eta * eta

        if rng.next01(stream) < fr:
            pdf = DELTA * fr
            brdf = fr * brdf
        else:
            direction = refraction_dir
            pdf = DELTA * (1.0 - fr)
            brdf = ft * brdf

    return direction, pdf, brdf, 1
