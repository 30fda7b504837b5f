"""Normalized Phong (glossy) material implementation.

The lobe is centred on the mirror direction r = reflect(incoming, normal):

    f_r(wi, wo) = albedo * (n + 2) / (2 * pi) * max(0, dot(r, wo)) ** n

and is zero for outgoing directions below the surface. The (n + 2) / (2 * pi)
factor keeps the lobe energy-bounded for every exponent n >= 0; n = 0 reduces
to a uniform lobe of value albedo / pi.

Sampling draws directions around r with density

    pdf(wo) = (n + 1) / (2 * pi) * max(0, dot(r, wo)) ** n

which matches the lobe shape but not the horizon cut-off: a sampled direction
that ends up below the surface gets a positive pdf and a zero BRDF.
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from pathshade.core.vec import create_orthonormal_basis, reflect, vec3
from pathshade.materials.base import (
    Color,
    Material,
    MaterialType,
    _check_reflectance,
)


@dataclass(frozen=True)
class NormalizedPhong(Material):
    """Glossy reflector with a normalized Phong lobe.

    Attributes:
        albedo: The specular reflectance color (RGB, each component in [0, 1]).
        exponent: The Phong exponent n >= 0. Larger values give a tighter lobe.
    """

    material_type = MaterialType.NORMALIZED_PHONG

    albedo: Color
    exponent: float

    def __post_init__(self) -> None:
        object.__setattr__(self, "albedo", Color.from_sequence(self.albedo))
        object.__setattr__(self, "exponent", float(self.exponent))
        _check_reflectance("Albedo", self.albedo)
        if self.exponent < 0.0:
            raise ValueError(f"Phong exponent = {self.exponent} must be non-negative")

    def reflectance(self) -> Color:
        return self.albedo

    def parameter(self) -> float:
        return self.exponent


@ti.func
def eval_phong(
    albedo: vec3,
    exponent: ti.f32,
    incoming: vec3,
    normal: vec3,
    outgoing: vec3,
) -> vec3:
    """Evaluate the normalized Phong BRDF.

    Args:
        albedo: The specular reflectance color (RGB).
        exponent: The Phong exponent n.
        incoming: Direction the ray travels when it hits the surface.
        normal: The surface normal (should be normalized).
        outgoing: Direction toward the next path vertex (should be normalized).

    Returns:
        The BRDF value, or zero if outgoing points below the surface.
    """
    result = vec3(0.0, 0.0, 0.0)
    # Hard cut-off below the surface
    if tm.dot(normal, outgoing) >= 0.0:
        reflection_dir = reflect(incoming, normal)
        cos_alpha = tm.max(0.0, tm.dot(reflection_dir, outgoing))
        result = albedo * (exponent + 2.0) / (2.0 * tm.pi) * cos_alpha**exponent
    return result


@ti.func
def sample_phong(
    rng: ti.template(),
    stream: ti.i32,
    albedo: vec3,
    exponent: ti.f32,
    incoming: vec3,
    normal: vec3,
):
    """Sample a direction from the Phong lobe around the mirror direction.

    With u1, u2 uniform: phi = 2 * pi * u1, theta = acos(u2 ** (1 / (n + 1))),
    theta measured from the mirror direction.

    Args:
        rng: The caller's RandomStreams.
        stream: Index of the stream owned by the calling path.
        albedo: The specular reflectance color (RGB).
        exponent: The Phong exponent n.
        incoming: Direction the ray travels when it hits the surface.
        normal: The surface normal (should be normalized).

    Returns:
        A tuple of (direction, pdf, brdf, delta) where:
        - direction: The sampled direction (unit).
        - pdf: (n + 1) / (2 * pi) * cos_alpha ** n.
        - brdf: eval_phong for the sampled direction.
        - delta: Always 0.
    """
    reflection_dir = reflect(incoming, normal)
    tangent, binormal = create_orthonormal_basis(reflection_dir)

    u1 = rng.next01(stream)
    u2 = rng.next01(stream)
    phi = u1 * 2.0 * tm.pi
    theta = ti.acos(u2 ** (1.0 / (exponent + 1.0)))

    direction = (
        tangent * ti.sin(theta) * ti.cos(phi)
        + reflection_dir * ti.cos(theta)
        + binormal * ti.sin(theta) * ti.sin(phi)
    )

    cos_alpha = tm.max(0.0, tm.dot(reflection_dir, direction))
    pdf = (exponent + 1.0) / (2.0 * tm.pi) * cos_alpha**exponent
    brdf = eval_phong(albedo, exponent, incoming, normal, direction)
    return direction, pdf, brdf, 0
