"""Hemisphere sampling routines for Monte Carlo shading.

Both samplers take the caller's random streams plus the index of the stream
owned by the current path, and an orthonormal frame (normal, tangent,
binormal) built with ``create_orthonormal_basis``. Each call consumes exactly
two draws from the stream.

Densities (with theta the angle to the normal):
    uniform:          pdf = 1 / (2 * pi)
    cosine-weighted:  pdf = cos(theta) / pi
"""

import taichi as ti
import taichi.math as tm

from pathshade.core.vec import local_to_world, vec3


@ti.func
def uniform_hemisphere_surface(
    rng: ti.template(),
    stream: ti.i32,
    normal: vec3,
    tangent: vec3,
    binormal: vec3,
) -> vec3:
    """Draw a direction uniformly distributed over the hemisphere of normal.

    Args:
        rng: The caller's RandomStreams.
        stream: Index of the stream owned by the calling path.
        normal: The hemisphere axis (should be normalized).
        tangent: First tangent of the frame around normal.
        binormal: Second tangent of the frame around normal.

    Returns:
        A unit direction with non-negative cosine to normal.
    """
    u1 = rng.next01(stream)
    u2 = rng.next01(stream)
    # z is uniform in [0, 1) for a uniform hemisphere (Archimedes)
    z = u1
    r = ti.sqrt(tm.max(0.0, 1.0 - z * z))
    phi = 2.0 * tm.pi * u2
    local_dir = vec3(r * ti.cos(phi), r * ti.sin(phi), z)
    return local_to_world(local_dir, tangent, binormal, normal)


@ti.func
def cosine_weighted_hemisphere_surface(
    rng: ti.template(),
    stream: ti.i32,
    normal: vec3,
    tangent: vec3,
    binormal: vec3,
) -> vec3:
    """Draw a direction with density proportional to cos(theta).

    Uses Malley's method: a uniform point on the unit disk projected up onto
    the hemisphere.

    Args:
        rng: The caller's RandomStreams.
        stream: Index of the stream owned by the calling path.
        normal: The hemisphere axis (should be normalized).
        tangent: First tangent of the frame around normal.
        binormal: Second tangent of the frame around normal.

    Returns:
        A unit direction with strictly positive cosine to normal.
    """
    u1 = rng.next01(stream)
    u2 = rng.next01(stream)
    phi = 2.0 * tm.pi * u1
    r = ti.sqrt(u2)
    z = ti.sqrt(tm.max(0.0, 1.0 - u2))
    local_dir = vec3(r * ti.cos(phi), r * ti.sin(phi), z)
    return local_to_world(local_dir, tangent, binormal, normal)
