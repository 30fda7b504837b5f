"""Vector utilities shared by the shading models.

All helpers are Taichi functions and must be called from inside a kernel or
another Taichi function. Directions use ``taichi.math.vec3``; colors reuse the
same type, one component per RGB channel.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathshade.core.vec import create_orthonormal_basis, reflect, vec3
    >>> # Use within a Taichi kernel:
    >>> # mirrored = reflect(direction, normal)
    >>> # tangent, binormal = create_orthonormal_basis(normal)
"""

import taichi as ti
import taichi.math as tm

# Type alias for 3D vectors (and RGB colors)
vec3 = tm.vec3


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return tm.length(v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v.
    """
    return tm.normalize(v)


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product of two vectors."""
    return tm.cross(a, b)


@ti.func
def reflect(v: vec3, normal: vec3) -> vec3:
    """Mirror a direction about a normal.

    Computes ``v - 2 * dot(v, normal) * normal``. A ray travelling into the
    surface (``dot(v, normal) < 0``) comes out travelling away from it.

    Args:
        v: The direction to mirror.
        normal: The mirror normal (should be normalized).

    Returns:
        The mirrored direction.
    """
    return v - 2.0 * tm.dot(v, normal) * normal


@ti.func
def create_orthonormal_basis(normal: vec3):
    """Build a tangent frame around a unit vector.

    The frame is right-handed: ``cross(tangent, binormal) == normal``.

    Args:
        normal: The frame's z-axis (should be normalized).

    Returns:
        A tuple (tangent, binormal) completing the orthonormal basis.
    """
    # Choose a helper axis not parallel to normal
    a = vec3(1.0, 0.0, 0.0)
    if ti.abs(normal.x) > 0.9:
        a = vec3(0.0, 1.0, 0.0)
    tangent = normalize(cross(a, normal))
    binormal = cross(normal, tangent)
    return tangent, binormal


@ti.func
def local_to_world(local_dir: vec3, tangent: vec3, binormal: vec3, normal: vec3) -> vec3:
    """Transform a direction from a local z-up frame to world coordinates.

    Args:
        local_dir: Direction in local coordinates (z along normal).
        tangent: The x-axis of the local frame in world coordinates.
        binormal: The y-axis of the local frame in world coordinates.
        normal: The z-axis of the local frame in world coordinates.

    Returns:
        The direction in world coordinates.
    """
    return local_dir.x * tangent + local_dir.y * binormal + local_dir.z * normal
