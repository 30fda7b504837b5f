"""Material dispatch and host-side batch shading.

``eval_material`` and ``sample_material`` switch on a material type tag and
forward to the per-material Taichi functions. They are what kernels call when
the material is only known at run time (see ``MaterialTable``), and what the
host-side batch entry points below launch.

Emitters are not dispatched: both functions return NaN for them (never a
usable value) and trip an assertion when Taichi runs with ``debug=True``.
They record nothing else: a kernel calling them directly with an emissive tag
only sees the NaN. Go through ``MaterialTable.eval`` / ``MaterialTable.sample``
to have such calls counted and reported by ``raise_on_fault()``. The host
entry points refuse emitters before launching anything.

Example:
    >>> import numpy as np
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathshade.core.rng import RandomStreams
    >>> from pathshade.materials import LambertianCosine, sample_batch
    >>> rng = RandomStreams(count=1000, seed=1)
    >>> batch = sample_batch(
    ...     LambertianCosine((0.8, 0.8, 0.8)), rng,
    ...     incoming=(0.0, -1.0, 0.0), normals=np.tile([0.0, 1.0, 0.0], (1000, 1)),
    ... )
"""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import taichi as ti
import taichi.math as tm

from pathshade.core.rng import RandomStreams
from pathshade.core.vec import vec3
from pathshade.materials.base import (
    Color,
    Material,
    MaterialContractError,
    MaterialType,
    ScatterSample,
)
from pathshade.materials.dielectric import eval_dielectric, sample_dielectric
from pathshade.materials.lambertian import (
    eval_lambertian,
    sample_lambertian_cosine,
    sample_lambertian_simple,
)
from pathshade.materials.phong import eval_phong, sample_phong

# Most uniform draws a single sample takes from its stream (diffuse and Phong)
MAX_DRAWS_PER_SAMPLE = 2

# =============================================================================
# Kernel-side dispatch
# =============================================================================


@ti.func
def eval_material(
    material_type: ti.i32,
    albedo: vec3,
    parameter: ti.f32,
    incoming: vec3,
    normal: vec3,
    outgoing: vec3,
) -> vec3:
    """Evaluate the BRDF of a material given by its type tag.

    Args:
        material_type: The MaterialType tag.
        albedo: The material's reflectance (RGB).
        parameter: Phong exponent or index of refraction (ignored otherwise).
        incoming: Direction the ray travels when it hits the surface.
        normal: The surface normal (normalized).
        outgoing: Direction toward the next path vertex (normalized).

    Returns:
        The BRDF value, or NaN for emitters and unknown tags.
    """
    result = vec3(tm.nan, tm.nan, tm.nan)

    if material_type == int(MaterialType.LAMBERTIAN_SIMPLE) or material_type == int(
        MaterialType.LAMBERTIAN_COSINE
    ):
        result = eval_lambertian(albedo)

    elif material_type == int(MaterialType.NORMALIZED_PHONG):
        result = eval_phong(albedo, parameter, incoming, normal, outgoing)

    elif material_type == int(MaterialType.IDEAL_DIELECTRIC):
        result = eval_dielectric(albedo, normal, outgoing)

    else:
        assert material_type != int(MaterialType.EMISSIVE), "eval on an emissive material"

    return result


@ti.func
def sample_material(
    rng: ti.template(),
    stream: ti.i32,
    material_type: ti.i32,
    albedo: vec3,
    parameter: ti.f32,
    incoming: vec3,
    normal: vec3,
):
    """Importance sample a direction for a material given by its type tag.

    Args:
        rng: The caller's RandomStreams.
        stream: Index of the stream owned by the calling path.
        material_type: The MaterialType tag.
        albedo: The material's reflectance (RGB).
        parameter: Phong exponent or index of refraction (ignored otherwise).
        incoming: Direction the ray travels when it hits the surface.
        normal: The surface normal (normalized).

    Returns:
        A tuple of (direction, pdf, brdf, delta). All NaN for emitters and
        unknown tags.
    """
    direction = vec3(tm.nan, tm.nan, tm.nan)
    pdf = tm.nan
    brdf = vec3(tm.nan, tm.nan, tm.nan)
    delta = 0

    if material_type == int(MaterialType.LAMBERTIAN_SIMPLE):
        direction, pdf, brdf, delta = sample_lambertian_simple(rng, stream, albedo, normal)

    elif material_type == int(MaterialType.LAMBERTIAN_COSINE):
        direction, pdf, brdf, delta = sample_lambertian_cosine(rng, stream, albedo, normal)

    elif material_type == int(MaterialType.NORMALIZED_PHONG):
        direction, pdf, brdf, delta = sample_phong(
            rng, stream, albedo, parameter, incoming, normal
        )

    elif material_type == int(MaterialType.IDEAL_DIELECTRIC):
        direction, pdf, brdf, delta = sample_dielectric(
            rng, stream, albedo, parameter, incoming, normal
        )

    else:
        assert material_type != int(MaterialType.EMISSIVE), "sample on an emissive material"

    return direction, pdf, brdf, delta


# =============================================================================
# Host-side batch shading
# =============================================================================


@dataclass
class ScatterBatch:
    """Samples drawn for a batch of rows.

    Attributes:
        directions: Sampled directions, shape (N, 3).
        pdfs: Sampling pdfs (or DELTA-scaled branch probabilities), shape (N,).
        brdf_values: BRDF values, shape (N, 3).
        delta: True where the sample came from a Dirac distribution, shape (N,).
    """

    directions: np.ndarray
    pdfs: np.ndarray
    brdf_values: np.ndarray
    delta: np.ndarray

    def __len__(self) -> int:
        return len(self.pdfs)

    def row(self, i: int) -> ScatterSample:
        """The i-th sample as a ScatterSample."""
        d = self.directions[i]
        return ScatterSample(
            direction=(float(d[0]), float(d[1]), float(d[2])),
            pdf=float(self.pdfs[i]),
            brdf_value=Color.from_sequence(self.brdf_values[i]),
            delta=bool(self.delta[i]),
        )


def _as_rows(*vectors, rows: int | None = None) -> list[np.ndarray]:
    """Convert direction arguments to float32 arrays of a common shape (N, 3).

    A single vector, of shape (3,) or (1, 3), is repeated for every row. N
    comes from the (N, 3) arguments, or from ``rows`` when given, and may be 0.

    Raises:
        ValueError: If an argument is not (3,), (1, 3) or (N, 3), or row
            counts differ.
    """
    arrays = [np.asarray(v, dtype=np.float32) for v in vectors]
    count = rows
    for a in arrays:
        if a.shape == (3,) or a.shape == (1, 3):
            continue
        if a.ndim != 2 or a.shape[1] != 3:
            raise ValueError(f"Expected a (3,) or (N, 3) array of vectors, got {a.shape}")
        if count is not None and a.shape[0] != count:
            raise ValueError(f"Row count mismatch: {a.shape[0]} vs {count}")
        count = a.shape[0]
    if count is None:
        count = 1
    return [np.ascontiguousarray(np.broadcast_to(a, (count, 3))) for a in arrays]


def _as_streams(streams: Sequence[int] | None, count: int, rng: RandomStreams) -> np.ndarray:
    """Validate the per-row stream assignment (default: row i uses stream i)."""
    if streams is None:
        streams = np.arange(count)
    result = np.ascontiguousarray(streams, dtype=np.int32)
    if result.shape != (count,):
        raise ValueError(f"Expected {count} stream indices, got shape {result.shape}")
    if count > 0 and (result.min() < 0 or result.max() >= rng.count):
        raise ValueError(f"Stream indices must lie in [0, {rng.count})")
    if len(np.unique(result)) != count:
        raise ValueError("Each row needs its own stream; stream indices must be distinct")
    return result


def _require_scattering(material: Material) -> None:
    if not material.scatters:
        raise MaterialContractError(
            f"{type(material).__name__} does not scatter light and cannot be shaded"
        )


@ti.kernel
def _eval_kernel(
    material_type: ti.i32,
    params: ti.types.ndarray(),
    incoming: ti.types.ndarray(),
    normals: ti.types.ndarray(),
    outgoing: ti.types.ndarray(),
    result: ti.types.ndarray(),
):
    for i in range(incoming.shape[0]):
        albedo = vec3(params[0], params[1], params[2])
        wi = vec3(incoming[i, 0], incoming[i, 1], incoming[i, 2])
        n = vec3(normals[i, 0], normals[i, 1], normals[i, 2])
        wo = vec3(outgoing[i, 0], outgoing[i, 1], outgoing[i, 2])
        f = eval_material(material_type, albedo, params[3], wi, n, wo)
        for c in ti.static(range(3)):
            result[i, c] = f[c]


@ti.kernel
def _sample_kernel(
    rng: ti.template(),
    material_type: ti.i32,
    params: ti.types.ndarray(),
    streams: ti.types.ndarray(),
    incoming: ti.types.ndarray(),
    normals: ti.types.ndarray(),
    directions: ti.types.ndarray(),
    pdfs: ti.types.ndarray(),
    brdf_values: ti.types.ndarray(),
    delta: ti.types.ndarray(),
):
    for i in range(incoming.shape[0]):
        albedo = vec3(params[0], params[1], params[2])
        wi = vec3(incoming[i, 0], incoming[i, 1], incoming[i, 2])
        n = vec3(normals[i, 0], normals[i, 1], normals[i, 2])
        direction, pdf, brdf, is_delta = sample_material(
            rng, streams[i], material_type, albedo, params[3], wi, n
        )
        for c in ti.static(range(3)):
            directions[i, c] = direction[c]
            brdf_values[i, c] = brdf[c]
        pdfs[i] = pdf
        delta[i] = is_delta


def evaluate_batch(
    material: Material,
    incoming,
    normals,
    outgoing,
) -> np.ndarray:
    """Evaluate a material's BRDF for many direction pairs.

    Args:
        material: The material to evaluate.
        incoming: Incoming directions, shape (3,) or (N, 3).
        normals: Surface normals, shape (3,) or (N, 3).
        outgoing: Outgoing directions, shape (3,) or (N, 3).

    Returns:
        BRDF values, shape (N, 3).

    Raises:
        MaterialContractError: If the material is an emitter.
        ValueError: If the array shapes are inconsistent.
    """
    _require_scattering(material)
    wi, n, wo = _as_rows(incoming, normals, outgoing)
    result = np.zeros_like(wi)
    if len(result) == 0:
        return result
    _eval_kernel(int(material.material_type), material.pack(), wi, n, wo, result)
    return result


def sample_batch(
    material: Material,
    rng: RandomStreams,
    incoming,
    normals,
    streams: Sequence[int] | None = None,
) -> ScatterBatch:
    """Importance sample one outgoing direction per row.

    Args:
        material: The material to sample.
        rng: The caller's random streams.
        incoming: Incoming directions, shape (3,) or (N, 3).
        normals: Surface normals, shape (3,) or (N, 3).
        streams: Stream index per row, distinct. Defaults to row i using
            stream i. Streams without enough unused draws are refilled
            before the launch (see RandomStreams.reserve).

    Returns:
        The sampled directions, pdfs, BRDF values and delta flags.

    Raises:
        MaterialContractError: If the material is an emitter.
        ValueError: If the array shapes or stream indices are invalid.
    """
    _require_scattering(material)
    # With explicit streams a single direction pair is shared by all of them
    rows = None if streams is None else len(streams)
    wi, n = _as_rows(incoming, normals, rows=rows)
    count = wi.shape[0]
    stream_ids = _as_streams(streams, count, rng)

    directions = np.zeros((count, 3), dtype=np.float32)
    pdfs = np.zeros(count, dtype=np.float32)
    brdf_values = np.zeros((count, 3), dtype=np.float32)
    delta = np.zeros(count, dtype=np.int32)
    if count == 0:
        return ScatterBatch(directions, pdfs, brdf_values, delta.astype(bool))

    rng.reserve(stream_ids, MAX_DRAWS_PER_SAMPLE)
    _sample_kernel(
        rng,
        int(material.material_type),
        material.pack(),
        stream_ids,
        wi,
        n,
        directions,
        pdfs,
        brdf_values,
        delta,
    )
    return ScatterBatch(directions, pdfs, brdf_values, delta.astype(bool))
