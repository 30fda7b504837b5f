"""Scene-level material table with type-tag dispatch.

The table assigns every registered material a unified ``material_id`` and
mirrors its parameters into Taichi fields, so a path tracer can shade any hit
with a single switch on the material's type tag instead of an indirect call.

The table maintains:
- A unified material_id space across all material types
- Per-id type tag, albedo, emission and shape parameter (Phong exponent or IOR)
- A fault counter recording kernel-side attempts to shade an emitter

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathshade.materials import Emissive, IdealDielectric, LambertianCosine
    >>> from pathshade.scene import MaterialTable
    >>> table = MaterialTable()
    >>> white = table.add(LambertianCosine((0.73, 0.73, 0.73)))
    >>> glass = table.add(IdealDielectric((1.0, 1.0, 1.0), ior=1.5))
    >>> light = table.add(Emissive((15.0, 15.0, 15.0)))
    >>> # Use within a Taichi kernel:
    >>> # if table.is_emissive(material_id) == 0:
    >>> #     direction, pdf, brdf, delta = table.sample(rng, stream, material_id, wi, n)
"""

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import taichi as ti

from pathshade.core.rng import RandomStreams
from pathshade.core.vec import vec3
from pathshade.materials.base import Material, MaterialContractError, MaterialType
from pathshade.materials.shading import (
    MAX_DRAWS_PER_SAMPLE,
    ScatterBatch,
    _as_rows,
    _as_streams,
    eval_material,
    sample_material,
)

# Maximum number of materials a table holds
MAX_MATERIALS = 1024


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type tag used for dispatch.
        material: The material object as registered.
    """

    material_id: int
    material_type: MaterialType
    material: Material


@ti.data_oriented
class MaterialTable:
    """Registry of the materials of one scene.

    Attributes:
        capacity: Maximum number of materials.
        materials: MaterialInfo for every registered material, by id.

    Example:
        >>> table = MaterialTable()
        >>> red = table.add(LambertianCosine((0.65, 0.05, 0.05)))
        >>> gloss = table.add(NormalizedPhong((0.9, 0.9, 0.9), exponent=50.0))
        >>> table.get_material_type(gloss)
        <MaterialType.NORMALIZED_PHONG: 2>
    """

    def __init__(self, capacity: int = MAX_MATERIALS) -> None:
        """Allocate an empty table.

        Args:
            capacity: Maximum number of materials.

        Raises:
            ValueError: If capacity is not positive.
        """
        if capacity <= 0:
            raise ValueError(f"Capacity must be positive, got {capacity}")

        self.capacity = capacity
        self.materials: list[MaterialInfo] = []

        self._types = ti.field(dtype=ti.i32, shape=capacity)
        self._albedo = ti.Vector.field(3, dtype=ti.f32, shape=capacity)
        self._emission = ti.Vector.field(3, dtype=ti.f32, shape=capacity)
        self._parameter = ti.field(dtype=ti.f32, shape=capacity)
        self._faults = ti.field(dtype=ti.i32, shape=())

    # =========================================================================
    # Registration
    # =========================================================================

    def add(self, material: Material) -> int:
        """Register a material.

        Args:
            material: Any material object. Parameters were validated when
                the material was constructed.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the table is full.
        """
        material_id = len(self.materials)
        if material_id >= self.capacity:
            raise RuntimeError(f"Maximum number of materials ({self.capacity}) exceeded")

        self._types[material_id] = int(material.material_type)
        self._albedo[material_id] = list(material.reflectance())
        self._emission[material_id] = list(material.emission())
        self._parameter[material_id] = material.parameter()

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=material.material_type,
                material=material,
            )
        )
        return material_id

    def clear(self) -> None:
        """Forget every material and reset the fault counter."""
        self.materials.clear()
        self._types.fill(0)
        self._albedo.fill(0.0)
        self._emission.fill(0.0)
        self._parameter.fill(0.0)
        self.reset_faults()

    def get_material_count(self) -> int:
        """Number of registered materials."""
        return len(self.materials)

    def get_material(self, material_id: int) -> Material:
        """The material registered under an ID.

        Raises:
            IndexError: If no material has that ID.
        """
        return self._info(material_id).material

    def get_material_type(self, material_id: int) -> MaterialType:
        """The type tag of the material registered under an ID.

        Raises:
            IndexError: If no material has that ID.
        """
        return self._info(material_id).material_type

    def _info(self, material_id: int) -> MaterialInfo:
        if not 0 <= material_id < len(self.materials):
            raise IndexError(
                f"Material ID {material_id} is out of range [0, {len(self.materials)})"
            )
        return self.materials[material_id]

    # =========================================================================
    # Contract violations recorded inside kernels
    # =========================================================================

    def fault_count(self) -> int:
        """Number of kernel-side attempts to evaluate or sample an emitter."""
        return int(self._faults[None])

    def reset_faults(self) -> None:
        """Reset the fault counter to zero."""
        self._faults[None] = 0

    def raise_on_fault(self) -> None:
        """Raise if any kernel tried to shade an emitter since the last reset.

        Raises:
            MaterialContractError: If the fault counter is non-zero.
        """
        faults = self.fault_count()
        if faults > 0:
            raise MaterialContractError(
                f"{faults} shading call(s) were made on emissive materials"
            )

    # =========================================================================
    # Kernel-side access
    # =========================================================================

    @ti.func
    def material_type(self, material_id: ti.i32) -> ti.i32:
        """The type tag of a material (see MaterialType)."""
        return self._types[material_id]

    @ti.func
    def is_emissive(self, material_id: ti.i32) -> ti.i32:
        """1 if the material is a light source, 0 otherwise."""
        return self._types[material_id] == int(MaterialType.EMISSIVE)

    @ti.func
    def emission(self, material_id: ti.i32) -> vec3:
        """The emitted radiance of a material (zero for non-emitters)."""
        return self._emission[material_id]

    @ti.func
    def reflectance(self, material_id: ti.i32) -> vec3:
        """The reflectance of a material (zero for emitters)."""
        return self._albedo[material_id]

    @ti.func
    def eval(
        self,
        material_id: ti.i32,
        incoming: vec3,
        normal: vec3,
        outgoing: vec3,
    ) -> vec3:
        """Evaluate the BRDF of a registered material.

        Evaluating an emitter returns NaN and increments the fault counter.

        Args:
            material_id: The unified material ID.
            incoming: Direction the ray travels when it hits the surface.
            normal: The surface normal (normalized).
            outgoing: Direction toward the next path vertex (normalized).

        Returns:
            The BRDF value.
        """
        material_type = self._types[material_id]
        if material_type == int(MaterialType.EMISSIVE):
            ti.atomic_add(self._faults[None], 1)
        return eval_material(
            material_type,
            self._albedo[material_id],
            self._parameter[material_id],
            incoming,
            normal,
            outgoing,
        )

    @ti.func
    def sample(
        self,
        rng: ti.template(),
        stream: ti.i32,
        material_id: ti.i32,
        incoming: vec3,
        normal: vec3,
    ):
        """Importance sample a direction for a registered material.

        Sampling an emitter returns NaN and increments the fault counter.

        Args:
            rng: The caller's RandomStreams.
            stream: Index of the stream owned by the calling path.
            material_id: The unified material ID.
            incoming: Direction the ray travels when it hits the surface.
            normal: The surface normal (normalized).

        Returns:
            A tuple of (direction, pdf, brdf, delta).
        """
        material_type = self._types[material_id]
        if material_type == int(MaterialType.EMISSIVE):
            ti.atomic_add(self._faults[None], 1)
        return sample_material(
            rng,
            stream,
            material_type,
            self._albedo[material_id],
            self._parameter[material_id],
            incoming,
            normal,
        )

    # =========================================================================
    # Host-side batch shading
    # =========================================================================

    def _check_ids(self, material_ids) -> np.ndarray:
        ids = np.ascontiguousarray(material_ids, dtype=np.int32)
        if ids.ndim != 1:
            raise ValueError(f"Expected a 1-D array of material IDs, got shape {ids.shape}")
        for material_id in np.unique(ids):
            if not self.get_material(int(material_id)).scatters:
                raise MaterialContractError(
                    f"Material {int(material_id)} is emissive and cannot be shaded"
                )
        return ids

    @ti.kernel
    def _eval_kernel(
        self,
        ids: ti.types.ndarray(),
        incoming: ti.types.ndarray(),
        normals: ti.types.ndarray(),
        outgoing: ti.types.ndarray(),
        result: ti.types.ndarray(),
    ):
        for i in range(ids.shape[0]):
            wi = vec3(incoming[i, 0], incoming[i, 1], incoming[i, 2])
            n = vec3(normals[i, 0], normals[i, 1], normals[i, 2])
            wo = vec3(outgoing[i, 0], outgoing[i, 1], outgoing[i, 2])
            f = self.eval(ids[i], wi, n, wo)
            for c in ti.static(range(3)):
                result[i, c] = f[c]

    @ti.kernel
    def _sample_kernel(
        self,
        rng: ti.template(),
        ids: ti.types.ndarray(),
        streams: ti.types.ndarray(),
        incoming: ti.types.ndarray(),
        normals: ti.types.ndarray(),
        directions: ti.types.ndarray(),
        pdfs: ti.types.ndarray(),
        brdf_values: ti.types.ndarray(),
        delta: ti.types.ndarray(),
    ):
        for i in range(ids.shape[0]):
            wi = vec3(incoming[i, 0], incoming[i, 1], incoming[i, 2])
            n = vec3(normals[i, 0], normals[i, 1], normals[i, 2])
            direction, pdf, brdf, is_delta = self.sample(rng, streams[i], ids[i], wi, n)
            for c in ti.static(range(3)):
                directions[i, c] = direction[c]
                brdf_values[i, c] = brdf[c]
            pdfs[i] = pdf
            delta[i] = is_delta

    def eval_batch(self, material_ids, incoming, normals, outgoing) -> np.ndarray:
        """Evaluate the BRDFs of registered materials for many rows.

        Args:
            material_ids: Material ID per row, shape (N,).
            incoming: Incoming directions, shape (3,) or (N, 3).
            normals: Surface normals, shape (3,) or (N, 3).
            outgoing: Outgoing directions, shape (3,) or (N, 3).

        Returns:
            BRDF values, shape (N, 3).

        Raises:
            IndexError: If an ID is not registered.
            MaterialContractError: If an ID refers to an emitter.
            ValueError: If the array shapes are inconsistent.
        """
        ids = self._check_ids(material_ids)
        wi, n, wo = _as_rows(incoming, normals, outgoing, rows=len(ids))
        result = np.zeros_like(wi)
        if len(ids) == 0:
            return result
        self._eval_kernel(ids, wi, n, wo, result)
        return result

    def sample_batch(
        self,
        rng: RandomStreams,
        material_ids,
        incoming,
        normals,
        streams: Sequence[int] | None = None,
    ) -> ScatterBatch:
        """Importance sample one direction per row for registered materials.

        Args:
            rng: The caller's random streams.
            material_ids: Material ID per row, shape (N,).
            incoming: Incoming directions, shape (3,) or (N, 3).
            normals: Surface normals, shape (3,) or (N, 3).
            streams: Stream index per row, distinct. Defaults to row i using
                stream i. Streams without enough unused draws are refilled
                before the launch.

        Returns:
            The sampled directions, pdfs, BRDF values and delta flags.

        Raises:
            IndexError: If an ID is not registered.
            MaterialContractError: If an ID refers to an emitter.
            ValueError: If the array shapes or stream indices are invalid.
        """
        ids = self._check_ids(material_ids)
        count = len(ids)
        wi, n = _as_rows(incoming, normals, rows=count)
        stream_ids = _as_streams(streams, count, rng)

        directions = np.zeros((count, 3), dtype=np.float32)
        pdfs = np.zeros(count, dtype=np.float32)
        brdf_values = np.zeros((count, 3), dtype=np.float32)
        delta = np.zeros(count, dtype=np.int32)
        if count == 0:
            return ScatterBatch(directions, pdfs, brdf_values, delta.astype(bool))

        rng.reserve(stream_ids, MAX_DRAWS_PER_SAMPLE)
        self._sample_kernel(rng, ids, stream_ids, wi, n, directions, pdfs, brdf_values, delta)
        return ScatterBatch(directions, pdfs, brdf_values, delta.astype(bool))
