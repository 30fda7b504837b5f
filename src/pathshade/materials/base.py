"""Material interface shared by all shading models.

Every material is an immutable value object created at scene-load time. It
answers two questions for a path vertex:

    eval(incoming, normal, outgoing)   BRDF value for the direction pair
    sample(rng, stream, incoming, normal)
                                       importance-sampled outgoing direction,
                                       its pdf and the BRDF value there

Direction convention: ``incoming`` is the direction the camera-side ray
travels when it reaches the surface (it points *into* the surface when the
ray arrives from the side the normal faces); ``outgoing`` points away from
the surface toward the next path vertex.

The methods here are host-side conveniences that launch a small kernel per
call. Inside kernels, use the Taichi functions of each material module, or a
``MaterialTable`` for scenes mixing several materials.

Delta distributions: perfectly specular materials report ``pdf = DELTA``
(scaled by the branch probability) and set the sample's ``delta`` flag. The
value is bookkeeping, not a density; only ``brdf_value / pdf`` is meaningful.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING, ClassVar, NamedTuple

import numpy as np

if TYPE_CHECKING:
    from pathshade.core.rng import RandomStreams

# Stand-in for a Dirac delta in pdfs and delta BRDFs. Cancels in brdf / pdf.
DELTA = 1.0


class MaterialType(IntEnum):
    """Type tag of each shading model, used for dispatch inside kernels."""

    LAMBERTIAN_SIMPLE = 0
    LAMBERTIAN_COSINE = 1
    NORMALIZED_PHONG = 2
    IDEAL_DIELECTRIC = 3
    EMISSIVE = 4


class MaterialContractError(RuntimeError):
    """Raised when a shading operation is invoked on a material that forbids it.

    Light sources only inject emission; evaluating or sampling them would feed
    a meaningless radiance value into the estimator.
    """


class Color(NamedTuple):
    """An RGB triple (reflectance, emission or BRDF value)."""

    r: float
    g: float
    b: float

    @classmethod
    def from_sequence(cls, values: Sequence[float]) -> Color:
        """Build a Color from any 3-element sequence.

        Raises:
            ValueError: If values does not have exactly three components.
        """
        if len(values) != 3:
            raise ValueError(f"A color needs 3 components, got {len(values)}")
        return cls(float(values[0]), float(values[1]), float(values[2]))


BLACK = Color(0.0, 0.0, 0.0)


class ScatterSample(NamedTuple):
    """Result of sampling a continuation direction.

    Attributes:
        direction: The sampled outgoing direction (unit vector).
        pdf: Sampling density, or DELTA scaled by the branch probability
            when delta is True.
        brdf_value: The BRDF value for the sampled direction.
        delta: True if the direction came from a Dirac distribution.
    """

    direction: tuple[float, float, float]
    pdf: float
    brdf_value: Color
    delta: bool


def _check_reflectance(name: str, color: Color) -> None:
    for i, component in enumerate(color):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"{name} component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


def _check_emission(color: Color) -> None:
    for i, component in enumerate(color):
        if component < 0.0:
            raise ValueError(f"Emission component {i} = {component} is negative")


@dataclass(frozen=True)
class Material:
    """Base class of all shading models.

    Subclasses set ``material_type`` and store their own parameters. The
    packed layout returned by ``pack()`` is what kernels receive:
    (albedo.r, albedo.g, albedo.b, parameter), where parameter is the Phong
    exponent, the index of refraction, or 0.
    """

    material_type: ClassVar[MaterialType]
    scatters: ClassVar[bool] = True

    def emission(self) -> Color:
        """Constant emitted radiance."""
        return BLACK

    def reflectance(self) -> Color:
        """Constant albedo-like parameter."""
        return BLACK

    def parameter(self) -> float:
        """Scalar shape parameter passed to kernels alongside the albedo."""
        return 0.0

    def pack(self) -> np.ndarray:
        """Kernel-side parameters as a float32 array of length 4."""
        r, g, b = self.reflectance()
        return np.array([r, g, b, self.parameter()], dtype=np.float32)

    def eval(
        self,
        incoming: Sequence[float],
        normal: Sequence[float],
        outgoing: Sequence[float],
    ) -> Color:
        """Evaluate the BRDF for one direction pair.

        Args:
            incoming: Direction the ray travels when it hits the surface.
            normal: Surface normal (normalized).
            outgoing: Direction toward the next path vertex (normalized).

        Returns:
            The BRDF value.
        """
        from pathshade.materials.shading import evaluate_batch

        result = evaluate_batch(self, incoming, normal, outgoing)
        return Color.from_sequence(result[0])

    def sample(
        self,
        rng: RandomStreams,
        stream: int,
        incoming: Sequence[float],
        normal: Sequence[float],
    ) -> ScatterSample:
        """Importance sample one outgoing direction.

        Args:
            rng: The caller's random streams.
            stream: Index of the stream to draw from.
            incoming: Direction the ray travels when it hits the surface.
            normal: Surface normal (normalized).

        Returns:
            The sampled direction with its pdf and BRDF value.
        """
        from pathshade.materials.shading import sample_batch

        batch = sample_batch(self, rng, incoming, normal, streams=[stream])
        return batch.row(0)
