"""Emissive (light source) material.

A light source only injects radiance into the paths that reach it. Its
reflectance is zero and it has no BRDF: the integrator must check for
emitters before shading and never ask one to evaluate or sample a bounce.
Doing so is a programming error that would silently corrupt the image, so it
fails loudly instead.

Example:
    >>> from pathshade.materials.emissive import Emissive
    >>> light = Emissive(radiance=(15.0, 15.0, 15.0))
    >>> light.emission()
    Color(r=15.0, g=15.0, b=15.0)
"""

from dataclasses import dataclass

from pathshade.materials.base import (
    Color,
    Material,
    MaterialContractError,
    MaterialType,
    _check_emission,
)


@dataclass(frozen=True)
class Emissive(Material):
    """Pure emitter.

    Attributes:
        radiance: The emitted radiance (RGB). Components may exceed 1.0 for
            bright sources but must be non-negative.
    """

    material_type = MaterialType.EMISSIVE
    scatters = False

    radiance: Color

    def __post_init__(self) -> None:
        object.__setattr__(self, "radiance", Color.from_sequence(self.radiance))
        _check_emission(self.radiance)

    def emission(self) -> Color:
        return self.radiance

    def eval(self, incoming, normal, outgoing) -> Color:
        """Light sources have no BRDF.

        Raises:
            MaterialContractError: Always.
        """
        raise MaterialContractError("eval() called on an emissive material")

    def sample(self, rng, stream, incoming, normal):
        """Light sources do not scatter.

        Raises:
            MaterialContractError: Always.
        """
        raise MaterialContractError("sample() called on an emissive material")
