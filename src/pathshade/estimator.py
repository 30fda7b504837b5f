"""Monte Carlo directional albedo (white furnace) estimates.

The directional albedo of a material for a given incoming direction is

    a(wi) = integral over the hemisphere of f_r(wi, wo) * max(0, cos(theta_o)) dwo

An energy-conserving material has a(wi) <= reflectance for every wi. The
estimate below uses the material's own importance sampling, so it is also a
check that sample() reports pdfs consistent with the directions it draws.
"""

from collections.abc import Sequence

import numpy as np

from pathshade.core.rng import RandomStreams
from pathshade.materials.base import Color, Material
from pathshade.materials.shading import sample_batch


def estimate_albedo(
    material: Material,
    rng: RandomStreams,
    incoming: Sequence[float],
    normal: Sequence[float],
    samples: int | None = None,
) -> Color:
    """Estimate the directional albedo of a material.

    Each sample contributes brdf_value * max(0, dot(normal, direction)) / pdf;
    samples with a non-positive pdf contribute zero.

    Args:
        material: The material to integrate.
        rng: Random streams; one stream is used per sample.
        incoming: Direction the ray travels when it hits the surface.
        normal: Surface normal (normalized).
        samples: Number of samples. Defaults to one per stream.

    Returns:
        The estimated albedo per RGB channel.

    Raises:
        ValueError: If more samples are requested than there are streams.
    """
    if samples is None:
        samples = rng.count
    if not 0 < samples <= rng.count:
        raise ValueError(f"Samples must lie in [1, {rng.count}], got {samples}")

    normal_row = np.asarray(normal, dtype=np.float32)
    batch = sample_batch(material, rng, incoming, normal_row, streams=range(samples))

    cos_theta = np.maximum(batch.directions @ normal_row, 0.0)
    weights = np.zeros(samples, dtype=np.float64)
    valid = batch.pdfs > 0.0
    weights[valid] = cos_theta[valid] / batch.pdfs[valid]
    estimate = (batch.brdf_values * weights[:, None]).mean(axis=0)
    return Color.from_sequence(estimate)
