#!/usr/bin/env python3
"""White furnace test of the shading models.

This script estimates the directional albedo of each scattering material for
a range of incoming angles and prints it next to the material's reflectance.
A material conserves energy when no estimate exceeds its reflectance (up to
Monte Carlo noise).

Usage:
    python examples/furnace_test.py [options]

Options:
    --samples SAMPLES   Samples per estimate (default: 100000)
    --angles ANGLES     Comma-separated incidence angles in degrees
                        (default: 0,30,60,85)
    --seed SEED         Seed of the random streams (default: 0)
    --quiet             Only print the summary line

Example:
    python examples/furnace_test.py --samples 20000 --angles 0,45
"""

from __future__ import annotations

import argparse
import math
import sys
import time

import taichi as ti

# Absolute slack on top of the reflectance before an estimate counts as a gain
TOLERANCE = 0.01


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Estimate the directional albedo of every material.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100_000,
        help="Samples per estimate (default: 100000)",
    )
    parser.add_argument(
        "--angles",
        type=str,
        default="0,30,60,85",
        help="Comma-separated incidence angles in degrees (default: 0,30,60,85)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed of the random streams (default: 0)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only print the summary line",
    )
    return parser.parse_args()


def run_furnace(
    num_samples: int = 100_000,
    angles: list[float] | None = None,
    seed: int = 0,
    quiet: bool = False,
) -> int:
    """Estimate the albedo of each material at each angle.

    Args:
        num_samples: Samples per estimate (one random stream each).
        angles: Incidence angles in degrees, measured from the normal.
        seed: Seed of the random streams.
        quiet: If True, print only the summary.

    Returns:
        The number of estimates that exceeded the reflectance.
    """
    # Lazy imports to allow Taichi initialization first
    from pathshade.core.rng import RandomStreams
    from pathshade.estimator import estimate_albedo
    from pathshade.materials import (
        IdealDielectric,
        LambertianCosine,
        LambertianSimple,
        NormalizedPhong,
    )

    if angles is None:
        angles = [0.0, 30.0, 60.0, 85.0]

    materials = {
        "lambertian-simple": LambertianSimple((0.8, 0.8, 0.8)),
        "lambertian-cosine": LambertianCosine((0.8, 0.8, 0.8)),
        "phong n=1": NormalizedPhong((0.8, 0.8, 0.8), exponent=1.0),
        "phong n=50": NormalizedPhong((0.8, 0.8, 0.8), exponent=50.0),
        "glass ior=1.5": IdealDielectric((1.0, 1.0, 1.0), ior=1.5),
    }
    normal = (0.0, 1.0, 0.0)

    # Two draws per sample is the most any material takes
    rng = RandomStreams(count=num_samples, length=2, seed=seed)

    start_time = time.time()
    gains = 0
    for name, material in materials.items():
        reflectance = max(material.reflectance())
        for angle in angles:
            theta = math.radians(angle)
            incoming = (math.sin(theta), -math.cos(theta), 0.0)
            rng.refill()
            estimate = max(estimate_albedo(material, rng, incoming, normal))
            gained = estimate > reflectance + TOLERANCE
            gains += int(gained)
            if not quiet:
                flag = "  <-- energy gain" if gained else ""
                print(
                    f"  {name:<18} {angle:5.1f} deg  albedo {estimate:.4f} "
                    f"(reflectance {reflectance:.2f}){flag}"
                )

    total_time = time.time() - start_time
    estimates = len(materials) * len(angles)
    print(f"{estimates} estimates, {gains} energy gain(s), {total_time:.2f}s")
    return gains


def main() -> int:
    """Main entry point."""
    args = parse_args()

    try:
        angles = [float(a) for a in args.angles.split(",")]
    except ValueError:
        print(f"Error: invalid --angles {args.angles!r}", file=sys.stderr)
        return 2

    # Initialize Taichi
    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
        if not args.quiet:
            print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu)
        if not args.quiet:
            print("Using CPU backend")

    try:
        gains = run_furnace(
            num_samples=args.samples,
            angles=angles,
            seed=args.seed,
            quiet=args.quiet,
        )
    except (ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 1 if gains else 0


if __name__ == "__main__":
    sys.exit(main())
