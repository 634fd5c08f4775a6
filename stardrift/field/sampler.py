"""Volume-uniform sampling inside a spherical shell."""

from __future__ import annotations

import math
from typing import Optional

import torch

__all__ = ["sample_shell"]


def sample_shell(
    r_min: float,
    r_max: float,
    n: int = 1,
    *,
    generator: Optional[torch.Generator] = None,
    device: str | torch.device = "cpu",
    dtype: torch.dtype = torch.float32,
) -> torch.Tensor:
    """Return ``(n, 3)`` points uniformly distributed by volume in ``[r_min, r_max]``.

    The radius is drawn by inverting the cubic volume CDF so the density grows
    like r², the polar angle comes from ``acos(2u - 1)`` so poles are not
    over-sampled, and the azimuth is uniform on ``[0, 2π)``.

    Args:
        r_min: Inner radius (>= 0).
        r_max: Outer radius (>= r_min).
        n: Number of points.
        generator: Source of randomness. When seeded the output is reproducible.
    """
    r_min = float(r_min)
    r_max = float(r_max)
    if not (math.isfinite(r_min) and math.isfinite(r_max)):
        raise ValueError(f"shell bounds must be finite, got ({r_min}, {r_max})")
    if r_min < 0.0 or r_max < r_min:
        raise ValueError(f"shell bounds must satisfy 0 <= r_min <= r_max, got ({r_min}, {r_max})")
    n = int(n)
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}")

    # Cubes of radii in the hundreds lose digits in float32. Draw in float64 on
    # the generator's device (CPU by default; MPS has no float64) and cast last.
    source = generator.device if generator is not None else torch.device("cpu")
    u = torch.rand(n, 3, generator=generator, device=source, dtype=torch.float64)
    lo3 = r_min ** 3
    r = torch.pow(u[:, 0] * (r_max ** 3 - lo3) + lo3, 1.0 / 3.0)
    theta = torch.acos(2.0 * u[:, 1] - 1.0)
    phi = u[:, 2] * (2.0 * math.pi)

    sin_theta = torch.sin(theta)
    points = torch.stack(
        [
            r * sin_theta * torch.cos(phi),
            r * sin_theta * torch.sin(phi),
            r * torch.cos(theta),
        ],
        dim=1,
    )
    return points.to(device=device, dtype=dtype)
