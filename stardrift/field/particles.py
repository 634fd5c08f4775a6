from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Optional, Sequence

import torch

from .config import FieldConfig
from .sampler import sample_shell

__all__ = [
    "FieldStepStats",
    "ParticleField",
    "hsl_to_rgb",
    "star_colors",
]


@dataclass
class FieldStepStats:
    """Statistics from a single field step."""
    repelled: int
    reseeded: int
    generation: int


def hsl_to_rgb(h: torch.Tensor, s: torch.Tensor, l: torch.Tensor) -> torch.Tensor:
    """Vectorized HSL -> RGB, all channels in [0, 1]. Returns ``(N, 3)``."""
    h = torch.remainder(h, 1.0)
    s = s.clamp(0.0, 1.0)
    l = l.clamp(0.0, 1.0)
    c = (1.0 - (2.0 * l - 1.0).abs()) * s
    # Standard piecewise form: f(n) = l - c/2 * clamp(min(k - 3, 9 - k), -1, 1), k = (n + 12h) mod 12
    channels = []
    for n in (0.0, 8.0, 4.0):
        k = torch.remainder(n + h * 12.0, 12.0)
        a = torch.minimum(k - 3.0, 9.0 - k).clamp(-1.0, 1.0)
        channels.append(l - 0.5 * c * a)
    return torch.stack(channels, dim=1)


def star_colors(n: int, cfg: FieldConfig, generator: Optional[torch.Generator] = None) -> torch.Tensor:
    """Bluish star palette with a little hue and lightness variation."""
    u = torch.rand(n, 2, generator=generator, device=_generator_device(generator), dtype=torch.float64)
    hue = cfg.hue + cfg.hue_spread * (u[:, 0] - 0.5)
    sat = torch.full_like(hue, float(cfg.saturation))
    light = cfg.lightness + cfg.lightness_spread * (u[:, 1] - 0.5)
    return hsl_to_rgb(hue, sat, light).to(device=cfg.device, dtype=cfg.dtype)


def _generator_device(generator: Optional[torch.Generator]) -> torch.device:
    return generator.device if generator is not None else torch.device("cpu")


class ParticleField:
    """Fixed-size star field: drift, pointer repulsion and re-seeding.

    Buffers (all ``(N, 3)``, owned exclusively by the field):
    - positions: double-buffered; `step` writes the back buffer and publishes
      it by swapping, so readers only ever see whole frames.
    - velocities: drift per frame, fixed at creation.
    - colors: RGB, fixed at creation.

    Publishing bumps `generation` and raises `needs_update` (the renderer
    clears it with `mark_consumed`).
    """

    def __init__(
        self,
        config: Optional[FieldConfig] = None,
        *,
        generator: Optional[torch.Generator] = None,
        positions: Optional[torch.Tensor] = None,
        velocities: Optional[torch.Tensor] = None,
        colors: Optional[torch.Tensor] = None,
    ) -> None:
        self.cfg = config or FieldConfig()
        self.device = torch.device(self.cfg.device)
        self.dtype = self.cfg.dtype
        # Randomness is drawn on CPU (float64 for the sampler) and moved.
        if generator is None:
            generator = torch.Generator(device="cpu")
            generator.manual_seed(int(self.cfg.seed))
        self.generator = generator

        n = self.cfg.num_particles
        if positions is None:
            r_min, r_max = self.cfg.spawn_shell
            positions = sample_shell(r_min, r_max, n, generator=self.generator, device=self.device, dtype=self.dtype)
        if velocities is None:
            drift = (
                torch.rand(n, 3, generator=self.generator, device=_generator_device(self.generator), dtype=torch.float64)
                - 0.5
            ) * float(self.cfg.drift_scale)
            velocities = drift
        if colors is None:
            colors = star_colors(n, self.cfg, self.generator)

        buffers = {}
        for name, t in (("positions", positions), ("velocities", velocities), ("colors", colors)):
            t = torch.as_tensor(t).detach().to(device=self.device, dtype=self.dtype).clone()
            if tuple(t.shape) != (n, 3):
                raise ValueError(f"{name} must have shape ({n}, 3), got {tuple(t.shape)}")
            buffers[name] = t
        if not bool(torch.isfinite(buffers["positions"]).all() and torch.isfinite(buffers["velocities"]).all()):
            raise ValueError("positions and velocities must be finite")
        self._install(buffers["positions"], buffers["velocities"], buffers["colors"])

    @classmethod
    def from_buffers(
        cls,
        positions: torch.Tensor,
        velocities: Optional[torch.Tensor] = None,
        colors: Optional[torch.Tensor] = None,
        *,
        config: Optional[FieldConfig] = None,
        generator: Optional[torch.Generator] = None,
    ) -> "ParticleField":
        """Build a field around explicit buffers (copied, never aliased).

        Missing velocities default to zero drift.
        """
        positions = torch.as_tensor(positions)
        if positions.ndim != 2 or positions.shape[1] != 3 or positions.shape[0] == 0:
            raise ValueError(f"positions must have shape (N, 3) with N > 0, got {tuple(positions.shape)}")
        cfg = replace(config or FieldConfig(), num_particles=int(positions.shape[0]))
        if velocities is None:
            velocities = torch.zeros(positions.shape, dtype=cfg.dtype)
        return cls(cfg, generator=generator, positions=positions, velocities=velocities, colors=colors)

    def _install(self, positions: torch.Tensor, velocities: torch.Tensor, colors: torch.Tensor) -> None:
        self._front = positions.contiguous()
        self._back = torch.empty_like(self._front)
        self._velocities = velocities.contiguous()
        self._colors = colors.contiguous()
        self._pointer = torch.zeros(3, device=self.device, dtype=self.dtype)
        self.generation = 0
        self.needs_update = True
        self.rejected_steps = 0
        self.last_stats: Optional[FieldStepStats] = None

    # ========================================
    # Buffers (read-only views for consumers)
    # ========================================

    @property
    def num_particles(self) -> int:
        return int(self._front.shape[0])

    @property
    def positions(self) -> torch.Tensor:
        """Published positions ``(N, 3)``. Do not mutate."""
        return self._front

    @property
    def position_buffer(self) -> torch.Tensor:
        """Flat ``3N`` view of the published positions."""
        return self._front.view(-1)

    @property
    def velocities(self) -> torch.Tensor:
        return self._velocities

    @property
    def colors(self) -> torch.Tensor:
        return self._colors

    @property
    def pointer(self) -> torch.Tensor:
        """Pointer position used by the most recent step."""
        return self._pointer

    def mark_consumed(self) -> int:
        """Renderer acknowledges the current generation."""
        self.needs_update = False
        return self.generation

    # ========================================
    # Step
    # ========================================

    def _resolve_pointer(self, pointer_world: Optional[Sequence[float] | torch.Tensor]) -> torch.Tensor:
        """Read the pointer once; non-finite input falls back to the previous one."""
        if pointer_world is None:
            return self._pointer
        p = torch.as_tensor(pointer_world).detach().to(device=self.device, dtype=self.dtype).reshape(-1)
        if p.numel() != 3 or not bool(torch.isfinite(p).all()):
            return self._pointer
        return p.clone()

    def step(
        self,
        dt: float,
        pointer_world: Optional[Sequence[float] | torch.Tensor] = None,
    ) -> Optional[FieldStepStats]:
        """Advance every star by one frame.

        Order per star: drift, pointer repulsion, re-seed if outside the outer
        bound. Returns None (and leaves the buffers untouched) for a
        non-finite or negative `dt`.
        """
        try:
            dt = float(dt)
        except (TypeError, ValueError):
            dt = math.nan
        if not math.isfinite(dt) or dt < 0.0:
            self.rejected_steps += 1
            return None

        cfg = self.cfg
        rep = cfg.repulsion
        pointer = self._resolve_pointer(pointer_world)
        self._pointer = pointer

        pos = self._back
        pos.copy_(self._front)

        # Drift
        if cfg.drift_reference_fps is None:
            pos.add_(self._velocities)
        else:
            pos.add_(self._velocities, alpha=dt * float(cfg.drift_reference_fps))

        # Repulsion: distance with the depth axis damped towards the focal plane
        delta = pos - pointer
        delta[:, 2].mul_(float(cfg.depth_damping))
        dist = torch.linalg.norm(delta, dim=1)
        inside = dist < float(rep.radius)
        repelled = int(inside.sum().item())
        if repelled:
            idx = inside.nonzero(as_tuple=True)[0]
            d = delta[idx]
            r = dist[idx]
            f = 1.0 - r / float(rep.radius)
            s = float(rep.strength) * torch.pow(f, rep.exponent)

            lo, hi = cfg.jitter_range
            jitter = torch.rand(
                repelled, 2, generator=self.generator, device=_generator_device(self.generator), dtype=self.dtype
            ).to(self.device)
            jitter = lo + (hi - lo) * jitter

            push = torch.empty_like(d)
            push[:, :2] = d[:, :2] / (r + cfg.eps).unsqueeze(1) * (s.unsqueeze(1) * jitter)
            dz = d[:, 2]
            push[:, 2] = dz / (dz.abs() + cfg.eps) * s * float(cfg.depth_nudge)
            pos.index_add_(0, idx, push)

        # Re-seed stars pushed (or drifted) outside the outer bound
        r2 = (pos * pos).sum(dim=1)
        bound = float(cfg.outer_bound)
        outside = (r2 > bound * bound) | ~torch.isfinite(r2)
        reseeded = int(outside.sum().item())
        if reseeded:
            r_min, r_max = cfg.reseed_shell
            fresh = sample_shell(
                r_min, r_max, reseeded, generator=self.generator, device=self.device, dtype=self.dtype
            )
            pos[outside] = fresh

        # Publish
        self._front, self._back = self._back, self._front
        self.generation += 1
        self.needs_update = True
        self.last_stats = FieldStepStats(repelled=repelled, reseeded=reseeded, generation=self.generation)
        return self.last_stats
