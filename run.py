#!/usr/bin/env python3
"""Stardrift Backdrop Entrypoint

Starfield backdrop runner with:
- Pointer repulsion projected onto the z=0 plane
- Two orbiting planets and a slow camera dolly
- Real-time dashboard (mouse over the camera view pushes the stars)

Usage:
    python run.py                        # Run with defaults
    python run.py --frames 600           # Stop after 600 frames
    python run.py --no-dashboard         # Run headless (for benchmarks)
    python run.py --profile              # Capture a torch.profiler trace
    python run.py --drift-fps 60         # Scale drift by frame time
"""

from __future__ import annotations

import argparse
import os
from pathlib import Path


def _set_interactive_matplotlib_backend() -> None:
    """Best-effort: ensure the dashboard actually opens a window.

    This must run before importing `matplotlib.pyplot` anywhere.
    """
    import matplotlib

    # If the user already forced a backend, respect it.
    if os.environ.get("MPLBACKEND"):
        return

    # Prefer native macOS backend; fall back to common interactive ones.
    for candidate in ("MacOSX", "QtAgg", "TkAgg"):
        try:
            matplotlib.use(candidate, force=True)
            return
        except (ImportError, ValueError):
            continue


def main():
    parser = argparse.ArgumentParser(
        description="Stardrift backdrop",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument("--frames", type=int, default=None, help="Stop after this many frames (default: run until closed)")
    parser.add_argument("--particles", type=int, default=20000, help="Number of stars")
    parser.add_argument("--seed", type=int, default=0, help="Random seed for the star field")
    parser.add_argument("--device", type=str, default="auto", help="Device (auto, cpu, cuda, mps)")
    parser.add_argument("--fps", type=float, default=60.0, help="Target frame rate; 0 runs uncapped")
    parser.add_argument("--profile", action="store_true", help="Enable torch.profiler trace capture")
    parser.add_argument("--no-dashboard", action="store_true", help="Disable real-time dashboard")
    parser.add_argument("--dashboard-video", type=str, default=None, help="Record dashboard to video file (e.g. artifacts/backdrop.mp4 or .gif)")
    parser.add_argument("--dashboard-fps", type=int, default=30, help="Dashboard refresh / video FPS (default: 30)")

    # Field tuning
    parser.add_argument("--radius", type=float, default=25.0, help="Pointer repulsion radius (world units)")
    parser.add_argument("--strength", type=float, default=0.07, help="Pointer repulsion strength")
    parser.add_argument("--falloff", type=float, default=0.8, help="Repulsion falloff in [0, 1]")
    parser.add_argument("--drift-fps", type=float, default=None,
                        help="Scale drift by dt * FPS instead of applying it once per frame")

    args = parser.parse_args()

    if not args.no_dashboard:
        _set_interactive_matplotlib_backend()

    # Import lazily so we can set the matplotlib backend first.
    from stardrift.field.config import BackdropConfig, FieldConfig, RepulsionField
    from stardrift.field.simulator import run_backdrop
    from stardrift.runtime import resolve_device

    field_cfg = FieldConfig(
        num_particles=args.particles,
        seed=args.seed,
        device=resolve_device(args.device),
        drift_reference_fps=args.drift_fps,
        repulsion=RepulsionField(radius=args.radius, strength=args.strength, falloff=args.falloff),
    )
    config = BackdropConfig(
        field=field_cfg,
        max_frames=args.frames,
        target_fps=(args.fps if args.fps > 0 else None),
        dashboard_enabled=not args.no_dashboard,
        dashboard_fps=int(args.dashboard_fps),
        dashboard_video_path=(None if args.dashboard_video is None else Path(args.dashboard_video)),
        profile_enabled=args.profile,
    )

    summary = run_backdrop(config)
    print("\nFinal results:")
    print(f"  Frames:     {summary['frames']:,}")
    print(f"  Generation: {summary['generation']:,}")
    print(f"  t_orbit:    {summary['t_orbit']:.3f}")


if __name__ == "__main__":
    main()
