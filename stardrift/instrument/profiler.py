"""Profiler instrument for the Stardrift backdrop.

Wraps `torch.profiler` around a run and steps its schedule once per published
frame, so it can sit in the instrument list like any other observer.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Optional

import torch
from torch.profiler import ProfilerActivity, profile, schedule
from tensordict import TensorDict


class ProfilerInstrument:
    def __init__(
        self,
        output_dir: Path = Path("artifacts/profiles"),
        *,
        warmup_frames: int = 10,
        active_frames: int = 100,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.trace_path: Optional[Path] = None
        activities = [ProfilerActivity.CPU]
        if torch.cuda.is_available():
            activities.append(ProfilerActivity.CUDA)
        self.profiler = profile(
            activities=activities,
            schedule=schedule(
                wait=max(0, int(warmup_frames)),
                warmup=2,
                active=max(1, int(active_frames)),
                repeat=1,
            ),
            on_trace_ready=self._save_trace,
            record_shapes=True,
            profile_memory=True,
            with_stack=True,
        )
        self._running = False

    def __enter__(self) -> "ProfilerInstrument":
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        self.stop()

    def start(self) -> None:
        if not self._running:
            self.profiler.start()
            self._running = True

    def stop(self) -> None:
        if self._running:
            self.profiler.stop()
            self._running = False

    def update(self, state: TensorDict) -> None:
        if self._running:
            self.profiler.step()

    def _save_trace(self, prof) -> None:
        """Save a Chrome trace (view in chrome://tracing)."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.trace_path = self.output_dir / f"trace_{int(time.time())}.json"
        prof.export_chrome_trace(str(self.trace_path))

    def summary(self, row_limit: int = 20) -> str:
        return self.profiler.key_averages().table(sort_by="cpu_time_total", row_limit=row_limit)
