"""Simple frame-history instrument for backdrop runs."""

from __future__ import annotations

from typing import Optional

from tensordict import TensorDict


class StateHistoryInstrument:
    """Capture published frame snapshots for observer-side analysis.

    - snapshots are cloned so later steps cannot alter them
    - optional downsampling via `sample_every`
    - optional cap via `max_frames` (oldest frames are dropped)
    """

    def __init__(self, *, sample_every: int = 1, max_frames: Optional[int] = None) -> None:
        if int(sample_every) <= 0:
            raise ValueError(f"sample_every must be > 0, got {sample_every}")
        if max_frames is not None and int(max_frames) <= 0:
            raise ValueError(f"max_frames must be > 0, got {max_frames}")
        self.sample_every = int(sample_every)
        self.max_frames = None if max_frames is None else int(max_frames)
        self.history: list[TensorDict] = []
        self._seen = 0

    def update(self, state: TensorDict) -> None:
        seen = self._seen
        self._seen += 1
        if seen % self.sample_every != 0:
            return
        self.history.append(state.clone())
        if self.max_frames is not None and len(self.history) > self.max_frames:
            del self.history[: len(self.history) - self.max_frames]
