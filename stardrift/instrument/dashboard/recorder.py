from __future__ import annotations

from pathlib import Path
from typing import Optional

from matplotlib.animation import AbstractMovieWriter, FFMpegWriter, PillowWriter


class Recorder:
    """Video recorder for a Matplotlib figure.

    `.gif` paths use Pillow; everything else goes through FFmpeg.
    """

    def __init__(self, fig) -> None:
        self.fig = fig
        self.path: Optional[Path] = None
        self.frames = 0
        self._writer: Optional[AbstractMovieWriter] = None

    @property
    def recording(self) -> bool:
        return self._writer is not None

    def start(self, path: Path, *, fps: int = 30, dpi: Optional[int] = None) -> None:
        if self._writer is not None:
            self.stop()
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if self.path.suffix.lower() == ".gif":
            writer: AbstractMovieWriter = PillowWriter(fps=int(fps))
        else:
            writer = FFMpegWriter(fps=int(fps))
        writer.setup(self.fig, str(self.path), dpi=dpi or getattr(self.fig, "dpi", 100))
        self._writer = writer
        self.frames = 0

    def stop(self) -> None:
        if self._writer is not None:
            try:
                self._writer.finish()
            finally:
                self._writer = None

    def grab_frame(self) -> None:
        if self._writer is None:
            return
        self._writer.grab_frame()
        self.frames += 1
