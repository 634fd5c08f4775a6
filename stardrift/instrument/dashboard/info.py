from __future__ import annotations


class InfoPlot:
    """FPS / star count text block, the counterpart of the page overlay."""

    def __init__(self, ax) -> None:
        self.ax = ax
        self.ax.axis('off')
        self._pending: dict | None = None
        # Single text artist updated each frame.
        self._text = self.ax.text(
            0.05,
            0.98,
            "",
            transform=self.ax.transAxes,
            fontsize=8,
            va="top",
            family="monospace",
            linespacing=1.2,
            color="#ccc",
        )

    def ingest(self, state: dict) -> None:
        self._pending = state

    def render(self) -> list[object]:
        state = self._pending
        if state is None:
            return []
        self._pending = None

        def get_scalar(key, default=0.0):
            v = state.get(key, default)
            if v is None:
                return default
            if hasattr(v, 'item'):
                return float(v.item())
            try:
                return float(v)
            except (TypeError, ValueError):
                return default

        positions = state.get("positions")
        num_stars = 0 if positions is None else len(positions)
        pointer = state.get("pointer")
        if pointer is not None and hasattr(pointer, "tolist"):
            px, py, pz = (float(v) for v in pointer.reshape(-1).tolist())
            pointer_line = f"({px:7.2f}, {py:7.2f}, {pz:5.2f})"
        else:
            pointer_line = "-"

        lines = [
            f"FPS: {get_scalar('fps'):.0f}",
            f"Stars: {num_stars}",
            "",
            f"frame       {int(get_scalar('step'))}",
            f"generation  {int(get_scalar('generation'))}",
            f"dt          {get_scalar('dt') * 1000.0:6.2f} ms",
            f"t_orbit     {get_scalar('t_orbit'):8.3f}",
            f"repelled    {int(get_scalar('repelled'))}",
            f"reseeded    {int(get_scalar('reseeded'))}",
            f"pointer     {pointer_line}",
        ]
        self._text.set_text("\n".join(lines))
        return [self._text]
