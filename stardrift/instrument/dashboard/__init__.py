"""Dashboard visualization components for the Stardrift backdrop.

Panels (used by Canvas):
- ScreenView: camera view with depth-attenuated stars, planets and the pointer
- ThreeD: 3D overview of the whole field inside the outer bound
- InfoPlot: FPS, star count and per-frame field statistics

Utilities:
- Recorder: Frame capture and video export
- DashboardSession: live window (FuncAnimation timer) + recording, forwards mouse input
"""

from stardrift.instrument.dashboard.canvas import Canvas
from stardrift.instrument.dashboard.recorder import Recorder
from stardrift.instrument.dashboard.session import DashboardSession

from stardrift.instrument.dashboard.screen import ScreenView
from stardrift.instrument.dashboard.threed import ThreeD
from stardrift.instrument.dashboard.info import InfoPlot

__all__ = [
    "Canvas",
    "Recorder",
    "DashboardSession",
    "ScreenView",
    "ThreeD",
    "InfoPlot",
]
