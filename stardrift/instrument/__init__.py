"""Observers of published backdrop frames (history, profiler, dashboard)."""

from stardrift.instrument.history import StateHistoryInstrument
from stardrift.instrument.protocol import InstrumentProtocol

__all__ = [
    "InstrumentProtocol",
    "StateHistoryInstrument",
]
