"""Instrument protocol for the Stardrift backdrop.

Defines a common interface for observers of published frames.
"""

from typing import Protocol

from tensordict import TensorDict


class InstrumentProtocol(Protocol):
    def update(self, state: TensorDict) -> None:
        """Update the instrument with the current (post-publish) frame state."""
        raise NotImplementedError("Subclasses must implement this method")
