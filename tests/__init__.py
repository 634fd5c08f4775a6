"""Test suite for Stardrift.

This package contains:
- Unit tests for the field components (sampler, projector, particles, orbits, clock)
- Integration tests for the backdrop lifecycle and its instruments
"""
