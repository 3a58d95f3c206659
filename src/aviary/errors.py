"""Aviary exception hierarchy.

Configuration problems surface at construction time; simulation errors are
raised for invalid tick input. Nothing mid-tick is retried.
"""


class AviaryError(Exception):
    """Root of all aviary exceptions."""


class ConfigurationError(AviaryError):
    """Invalid or out-of-range configuration."""


class SimulationError(AviaryError):
    """Invalid input while advancing the simulation."""
