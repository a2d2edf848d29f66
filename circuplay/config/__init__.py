"""Configuration package for the circuit simulator.

Constants live in small topic modules (grid, simulation, server);
``SimulationConfig`` bundles the ones a running workspace needs.
"""

from circuplay.config.simulation import SimulationConfig

__all__ = ["SimulationConfig"]
