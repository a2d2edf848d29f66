"""Pytest configuration and fixtures for circuit tests."""

import pytest

from circuplay.component_factory import ComponentFactory
from circuplay.config.simulation import SimulationConfig
from circuplay.grid import Grid
from circuplay.simulator import CircuitSimulator
from circuplay.workspace import Workspace


@pytest.fixture
def grid():
    """A 10x10 grid of 20px cells."""
    return Grid(200, 200, 20)


@pytest.fixture
def factory():
    return ComponentFactory()


@pytest.fixture
def simulator(grid):
    return CircuitSimulator(grid)


@pytest.fixture
def place(grid, factory, simulator):
    """Create a component, place it on the grid and register it with the simulator."""

    def _place(kind, x, y, closed=None):
        component = factory.create(kind)
        assert component is not None, f"unknown kind {kind}"
        assert grid.place(component, x, y), f"could not place {kind} at ({x}, {y})"
        if closed is not None:
            component.closed = closed
        simulator.add_component(component)
        return component

    return _place


@pytest.fixture
def workspace():
    """Workspace on the default 800x600 canvas (40x30 cells)."""
    return Workspace(SimulationConfig())


@pytest.fixture
def store(tmp_path):
    from backend.circuit_store import CircuitStore

    return CircuitStore(tmp_path / "circuits")


@pytest.fixture
def test_client(store):
    """API client around a context with a temporary store and a stopped simulation."""
    from fastapi.testclient import TestClient

    from backend.app_factory import AppContext, create_app

    context = AppContext(store=store, restore_autosave=False, start_running=False)
    app = create_app(context=context)
    with TestClient(app) as client:
        yield client
