"""Main entry point for CircuPlay.

This module provides command-line options to run the simulator:
- Web mode (default): FastAPI backend with the WebSocket endpoint
- Headless mode: Build a scenario or load a saved circuit, tick it, report
- Scenario listing
"""

import argparse
import json
import logging
import sys

from backend.logging_config import configure_logging

logger = logging.getLogger(__name__)

SEPARATOR_WIDTH = 60


def run_web_server(port: int) -> None:
    """Run the FastAPI backend."""
    import uvicorn

    from backend.main import app

    logger.info("=" * SEPARATOR_WIDTH)
    logger.info("CIRCUPLAY - WEB SERVER")
    logger.info("=" * SEPARATOR_WIDTH)
    logger.info("API docs available at http://localhost:%d/docs", port)
    logger.info("Press Ctrl+C to stop the server")
    logger.info("=" * SEPARATOR_WIDTH)

    uvicorn.run(app, host="0.0.0.0", port=port)


def run_headless(scenario: str, ticks: int, circuit_file=None, toggles=None) -> int:
    """Run a circuit without a server and print what ends up powered.

    Args:
        scenario: Scenario name to build (ignored when circuit_file is given)
        ticks: Number of updates to run
        circuit_file: Optional path to an exported circuit document
        toggles: Optional list of "x,y" cells to toggle before ticking

    Returns:
        Process exit code
    """
    from circuplay.workspace import Workspace

    workspace = Workspace()
    if circuit_file:
        with open(circuit_file) as f:
            result = workspace.import_circuit(json.load(f))
    else:
        result = workspace.load_scenario(scenario)
    if result.is_err():
        logger.error("Could not build circuit: %s", result.error)
        return 1

    for cell in toggles or []:
        x, y = (int(part) for part in cell.split(","))
        toggled = workspace.toggle_at(x, y)
        if toggled.is_err():
            logger.error("Toggle failed: %s", toggled.error)
            return 1

    workspace.step(ticks)

    stats = workspace.get_stats()
    logger.info(
        "After %d ticks: %d of %d components powered",
        stats["ticks"],
        stats["powered_components"],
        stats["total_components"],
    )
    for state in workspace.component_states():
        if state["powered"]:
            logger.info("  %-10s at (%d, %d)", state["kind"], state["gridX"], state["gridY"])
    for issue in workspace.validate():
        logger.warning("Validation: %s", issue)
    return 0


def list_scenarios() -> None:
    from circuplay.scenarios import list_scenarios as registry

    for entry in registry():
        print(f"{entry['name']:<16} {entry['description']}")


def main() -> None:
    """Parse command-line arguments and run the appropriate mode."""
    from circuplay.config.server import DEFAULT_API_PORT

    parser = argparse.ArgumentParser(
        description="CircuPlay grid circuit simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run web server (default)
  python main.py

  # Run the half adder with both inputs on for 5 ticks
  python main.py --headless --scenario half_adder --toggle 2,0 --toggle 4,10 --ticks 5

  # Tick a saved circuit
  python main.py --headless --circuit my_circuit.json --ticks 20
        """,
    )
    parser.add_argument("--headless", action="store_true", help="Run without the web server")
    parser.add_argument("--scenario", default="simple_led", help="Scenario to build headless")
    parser.add_argument("--circuit", default=None, metavar="FILENAME", help="Circuit JSON to load")
    parser.add_argument("--ticks", type=int, default=10, help="Ticks to run headless")
    parser.add_argument(
        "--toggle", action="append", default=[], metavar="X,Y", help="Toggle a switch first"
    )
    parser.add_argument("--list-scenarios", action="store_true", help="List scenarios and exit")
    parser.add_argument("--port", type=int, default=DEFAULT_API_PORT, help="Web server port")
    parser.add_argument("--log-level", default=None, help="Log level (default: INFO)")

    args = parser.parse_args()
    configure_logging(level=args.log_level, include_uvicorn=not args.headless)

    if args.list_scenarios:
        list_scenarios()
    elif args.headless:
        sys.exit(run_headless(args.scenario, args.ticks, args.circuit, args.toggle))
    else:
        run_web_server(args.port)


if __name__ == "__main__":
    main()
