"""Grid and canvas configuration constants."""

# Size of one grid cell in pixels (must match the canvas drawing code)
CELL_SIZE = 20

# Default canvas dimensions in pixels
DEFAULT_CANVAS_WIDTH = 800
DEFAULT_CANVAS_HEIGHT = 600

# Footprint of a logic gate in cells (wide, high)
GATE_FOOTPRINT = (1, 2)

# Largest canvas side accepted from clients, in pixels
MAX_CANVAS_SIZE = 10_000
