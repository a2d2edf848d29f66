"""Server and storage configuration constants."""

# Server Configuration
DEFAULT_API_PORT = 8000  # Default port for FastAPI backend

# Storage
DEFAULT_DATA_DIR = "data/circuits"
AUTOSAVE_NAME = "autosave"
AUTO_SAVE_INTERVAL_SECONDS = 30.0
