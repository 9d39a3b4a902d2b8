# utils.py
"""
Logging and configuration helpers for the liquid countdown.

config.json drives everything: the "logging" section configures the root
logger, "simulation_parameters" feeds the water simulation and "countdown"
holds the default timer duration. Other sections are optional.
"""
import logging
import logging.handlers
import json
import os
from typing import Dict, Any, Iterable

# Sections the application cannot start without.
REQUIRED_SECTIONS = ('simulation_parameters', 'countdown')

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs:
#     - config: the loaded config; its "logging" section may hold "level",
#       "format" and "log_file". A null/empty "log_file" keeps logging on
#       the console only.
#   - Side Effects: Replaces the root logger's handlers. Creates the log
#     directory when a log file is configured.
#
# load_config(path: str, required: Iterable[str] = REQUIRED_SECTIONS) -> Dict[str, Any]:
#   - Inputs: path to a JSON file, names of sections that must be present.
#   - Outputs: the parsed dictionary.
#   - Raises: FileNotFoundError / json.JSONDecodeError (logged, re-raised);
#     ValueError if the document is not an object or a required section is
#     missing or not an object.

def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configures the logging system from a configuration dictionary.

    Sets up logging to the console and, when a log file is configured,
    to a rotating file.
    """
    log_config = config.get('logging', {})
    log_level = log_config.get('level', 'INFO').upper()
    log_format = log_config.get('format', '%(asctime)s - %(levelname)s - %(message)s')
    log_file_path = log_config.get('log_file', 'logs/countdown.log')

    # Get the root logger
    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Clear existing handlers to avoid duplication
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    # Console Handler
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file_path:
        log_dir = os.path.dirname(log_file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        # Rotates when the log reaches 1MB, keeps 5 backup logs.
        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path, maxBytes=1024*1024, backupCount=5
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # numba logs every compilation pass at DEBUG; keep it out of our output.
    logging.getLogger('numba').setLevel(logging.WARNING)

    logging.info("Logging system initialized.")
    logging.debug(f"Log level set to {log_level}.")
    logging.debug(f"Log file path: {log_file_path or '<disabled>'}")

def load_config(path: str, required: Iterable[str] = REQUIRED_SECTIONS) -> Dict[str, Any]:
    """Loads the JSON configuration and checks its required sections."""
    logging.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
    except FileNotFoundError:
        logging.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logging.error(f"Error decoding JSON from {path}.")
        raise

    if not isinstance(config, dict):
        msg = f"Configuration in {path} must be a JSON object."
        logging.critical(msg)
        raise ValueError(msg)
    bad = [name for name in required if not isinstance(config.get(name), dict)]
    if bad:
        msg = f"Configuration in {path} is missing section(s): {', '.join(bad)}."
        logging.critical(msg)
        raise ValueError(msg)

    logging.info("Configuration loaded successfully.")
    return config
