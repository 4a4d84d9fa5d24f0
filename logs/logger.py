"""
This module sets up the logging configuration for the application.
Everything at the configured level goes to the console, and error messages
are additionally written to a file so failed steps can be inspected later.
"""
import logging
import os

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def configure_logging(level: str = "INFO", log_dir: str = "logs") -> None:
    """
    Configures the root logger once for the running service.

    Args:
        level (str): The minimum level for console output (e.g. "INFO", "DEBUG").
        log_dir (str): Directory that receives the ``errors.log`` file. Created if missing.
    """
    # Create the log directory if it doesn't already exist
    os.makedirs(log_dir, exist_ok=True)

    # errors.log only receives ERROR and above, in append mode
    file_handler = logging.FileHandler(os.path.join(log_dir, "errors.log"), mode="a")
    file_handler.setLevel(logging.ERROR)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(), file_handler],
    )


def log_error(message: str) -> None:
    """
    Logs an error message to the configured error log file.

    Args:
        message (str): The error message string to be logged.
    """
    logging.error(message)
