"""
Logging configuration for the tours API.
"""

import logging
import sys


def setup_logging(log_level: str = "INFO", service_name: str = "tours-api") -> None:
    """
    Configure root logging once for the process.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        service_name: Name stamped on every line
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=f"%(asctime)s - {service_name} - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
