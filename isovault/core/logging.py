# isovault/core/logging.py
import logging
import sys


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configura el logging raíz una sola vez (stdout)."""
    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # El SQL de SQLAlchemy ya lo controla `echo` del engine
    logging.getLogger("sqlalchemy.engine").propagate = False
