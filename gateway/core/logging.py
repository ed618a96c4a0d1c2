"""Process-wide logging setup, called once by the entrypoint."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # Keep per-statement SQL out of INFO logs; DEBUG=true turns on engine echo instead.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
