import logging

from medtrack.core.settings import MEDTRACK_LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or MEDTRACK_LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )
