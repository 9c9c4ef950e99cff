import logging
from typing import Optional

from dseplannr.config.settings import settings


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Install a root handler once; later calls only adjust the level."""
    level_name = (level or settings.log_level or "INFO").upper()
    numeric = getattr(logging, level_name, logging.INFO)
    if not isinstance(numeric, int):
        numeric = logging.INFO
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=numeric, format=LOG_FORMAT)
    root.setLevel(numeric)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
