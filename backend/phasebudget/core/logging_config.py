import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Root logger setup, called once from the app lifespan and from scripts."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
