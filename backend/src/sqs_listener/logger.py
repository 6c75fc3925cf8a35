import logging
import sys

LOG_FORMAT = '[%(asctime)s] %(levelname)s [%(name)s:%(lineno)s] %(message)s'
PACKAGE_LOGGER = "sqs_listener"


def get_logger(name: str) -> logging.Logger:
    """Returns a stdout logger; its level is inherited from the package logger."""
    logger = logging.getLogger(name)

    # Handlers are attached once per logger name
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        logger.addHandler(handler)

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    if package_logger.level == logging.NOTSET:
        package_logger.setLevel(logging.INFO)

    return logger


def configure_logging(level: str):
    """Applies LOG_LEVEL once settings have been loaded."""
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
