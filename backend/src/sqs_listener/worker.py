import signal
import sys
from typing import Optional
from .config import ConfigurationError, Settings
from .listener import SqsListener
from .services.queue import get_queue
from .workers.base import load_worker
from .logger import configure_logging, get_logger

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2

def build_listener(settings: Settings) -> SqsListener:
    config = settings.listener_config()
    worker = load_worker(settings.WORKER)
    return SqsListener(config, get_queue(settings), worker)

def install_signal_handlers(listener: SqsListener):
    def _handle(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}")
        listener.stop()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)

def run_worker(settings: Optional[Settings] = None) -> int:
    """Runs a listener in the foreground and returns a process exit code."""
    try:
        settings = settings or Settings()
        configure_logging(settings.LOG_LEVEL)
        listener = build_listener(settings)
    except ValueError as e:
        # ConfigurationError or pydantic's ValidationError
        logger.error(f"Invalid configuration: {e}")
        return EXIT_CONFIG_ERROR

    install_signal_handlers(listener)
    logger.info(f"Worker started (Env: {settings.APP_ENV}). Polling queue...")
    try:
        listener.listen()
    except ConfigurationError:
        return EXIT_CONFIG_ERROR
    except Exception:
        # Already logged by the listener; the supervisor restarts us
        return EXIT_FAILURE
    return EXIT_OK

def main():
    sys.exit(run_worker())

if __name__ == "__main__":
    main()
