"""Process-wide logging setup for the forwarder command line."""

import logging
import os
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Third-party loggers that are too chatty below DEBUG
NOISY_LOGGERS = ['influxdb_client_3', 'urllib3', 'reactivex']


class LoggingConfigurator:
    """Configures the root logger once, from the --log-level and --logfile options."""

    @staticmethod
    def setup_logging(log_level: str = 'INFO', log_file: Optional[str] = None) -> None:
        """Log to the console, and to log_file as well when given.

        At DEBUG the writer also logs every point with its field data, and the
        store client's own loggers are left alone.
        """
        level = getattr(logging, log_level.upper())

        handlers = [logging.StreamHandler()]
        if log_file:
            log_dir = os.path.dirname(log_file)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            handlers.append(logging.FileHandler(log_file))

        logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers)

        if level > logging.DEBUG:
            for name in NOISY_LOGGERS:
                logging.getLogger(name).setLevel(logging.WARNING)
