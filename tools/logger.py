import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

import colorlog

LOG_FORMAT = '%(asctime)s - %(filename)s:%(lineno)d - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class Logger:
    _configured = False

    def __init__(self):
        self.logger = logging.getLogger("rental_api")
        if not Logger._configured:
            self._configure()
            Logger._configured = True

    def _configure(self):
        # Консольний handler з кольоровим форматуванням
        console_handler = colorlog.StreamHandler()
        console_handler.setFormatter(
            colorlog.ColoredFormatter(
                '%(log_color)s' + LOG_FORMAT,
                datefmt=DATE_FORMAT,
                log_colors={
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'red,bg_white',
                }
            )
        )

        self.logger.handlers = []
        self.logger.addHandler(console_handler)
        self.logger.propagate = False

        # Файловий handler з ротацією логів
        try:
            log_dir = Path(os.getenv("LOG_DIR", "logs"))
            log_dir.mkdir(parents=True, exist_ok=True)

            rotating_handler = RotatingFileHandler(
                log_dir / "api.log",
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding='utf-8'
            )
            rotating_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
            self.logger.addHandler(rotating_handler)
        except OSError as e:
            # Якщо не вдалося створити файловий handler, залишаємо тільки консольний
            self.logger.warning(f"Could not create file logger: {e}")

        self.logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

    def debug(self, message):
        self.logger.debug(message, stacklevel=2)

    def info(self, message):
        self.logger.info(message, stacklevel=2)

    def warning(self, message):
        self.logger.warning(message, stacklevel=2)

    def error(self, message, exc_info=False):
        self.logger.error(message, exc_info=exc_info, stacklevel=2)
