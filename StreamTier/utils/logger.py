# 02.10.26

import logging
from typing import Optional


# External libraries
from rich.console import Console
from rich.logging import RichHandler


# Internal utilities
from .config_json import config_manager


class Logger:
    _configured = False

    def __init__(self, level: Optional[int] = None, console: Optional[Console] = None):
        """
        Configure root logging once: rich console output plus an optional log file.

        Args:
            level: Override for the log level (DEBUG when DEFAULT.debug is set, else INFO)
            console: Console used by the rich handler
        """
        if Logger._configured:
            return

        debug = config_manager.get_bool('DEFAULT', 'debug')
        self.level = level if level is not None else (logging.DEBUG if debug else logging.INFO)

        handlers = [RichHandler(console=console or Console(stderr=True), show_path=False, rich_tracebacks=True)]

        if config_manager.get_bool('DEFAULT', 'log_to_file'):
            log_file = config_manager.get('DEFAULT', 'log_file') or 'streamtier.log'
            file_handler = logging.FileHandler(log_file, encoding='utf-8')
            file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
            handlers.append(file_handler)

        logging.basicConfig(
            level=self.level,
            format="%(message)s",
            datefmt="[%X]",
            handlers=handlers,
            force=True
        )

        # httpx logs every request at INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)
        Logger._configured = True
