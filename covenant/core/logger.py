import logging
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

NOISY_LOGGERS = ("urllib3", "asyncio", "charset_normalizer")


class Logger:
    """Per-command log file plus Rich output on stderr"""

    @staticmethod
    def setup_logging(log_level: str = "INFO", log_file: str = "pipeline.log", log_dir: str = "logs") -> logging.Logger:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)

        # Each command reconfigures the root logger
        logging.getLogger().handlers.clear()

        file_handler = logging.FileHandler(directory / log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))

        logging.basicConfig(
            level=getattr(logging, log_level.upper(), logging.INFO),
            format="%(message)s",
            datefmt="[%X]",
            handlers=[
                RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=False),
                file_handler,
            ],
        )
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
        return logging.getLogger("covenant")
