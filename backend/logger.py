import logging
from datetime import datetime

from config import get_settings


def setup_logger(name: str = "autofight") -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)

    if not logger.handlers:
        settings = get_settings()
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

        if settings.log_to_file:
            settings.log_dir.mkdir(parents=True, exist_ok=True)
            log_file = settings.log_dir / f"{name}_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(log_file, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, settings.log_level, logging.INFO))
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger
