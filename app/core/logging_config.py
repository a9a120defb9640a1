# app/core/logging_config.py
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional
import logging, sys
from pythonjsonlogger import jsonlogger


def setup_json_logger(service_name: str = "media-service", log_file: Optional[str] = None):
    logger = logging.getLogger()                # root
    logger.setLevel(logging.INFO)

    json_format = (
        "%(asctime)s %(levelname)s %(name)s %(message)s "
        "%(filename)s %(lineno)d %(funcName)s"
    )
    formatter = jsonlogger.JsonFormatter(json_format)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)

    if logger.hasHandlers():
        logger.handlers.clear()
    logger.addHandler(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        fileh = RotatingFileHandler(
            log_file, maxBytes=10_000_000, backupCount=5, encoding="utf-8"
        )
        fileh.setFormatter(formatter)
        logger.addHandler(fileh)

    # quiet noisy libs
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("pypdf").setLevel(logging.ERROR)

    logger.info("JSON structured logging initialized", extra={"service": service_name})
    return logger
