"""Structured logging setup for the stats core."""

import json
import logging
import sys
from typing import Optional

from statscore.core.config import get_settings


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        data = {
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }
        # Structured fields emitted by the recording and export paths
        for attr in [
            "view",
            "measure",
            "metric",
            "reason",
            "value",
            "dropped",
            "producer",
        ]:
            if hasattr(record, attr):
                data[attr] = getattr(record, attr)
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=False, default=str)


def setup_logging(level: Optional[str] = None) -> None:
    settings = get_settings()
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())
    handler = logging.StreamHandler(sys.stdout)
    if settings.LOG_JSON:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
    root.handlers = [handler]
