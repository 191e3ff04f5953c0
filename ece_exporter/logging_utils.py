"""
Logging setup for the exporter process.
"""

from datetime import datetime, timezone
import json
import logging


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line: date, level, logger, message.

    Exception info, when present, is added as error_type/error_message.
    """

    def format(self, record: logging.LogRecord) -> str:
        base = {
            'date': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        if record.exc_info:
            base['error_type'] = record.exc_info[0].__name__
            base['error_message'] = str(record.exc_info[1])
        return json.dumps(base, default=str)


def setup_logging(level: str = 'INFO', json_lines: bool = False) -> logging.Logger:
    """Setup logging configuration."""
    handler = logging.StreamHandler()
    if json_lines:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO),
                        handlers=[handler], force=True)
    return logging.getLogger('ece_exporter')
