import json
import logging
import logging.config
import sys

PLAIN_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s"


class JsonFormatter(logging.Formatter):
    """Single-line JSON records for log aggregation (Lambda / CloudWatch)."""

    def format(self, record: logging.LogRecord) -> str:
        log_record = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%d %H:%M:%S"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_record["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_record, ensure_ascii=False)


def _console_logger(level: str, propagate: bool = False) -> dict:
    return {"handlers": ["console"], "level": level, "propagate": propagate}


def setup_logging(log_level: str = "INFO", json_logs: bool = False):
    """콘솔 로깅 설정. json_logs=True 이면 한 줄 JSON 으로 출력"""
    level = log_level.upper()

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {"format": PLAIN_FORMAT},
                "json": {"()": JsonFormatter},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "json" if json_logs else "plain",
                },
            },
            "loggers": {
                "": _console_logger(level, propagate=True),
                "uvicorn.error": _console_logger(level),
                "uvicorn.access": _console_logger(level),
                # SQL echo 는 DEBUG 설정으로만 켠다
                "sqlalchemy.engine": {"level": "WARNING"},
                "loyaltyapi": _console_logger(level),
            },
        }
    )
