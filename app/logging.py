import logging
import sys
import time

from pythonjsonlogger.json import JsonFormatter

# `extra=` keys whose values must never reach a log line
SECRET_FIELDS = frozenset(
    {"code", "password", "new_password", "reset_token", "access_token", "token"}
)
REDACTED = "[redacted]"


class UTCJsonFormatter(JsonFormatter):
    converter = time.gmtime


class RedactSecretsFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        for name in SECRET_FIELDS.intersection(record.__dict__):
            setattr(record, name, REDACTED)
        return True


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level.upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RedactSecretsFilter())
    handler.setFormatter(
        UTCJsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    )
    root.addHandler(handler)

    for noisy in ("httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel("WARNING")
