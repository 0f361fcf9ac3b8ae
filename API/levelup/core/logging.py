"""Log setup for the LevelUp API.

Every record carries a ``domain`` (progression, generation, persistence or
journeys) so generator and store traffic can be filtered apart. Handler-level
filters mask API keys and MongoDB credentials before anything reaches stdout.
"""
import logging
import re
import sys

DOMAIN_PROGRESSION = "progression"
DOMAIN_GENERATION = "generation"
DOMAIN_PERSISTENCE = "persistence"
DOMAIN_JOURNEYS = "journeys"

LOG_FORMAT = "%(asctime)s | %(levelname)s | [%(domain)s] | %(name)s | %(message)s"

_QUIET_LIBRARIES = ("httpx", "httpcore", "pymongo")
_POLLED_PATHS = ("/health", "/metrics")

_SECRET_KEYS = ("x-goog-api-key", "api[_-]?key", "token", "password")
_KEY_VALUE_SECRET = re.compile(rf"(?i)((?:{'|'.join(_SECRET_KEYS)})\s*[=:]\s*)([^\s,;]+)")
_BEARER_SECRET = re.compile(r"(?i)(authorization\s*[=:]\s*bearer\s+)([^\s,;]+)")
_MONGO_CREDENTIALS = re.compile(r"(?i)(mongodb(?:\+srv)?://)([^/@\s]+)@")


def get_domain_logger(name: str, domain: str) -> logging.LoggerAdapter[logging.Logger]:
    return logging.LoggerAdapter(logging.getLogger(name), {"domain": domain})


def redact_secrets(message: str) -> str:
    """Mask credentials in free text: key/value secrets, bearer tokens and Mongo URL user info."""
    text = str(message or "")
    text = _BEARER_SECRET.sub(r"\1[REDACTED]", text)
    text = _KEY_VALUE_SECRET.sub(r"\1[REDACTED]", text)
    return _MONGO_CREDENTIALS.sub(r"\1***:***@", text)


class LevelUpRecordFilter(logging.Filter):
    """Fill in a default domain and redact the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "domain"):
            record.domain = "app"  # type: ignore[attr-defined]
        record.msg = redact_secrets(record.getMessage())
        record.args = ()
        return True


class PollingAccessFilter(logging.Filter):
    """Drop successful uvicorn access lines for health and metrics polling."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return not (any(path in message for path in _POLLED_PATHS) and " 200" in message)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    record_filter = LevelUpRecordFilter()
    for handler in logging.getLogger().handlers:
        handler.addFilter(record_filter)
    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").addFilter(PollingAccessFilter())
