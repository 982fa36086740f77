import logging
import json
import sys
import time
import uuid
import os
from datetime import datetime, timezone

LOGGER_NAME = "schemagen"


class _C:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    MAGENTA = "\033[35m"
    CYAN = "\033[36m"


# Event prefix -> pipeline stage, first match wins
_STAGES = (
    ("DDL_PARSE", "parse"),
    ("MODEL_BUILD", "build"),
    ("DOCUMENT_MERGE", "merge"),
    ("VIEWS_DOCUMENT", "merge"),
    ("CODE_GENERATION", "generate"),
    ("FILE_GENERATED", "generate"),
    ("PIPELINE", "pipeline"),
)

_STAGE_COLORS = {
    "parse": _C.BLUE,
    "build": _C.CYAN,
    "merge": _C.MAGENTA,
    "generate": _C.GREEN,
    "pipeline": _C.BOLD,
}

# One line per written file; only shown with SCHEMAGEN_LOG_LEVEL=DEBUG
_DETAIL_EVENTS = frozenset({"FILE_GENERATED"})


def _use_color() -> bool:
    # Color only if explicitly enabled and terminal supports it.
    return os.getenv("LOG_COLOR", "0") == "1" and sys.stdout.isatty()


def event_stage(event_type: str) -> str:
    et = (event_type or "").upper()
    for prefix, stage in _STAGES:
        if et.startswith(prefix):
            return stage
    return "other"


def _event_color(event_type: str) -> str:
    et = (event_type or "").upper()
    if "FAILED" in et:
        return _C.RED
    if "WARNING" in et:
        return _C.YELLOW
    if et in _DETAIL_EVENTS:
        return _C.DIM
    return _STAGE_COLORS.get(event_stage(et), _C.RESET)


def get_logger():
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(os.getenv("SCHEMAGEN_LOG_LEVEL", "INFO").upper())
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter('%(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False
    return logger

logger = get_logger()

# Run ID Generator
def generate_run_id():
    return str(uuid.uuid4())

# Structured Log Event
def log_event(event_type: str, payload: dict):
    """
    One JSON line per pipeline event:
    {"event_type": ..., "stage": ..., "timestamp": <UTC ISO-8601>, **payload}
    """
    record = {
        "event_type": event_type,
        "stage": event_stage(event_type),
        "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        **payload,
    }
    text = json.dumps(record, default=str)
    level = logging.DEBUG if event_type in _DETAIL_EVENTS else logging.INFO

    if _use_color():
        color = _event_color(event_type)
        logger.log(level, f"{color}{text}{_C.RESET}")
    else:
        logger.log(level, text)

# Timer Utility
class RunTimer:
    """
    Wall-clock timer for one pipeline run.
    """
    def __init__(self):
        self.start_time = time.perf_counter()

    def duration(self):
        return round(time.perf_counter() - self.start_time, 4)
