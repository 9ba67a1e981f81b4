# lambdas/forward_logs/severity.py
from typing import Optional

# Coralogix severity scale
DEBUG = 1
VERBOSE = 2
INFO = 3
WARN = 4
ERROR = 5
CRITICAL = 6

LOG_LEVEL_MAPPING = {
    "TRACE": DEBUG,
    "SILLY": DEBUG,
    "DEBUG": DEBUG,
    "VERBOSE": VERBOSE,
    "INFO": INFO,
    "WARN": WARN,
    "WARNING": WARN,
    "ERROR": ERROR,
    "FATAL": CRITICAL,
    "CRITICAL": CRITICAL,
}


def severity_for(level: Optional[str]) -> int:
    """
    Maps a level name to its Coralogix severity, ignoring case.
    Anything unknown (or empty) is treated as INFO.

    Only used to decide whether an entry is forwarded: the entry body keeps
    the original level text.
    """
    if not level:
        return INFO
    return LOG_LEVEL_MAPPING.get(level.upper(), INFO)
