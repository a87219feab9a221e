import logging
import sys

import structlog


def _stderr_logger(*args) -> structlog.PrintLogger:
    # Resolved per call so a swapped sys.stderr is honored.
    return structlog.PrintLogger(sys.stderr)


def configure_logging(verbose: int = 0, json: bool = False) -> None:
    """Route structlog output to stderr so stdout stays clean for results.

    verbose 0 shows warnings, 1 info, 2 or more debug.
    """
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    renderer = structlog.processors.JSONRenderer(indent=2) if json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )
