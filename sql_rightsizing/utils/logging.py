"""
Structured logging configuration for console and machine consumption.
"""

import os
import sys

import structlog


def should_use_human_readable() -> bool:
    """Determine if we should use human-readable output"""
    if os.getenv("LOG_FORMAT") == "json":
        return False

    if os.getenv("LOG_FORMAT") == "human":
        return True

    # Auto-detect: a TTY gets the console renderer
    return sys.stdout.isatty()


def _stderr_logger(*args):
    # Resolved per logger so a swapped sys.stderr is honoured
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(
    level: str = "INFO", format_type: str = "auto", component: str = None
) -> None:
    """
    Configure structured logging

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Output format ("auto", "json", "human")
        component: Optional component name added to every event
    """
    if format_type == "auto":
        use_human = should_use_human_readable()
    else:
        use_human = format_type == "human"

    processors = [
        structlog.processors.TimeStamper(fmt="%H:%M:%S" if use_human else "ISO"),
        structlog.processors.add_log_level,
    ]

    if component:

        def add_component(logger, method_name, event_dict):
            event_dict["component"] = component
            return event_dict

        processors.append(add_component)

    processors.append(structlog.processors.StackInfoRenderer())

    if use_human:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors.append(structlog.processors.JSONRenderer())

    level_map = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40, "CRITICAL": 50}
    log_level = level_map.get(level.upper(), 20)

    # Log to stderr so exported reports on stdout stay clean
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str = None):
    """Get a configured logger instance"""
    return structlog.get_logger(name)

