"""Logging configuration helpers for the CLI and the streamlit app."""

import logging


def configure_logging(
    verbosity: int = 0,
    log_file: str | None = None,
    *,
    base_level: int = logging.WARNING,
) -> int:
    """Configure root logging and return the level that was applied.

    Each ``-v`` lowers the level one step from `base_level` (WARNING ->
    INFO -> DEBUG). With `log_file`, records also go to that file.
    """
    level = max(logging.DEBUG, base_level - 10 * max(verbosity, 0))

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname).1s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=handlers,
        force=True,  # reset prior basicConfig runs
    )
    return level
