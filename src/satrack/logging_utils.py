from __future__ import annotations

import logging
from typing import Optional, Union

_FORMAT = "[%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str = "satrack",
               level: Optional[Union[int, str]] = None,
               logger: Optional[logging.Logger] = None) -> logging.Logger:
    """
    Return a logger for satrack code.

    - If a logger is provided, use it unchanged.
    - Otherwise use ``logging.getLogger(name)``.
    - If the package root logger has no handlers, attach a StreamHandler
      with a compact formatter.
    - ``level`` (name or number) is applied when given.
    """
    if logger is not None:
        return logger
    root = logging.getLogger("satrack")
    if not root.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter(_FORMAT))
        root.addHandler(h)
        root.setLevel(logging.INFO)
    lg = logging.getLogger(name)
    if level is not None:
        lg.setLevel(level.upper() if isinstance(level, str) else level)
    return lg
