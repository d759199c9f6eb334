"""Timing helpers for scoring and refresh operations"""
import logging
import time
from contextlib import contextmanager
from functools import wraps
from typing import Optional

def _now():
    return time.perf_counter()

@contextmanager
def section_timer(name: str, logger: logging.Logger, level: int = logging.DEBUG):
    """Log how long the enclosed block took"""
    t0 = _now()
    try:
        yield
    finally:
        logger.log(level, "TIMER %s took %.3f s", name, _now() - t0)

def timeit(logger: logging.Logger, name: Optional[str] = None, level: int = logging.DEBUG):
    """Decorator form of section_timer"""
    def deco(fn):
        label = name or fn.__qualname__
        @wraps(fn)
        def wrapper(*args, **kwargs):
            with section_timer(label, logger, level):
                return fn(*args, **kwargs)
        return wrapper
    return deco
