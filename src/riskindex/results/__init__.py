"""Final result assembly."""

from .assemblers import assemble, compare, rebenchmark

__all__ = ["assemble", "compare", "rebenchmark"]
