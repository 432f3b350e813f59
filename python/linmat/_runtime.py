import os
import multiprocessing

_ENV_VAR = "LINMAT_NUM_THREADS"

_default_threads = max(1, multiprocessing.cpu_count())
_current_threads = _default_threads


def set_num_threads(n: int) -> None:
    """Set the number of worker threads used by bulk matrix operations.

    Parameters
    ----------
    n : int
        Thread count, at least 1.

    Raises
    ------
    ValueError
        If ``n`` is smaller than 1.
    """
    global _current_threads
    n = int(n)
    if n < 1:
        raise ValueError("number of threads must be >= 1")
    _current_threads = n


def get_num_threads() -> int:
    # If user set env externally, honor it
    env = os.environ.get(_ENV_VAR)
    if env:
        try:
            value = int(env)
        except ValueError:
            return _current_threads
        if value > 0:
            return value
    return _current_threads


def reset_num_threads() -> None:
    """Restore the thread count to the number of available CPUs."""
    global _current_threads
    _current_threads = _default_threads
