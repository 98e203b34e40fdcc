import os


# mass difference between the 13C and 12C isotopes
ISOTOPE_DIFF = 1.0032999999999674

PROTON_MASS = 1.00727646688

USE_NUMBA_CACHING = os.environ.get("USE_NUMBA_CACHING", "0") == "1"


def get_thread_count(thread_count: int, task_count: int) -> int:
    """Resolve the number of worker threads.

    Parameters
    ----------
    thread_count : int
        Configured number of threads, 0 means all available processors.
    task_count : int
        Number of independent tasks, there is no use in more threads than tasks.

    Returns
    -------
    int
        Number of threads, at least 1.
    """
    if thread_count == 0:
        thread_count = os.cpu_count() or 1

    return max(1, min(thread_count, task_count))
