EXIT_OK = 0
EXIT_BELOW_THRESHOLD = 1
EXIT_LOAD_ERROR = 2


def exit_code_for(percentage: float, min_coverage: float) -> int:
    """Exit code of a coverage gate: non-zero when the run falls short of ``min_coverage``."""
    return EXIT_OK if percentage >= min_coverage else EXIT_BELOW_THRESHOLD
