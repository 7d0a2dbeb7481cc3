# errors.py
#
# Project: CSR PageRank
#
# Description:
#   Exception types raised by the matrix, loader and ranking stages.
#   Nothing here is retried; main.py reports them and exits.


class CoordinateOutOfRangeError(IndexError):
    """Matrix access outside [0, m) x [0, n)."""

    def __init__(self, i, j, shape):
        super().__init__(f"invalid coordinates ({i}, {j}) for matrix of shape {shape}")
        self.i = i
        self.j = j
        self.shape = shape


class GraphLoadError(Exception):
    """Graph file is missing, unreadable or malformed."""


class InvalidStyleError(ValueError):
    """Update style is neither 'pull' nor 'push'."""


class PageRankStateError(RuntimeError):
    """Engine used before a transition matrix was supplied."""


class ConvergenceError(RuntimeError):
    """Iteration hit the safety bound without converging."""

    def __init__(self, iterations, threshold):
        super().__init__(
            f"no convergence within {iterations} iterations (threshold={threshold})"
        )
        self.iterations = iterations
        self.threshold = threshold
