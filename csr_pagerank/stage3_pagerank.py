# stage3_pagerank.py
#
# Project: CSR PageRank
#
# Description:
#   Stage 3: PageRank by power iteration over the CSR transition matrix,
#   with two interchangeable update strategies.
#
# References:
#   [1] Page, L., Brin, S., Motwani, R., & Winograd, T. (1999).
#       "The PageRank Citation Ranking: Bringing Order to the Web."
#       http://ilpubs.stanford.edu:8090/422/1/1999-66.pdf
#
#   [2] Langville, A. & Meyer, C. (2004).
#       "A Survey of Eigenvector Methods of Web Information Retrieval."
#       http://citeseer.ist.psu.edu/713792.html
#
# Update rule (both strategies), for n nodes and damping d:
#
#     r'_i = (1-d)/n + d * ( sum_{j -> i} r_j / C(j)  +  D/n )
#
#   C(j) is the out-degree of j and D is the total rank currently held by
#   dangling nodes (C(j) = 0).  Dangling rank is redistributed uniformly to
#   every node, so the update preserves sum(r) up to rounding.
#
#   pull: node i gathers from its in-neighbours.  The transition matrix is
#         stored by source row, so the engine keeps an incoming view
#         (row i = in-edges of i) built once at initialization.
#   push: node j scatters d * r_j / C(j) along its own CSR row; no
#         transpose needed.
#
#   The two differ only in traversal order and agree to rounding error.

from enum import Enum

import numpy as np

from csr_pagerank.errors import ConvergenceError, InvalidStyleError, PageRankStateError
from csr_pagerank.sparse_matrix import SparseMatrix
from csr_pagerank.stage1_read import load_graph
from csr_pagerank.stage2_stats import build_transition
from csr_pagerank.utils import print_stage, print_step, print_success, print_summary_box, Timer

THRESHOLD = 10e-4
DEFAULT_DAMPING = 0.85
MAX_ITERATIONS = 1000


class Style(Enum):
    PULL = 'pull'
    PUSH = 'push'

    @classmethod
    def parse(cls, value):
        """Accept a Style or its name; anything else is a usage error."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidStyleError(
                f"invalid update style {value!r} (expected 'pull' or 'push')"
            ) from None


class State(Enum):
    UNINITIALIZED = 'uninitialized'
    INITIALIZED = 'initialized'
    ITERATING = 'iterating'
    CONVERGED = 'converged'


def progress(r1, r2, threshold=THRESHOLD):
    """
    Return True while two rank vectors still differ meaningfully.

    Iteration should stop (False) only when |r1[k] - r2[k]| <= threshold
    holds at every index k.  A difference equal to the threshold up to
    rounding (0.401 - 0.40 vs 0.001) counts as within it.
    """
    r1 = np.asarray(r1, dtype=np.float64)
    r2 = np.asarray(r2, dtype=np.float64)
    if r1.shape != r2.shape:
        raise ValueError(f"rank vectors differ in length: {r1.size} vs {r2.size}")
    diff = np.abs(r1 - r2)
    exceeded = (diff > threshold) & ~np.isclose(diff, threshold, rtol=1e-9, atol=0.0)
    return bool(np.any(exceeded))


def normalize(ranks):
    """Scale a rank vector so its entries sum to 1.0."""
    ranks = np.asarray(ranks, dtype=np.float64)
    total = ranks.sum()
    if not total > 0:
        raise ValueError(f"cannot normalize a rank vector with sum {total}")
    return ranks / total


def _check_damping(damping):
    if not 0.0 < damping < 1.0:
        raise ValueError(f"damping factor must be in (0, 1), got {damping}")


class PageRank:
    """
    PageRank engine over a square CSR transition matrix.

    Lifecycle: UNINITIALIZED until init_graph()/init_matrix() supplies the
    matrix, INITIALIZED with a uniform 1/n rank vector, ITERATING once any
    update has run, CONVERGED after run() returns.
    """

    def __init__(self):
        self.state = State.UNINITIALIZED
        self.n = 0
        self.transition = None
        self.out_degree = None
        self.ranks = None
        self.iterations = 0
        self._incoming = None
        self._dangling = None

    # ---------------------------------------------------------------
    # Initialization
    # ---------------------------------------------------------------

    def init_graph(self, path, fmt, progress=False):
        """
        Load a graph file and build its transition matrix.

        Raises:
            GraphLoadError: if the file cannot be read or parsed
        """
        graph = load_graph(path, fmt, progress=progress)
        matrix, out_degree = build_transition(graph)
        self.init_matrix(matrix, out_degree)
        return graph

    def init_matrix(self, matrix, out_degree=None):
        """
        Use a prepared transition matrix.

        Row j must hold the out-edges of node j with weight j -> i.  When
        `out_degree` is omitted it is taken from the stored row lengths.
        """
        if matrix.m != matrix.n:
            raise ValueError(f"transition matrix must be square, got {matrix.shape}")
        if matrix.m == 0:
            raise ValueError("graph must have at least one node")

        n = matrix.m
        if out_degree is None:
            out_degree = [matrix.row_length(j) for j in range(n)]
        out_degree = np.asarray(out_degree, dtype=np.int64)
        if out_degree.shape != (n,):
            raise ValueError(f"out-degree table has length {out_degree.size}, expected {n}")

        incoming = SparseMatrix(n, n)
        for entry in matrix:
            incoming.set(entry.j, entry.i, entry.value)

        self.n = n
        self.transition = matrix
        self.out_degree = out_degree
        self._incoming = incoming
        self._dangling = out_degree == 0
        self.reset()

    def reset(self):
        """Return to the uniform 1/n starting vector."""
        self._require_matrix()
        self.ranks = np.full(self.n, 1.0 / self.n, dtype=np.float64)
        self.iterations = 0
        self.state = State.INITIALIZED

    def _require_matrix(self):
        if self.transition is None:
            raise PageRankStateError("PageRank used before a transition matrix was supplied")

    def _check_ranks(self, ranks):
        self._require_matrix()
        ranks = np.asarray(ranks, dtype=np.float64)
        if ranks.shape != (self.n,):
            raise ValueError(f"rank vector has length {ranks.size}, expected {self.n}")
        return ranks

    def _base(self, ranks, damping):
        """Teleport share plus the uniformly spread dangling rank."""
        dangling_sum = ranks[self._dangling].sum()
        return (1.0 - damping) / self.n + damping * dangling_sum / self.n

    # ---------------------------------------------------------------
    # Update strategies (pure)
    # ---------------------------------------------------------------

    def pull(self, ranks, damping):
        """One pull step from `ranks`.  Returns a new vector."""
        ranks = self._check_ranks(ranks)
        base = self._base(ranks, damping)
        new = np.empty(self.n, dtype=np.float64)
        for i in range(self.n):
            gathered = 0.0
            for entry in self._incoming.row(i):
                gathered += ranks[entry.j] * entry.value
            new[i] = base + damping * gathered
        return new

    def push(self, ranks, damping):
        """One push step from `ranks`.  Returns a new vector."""
        ranks = self._check_ranks(ranks)
        new = np.full(self.n, self._base(ranks, damping), dtype=np.float64)
        for j in range(self.n):
            share = damping * ranks[j]
            for entry in self.transition.row(j):
                new[entry.j] += share * entry.value
        return new

    # ---------------------------------------------------------------
    # Stateful updates
    # ---------------------------------------------------------------

    def _advance(self, new):
        self.ranks = new
        self.iterations += 1
        self.state = State.ITERATING
        return new

    def pull_update(self, damping=DEFAULT_DAMPING):
        """Replace the current vector with one pull step and return it."""
        self._require_matrix()
        return self._advance(self.pull(self.ranks, damping))

    def push_update(self, damping=DEFAULT_DAMPING):
        """Replace the current vector with one push step and return it."""
        self._require_matrix()
        return self._advance(self.push(self.ranks, damping))

    def update(self, style, damping=DEFAULT_DAMPING):
        if Style.parse(style) is Style.PULL:
            return self.pull_update(damping)
        return self.push_update(damping)

    # ---------------------------------------------------------------
    # Driving loop
    # ---------------------------------------------------------------

    def run(self, style, damping=DEFAULT_DAMPING, threshold=THRESHOLD,
            max_iterations=MAX_ITERATIONS):
        """
        Iterate from the uniform vector until two consecutive vectors agree
        within `threshold` at every index, then normalize.

        The selected style is used for every step.

        Returns:
            numpy.ndarray: ranks summing to 1.0

        Raises:
            InvalidStyleError: unknown style
            ValueError: damping outside (0, 1)
            PageRankStateError: no transition matrix yet
            ConvergenceError: max_iterations reached first
        """
        style = Style.parse(style)
        _check_damping(damping)
        self.reset()

        r1 = self.update(style, damping)
        r2 = self.update(style, damping)
        while progress(r1, r2, threshold):
            if self.iterations >= max_iterations:
                raise ConvergenceError(self.iterations, threshold)
            r1, r2 = r2, self.update(style, damping)

        self.ranks = normalize(r2)
        self.state = State.CONVERGED
        return self.ranks


def compute_pagerank(graph, style, damping=DEFAULT_DAMPING, threshold=THRESHOLD,
                     max_iterations=MAX_ITERATIONS):
    """
    Rank a loaded graph and report the top pages.

    Args:
        graph (Graph): Output of stage 1
        style (str|Style): 'pull' or 'push'
        damping (float): Damping factor d in (0, 1)
        threshold (float): Per-index convergence threshold
        max_iterations (int): Safety bound on update steps

    Returns:
        numpy.ndarray: normalized PageRank score per node index
    """
    style = Style.parse(style)
    _check_damping(damping)

    print_stage("PageRank", f"Computing PageRank scores ({style.value} style, d={damping})")

    with Timer("Total Stage 3"):
        print_step("Building CSR transition matrix...")
        matrix, out_degree = build_transition(graph)
        engine = PageRank()
        engine.init_matrix(matrix, out_degree)
        print_success(f"Matrix: {matrix.m} x {matrix.n}, {matrix.nnz} stored entries")

        print_step("Running power iterations...")
        ranks = engine.run(style, damping, threshold, max_iterations)
        print_success(f"Converged after {engine.iterations} iterations (threshold={threshold})")

        top5 = sorted(range(graph.num_nodes), key=lambda k: ranks[k], reverse=True)[:5]
        print_summary_box("Top 5 Nodes by PageRank", {
            f"Node {graph.labels[k]}": f"{ranks[k]:.8f}" for k in top5
        })

    return ranks
