import numpy as np
import pytest

from csr_pagerank.errors import ConvergenceError, InvalidStyleError, PageRankStateError
from csr_pagerank.sparse_matrix import SparseMatrix
from csr_pagerank.stage3_pagerank import (
    THRESHOLD, PageRank, State, Style, compute_pagerank, normalize, progress,
)

# 0 -> 1, 0 -> 2, 1 -> 2, 2 -> 0, 3 -> 2, 3 -> 4; node 4 is dangling
SMALL_EDGES = [(0, 1), (0, 2), (1, 2), (2, 0), (3, 2), (3, 4)]


# ---------------------------------------------------------------
# Convergence check
# ---------------------------------------------------------------

def test_progress_within_threshold_stops():
    assert progress([0.40, 0.60], [0.401, 0.599], 0.001) is False


def test_progress_above_threshold_continues():
    assert progress([0.40, 0.60], [0.401, 0.599], 0.0001) is True


def test_progress_single_index_over_threshold():
    assert progress([0.1, 0.2, 0.3], [0.1, 0.2, 0.35], 0.01) is True


def test_progress_default_threshold():
    assert THRESHOLD == pytest.approx(1e-3)
    assert progress([0.5, 0.5], [0.5005, 0.4995]) is False


def test_progress_length_mismatch():
    with pytest.raises(ValueError):
        progress([0.5, 0.5], [1.0])


# ---------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------

def test_normalize_sums_to_one():
    np.testing.assert_allclose(normalize([1.0, 1.0, 2.0]), [0.25, 0.25, 0.5])


def test_normalize_zero_sum_rejected():
    with pytest.raises(ValueError):
        normalize([0.0, 0.0])


# ---------------------------------------------------------------
# Update strategies
# ---------------------------------------------------------------

def test_pull_and_push_agree_from_uniform(make_engine):
    pull = make_engine(5, SMALL_EDGES).pull_update(0.85)
    push = make_engine(5, SMALL_EDGES).push_update(0.85)
    np.testing.assert_allclose(pull, push, rtol=0, atol=1e-9)


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_pull_and_push_agree_on_arbitrary_vector(make_engine, seed):
    engine = make_engine(5, SMALL_EDGES)
    ranks = np.random.default_rng(seed).random(5)
    np.testing.assert_allclose(
        engine.pull(ranks, 0.7), engine.push(ranks, 0.7), rtol=0, atol=1e-9)


def test_updates_do_not_mutate_input(make_engine):
    engine = make_engine(5, SMALL_EDGES)
    before = engine.ranks.copy()
    previous = engine.ranks
    new = engine.push_update(0.85)
    assert new is not previous
    np.testing.assert_array_equal(previous, before)
    assert engine.ranks is new


def test_update_preserves_total_rank(make_engine):
    engine = make_engine(5, SMALL_EDGES)
    for _ in range(5):
        assert engine.pull_update(0.85).sum() == pytest.approx(1.0, abs=1e-12)


def test_dangling_rank_is_spread_uniformly(make_engine):
    # 0 -> 1 -> 2, node 2 dangling, one step from [1/3, 1/3, 1/3]
    engine = make_engine(3, [(0, 1), (1, 2)])
    d, n = 0.85, 3
    base = (1 - d) / n + d * (1 / 3) / n
    expected = [base, base + d / 3, base + d / 3]
    np.testing.assert_allclose(engine.pull_update(d), expected, atol=1e-12)

    engine.reset()
    np.testing.assert_allclose(engine.push_update(d), expected, atol=1e-12)


def test_chain_ranks_increase_along_the_chain(make_engine):
    for style in ("pull", "push"):
        ranks = make_engine(3, [(0, 1), (1, 2)]).run(style, 0.85)
        assert ranks[2] > ranks[1] > ranks[0]
        assert ranks.sum() == pytest.approx(1.0, abs=1e-9)


# ---------------------------------------------------------------
# Driving loop
# ---------------------------------------------------------------

def test_single_node_self_loop(make_engine):
    engine = make_engine(1, [(0, 0)])
    np.testing.assert_allclose(engine.run("pull", 0.85), [1.0])
    assert engine.state is State.CONVERGED


def test_single_isolated_node(make_engine):
    np.testing.assert_allclose(make_engine(1, []).run("push", 0.85), [1.0])


def test_symmetric_pair_is_already_stationary(make_engine):
    engine = make_engine(2, [(0, 1), (1, 0)])
    r1 = engine.pull_update(0.85)
    r2 = engine.pull_update(0.85)
    np.testing.assert_allclose(r1, [0.5, 0.5])
    assert progress(r1, r2) is False

    ranks = engine.run("push", 0.85)
    np.testing.assert_allclose(ranks, [0.5, 0.5])
    assert engine.iterations == 2


@pytest.mark.parametrize("style", ["pull", "push"])
@pytest.mark.parametrize("damping", [0.1, 0.5, 0.85, 0.99])
def test_result_sums_to_one(make_engine, style, damping):
    ranks = make_engine(5, SMALL_EDGES).run(style, damping)
    assert ranks.sum() == pytest.approx(1.0, abs=1e-9)
    assert np.all(ranks > 0)


def test_styles_converge_to_same_ranks(make_engine):
    pull = make_engine(5, SMALL_EDGES).run("pull", 0.85, threshold=1e-12)
    push = make_engine(5, SMALL_EDGES).run("push", 0.85, threshold=1e-12)
    np.testing.assert_allclose(pull, push, atol=1e-9)


def test_push_style_never_falls_back_to_pull(make_engine):
    engine = make_engine(5, SMALL_EDGES)

    def fail(*args):
        pytest.fail("pull called during a push run")

    engine.pull = fail
    engine.run("push", 0.85, threshold=1e-8)
    assert engine.iterations > 2


def test_max_iterations_raises(make_engine):
    engine = make_engine(5, SMALL_EDGES)
    with pytest.raises(ConvergenceError) as excinfo:
        engine.run("pull", 0.85, threshold=-1.0, max_iterations=5)
    assert excinfo.value.iterations == 5


def test_run_restarts_from_uniform(make_engine):
    engine = make_engine(5, SMALL_EDGES)
    first = engine.run("pull", 0.85).copy()
    second = engine.run("pull", 0.85)
    np.testing.assert_array_equal(first, second)


# ---------------------------------------------------------------
# State and argument checks
# ---------------------------------------------------------------

def test_state_transitions(make_engine):
    engine = PageRank()
    assert engine.state is State.UNINITIALIZED
    engine = make_engine(2, [(0, 1)])
    assert engine.state is State.INITIALIZED
    np.testing.assert_allclose(engine.ranks, [0.5, 0.5])
    engine.update("pull", 0.85)
    assert engine.state is State.ITERATING
    engine.run("pull", 0.85)
    assert engine.state is State.CONVERGED


def test_update_before_init_raises():
    engine = PageRank()
    with pytest.raises(PageRankStateError):
        engine.pull_update(0.85)
    with pytest.raises(PageRankStateError):
        engine.run("push", 0.85)


def test_invalid_style():
    with pytest.raises(InvalidStyleError):
        Style.parse("sideways")
    assert Style.parse("push") is Style.PUSH
    assert Style.parse(Style.PULL) is Style.PULL


def test_invalid_style_rejected_before_iterating(make_engine):
    engine = make_engine(2, [(0, 1)])
    with pytest.raises(ValueError):
        engine.run("sideways", 0.85)
    assert engine.iterations == 0


@pytest.mark.parametrize("damping", [0.0, 1.0, -0.2, 1.5])
def test_damping_out_of_range(make_engine, damping):
    with pytest.raises(ValueError):
        make_engine(2, [(0, 1)]).run("pull", damping)


def test_non_square_matrix_rejected():
    with pytest.raises(ValueError):
        PageRank().init_matrix(SparseMatrix(2, 3))


def test_empty_matrix_rejected():
    with pytest.raises(ValueError):
        PageRank().init_matrix(SparseMatrix(0, 0))


def test_out_degree_derived_from_rows():
    matrix = SparseMatrix(3, 3)
    matrix.set(0, 1, 0.5)
    matrix.set(0, 2, 0.5)
    matrix.set(1, 2, 1.0)
    engine = PageRank()
    engine.init_matrix(matrix)
    np.testing.assert_array_equal(engine.out_degree, [2, 1, 0])


def test_init_graph_from_file(tmp_path):
    path = tmp_path / "g.txt"
    path.write_text("0 1\n1 0\n")
    engine = PageRank()
    graph = engine.init_graph(str(path), "edgelist")
    assert graph.num_nodes == 2
    assert engine.n == 2
    np.testing.assert_allclose(engine.run("pull", 0.85), [0.5, 0.5])


def test_compute_pagerank_reports_top_nodes(make_graph, capsys):
    graph = make_graph(5, SMALL_EDGES)
    ranks = compute_pagerank(graph, "push", 0.85)
    assert ranks.sum() == pytest.approx(1.0, abs=1e-9)
    out = capsys.readouterr().out
    assert "Top 5 Nodes by PageRank" in out
    assert "Converged after" in out
