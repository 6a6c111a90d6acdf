import numpy as np
import pytest
import scipy.sparse as sp

from graphembed.gsvd_result import GSvdError
from graphembed.hope import Hope, HopeEmbedding
from graphembed.hopeparams import HopeMode, HopeParams
from graphembed.randgsvd import RangeRank


def _symmetric_graph() -> np.ndarray:
    return np.array(
        [
            [0, 1, 1, 0, 0],
            [1, 0, 1, 1, 0],
            [1, 1, 0, 0, 1],
            [0, 1, 0, 0, 1],
            [0, 0, 1, 1, 0],
        ],
        dtype=float,
    )


def _directed_graph() -> np.ndarray:
    return np.array(
        [
            [0, 1, 1, 0],
            [0, 0, 1, 0],
            [1, 0, 0, 1],
            [0, 1, 0, 0],
        ],
        dtype=float,
    )


def _cycle(n: int) -> np.ndarray:
    mat = np.zeros((n, n))
    for i in range(n):
        mat[i, (i + 1) % n] = 1.0
    return mat


def _hope(mode, mat, decay=0.3, rank=None):
    n = np.asarray(mat.shape)[0]
    params = HopeParams(mode, RangeRank(rank or n, 2), decay)
    hope = Hope(params, mat)
    hope.seed = 0
    return hope


def test_ada_reconstructs_transformed_matrix():
    hope = _hope(HopeMode.ADA, _symmetric_graph())
    emb = hope.compute_embedded()
    assert np.allclose(emb.source @ emb.target.T, hope.mat.to_dense(), atol=1e-8)


def test_ada_shapes():
    hope = _hope(HopeMode.ADA, _symmetric_graph())
    emb = hope.compute_embedded()
    assert emb.source.shape == emb.target.shape
    assert emb.nb_nodes == 5


def test_ada_distance_is_one_minus_similarity():
    hope = _hope(HopeMode.ADA, _directed_graph())
    emb = hope.embed()
    similarity = hope.mat.to_dense()
    assert emb.distance(0, 2) == pytest.approx(1.0 - similarity[0, 2], abs=1e-8)
    assert emb.distance(3, 1) == pytest.approx(1.0 - similarity[3, 1], abs=1e-8)


def test_ada_path_common_neighbours():
    path = np.array([[0, 1, 0], [1, 0, 1], [0, 1, 0]], dtype=float)
    hope = _hope(HopeMode.ADA, path)
    hope.compute_embedded()
    similarity = hope.mat.to_dense()
    assert similarity[0, 1] == pytest.approx(0.0)
    assert similarity[0, 2] > 0.0
    assert np.allclose(similarity, similarity.T)


def test_ada_sparse_and_dense_agree():
    dense = _hope(HopeMode.ADA, _directed_graph())
    sparse = _hope(HopeMode.ADA, sp.csr_matrix(_directed_graph()))
    emb_dense = dense.compute_embedded()
    emb_sparse = sparse.compute_embedded()
    assert np.allclose(
        emb_dense.source @ emb_dense.target.T,
        emb_sparse.source @ emb_sparse.target.T,
        atol=1e-8,
    )


def test_input_matrix_is_not_modified():
    graph = _directed_graph()
    original = graph.copy()
    _hope(HopeMode.ADA, graph).compute_embedded()
    assert np.array_equal(graph, original)


def test_rpr_rows_are_normalized():
    hope = _hope(HopeMode.RPR, _directed_graph(), decay=0.3)
    hope.compute_embedded()
    assert np.allclose(hope.mat.to_dense().sum(axis=1), 1.0)


def test_rpr_reconstructs_rooted_page_rank():
    decay = 0.3
    hope = _hope(HopeMode.RPR, _directed_graph(), decay=decay)
    emb = hope.compute_embedded()
    transition = hope.mat.to_dense()
    expected = (1.0 - decay) * np.linalg.inv(np.eye(4) - decay * transition)
    product = emb.source @ emb.target.T
    assert np.allclose(product, expected, atol=1e-8)
    assert np.allclose(product.sum(axis=1), 1.0, atol=1e-8)


def test_katz_quotients_are_decreasing_and_positive():
    hope = _hope(HopeMode.KATZ, _cycle(4), decay=0.1)
    assert hope.quotient_eigenvalues is None
    emb = hope.compute_embedded()
    quotients = hope.quotient_eigenvalues
    assert quotients.size > 0
    assert np.all(quotients > 0.0)
    assert np.all(np.diff(quotients) <= 1e-12)
    assert emb.source.shape == (4, quotients.size)


def test_katz_edgeless_graph_raises():
    hope = _hope(HopeMode.KATZ, np.zeros((3, 3)), decay=0.1)
    with pytest.raises(GSvdError):
        hope.compute_embedded()


def test_non_square_matrix_rejected():
    params = HopeParams(HopeMode.ADA, RangeRank(2, 2), 1.0)
    with pytest.raises(ValueError):
        Hope(params, np.zeros((2, 3)))


def test_bad_params_rejected():
    with pytest.raises(TypeError):
        Hope("ada", np.zeros((2, 2)))


def test_nb_nodes():
    hope = _hope(HopeMode.ADA, _symmetric_graph())
    assert hope.nb_nodes == 5


def test_embedding_shape_mismatch_rejected():
    with pytest.raises(ValueError):
        HopeEmbedding(np.zeros((2, 2)), np.zeros((2, 3)))


def test_embedding_distance_value():
    emb = HopeEmbedding(np.array([[1.0, 0.0], [0.5, 0.5]]), np.array([[0.0, 2.0], [1.0, 1.0]]))
    assert emb.distance(0, 1) == pytest.approx(0.0)
    assert emb.distance(1, 0) == pytest.approx(0.0)
    assert emb.distance(0, 0) == pytest.approx(1.0)