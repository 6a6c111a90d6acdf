import numpy as np
import pytest

from graphembed.gsvd import GSvd, lapack_gsvd
from graphembed.gsvd_result import GSvdError, GSvdOptParams

MAT_A = np.array(
    [
        [1.0, 6.0, 11.0],
        [2.0, 7.0, 12.0],
        [3.0, 8.0, 13.0],
        [4.0, 9.0, 14.0],
        [5.0, 10.0, 15.0],
    ]
)
MAT_B = np.array([[8.0, 1.0, 6.0], [3.0, 5.0, 7.0], [4.0, 9.0, 2.0]])


def _check_common_factor(res, a, b):
    ua = res.v1.T @ a
    vb = res.v2.T @ b
    checked = 0
    for j in range(res.k, min(res.m, res.k + res.l)):
        if res.alpha[j] > 1e-6 and res.beta[j] > 1e-6:
            lhs = ua[j] / res.alpha[j]
            rhs = vb[j - res.k] / res.beta[j]
            assert np.allclose(lhs, rhs, atol=1e-7)
            checked += 1
    return checked


def test_lapack_gsvd_array_1():
    res = lapack_gsvd(MAT_A, MAT_B)
    s1 = res.s1()
    s2 = res.s2()
    assert abs(s1[0] - 0.98067) < 1.0e-5
    assert abs(s2[0] - 1.95655e-1) < 1.0e-5
    assert abs(s1[1] - 3.15531e-1) < 1.0e-5
    assert abs(s2[1] - 9.48915e-1) < 1.0e-5
    assert res.check_uv_orthogonal()


def test_array_1_ranks_and_alpha():
    res = lapack_gsvd(MAT_A, MAT_B)
    assert res.k == 0
    assert res.l == 3
    assert abs(res.alpha[2]) < 1.0e-4
    assert np.allclose(res.s1() ** 2 + res.s2() ** 2, 1.0)
    assert _check_common_factor(res, MAT_A, MAT_B) == 2


def test_lapack_gsvd_array_2():
    a = np.array([[1.0, 2.0, 3.0, 3.0, 2.0, 1.0], [4.0, 5.0, 6.0, 7.0, 8.0, 8.0]])
    b = np.array(
        [
            [1.0, 2.0, 3.0, 4.0, 5.0, 6.0],
            [7.0, 8.0, 9.0, 10.0, 11.0, 12.0],
            [13.0, 14.0, 15.0, 16.0, 17.0, 18.0],
        ]
    )
    res = lapack_gsvd(a, b)
    assert res.k == 2
    assert res.l == 2
    assert res.check_uv_orthogonal()
    assert res.s1().size == 0


def test_lapack_gsvd_random():
    rng = np.random.default_rng(4664397)
    a = rng.standard_normal((3, 70))
    b = rng.standard_normal((22, 70))
    res = lapack_gsvd(a, b)
    assert res.k == 3
    assert res.l == 22
    assert res.check_uv_orthogonal()
    assert res.v1.shape == (3, 3)
    assert res.v2.shape == (22, 22)


def test_random_tall_invariants():
    rng = np.random.default_rng(12)
    a = rng.standard_normal((8, 5))
    b = rng.standard_normal((6, 5))
    res = lapack_gsvd(a, b)
    assert (res.k, res.l) == (0, 5)
    s1 = res.s1()
    assert np.all(np.diff(s1) <= 1e-12)
    assert np.allclose(s1 ** 2 + res.s2() ** 2, 1.0)
    assert res.check_uv_orthogonal()
    assert _check_common_factor(res, a, b) == 5
    assert np.allclose((res.v1.T @ a)[5:], 0.0, atol=1e-9)
    assert np.allclose((res.v2.T @ b)[5:], 0.0, atol=1e-9)


def test_gsvd_class_matches_function():
    pb = GSvd(MAT_A, MAT_B)
    res = pb.do_gsvd()
    assert abs(res.alpha[0] - 0.9807) < 1.0e-4
    assert abs(res.alpha[1] - 0.3155) < 1.0e-4
    assert res.mat1_dim == (5, 3)
    assert res.mat2_dim == (3, 3)


def test_gsvd_keeps_opt_params():
    params = GSvdOptParams(alpha_1=2.0, transpose_1=True)
    pb = GSvd(MAT_A, MAT_B, params)
    assert pb.opt_params.alpha_1 == 2.0
    assert pb.opt_params.transpose_1 is True
    assert GSvd(MAT_A, MAT_B).opt_params is None


def test_gsvd_does_not_modify_inputs():
    a = MAT_A.copy()
    b = MAT_B.copy()
    GSvd(a, b).do_gsvd()
    assert np.array_equal(a, MAT_A)
    assert np.array_equal(b, MAT_B)


def test_column_mismatch_raises():
    with pytest.raises(ValueError):
        GSvd(np.ones((2, 3)), np.ones((2, 4)))
    with pytest.raises(ValueError):
        lapack_gsvd(np.ones((2, 3)), np.ones((2, 4)))


def test_non_finite_raises():
    a = MAT_A.copy()
    a[0, 0] = np.nan
    with pytest.raises(GSvdError):
        lapack_gsvd(a, MAT_B)


def test_zero_matrices_raise():
    with pytest.raises(GSvdError):
        lapack_gsvd(np.zeros((2, 3)), np.zeros((3, 3)))


def test_not_a_matrix_raises():
    with pytest.raises(ValueError):
        GSvd(np.ones(3), np.ones((2, 3)))