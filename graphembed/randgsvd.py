"""Randomized generalized svd built on randomized range approximation.

The range of each matrix of the pair is approximated first, in the manner of
Halko and Tropp, either with a target rank refined by subspace iterations or
with an adaptive precision target. The two reduced matrices then go through
an exact generalized svd.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import numpy as np
import scipy.sparse as sp
import scipy.sparse.linalg as spla

from graphembed.gsvd import GSvd
from graphembed.gsvd_result import GSvdError, GSvdOptParams, GSvdResult

logger = logging.getLogger(__name__)

_EPS = float(np.finfo(float).eps)


@dataclass(frozen=True)
class RangeRank:
    """Range approximation with a target rank and a number of subspace iterations."""

    rank: int
    nbiter: int = 2

    def __post_init__(self) -> None:
        if self.rank <= 0:
            raise ValueError("target rank must be positive")
        if self.nbiter < 0:
            raise ValueError("number of iterations must be non negative")


@dataclass(frozen=True)
class RangePrecision:
    """Adaptive range approximation.

    Random blocks of ``step`` vectors are added until the residual of a block
    falls under ``epsil`` times the Frobenius norm of the matrix, or the rank
    reaches ``max_rank``.
    """

    epsil: float
    step: int
    max_rank: int

    def __post_init__(self) -> None:
        if self.epsil <= 0.0:
            raise ValueError("precision must be positive")
        if self.step <= 0:
            raise ValueError("block step must be positive")
        if self.max_rank <= 0:
            raise ValueError("maximum rank must be positive")


class MatRepr:
    """A matrix held either as a dense array or in compressed row storage."""

    def __init__(self, data) -> None:
        if isinstance(data, MatRepr):
            data = data.data
        if sp.issparse(data):
            self.data = sp.csr_matrix(data, dtype=float)
        else:
            arr = np.array(data, dtype=float)
            if arr.ndim != 2:
                raise ValueError("a matrix must be 2 dimensional")
            self.data = arr

    @property
    def is_sparse(self) -> bool:
        return sp.issparse(self.data)

    @property
    def shape(self) -> tuple[int, int]:
        return tuple(self.data.shape)

    def transpose(self) -> MatRepr:
        """Return a new matrix holding the transpose, in the same storage."""
        if self.is_sparse:
            return MatRepr(self.data.T.tocsr())
        return MatRepr(self.data.T.copy())

    def scale(self, factor: float) -> None:
        """Multiply every entry by ``factor`` in place."""
        self.data = self.data * float(factor)
        if self.is_sparse:
            self.data = sp.csr_matrix(self.data)

    def to_dense(self) -> np.ndarray:
        """Return the matrix as a dense array."""
        if self.is_sparse:
            return self.data.toarray()
        return self.data.copy()

    def frobenius(self) -> float:
        if self.is_sparse:
            return float(spla.norm(self.data))
        return float(np.linalg.norm(self.data))

    def __matmul__(self, other) -> np.ndarray:
        return np.asarray(self.data @ other)

    def rmul_transpose(self, q: np.ndarray) -> np.ndarray:
        """Return ``q.T @ self`` as a dense array."""
        return np.asarray(self.data.T @ q).T


def _as_matrepr(mat) -> MatRepr:
    return mat if isinstance(mat, MatRepr) else MatRepr(mat)


def _orthonormal(y: np.ndarray) -> np.ndarray:
    q, _ = np.linalg.qr(y)
    return q


def _rank_range(mat: MatRepr, mode: RangeRank, rng: np.random.Generator) -> np.ndarray:
    m, n = mat.shape
    rank = min(mode.rank, m, n)
    omega = rng.standard_normal((n, rank))
    q = _orthonormal(mat @ omega)
    for _ in range(mode.nbiter):
        q_tilde = _orthonormal(mat.rmul_transpose(q).T)
        q = _orthonormal(mat @ q_tilde)
    return q


def _precision_range(
    mat: MatRepr, mode: RangePrecision, rng: np.random.Generator
) -> np.ndarray:
    m, n = mat.shape
    max_rank = min(mode.max_rank, m, n)
    fro = mat.frobenius()
    q = np.zeros((m, 0))
    if fro == 0.0:
        return q
    threshold = mode.epsil * fro
    drop = max(m, n) * fro * _EPS * 10.0
    while q.shape[1] < max_rank:
        block = min(mode.step, max_rank - q.shape[1])
        y = mat @ rng.standard_normal((n, block))
        for _ in range(2):
            y = y - q @ (q.T @ y)
        norms = np.linalg.norm(y, axis=0)
        if norms.max() <= threshold:
            break
        u, s, _ = np.linalg.svd(y, full_matrices=False)
        keep = s > drop
        if not keep.any():
            break
        new_cols = u[:, keep]
        new_cols = new_cols - q @ (q.T @ new_cols)
        q = np.hstack([q, _orthonormal(new_cols)])
    logger.debug("adaptive range approximation reached rank %d", q.shape[1])
    return q


def range_approximation(mat, mode, seed=None) -> np.ndarray:
    """Return a matrix with orthonormal columns approximating the range of ``mat``."""
    mat = _as_matrepr(mat)
    rng = np.random.default_rng(seed)
    if isinstance(mode, RangeRank):
        return _rank_range(mat, mode, rng)
    if isinstance(mode, RangePrecision):
        return _precision_range(mat, mode, rng)
    raise TypeError("mode must be a RangeRank or a RangePrecision")


def direct_svd(mat, mode, seed=None) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Approximate svd of ``mat`` as ``(u, sigma, vt)`` from its range approximation."""
    mat = _as_matrepr(mat)
    q = range_approximation(mat, mode, seed)
    if q.shape[1] == 0:
        raise GSvdError("range approximation found no range")
    reduced = mat.rmul_transpose(q)
    try:
        ub, sigma, vt = np.linalg.svd(reduced, full_matrices=False)
    except np.linalg.LinAlgError as exc:
        raise GSvdError("svd failed to converge") from exc
    return q @ ub, sigma, vt


class GSvdApprox:
    """Approximate generalized svd of mat_1 (m, n) and mat_2 (p, n).

    Both matrices are first reduced to their approximated range with the same
    target, then an exact generalized svd of the reduced pair is computed.
    """

    def __init__(self, mat1, mat2, target, opt_params: GSvdOptParams | None = None) -> None:
        self.mat1 = _as_matrepr(mat1)
        self.mat2 = _as_matrepr(mat2)
        if self.mat1.shape[1] != self.mat2.shape[1]:
            logger.error("The two matrices for GSvdApprox must have the same number of columns")
            raise ValueError(
                "The two matrices for GSvdApprox must have the same number of columns"
            )
        if not isinstance(target, (RangeRank, RangePrecision)):
            raise TypeError("target must be a RangeRank or a RangePrecision")
        self.target = target
        self.opt_params = opt_params
        self.seed: int | None = None

    def do_approx_gsvd(self) -> GSvdResult:
        """Run the approximation and return the generalized svd of the reduced pair."""
        logger.debug("entering do_approx_gsvd")
        cpu_start = time.process_time()
        sys_start = time.perf_counter()
        seed2 = None if self.seed is None else self.seed + 1

        q1 = range_approximation(self.mat1, self.target, self.seed)
        if q1.shape[1] == 0:
            raise GSvdError("approximation of matrix 1 failed")
        q2 = range_approximation(self.mat2, self.target, seed2)
        if q2.shape[1] == 0:
            raise GSvdError("approximation of matrix 2 failed")

        a = self.mat1.rmul_transpose(q1)
        b = self.mat2.rmul_transpose(q2)
        try:
            result = GSvd(a, b).do_gsvd()
        except GSvdError as exc:
            raise GSvdError("Gsvd failed") from exc
        logger.info(
            "do_approx_gsvd sys time(s) %.2e cpu time(s) %.2e",
            time.perf_counter() - sys_start,
            time.process_time() - cpu_start,
        )
        return result