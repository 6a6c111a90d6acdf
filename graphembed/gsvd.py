"""Generalized singular value decomposition of a pair of dense matrices.

The decomposition follows the conventions of LAPACK ``ggsvd3``. For A (m, n)
and B (p, n) it gives orthogonal matrices U (m, m) and V (p, p), the integers
k and l with k + l the numerical rank of the stacked matrix [A; B] and l the
numerical rank of B, and the vectors alpha and beta of size n:

- alpha[:k] = 1 and beta[:k] = 0,
- alpha[k:k+l] = C (decreasing) and beta[k:k+l] = S with C**2 + S**2 = 1,
- when m < k + l, alpha[m:k+l] = 0 and beta[m:k+l] = 1,
- beyond k + l both are 0.

Then ``U.T @ A`` and ``V.T @ B`` share a common right factor scaled by alpha
and beta respectively.
"""

from __future__ import annotations

import logging
import time

import numpy as np

from graphembed.gsvd_result import GSvdError, GSvdOptParams, GSvdResult

logger = logging.getLogger(__name__)

_EPS = float(np.finfo(float).eps)
_TINY = float(np.finfo(float).tiny)
# columns of Q1 @ X with a smaller norm do not give a reliable direction for U
_RELIABLE_NORM = 1.0e-8


def _as_matrix(mat, name: str) -> np.ndarray:
    arr = np.array(mat, dtype=float)
    if arr.ndim != 2:
        raise ValueError(f"{name} must be a 2 dimensional matrix")
    return arr


def _orthonormal_complement(cols: np.ndarray, dim: int) -> np.ndarray:
    """Return an orthonormal basis of the complement of the span of ``cols``."""
    if cols.shape[1] == 0:
        return np.eye(dim)
    full, _, _ = np.linalg.svd(cols, full_matrices=True)
    return full[:, cols.shape[1]:]


def _orthonormalize_keep_signs(cols: np.ndarray) -> np.ndarray:
    """Orthonormalize nearly orthonormal columns without flipping their signs."""
    if cols.shape[1] == 0:
        return cols
    q, r = np.linalg.qr(cols)
    signs = np.sign(np.diag(r))
    signs[signs == 0] = 1.0
    return q * signs


def lapack_gsvd(a, b) -> GSvdResult:
    """Compute the generalized svd of ``a`` (m, n) and ``b`` (p, n)."""
    a = _as_matrix(a, "a")
    b = _as_matrix(b, "b")
    m, n = a.shape
    p, nb = b.shape
    if n != nb:
        raise ValueError("The two matrices for gsvd must have the same number of columns")
    if not (np.all(np.isfinite(a)) and np.all(np.isfinite(b))):
        raise GSvdError("matrices for gsvd must hold only finite values")

    try:
        stacked = np.vstack([a, b])
        w, sigma, _ = np.linalg.svd(stacked, full_matrices=False)
        sigma_b = np.linalg.svd(b, compute_uv=False) if b.size else np.zeros(0)
    except np.linalg.LinAlgError as exc:
        raise GSvdError("gsvd failed to converge") from exc

    tol_m = max(m + p, n) * (float(sigma[0]) if sigma.size else 0.0) * _EPS
    r = int(np.count_nonzero(sigma > tol_m))
    if r == 0:
        raise GSvdError("both matrices are numerically zero")
    norm_b = float(np.abs(b).sum(axis=0).max()) if b.size else 0.0
    tol_b = max(p, n) * max(norm_b, _TINY) * _EPS
    l = min(int(np.count_nonzero(sigma_b > tol_b)), r)
    k = r - l
    if k > m:
        raise GSvdError("inconsistent ranks found for the pair of matrices")

    q = w[:, :r]
    q1, q2 = q[:m], q[m:]
    try:
        vs, s, xt = np.linalg.svd(q2, full_matrices=True)
    except np.linalg.LinAlgError as exc:
        raise GSvdError("gsvd failed to converge") from exc

    x_full = xt.T
    # directions where B vanishes first, then increasing values of S
    x = np.hstack([x_full[:, l:], x_full[:, :l][:, ::-1]])
    v = np.hstack([vs[:, :l][:, ::-1], vs[:, l:]])
    s_block = s[:l][::-1].copy()

    col_norms = np.linalg.norm(q1 @ x, axis=0)
    c_block = col_norms[k:k + l]
    rho = np.hypot(c_block, s_block)
    rho[rho == 0] = 1.0
    c_block = c_block / rho
    s_block = s_block / rho

    order = np.argsort(-c_block, kind="stable")
    c_block = c_block[order]
    s_block = s_block[order]
    x[:, k:k + l] = x[:, k:k + l][:, order]
    v[:, :l] = v[:, :l][:, order]

    alpha = np.zeros(n)
    beta = np.zeros(n)
    alpha[:k] = 1.0
    alpha[k:k + l] = c_block
    beta[k:k + l] = s_block
    if m < r:
        alpha[m:r] = 0.0
        beta[m:r] = 1.0

    w_mat = q1 @ x
    norms = np.linalg.norm(w_mat, axis=0)
    limit = min(m, r)
    reliable = [j for j in range(limit) if norms[j] > _RELIABLE_NORM and alpha[j] > 0.0]
    u_part = _orthonormalize_keep_signs(w_mat[:, reliable] / norms[reliable])
    u = np.zeros((m, m))
    u[:, reliable] = u_part
    others = [j for j in range(m) if j not in set(reliable)]
    if others:
        u[:, others] = _orthonormal_complement(u_part, m)

    iwork = np.arange(1, n + 1, dtype=np.int32)
    return GSvdResult.from_lapack(m, n, p, u, v, k, l, alpha, beta, iwork)


class GSvd:
    """A generalized svd problem for mat_1 = a (m, n) and mat_2 = b (p, n).

    If mat_2 is non singular the decomposition gives the svd of
    ``mat_1 @ inv(mat_2)`` as ``V1 @ diag(s1 / s2) @ V2.T``.
    """

    def __init__(self, a, b, opt_params: GSvdOptParams | None = None) -> None:
        self.a = _as_matrix(a, "a")
        self.b = _as_matrix(b, "b")
        if self.a.shape[1] != self.b.shape[1]:
            logger.error("The two matrices for gsvd must have the same number of columns")
            raise ValueError("The two matrices for gsvd must have the same number of columns")
        self.opt_params = opt_params

    def do_gsvd(self) -> GSvdResult:
        """Run the decomposition and return its decoded result."""
        logger.debug("entering do_gsvd")
        cpu_start = time.process_time()
        sys_start = time.perf_counter()
        result = lapack_gsvd(self.a, self.b)
        logger.info(
            "do_gsvd sys time(s) %.2e cpu time(s) %.2e",
            time.perf_counter() - sys_start,
            time.process_time() - cpu_start,
        )
        logger.debug("gsvd k : %d, l : %d", result.k, result.l)
        return result