"""Result of a generalized singular value decomposition."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)


class GSvdError(Exception):
    """Raised when a generalized svd cannot be computed or decoded."""


@dataclass(frozen=True)
class GSvdOptParams:
    """Optional scaling and transposition applied to the two matrices."""

    alpha_1: float = 1.0
    transpose_1: bool = False
    alpha_2: float = 1.0
    transpose_2: bool = False


def check_orthogonality(u: np.ndarray, epsil: float = 1.0e-5) -> bool:
    """Return True if ``u @ u.T`` is the identity within ``epsil``."""
    u = np.asarray(u, dtype=float)
    product = u @ u.T
    n = product.shape[0]
    for i in range(n):
        if abs(1.0 - product[i, i]) > epsil:
            logger.error("check_orthogonality failed at (%d,%d)", i, i)
            return False
        off = np.abs(product[i, :i])
        if off.size and off.max() > epsil:
            j = int(np.argmax(off))
            logger.error("check_orthogonality failed at (%d,%d)", i, j)
            return False
    return True


@dataclass
class GSvdResult:
    """Decoded output of a generalized svd of A (m, n) and B (p, n).

    ``alpha`` and ``beta`` have size n. The first k entries of alpha are 1;
    ``s1()`` and ``s2()`` give the pair of diagonals with s1**2 + s2**2 = 1.
    """

    m: int
    n: int
    p: int
    k: int
    l: int
    v1: np.ndarray | None = None
    v2: np.ndarray | None = None
    alpha: np.ndarray | None = None
    beta: np.ndarray | None = None
    decreasing_s1: np.ndarray | None = None

    @property
    def mat1_dim(self) -> tuple[int, int]:
        return (self.m, self.n)

    @property
    def mat2_dim(self) -> tuple[int, int]:
        return (self.p, self.n)

    def _s_range(self) -> slice:
        if self.m >= self.k + self.l:
            if self.l <= 0:
                raise GSvdError("l must be positive when m >= k + l")
            return slice(self.k, self.k + self.l)
        if self.m < self.k:
            raise GSvdError("m must be at least k")
        return slice(self.k, self.m)

    def s1(self) -> np.ndarray | None:
        """Eigenvalues in ]0, 1[ of the first matrix."""
        if self.alpha is None:
            return None
        return self.alpha[self._s_range()]

    def s2(self) -> np.ndarray | None:
        """Eigenvalues in ]0, 1[ of the second matrix."""
        if self.beta is None:
            return None
        return self.beta[self._s_range()]

    @classmethod
    def from_lapack(cls, m, n, p, u, v, k, l, alpha, beta, permuta) -> GSvdResult:
        """Build a result from the outputs of a LAPACK ggsvd3 call."""
        alpha = np.asarray(alpha, dtype=float)
        beta = np.asarray(beta, dtype=float)
        permuta = np.asarray(permuta, dtype=int)
        if alpha.shape != (n,) or beta.shape != (n,):
            raise ValueError("alpha and beta must both have length n")
        if m < 0 or k < 0 or l < 0:
            raise ValueError("m, k and l must be non negative")
        logger.debug("from_lapack m : %d, n : %d, p : %d, k : %d, l : %d", m, n, p, k, l)

        result = cls(
            m=int(m), n=int(n), p=int(p), k=int(k), l=int(l),
            v1=None if u is None else np.asarray(u, dtype=float),
            v2=None if v is None else np.asarray(v, dtype=float),
            alpha=alpha, beta=beta,
        )
        span = result._s_range()
        s = span.stop
        s1_v = alpha[span]
        s2_v = beta[span]

        for c, sv in zip(s1_v, s2_v):
            epsil = abs(1.0 - (c * c + sv * sv))
            if epsil > 1.0e-5:
                logger.error(" epsil (should be very small < 1.E-5) = %.3e", epsil)

        if permuta.shape[0] < s:
            raise GSvdError("sorting information is shorter than expected")
        decreasing = permuta[k:s] - k - 1
        if decreasing.size and (decreasing.min() < 0 or decreasing.max() >= s1_v.size):
            raise GSvdError("sorting information out of range")
        ordered = s1_v[decreasing]
        for i in range(1, ordered.size):
            if ordered[i] > ordered[i - 1]:
                logger.error("alpha non decreasing at i : %d %s %s", i, ordered[i], ordered[i - 1])
                raise GSvdError("non sorted alpha")
        if decreasing.size:
            logger.debug(
                " greatest alpha < 1. : %.3e, smallest alpha > 0. : %.3e",
                ordered[0], ordered[-1],
            )
            result.decreasing_s1 = decreasing
        return result

    def check_uv_orthogonal(self) -> bool:
        """Return True if both v1 and v2 (when present) are orthogonal."""
        return all(check_orthogonality(mat) for mat in (self.v1, self.v2) if mat is not None)