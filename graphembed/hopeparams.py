"""Parameters, dissimilarities and matrix helpers for Hope embedding."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Union

import numpy as np
import scipy.sparse as sp

from graphembed.randgsvd import MatRepr, RangePrecision, RangeRank

logger = logging.getLogger(__name__)

RangeMode = Union[RangeRank, RangePrecision]


def _pair(v1, v2) -> tuple[np.ndarray, np.ndarray]:
    a = np.asarray(v1, dtype=float).ravel()
    b = np.asarray(v2, dtype=float).ravel()
    if a.shape != b.shape:
        raise ValueError("vectors must have the same length")
    return a, b


def hope_distance(v1, v2) -> float:
    """Return one minus the dot product of the two vectors.

    This is the opposite of the similarity held in the Hope matrix; it is
    not a distance and may be negative.
    """
    a, b = _pair(v1, v2)
    return 1.0 - float(a @ b)


def hope_distance_cos(v1, v2) -> float:
    """Return the cosine dissimilarity, 1 when either vector is zero."""
    a, b = _pair(v1, v2)
    norm_a = float(a @ a)
    norm_b = float(b @ b)
    if norm_a > 0.0 and norm_b > 0.0:
        return 1.0 - float(a @ b) / float(np.sqrt(norm_a * norm_b))
    return 1.0


class HopeMode(enum.Enum):
    """Similarity used to build the Hope matrix."""

    KATZ = "katz"
    RPR = "rpr"
    ADA = "ada"


@dataclass(frozen=True)
class HopeParams:
    """Mode, range approximation and decay factor of a Hope embedding."""

    hope_mode: HopeMode
    range_mode: RangeMode
    decay_weight: float

    def __post_init__(self) -> None:
        if not isinstance(self.hope_mode, HopeMode):
            raise TypeError("hope_mode must be a HopeMode")
        if not isinstance(self.range_mode, (RangeRank, RangePrecision)):
            raise TypeError("range_mode must be a RangeRank or a RangePrecision")


def compute_1_minus_beta_mat(mat, beta: float, transpose: bool = False) -> MatRepr:
    """Return ``I - beta * mat``, or ``I - beta * mat.T`` when ``transpose``.

    For a sparse matrix the diagonal of ``mat`` is ignored: every diagonal
    entry of the result is 1.
    """
    mat = mat if isinstance(mat, MatRepr) else MatRepr(mat)
    nbrow, nbcol = mat.shape
    if nbrow != nbcol:
        raise ValueError("matrix must be square")
    beta = float(beta)
    if not mat.is_sparse:
        logger.debug("compute_1_minus_beta_mat dense, beta : %s, transpose : %s", beta, transpose)
        new_mat = np.eye(nbrow) - beta * mat.data
        return MatRepr(new_mat.T.copy() if transpose else new_mat)

    logger.debug("compute_1_minus_beta_mat csr, beta : %s, transpose : %s", beta, transpose)
    coo = mat.data.tocoo()
    off = coo.row != coo.col
    for row, col, val in zip(coo.row[~off], coo.col[~off], coo.data[~off]):
        logger.info("diagonal entry ignored (%d, %d), val %s", row, col, val)
    rows, cols = coo.row[off], coo.col[off]
    if transpose:
        rows, cols = cols, rows
    diag = np.arange(nbrow)
    all_rows = np.concatenate([rows, diag])
    all_cols = np.concatenate([cols, diag])
    values = np.concatenate([-beta * coo.data[off], np.ones(nbrow)])
    result = sp.coo_matrix((values, (all_rows, all_cols)), shape=(nbrow, nbrow)).tocsr()
    return MatRepr(result)


def row_normalization(mat: MatRepr) -> None:
    """Scale each row of ``mat`` in place so that it sums to 1.

    Rows summing to zero are left unchanged.
    """
    sums = np.asarray(mat.data.sum(axis=1), dtype=float).ravel()
    factors = np.ones_like(sums)
    nonzero = sums != 0.0
    factors[nonzero] = 1.0 / sums[nonzero]
    if mat.is_sparse:
        mat.data = sp.csr_matrix(sp.diags(factors) @ mat.data)
    else:
        mat.data = mat.data * factors[:, None]