"""Asymmetric transitivity preserving graph embedding (Hope).

Each node gets a source vector and a target vector. The product of the source
vector of a node with the target vector of another estimates their
similarity. The similarity is built from the Katz index, the rooted page rank
or the Adamic Adar index of the graph; the Adamic Adar mode is the one used
in practice.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass

import numpy as np
import scipy.sparse as sp

from graphembed.gsvd_result import GSvdError, GSvdResult
from graphembed.hopeparams import (
    HopeMode,
    HopeParams,
    compute_1_minus_beta_mat,
    hope_distance,
    row_normalization,
)
from graphembed.orderingf import IndexedValue, decreasing_sort_nans_first
from graphembed.randgsvd import GSvdApprox, MatRepr, direct_svd

logger = logging.getLogger(__name__)


@dataclass
class HopeEmbedding:
    """Source and target vectors of each node, one row per node."""

    source: np.ndarray
    target: np.ndarray

    def __post_init__(self) -> None:
        self.source = np.asarray(self.source, dtype=float)
        self.target = np.asarray(self.target, dtype=float)
        if self.source.shape != self.target.shape:
            raise ValueError("source and target embeddings must have the same shape")

    @property
    def nb_nodes(self) -> int:
        return self.source.shape[0]

    @property
    def dimension(self) -> int:
        return self.source.shape[1]

    def distance(self, i: int, j: int) -> float:
        """Dissimilarity from node ``i`` (as source) to node ``j`` (as target)."""
        return hope_distance(self.source[i], self.target[j])


def _adamic_adar_transform(mat: MatRepr) -> None:
    """Replace ``mat`` in place by its Adamic Adar similarity.

    Paths i -> k -> j are weighted by 1 / log(1 + d_k) where d_k is the
    number of out neighbours of k.
    """
    if mat.is_sparse:
        data = mat.data.copy()
        data.eliminate_zeros()
        degrees = np.diff(data.indptr).astype(float)
    else:
        data = mat.data
        degrees = np.count_nonzero(data, axis=1).astype(float)
    logs = np.log1p(degrees)
    weights = np.zeros_like(logs)
    np.divide(1.0, logs, out=weights, where=logs > 0.0)
    if mat.is_sparse:
        mat.data = sp.csr_matrix(data @ sp.diags(weights) @ data)
    else:
        mat.data = (data * weights) @ data


def _log_spectrum(s: np.ndarray) -> None:
    if s.size == 0:
        return
    logger.info(
        "nb eigen values %d, first eigenvalue %.3e, last eigenvalue : %.3e",
        s.size, s[0], s[-1],
    )
    for i, value in enumerate(s[: min(20, s.size - 1)]):
        logger.debug(" sigma_q i : %d, value : %s ", i, value)


class Hope:
    """Hope embedder of a graph given by its (square) adjacency matrix.

    The matrix may be dense or sparse. Note that the stored matrix is
    transformed in place by the embedding (row normalized in RPR mode,
    replaced by its Adamic Adar similarity in ADA mode).
    """

    def __init__(self, params: HopeParams, mat) -> None:
        if not isinstance(params, HopeParams):
            raise TypeError("params must be a HopeParams")
        matrepr = MatRepr(mat)
        matrepr.data = matrepr.data.copy()
        nbrow, nbcol = matrepr.shape
        if nbrow != nbcol:
            raise ValueError("the adjacency matrix must be square")
        self.params = params
        self.mat = matrepr
        self.sigma_q: np.ndarray | None = None
        self.seed: int | None = None

    @property
    def nb_nodes(self) -> int:
        return self.mat.shape[0]

    @property
    def quotient_eigenvalues(self) -> np.ndarray | None:
        """Quotients of eigenvalues found in Katz mode, in decreasing order."""
        return self.sigma_q

    def _embed_katz(self, factor: float, mode) -> HopeEmbedding:
        logger.debug("hope katz problem, mode : %s, factor : %s", mode, factor)
        beta = factor
        mat_l = self.mat.transpose()
        mat_l.scale(beta)
        mat_g = compute_1_minus_beta_mat(self.mat, beta, True)
        problem = GSvdApprox(mat_l, mat_g, mode)
        problem.seed = self.seed
        try:
            result = problem.do_approx_gsvd()
        except GSvdError as exc:
            raise GSvdError(
                "compute_embedded : KATZ mode, call GSvdApprox.do_approx_gsvd failed"
            ) from exc
        return self._embed_from_gsvd_result(result)

    def _embed_from_gsvd_result(self, result: GSvdResult) -> HopeEmbedding:
        logger.debug(
            " number (k) of eigenvalues of first matrix that are equal to 1. : %d", result.k
        )
        s1 = result.s1()
        s2 = result.s2()
        if s1 is None or s2 is None:
            raise GSvdError("compute_embedded could not get s1 or s2")
        if result.v1 is None or result.v2 is None:
            raise GSvdError("compute_embedded could not get v1 or v2")
        v1, v2 = result.v1, result.v2

        sigma_q: list[IndexedValue] = []
        sort_needed = False
        for i, (c, s) in enumerate(zip(s1, s2)):
            if c > 0.0:
                new_val = IndexedValue(i, float(s / c))
                if sigma_q and new_val.value >= sigma_q[-1].value:
                    sort_needed = True
                sigma_q.append(new_val)
        if sort_needed:
            logger.debug("non decreasing quotient of eigen values, sorting")
            sigma_q = decreasing_sort_nans_first(sigma_q)
        if not sigma_q:
            logger.error("compute_embedded : did not found eigenvalues in interval ]0., 1.[")
            raise GSvdError("compute_embedded : did not found eigenvalues in interval ]0., 1.[")

        nb_sigma = len(sigma_q)
        source = np.zeros((self.nb_nodes, nb_sigma))
        target = np.zeros((self.nb_nodes, nb_sigma))
        cols1 = min(v1.shape[1], nb_sigma)
        cols2 = min(v2.shape[1], nb_sigma)
        for row, item in enumerate(sigma_q[: self.nb_nodes]):
            sigma = math.sqrt(item.value)
            source[row, :cols1] = sigma * v1[item.index, :cols1]
            target[row, :cols2] = sigma * v2[item.index, :cols2]
        logger.info("last eigen value to first : %s", sigma_q[-1].value / sigma_q[0].value)
        self.sigma_q = np.array([item.value for item in sigma_q])
        return HopeEmbedding(source, target)

    def _embed_rpr(self, factor: float, mode) -> HopeEmbedding:
        logger.debug("hope rooted page rank, mode : %s, factor : %s", mode, factor)
        row_normalization(self.mat)
        t_mat_g = compute_1_minus_beta_mat(self.mat, factor, True)
        try:
            u, s, vt = direct_svd(t_mat_g, mode, self.seed)
        except GSvdError as exc:
            raise GSvdError("compute_embedded : RPR mode, call direct_svd failed") from exc
        _log_spectrum(s)
        if np.any(s <= 0.0):
            raise GSvdError("compute_embedded : RPR mode got a non positive singular value")
        scale = np.sqrt((1.0 - factor) / s)
        return HopeEmbedding(u * scale, vt.T * scale)

    def _embed_ada(self, mode) -> HopeEmbedding:
        logger.debug("hope adamic adar problem")
        _adamic_adar_transform(self.mat)
        try:
            u, s, vt = direct_svd(self.mat, mode, self.seed)
        except GSvdError as exc:
            raise GSvdError(
                "compute_embedded : ADA mode, call SvdApprox.direct_svd failed"
            ) from exc
        _log_spectrum(s)
        roots = np.sqrt(s)
        return HopeEmbedding(u * roots, vt.T * roots)

    def compute_embedded(self) -> HopeEmbedding:
        """Compute the embedding according to the parameters."""
        logger.debug("hope compute_embedded")
        cpu_start = time.process_time()
        sys_start = time.perf_counter()
        mode = self.params.range_mode
        decay = self.params.decay_weight
        if self.params.hope_mode is HopeMode.KATZ:
            embedding = self._embed_katz(decay, mode)
        elif self.params.hope_mode is HopeMode.RPR:
            embedding = self._embed_rpr(decay, mode)
        else:
            embedding = self._embed_ada(mode)
        logger.info(
            " compute_embedded sys time(s) %.2e cpu time(s) %.2e",
            time.perf_counter() - sys_start,
            time.process_time() - cpu_start,
        )
        return embedding

    def embed(self) -> HopeEmbedding:
        """Compute and return the embedding."""
        return self.compute_embedded()