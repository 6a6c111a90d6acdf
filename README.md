# graphembed

Asymmetric graph embedding in the spirit of HOPE (High-Order Proximity
preserved Embedding), built on randomized range approximation, a truncated
SVD and a generalized SVD of a pair of matrices.

Each node of a directed graph receives two vectors, a *source* and a
*target* vector, so that the dot product of the source vector of `i` with the
target vector of `j` approximates a proximity between `i` and `j`.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## What is inside

- `graphembed.orderingf`: `IndexedValue` (an index and a value, compared by
  value only) and `decreasing_sort_nans_first`, which returns the values
  sorted in decreasing order with NaN values placed last.
- `graphembed.gsvd_result`: `GSvdResult` (with `from_lapack`, `s1()`,
  `s2()`, `check_uv_orthogonal()`), `GSvdOptParams`, the exception
  `GSvdError` and `check_orthogonality`.
- `graphembed.gsvd`: `lapack_gsvd(a, b)` and the class `GSvd` with
  `do_gsvd()`, the generalized SVD of a pair of dense matrices with the same
  number of columns, following the `ggsvd3` conventions for `k`, `l`,
  `alpha` and `beta`.
- `graphembed.randgsvd`: `MatRepr` (a dense or CSR matrix with `transpose`,
  `scale`, `to_dense`), the approximation targets `RangeRank` and
  `RangePrecision`, `range_approximation`, `direct_svd` and `GSvdApprox`, a
  randomized generalized SVD that reduces both matrices to their approximate
  range and then runs `GSvd` on the reduced pair.
- `graphembed.hopeparams`: `HopeMode`, `HopeParams`, the dissimilarities
  `hope_distance` (one minus the dot product, which may be negative) and
  `hope_distance_cos` (cosine dissimilarity), and the matrix helpers
  `compute_1_minus_beta_mat` and `row_normalization`.
- `graphembed.hope`: `Hope`, the embedder, and `HopeEmbedding`, its result
  (`source`, `target`, `nb_nodes`, `dimension`, `distance(i, j)`).

Failures of a decomposition raise `GSvdError`; malformed inputs raise
`ValueError` or `TypeError`.

## Example

```python
import numpy as np
from scipy import sparse

from graphembed.hope import Hope
from graphembed.hopeparams import HopeMode, HopeParams
from graphembed.randgsvd import RangeRank

edges = [(0, 1), (1, 2), (2, 0), (2, 3), (3, 4), (4, 2)]
rows, cols = zip(*edges)
adjacency = sparse.csr_matrix(
    (np.ones(len(edges)), (rows, cols)), shape=(5, 5)
)

params = HopeParams(HopeMode.ADA, RangeRank(3, 2), 1.0)
hope = Hope(params, adjacency)
hope.seed = 42  # optional, makes the random range approximation repeatable
embedding = hope.embed()

print(embedding.source.shape, embedding.target.shape)
print(embedding.distance(0, 1))
```

## Modes

- `HopeMode.ADA` (Adamic Adar) replaces the adjacency matrix by its Adamic
  Adar similarity, where a path `i -> k -> j` is weighted by
  `1 / log(1 + d_k)`, then takes a truncated SVD of it.
- `HopeMode.RPR` (rooted page rank) row-normalizes the adjacency matrix to
  `P` and takes a truncated SVD of the transpose of `I - beta * P`, with
  `beta` the decay weight.
- `HopeMode.KATZ` builds the pair `(beta * A.T, I - beta * A.T)` and runs a
  `GSvdApprox` on it. The quotients of eigenvalues found are then available
  as `Hope.quotient_eigenvalues`.

`Hope` works on a copy of the matrix it is given, but transforms that copy in
place during the embedding.

The approximation target is either `RangeRank(rank, nbiter)`, a fixed rank
reached with `nbiter` subspace iterations, or
`RangePrecision(epsil, step, max_rank)`, which adds random blocks of `step`
vectors until the residual of a block falls below `epsil` times the Frobenius
norm of the matrix or the rank reaches `max_rank`.

## What this package does not do

It is a library only: there is no command-line tool. It does not read graphs
from files, does not save or reload embeddings, and has no validation
routines such as link-prediction scoring. The caller supplies the adjacency
matrix as a NumPy array or a SciPy sparse matrix and works with the returned
`HopeEmbedding` directly.