"""Asymmetric graph embedding (HOPE) built on randomized and generalized SVD."""

__version__ = "0.0.8"

__all__ = [
    "orderingf",
    "gsvd_result",
    "gsvd",
    "randgsvd",
    "hopeparams",
    "hope",
]