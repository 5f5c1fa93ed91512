"""
Simulated datasets with known ground-truth parameters.
"""

from typing import List, NamedTuple, Optional, Sequence

import numpy as np
import torch
from sklearn.utils import check_random_state

from blm.samplers.base import RegressionData


class SimulatedRegression(NamedTuple):
    data: RegressionData
    coefficients: torch.Tensor
    sigma: float


class SimulatedCorrelation(NamedTuple):
    x: torch.Tensor
    y: torch.Tensor
    rho: float


def sample_dataset(n_obs: int = 500,
                   coefficients: Sequence[float] = (4.2, 1.87),
                   sigma: float = 2.1,
                   x_mean: float = 0.,
                   x_sd: float = 3.,
                   names: Optional[List[str]] = None,
                   random_state=None) -> SimulatedRegression:
    """
    Sample ``y = X beta + eps`` with ``eps ~ N(0, sigma^2)``. The first
    coefficient is the intercept; every other column of ``X`` is drawn
    independently from ``N(x_mean, x_sd^2)``.
    """
    random_state = check_random_state(random_state)
    coefficients = torch.tensor(list(coefficients), dtype=torch.float64)

    n_predictors = coefficients.shape[0] - 1
    X = torch.ones(n_obs, n_predictors + 1, dtype=torch.float64)
    X[:, 1:] = torch.tensor(random_state.normal(x_mean, x_sd, size=(n_obs, n_predictors)))

    noise = torch.tensor(random_state.normal(0., sigma, size=n_obs))
    y = X @ coefficients + noise

    if names is None:
        names = ["intercept"] + [f"x{j}" for j in range(1, n_predictors + 1)]
    return SimulatedRegression(RegressionData(X, y, names=list(names)), coefficients, sigma)


def sample_correlated(n_obs: int = 200, rho: float = 0.5,
                      random_state=None) -> SimulatedCorrelation:
    """
    Sample pairs from a standard bivariate normal with correlation ``rho``.
    """
    if not -1. < rho < 1.:
        raise ValueError(f"rho must lie in (-1, 1), got {rho}")

    random_state = check_random_state(random_state)
    cov = np.array([[1., rho], [rho, 1.]])
    xy = torch.tensor(random_state.multivariate_normal(np.zeros(2), cov, size=n_obs))
    return SimulatedCorrelation(xy[:, 0], xy[:, 1], rho)
