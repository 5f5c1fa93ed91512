import math

import numpy as np
import pytest
import scipy.stats as st
import torch
import torch.distributions as dist

from blm.samplers import ChainState, CorrelationData, NormalPrior
from blm.samplers.posterior import coefficient_log_posterior, conditional_normal, \
    correlation_log_posterior


@pytest.fixture
def state(small_regression):
    return ChainState(torch.tensor([0.8, -1.7, 0.3], dtype=torch.float64), 1.3)


def joint_log_density(data, state, prior, index, value):
    """
    Unnormalized joint density of data and coefficient ``index``, computed
    directly from normalized densities.
    """
    coefficients = state.coefficients.clone()
    coefficients[index] = value
    likelihood = dist.Normal(data.X @ coefficients, math.sqrt(state.sigma2)) \
        .log_prob(data.y).sum()
    log_prior = dist.Normal(torch.tensor(prior.mean, dtype=torch.float64),
                            torch.tensor(prior.variance, dtype=torch.float64).sqrt()) \
        .log_prob(torch.tensor(value, dtype=torch.float64))
    return (likelihood + log_prior).item()


@pytest.mark.parametrize("index", [0, 1, 2])
def test_log_posterior_differences_match_joint(small_regression, state, index):
    """
    Differences of the unnormalized conditional must equal differences of the
    full likelihood-times-prior density.
    """
    data = small_regression.data
    prior = NormalPrior(0.5, 2.)
    a, b = -0.4, 1.1

    expected = joint_log_density(data, state, prior, index, b) \
        - joint_log_density(data, state, prior, index, a)
    result = coefficient_log_posterior(b, index, state, data, prior) \
        - coefficient_log_posterior(a, index, state, data, prior)
    assert result == pytest.approx(expected, rel=1e-8)


def test_log_posterior_ratio_antisymmetric(small_regression, state):
    data = small_regression.data
    prior = NormalPrior()
    a, b = 0.2, 1.4

    forward = coefficient_log_posterior(b, 1, state, data, prior) \
        - coefficient_log_posterior(a, 1, state, data, prior)
    backward = coefficient_log_posterior(a, 1, state, data, prior) \
        - coefficient_log_posterior(b, 1, state, data, prior)
    assert forward == -backward


def test_conditional_uses_partial_residual(small_regression, state):
    data = small_regression.data
    prior = NormalPrior(0., 10.)
    index = 2

    partial_resid = data.y - data.X @ state.coefficients \
        + data.X[:, index] * state.coefficients[index]
    xj = data.X[:, index]
    expected_precision = (xj @ xj).item() / state.sigma2 + 1 / prior.variance
    expected_linear = (xj @ partial_resid).item() / state.sigma2

    cond = conditional_normal(index, state.coefficients, data, state.sigma2, prior)
    assert cond.precision == pytest.approx(expected_precision)
    assert cond.linear == pytest.approx(expected_linear)
    assert cond.mean == pytest.approx(expected_linear / expected_precision)


def test_conditional_ignores_current_value(small_regression, state):
    data = small_regression.data
    moved = state.with_coefficient(0, 100.)
    cond = conditional_normal(0, state.coefficients, data, state.sigma2, NormalPrior())
    cond_moved = conditional_normal(0, moved.coefficients, data, moved.sigma2, NormalPrior())
    assert cond == pytest.approx(cond_moved)


def test_correlation_log_posterior_support():
    data = CorrelationData(n_obs=10, sxx=9., syy=9., sxy=4.)
    assert correlation_log_posterior(1.3, data) == -math.inf
    assert correlation_log_posterior(-1., data) == -math.inf
    assert correlation_log_posterior(1., data) == -math.inf
    assert math.isfinite(correlation_log_posterior(0.99, data))


def test_correlation_log_posterior_matches_bivariate_normal():
    rng = np.random.RandomState(3)
    xy = rng.multivariate_normal([0, 0], [[1, .4], [.4, 1]], size=100)
    data = CorrelationData.from_tensors(torch.tensor(xy[:, 0]), torch.tensor(xy[:, 1]))

    z = (xy - xy.mean(axis=0)) / xy.std(axis=0, ddof=1)

    def reference(rho):
        return st.multivariate_normal([0, 0], [[1, rho], [rho, 1]]).logpdf(z).sum()

    expected = reference(0.6) - reference(0.1)
    result = correlation_log_posterior(0.6, data) - correlation_log_posterior(0.1, data)
    assert result == pytest.approx(expected, rel=1e-8)


def test_correlation_data_validates_shapes():
    with pytest.raises(ValueError):
        CorrelationData.from_tensors(torch.zeros(5), torch.zeros(4))
