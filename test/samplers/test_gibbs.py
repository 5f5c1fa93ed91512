import math

import numpy as np
import pandas as pd
import pytest
import torch

from blm.samplers import ChainState, DegenerateColumn, GibbsCoefficient, GibbsVariance, \
    InverseGammaPrior, NonFiniteDraw, NormalPrior, RegressionData
from blm.samplers.posterior import conditional_normal


@pytest.fixture
def state():
    return ChainState(torch.tensor([0.9, -2.1, 0.4], dtype=torch.float64), 0.8)


def test_gibbs_coefficient_mean(small_regression, state):
    """
    Draws with fixed conditioning average to the analytic conditional mean.
    """
    data = small_regression.data
    prior = NormalPrior(0., 5.)
    updater = GibbsCoefficient(1, prior)
    random_state = np.random.RandomState(0)

    n_draws = 20000
    draws = torch.tensor([updater.update(state, data, random_state)[0].coefficients[1].item()
                          for _ in range(n_draws)])

    cond = conditional_normal(1, state.coefficients, data, state.sigma2, prior)
    standard_error = math.sqrt(cond.variance / n_draws)
    assert abs(draws.mean().item() - cond.mean) < 4 * standard_error
    assert draws.var().item() == pytest.approx(cond.variance, rel=0.05)


def test_gibbs_coefficient_only_touches_its_index(small_regression, state):
    updater = GibbsCoefficient(2, NormalPrior())
    new_state, accepted = updater.update(state, small_regression.data, np.random.RandomState(1))

    assert accepted
    assert new_state.sigma2 == state.sigma2
    torch.testing.assert_close(new_state.coefficients[:2], state.coefficients[:2])
    assert new_state.coefficients[2] != state.coefficients[2]
    # Input state is left untouched.
    assert state.coefficients[2].item() == 0.4


def test_gibbs_variance_posterior_parameters(small_regression, state):
    data = small_regression.data
    prior = InverseGammaPrior(2., 3.)
    shape, rate = GibbsVariance(prior).posterior_parameters(state, data)

    assert shape == data.n_obs / 2 + 2.
    assert rate == pytest.approx(data.sum_squared_residuals(state.coefficients) / 2 + 3.)


def test_gibbs_variance_draws(small_regression, state):
    data = small_regression.data
    updater = GibbsVariance(InverseGammaPrior())
    random_state = np.random.RandomState(2)
    shape, rate = updater.posterior_parameters(state, data)

    draws = torch.tensor([updater.update(state, data, random_state)[0].sigma2
                          for _ in range(5000)])
    assert (draws > 0).all()

    # Inverse draws are Gamma(shape, rate), with mean shape / rate.
    precision = 1 / draws
    standard_error = math.sqrt(shape) / rate / math.sqrt(len(draws))
    assert abs(precision.mean().item() - shape / rate) < 4 * standard_error


def test_gibbs_variance_zero_precision(small_regression, state, fixed_random_state):
    updater = GibbsVariance(InverseGammaPrior())
    with pytest.raises(NonFiniteDraw):
        updater.update(state, small_regression.data, fixed_random_state(gamma=0.))


@pytest.mark.parametrize("bad_value", [float("nan"), float("inf")])
def test_gibbs_nonfinite_draw(small_regression, state, fixed_random_state, bad_value):
    updater = GibbsCoefficient(0, NormalPrior())
    with pytest.raises(NonFiniteDraw):
        updater.update(state, small_regression.data, fixed_random_state(normal=bad_value))

    with pytest.raises(NonFiniteDraw):
        GibbsVariance(InverseGammaPrior()).update(
            state, small_regression.data, fixed_random_state(gamma=bad_value))


def test_degenerate_column():
    X = torch.stack([torch.ones(10), torch.zeros(10)], dim=1)
    with pytest.raises(DegenerateColumn):
        RegressionData(X, torch.randn(10))


def test_regression_data_shapes():
    with pytest.raises(ValueError):
        RegressionData(torch.ones(10, 2), torch.ones(9))
    with pytest.raises(ValueError):
        RegressionData(torch.ones(10), torch.ones(10))
    with pytest.raises(ValueError):
        RegressionData(torch.ones(10, 2), torch.ones(10), names=["a"])

    data = RegressionData(torch.ones(10, 1), torch.ones(10, 1))
    assert data.y.shape == (10,)
    assert data.names == ["b0"]
    assert data.X.dtype == torch.float64


def test_invalid_priors():
    with pytest.raises(ValueError):
        GibbsCoefficient(0, NormalPrior(0., 0.))
    with pytest.raises(ValueError):
        GibbsVariance(InverseGammaPrior(-1., 1.))


def test_regression_data_from_dataframe():
    df = pd.DataFrame({"y": [1., 2., 4.], "x": [0., 1., 2.], "z": [1., 0., 1.]})
    data = RegressionData.from_dataframe(df, "y", ["x", "z"])

    assert data.names == ["intercept", "x", "z"]
    assert data.X.shape == (3, 3)
    assert (data.X[:, 0] == 1).all()
    torch.testing.assert_close(data.xty, data.X.T @ data.y)
