from typing import NamedTuple

import pytest
import torch

from blm.generators import sample_dataset
from blm.models import BayesianLinearModel
from blm.samplers import RegressionData
from blm.tensorboard import Tensorboard


Tensorboard.disable()


class OLSFit(NamedTuple):
    coef: torch.Tensor
    coef_se: torch.Tensor
    sigma: float
    sigma_se: float


class FixedRandomState:
    """
    Stand-in for ``numpy.random.RandomState`` returning scripted variates. Any
    variate without a scripted value is delegated to ``fallback``. A scripted
    exception type is raised instead of returned.
    """

    def __init__(self, normal=None, uniform=None, gamma=None, fallback=None):
        self._normal = normal
        self._uniform = uniform
        self._gamma = gamma
        self.fallback = fallback
        self.calls = []

    def _draw(self, kind, value, *args, **kwargs):
        self.calls.append(kind)
        if value is None:
            return getattr(self.fallback, kind)(*args, **kwargs)
        if isinstance(value, type) and issubclass(value, BaseException):
            raise value()
        return value

    def normal(self, *args, **kwargs):
        return self._draw("normal", self._normal, *args, **kwargs)

    def uniform(self, *args, **kwargs):
        return self._draw("uniform", self._uniform, *args, **kwargs)

    def gamma(self, *args, **kwargs):
        return self._draw("gamma", self._gamma, *args, **kwargs)


@pytest.fixture
def fixed_random_state():
    return FixedRandomState


def fit_ols(data: RegressionData) -> OLSFit:
    xtx_inv = torch.linalg.inv(data.xtx)
    coef = xtx_inv @ data.xty
    dof = data.n_obs - data.n_coef
    sigma = (data.sum_squared_residuals(coef) / dof) ** 0.5
    coef_se = (sigma ** 2 * xtx_inv.diagonal()).sqrt()
    return OLSFit(coef, coef_se, sigma, sigma / (2 * dof) ** 0.5)


def lag1_autocorrelation(x: torch.Tensor) -> float:
    x = x - x.mean()
    return ((x[:-1] @ x[1:]) / (x @ x)).item()


@pytest.fixture(scope="session")
def ols():
    return fit_ols


@pytest.fixture(scope="session")
def lag1():
    return lag1_autocorrelation


@pytest.fixture(scope="session")
def synth_regression():
    """
    N=500 draws from y = 4.2 + 1.87 x + eps, eps ~ N(0, 2.1^2), x ~ N(0, 3^2).
    """
    return sample_dataset(n_obs=500, coefficients=(4.2, 1.87), sigma=2.1,
                          x_mean=0., x_sd=3., random_state=42)


@pytest.fixture(scope="session")
def small_regression():
    return sample_dataset(n_obs=50, coefficients=(1., -2., 0.5), sigma=1.,
                          random_state=7)


UNINFORMATIVE = dict(
    priors={"intercept": (0., 1000.), "x1": (0., 1000.)},
    variance_prior=(0.001, 0.001),
)


@pytest.fixture(scope="session")
def gibbs_model(synth_regression) -> BayesianLinearModel:
    model = BayesianLinearModel(iterations=20000, burn=2000, random_state=1,
                                **UNINFORMATIVE)
    return model.sample_posterior(synth_regression.data)


@pytest.fixture(scope="session")
def mh_model(synth_regression) -> BayesianLinearModel:
    model = BayesianLinearModel(iterations=20000, burn=2000, random_state=2,
                                **UNINFORMATIVE)
    model.set_sampler("intercept", "metropolis", tuning=0.25)
    return model.sample_posterior(synth_regression.data)
