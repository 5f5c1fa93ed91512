"""
Conditional log posteriors used by the Gibbs and Metropolis-Hastings updaters.

All densities are unnormalized: only differences of log densities at two values
of the same parameter, under the same conditioning, are meaningful.
"""

import math
from typing import NamedTuple

import torch
from typeguard import typechecked

from blm.samplers.base import ChainState, NormalPrior, RegressionData
from blm.typing import Coefficients


class ConditionalNormal(NamedTuple):
    r"""
    Canonical (information form) parameters of the Normal conditional posterior
    of one regression coefficient:

        $$\log p(b \mid \cdot) = -\frac{1}{2} \text{precision} \, b^2 + \text{linear} \, b + C$$
    """

    precision: float
    linear: float

    @property
    def mean(self) -> float:
        return self.linear / self.precision

    @property
    def variance(self) -> float:
        return 1. / self.precision

    def log_density(self, value: float) -> float:
        return -0.5 * self.precision * value * value + self.linear * value


def conditional_normal(index: int, coefficients: Coefficients, data: RegressionData,
                       sigma2: float, prior: NormalPrior) -> ConditionalNormal:
    r"""
    Combine likelihood and prior terms for coefficient ``index``, holding all other
    coefficients at their values in ``coefficients``.

    The partial residual inner product $x_j^T (y - X_{-j} \beta_{-j})$ is
    computed from the cached cross products, so this is O(P) rather than O(NP).
    """
    xtx_j = data.xtx[index]
    xjxj = xtx_j[index].item()
    xj_partial_resid = (data.xty[index] - xtx_j @ coefficients).item() \
        + xjxj * coefficients[index].item()

    precision = xjxj / sigma2 + 1. / prior.variance
    linear = xj_partial_resid / sigma2 + prior.mean / prior.variance
    return ConditionalNormal(precision, linear)


@typechecked
def coefficient_log_posterior(value: float, index: int, state: ChainState,
                              data: RegressionData, prior: NormalPrior) -> float:
    """
    Log density, up to an additive constant, of coefficient ``index`` taking
    ``value`` given all other coefficients and the residual variance in ``state``.
    """
    return conditional_normal(index, state.coefficients, data, state.sigma2,
                              prior).log_density(value)


class CorrelationData(NamedTuple):
    """
    Sufficient statistics of two standardized variables for the bivariate normal
    correlation likelihood.
    """

    n_obs: int
    sxx: float
    syy: float
    sxy: float

    @classmethod
    def from_tensors(cls, x: torch.Tensor, y: torch.Tensor) -> "CorrelationData":
        x = torch.as_tensor(x, dtype=torch.float64)
        y = torch.as_tensor(y, dtype=torch.float64)
        if x.ndim != 1 or x.shape != y.shape:
            raise ValueError(f"Expected two vectors of equal length, got shapes "
                             f"{tuple(x.shape)} and {tuple(y.shape)}")
        if x.shape[0] < 2:
            raise ValueError("Need at least two observations to estimate a correlation")

        zx = (x - x.mean()) / x.std()
        zy = (y - y.mean()) / y.std()
        return cls(x.shape[0], (zx @ zx).item(), (zy @ zy).item(), (zx @ zy).item())


def correlation_log_posterior(rho: float, data: CorrelationData) -> float:
    """
    Bivariate normal log likelihood of standardized data as a function of the
    correlation, under a uniform prior on [-1, 1]. Returns ``-inf`` off the open
    interval (-1, 1).
    """
    if not -1. < rho < 1.:
        return -math.inf

    one_minus_rho2 = 1. - rho * rho
    quad = data.sxx - 2. * rho * data.sxy + data.syy
    return -0.5 * data.n_obs * math.log(one_minus_rho2) - quad / (2. * one_minus_rho2)
