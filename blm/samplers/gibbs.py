"""
Exact draws from closed-form conditional posteriors.
"""

from typing import Tuple

import numpy as np

from blm.samplers.base import ChainState, InverseGammaPrior, NonFiniteDraw, NonPositiveVariance, \
    NormalPrior, RegressionData, Updater, check_finite
from blm.samplers.posterior import conditional_normal


class GibbsCoefficient(Updater):
    """
    Draws one regression coefficient from its Normal conditional posterior.
    """

    def __init__(self, index: int, prior: NormalPrior, name=None):
        self.index = index
        self.prior = prior.validate(name or f"b{index}")
        self.name = name or f"b{index}"

    def __repr__(self):
        return f"GibbsCoefficient({self.name!r}, prior={tuple(self.prior)})"

    def update(self, state: ChainState, data: RegressionData,
               random_state: np.random.RandomState) -> Tuple[ChainState, bool]:
        cond = conditional_normal(self.index, state.coefficients, data, state.sigma2,
                                  self.prior)
        value = random_state.normal(cond.mean, np.sqrt(cond.variance))
        check_finite(value, self.name)
        return state.with_coefficient(self.index, value), True


class GibbsVariance(Updater):
    """
    Draws the residual variance from its Inverse-Gamma conditional posterior,
    by inverting a Gamma draw with

        shape = N / 2 + prior shape
        rate  = SSR / 2 + prior scale
    """

    def __init__(self, prior: InverseGammaPrior, name="sigma2"):
        self.prior = prior.validate()
        self.name = name

    def __repr__(self):
        return f"GibbsVariance(prior={tuple(self.prior)})"

    def posterior_parameters(self, state: ChainState, data: RegressionData) -> Tuple[float, float]:
        shape = data.n_obs / 2 + self.prior.shape
        rate = data.sum_squared_residuals(state.coefficients) / 2 + self.prior.scale
        return shape, rate

    def update(self, state: ChainState, data: RegressionData,
               random_state: np.random.RandomState) -> Tuple[ChainState, bool]:
        shape, rate = self.posterior_parameters(state, data)
        precision = check_finite(random_state.gamma(shape, 1. / rate), self.name)
        if precision == 0:
            raise NonFiniteDraw(f"Residual precision underflowed to zero (shape={shape}, rate={rate})")

        sigma2 = check_finite(1. / precision, self.name)
        if sigma2 <= 0:
            raise NonPositiveVariance(f"Drew non-positive residual variance {sigma2}")
        return state._replace(sigma2=sigma2), True
