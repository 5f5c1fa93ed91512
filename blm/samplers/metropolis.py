"""
Random-walk Metropolis-Hastings updates.
"""

import math
from typing import Callable, Optional, Tuple

import numpy as np

from blm.samplers.base import ChainState, CorrelationState, NormalPrior, RegressionData, \
    Updater, UnsupportedSamplerType, check_finite
from blm.samplers.posterior import CorrelationData, conditional_normal, correlation_log_posterior


class RandomWalkMetropolis:
    """
    Symmetric Normal random-walk proposal with optional hard support bounds.

    Args:
        tuning: Standard deviation of the proposal distribution.
        lower: Lower bound of the parameter's support (inclusive).
        upper: Upper bound of the parameter's support (inclusive).
    """

    def __init__(self, tuning: float, lower: float = -math.inf, upper: float = math.inf):
        if not (tuning > 0 and math.isfinite(tuning)):
            raise UnsupportedSamplerType(f"MH tuning scale must be positive and finite, got {tuning}")
        if not lower < upper:
            raise ValueError(f"Empty support [{lower}, {upper}]")

        self.tuning = tuning
        self.lower = lower
        self.upper = upper

    def __repr__(self):
        return f"RandomWalkMetropolis(tuning={self.tuning}, lower={self.lower}, upper={self.upper})"

    def in_support(self, value: float) -> bool:
        return self.lower <= value <= self.upper

    def step(self, previous: float, log_density: Callable[[float], float],
             random_state: np.random.RandomState) -> Tuple[float, bool]:
        """
        Run one proposal. Returns the new value and whether it was accepted.

        Proposals outside the support are rejected without calling ``log_density``,
        and proposals with zero density are rejected without a uniform draw.
        The proposal density is symmetric, so it cancels from the acceptance
        ratio.
        """
        proposal = check_finite(random_state.normal(previous, self.tuning), "MH proposal")
        if not self.in_support(proposal):
            return previous, False

        log_proposal = log_density(proposal)
        if log_proposal == -math.inf:
            # Zero density on the support boundary; never accepted even when u == 0.
            return previous, False

        log_ratio = log_proposal - log_density(previous)
        u = random_state.uniform()
        log_u = math.log(u) if u > 0 else -math.inf
        if log_ratio >= log_u:
            return proposal, True
        return previous, False


class MetropolisCoefficient(Updater):
    """
    Updates one regression coefficient with a random-walk Metropolis-Hastings step
    targeting its conditional posterior.
    """

    is_metropolis = True

    def __init__(self, index: int, prior: NormalPrior, proposal: RandomWalkMetropolis,
                 name: Optional[str] = None):
        self.index = index
        self.name = name or f"b{index}"
        self.prior = prior.validate(self.name)
        self.proposal = proposal

    def __repr__(self):
        return f"MetropolisCoefficient({self.name!r}, prior={tuple(self.prior)}, {self.proposal})"

    def update(self, state: ChainState, data: RegressionData,
               random_state: np.random.RandomState) -> Tuple[ChainState, bool]:
        # Conditioning is fixed within the step, so both evaluations share moments.
        cond = conditional_normal(self.index, state.coefficients, data, state.sigma2,
                                  self.prior)
        previous = state.coefficients[self.index].item()
        value, accepted = self.proposal.step(previous, cond.log_density, random_state)
        if not accepted:
            return state, False
        return state.with_coefficient(self.index, value), True


class MetropolisCorrelation(Updater):
    """
    Updates a correlation coefficient with a random-walk step restricted to
    [-1, 1], under a uniform prior and a bivariate normal likelihood.
    """

    is_metropolis = True

    def __init__(self, proposal: RandomWalkMetropolis, name: str = "rho"):
        self.proposal = proposal
        self.name = name

    def __repr__(self):
        return f"MetropolisCorrelation({self.name!r}, {self.proposal})"

    def update(self, state: CorrelationState, data: CorrelationData,
               random_state: np.random.RandomState) -> Tuple[CorrelationState, bool]:
        value, accepted = self.proposal.step(
            state.rho, lambda rho: correlation_log_posterior(rho, data), random_state)
        return CorrelationState(value), accepted
