"""
Posterior of a correlation coefficient, sampled with a random-walk
Metropolis-Hastings step restricted to [-1, 1].
"""

import logging
from typing import Optional, Sequence, Union

import numpy as np
import torch

from blm.models.base import SamplerModel
from blm.samplers import CorrelationData, CorrelationState, MetropolisCorrelation, \
    RandomWalkMetropolis

L = logging.getLogger(__name__)


class CorrelationModel(SamplerModel):
    """
    Args:
        tuning: Standard deviation of the random-walk proposal.
        initial_value: Starting correlation, or one per chain.
        iterations: Default chain length, including the initial state.
        burn: Number of leading iterations ignored by posterior summaries.
        chains: Number of independent chains.
        random_state: Seed or ``numpy.random.RandomState``.
    """

    def __init__(self, tuning: float = 0.1,
                 initial_value: Union[float, Sequence[float]] = 0.,
                 iterations: int = 10000,
                 burn: Optional[int] = 1000,
                 chains: int = 1,
                 random_state=None,
                 pbar: bool = False,
                 name: Optional[str] = None):
        self.tuning = tuning
        self.initial_value = initial_value

        self.iterations = iterations
        self.burn = burn
        self.chains = chains

        self.random_state = random_state
        self.pbar = pbar
        self.name = name

    def _prepare(self, data: CorrelationData, chains: int):
        if np.ndim(self.initial_value) == 0:
            initial_values = [float(self.initial_value)] * chains
        else:
            initial_values = [float(value) for value in self.initial_value]
            if len(initial_values) != chains:
                raise ValueError(f"Got {len(initial_values)} initial values for {chains} chains")

        for value in initial_values:
            if not -1. < value < 1.:
                raise ValueError(f"Initial correlation must lie in (-1, 1), got {value}")

        plan = [MetropolisCorrelation(RandomWalkMetropolis(self.tuning, lower=-1., upper=1.))]
        return data, plan, ["rho"], [CorrelationState(value) for value in initial_values]

    def sample_posterior(self, x, y,
                         iterations: Optional[int] = None,
                         chains: Optional[int] = None) -> "CorrelationModel":
        data = CorrelationData.from_tensors(torch.as_tensor(x), torch.as_tensor(y))
        iterations = self.iterations if iterations is None else iterations
        chains = self.chains if chains is None else chains
        L.info("Sampling %d chain(s) of %d iterations for a correlation on %d observations",
               chains, iterations, data.n_obs)
        return self._start_sampling(data, chains, iterations=iterations)

    def fit(self, x, y, **kwargs) -> "CorrelationModel":
        return self.sample_posterior(x, y, **kwargs)

    @property
    def rho_(self) -> float:
        return self.posterior_.samples(self._burn())[:, 0].mean().item()
