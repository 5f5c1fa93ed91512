import enum
import logging
import math
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np
from sklearn.base import BaseEstimator
from tqdm.auto import trange

from blm.chain import Chain, Posterior
from blm.samplers.base import State, Updater
from blm.tensorboard import tb_add_scalar
from blm.util import burn_in, chain_random_states

L = logging.getLogger(__name__)


ACCEPTANCE_BAND = (0.15, 0.6)
"""
Acceptance rates outside this band are reported as a sign of poor tuning.
"""


class PlanState(enum.Enum):
    CONFIGURED = "configured"
    """
    Priors, samplers and initial values may still change. No draws yet.
    """

    SAMPLING = "sampling"
    """
    The sampling plan is locked and sweeps are running.
    """

    EXTENDABLE = "extendable"
    """
    Draws exist. The plan stays locked; only `update_posterior` may add draws.
    """


class PlanLockedError(RuntimeError):
    pass


def sweep(state: State, plan: Sequence[Updater], data: Any,
          random_state: np.random.RandomState) -> Tuple[State, Dict[str, bool]]:
    """
    Run one systematic-scan sweep: each updater in turn, each conditioned on the
    values already updated earlier in the same sweep.

    Returns the new state and, for each Metropolis-governed parameter, whether
    its proposal was accepted.
    """
    moves = {}
    for updater in plan:
        state, accepted = updater.update(state, data, random_state)
        if updater.is_metropolis:
            moves[updater.name] = accepted
    return state, moves


class SamplerModel(BaseEstimator):
    """
    Model mixin which owns a locked sampling plan and a set of independent chains.

    Subclasses configure themselves through estimator parameters and implement
    `_prepare`, which resolves data, plan and initial states. The first call to
    `_start_sampling` locks the plan; afterwards `update_posterior` extends every
    chain from where it stopped.
    """

    _plan_state = PlanState.CONFIGURED

    @property
    def plan_state(self) -> PlanState:
        return self._plan_state

    def _check_configurable(self):
        if self._plan_state is not PlanState.CONFIGURED:
            raise PlanLockedError(
                f"{self.__class__.__name__} sampling plan is locked ({self._plan_state.value}). "
                "Use update_posterior() to draw more samples, or configure a new model.")

    def set_params(self, **params):
        self._check_configurable()
        return super().set_params(**params)

    def set_seed(self, random_state):
        return self.set_params(random_state=random_state)

    def _prepare(self, *args, **kwargs) -> Tuple[Any, List[Updater], List[str], List[State]]:
        """
        Return data, resolved plan, parameter names and one initial state per chain.
        """
        raise NotImplementedError()

    def _start_sampling(self, *args, iterations: int, **kwargs):
        self._check_configurable()
        if iterations < 1:
            raise ValueError(f"Need at least one iteration, got {iterations}")

        data, plan, names, initial_states = self._prepare(*args, **kwargs)
        metropolis_names = [updater.name for updater in plan if updater.is_metropolis]
        random_states = chain_random_states(self.random_state, len(initial_states))

        self.data_ = data
        self.plan_ = plan
        self.chains_ = [
            Chain(names, initial_state, random_state,
                  metropolis_names=metropolis_names, chain_id=i)
            for i, (initial_state, random_state) in enumerate(zip(initial_states, random_states))
        ]

        # Iteration 1 is the initial state.
        self._run(iterations - 1)
        return self

    def update_posterior(self, iterations: int):
        """
        Append ``iterations`` sweeps to every chain, continuing from the last
        recorded state of each chain. Chains left shorter than the others by an
        interrupted run are first brought up to the longest chain.
        """
        if self._plan_state is PlanState.CONFIGURED:
            raise RuntimeError("No posterior to update. Call sample_posterior() first.")
        if self._plan_state is PlanState.SAMPLING:
            raise RuntimeError("Sampling is already in progress.")
        if iterations < 0:
            raise ValueError(f"Cannot append a negative number of iterations: {iterations}")

        self._run(iterations)
        return self

    def _run(self, n_sweeps: int):
        # Chains left uneven by an earlier failure first catch up to the longest.
        target = max(len(chain) for chain in self.chains_) + n_sweeps

        self._plan_state = PlanState.SAMPLING
        try:
            for chain in self.chains_:
                self._run_chain(chain, target - len(chain))
        finally:
            self._plan_state = PlanState.EXTENDABLE

        self._report()

    def _run_chain(self, chain: Chain, n_sweeps: int):
        L.debug("Running %d sweeps on chain %d", n_sweeps, chain.chain_id)
        state = chain.last_state
        try:
            for _ in trange(n_sweeps, disable=not self.pbar, unit="iter",
                            desc=f"chain {chain.chain_id}"):
                state, moves = sweep(state, self.plan_, self.data_, chain.random_state)
                chain.append(state, moves)
        except KeyboardInterrupt:
            L.warning("Sampling interrupted; chain %d keeps %d complete iterations",
                      chain.chain_id, len(chain))
            raise

    def _report(self):
        posterior = self.posterior_
        L.info("%s: %d chain(s) of %d iterations", self.__class__.__name__,
               len(posterior), posterior.n_iter)

        name_prefix = f"{self.name}/" if self.name else ""
        for param, rate in posterior.acceptance_rates().items():
            if math.isnan(rate):
                continue
            L.info("Acceptance rate for %s: %.3f", param, rate)
            if not ACCEPTANCE_BAND[0] <= rate <= ACCEPTANCE_BAND[1]:
                L.warning("Acceptance rate %.3f for %s is outside %s; consider retuning",
                          rate, param, ACCEPTANCE_BAND)
            tb_add_scalar(f"{name_prefix}acceptance/{param}", rate, posterior.n_iter)

        for param, mean in posterior.means(self._burn()).items():
            tb_add_scalar(f"{name_prefix}posterior_mean/{param}", mean, posterior.n_iter)

    def _burn(self) -> int:
        return burn_in(self.posterior_.n_iter, self.burn)

    @property
    def posterior_(self) -> Posterior:
        if not hasattr(self, "chains_"):
            raise AttributeError("Model has not been sampled yet.")
        return Posterior(self.chains_)

    def to_dataframe(self, burn=None):
        """
        Export all chains as one long ``pandas.DataFrame``, with ``chain`` and
        ``iteration`` columns.
        """
        return self.posterior_.to_dataframe(self._burn() if burn is None else burn)

    @property
    def acceptance_rates_(self) -> Dict[str, float]:
        return self.posterior_.acceptance_rates()

    def posterior_means(self, burn=None) -> Dict[str, float]:
        return self.posterior_.means(self._burn() if burn is None else burn)
