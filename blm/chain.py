import logging
from typing import Dict, Iterator, List, Mapping, Optional

import numpy as np
import pandas as pd
import torch

from blm.samplers.base import State

L = logging.getLogger(__name__)


class Chain:
    """
    Append-only record of the states visited by one Markov chain, together with
    the random state that produced them and Metropolis-Hastings acceptance
    counters.

    Entry 0 is the initial state. Each later entry is the result of one complete
    sweep; partial sweeps are never recorded.
    """

    def __init__(self, names: List[str], initial_state: State,
                 random_state: np.random.RandomState,
                 metropolis_names: Optional[List[str]] = None,
                 chain_id: int = 0):
        if initial_state.as_vector().shape != (len(names),):
            raise ValueError(f"Initial state {initial_state} does not match parameters {names}")

        self.names = list(names)
        self.chain_id = chain_id
        self.random_state = random_state

        self._states: List[State] = [initial_state]

        metropolis_names = metropolis_names or []
        self.accepted: Dict[str, int] = {name: 0 for name in metropolis_names}
        self.proposals: Dict[str, int] = {name: 0 for name in metropolis_names}

    def __len__(self):
        return len(self._states)

    def __iter__(self) -> Iterator[State]:
        return iter(self._states)

    def __getitem__(self, idx) -> State:
        return self._states[idx]

    def __repr__(self):
        return f"Chain(id={self.chain_id}, n_iter={len(self)}, parameters={self.names})"

    @property
    def last_state(self) -> State:
        return self._states[-1]

    def append(self, state: State, moves: Mapping[str, bool]):
        """
        Record the result of one full sweep. ``moves`` maps each
        Metropolis-governed parameter to whether its proposal was accepted.
        """
        for name, accepted in moves.items():
            self.proposals[name] += 1
            if accepted:
                self.accepted[name] += 1
        self._states.append(state)

    def samples(self, burn: int = 0) -> torch.Tensor:
        """
        Return an ``(n_iter - burn) * n_params`` matrix of draws, columns ordered
        as ``names``.
        """
        return torch.stack([state.as_vector() for state in self._states[burn:]])

    def column(self, name: str, burn: int = 0) -> torch.Tensor:
        return self.samples(burn)[:, self.names.index(name)]

    def acceptance_rate(self, name: str) -> float:
        if name not in self.proposals:
            raise KeyError(f"{name} is not Metropolis-sampled")
        if self.proposals[name] == 0:
            return float("nan")
        return self.accepted[name] / self.proposals[name]

    def acceptance_rates(self) -> Dict[str, float]:
        return {name: self.acceptance_rate(name) for name in self.proposals}

    def to_dataframe(self, burn: int = 0) -> pd.DataFrame:
        df = pd.DataFrame(self.samples(burn).numpy(), columns=self.names)
        df.insert(0, "iteration", np.arange(burn, len(self)) + 1)
        df.insert(0, "chain", self.chain_id)
        return df


class Posterior:
    """
    Collection of independent chains sampled from the same model.
    """

    def __init__(self, chains: List[Chain]):
        self.chains = chains

    def __len__(self):
        return len(self.chains)

    def __iter__(self) -> Iterator[Chain]:
        return iter(self.chains)

    def __getitem__(self, idx) -> Chain:
        return self.chains[idx]

    @property
    def n_iter(self) -> int:
        # Chains can be uneven after an interrupted run.
        return min(len(chain) for chain in self.chains) if self.chains else 0

    @property
    def names(self) -> List[str]:
        return self.chains[0].names

    def samples(self, burn: int = 0) -> torch.Tensor:
        """
        Pool draws from all chains after discarding ``burn`` iterations from each.
        """
        return torch.cat([chain.samples(burn) for chain in self.chains], dim=0)

    def means(self, burn: int = 0) -> Dict[str, float]:
        means = self.samples(burn).mean(dim=0)
        return dict(zip(self.names, means.tolist()))

    def acceptance_rates(self) -> Dict[str, float]:
        """
        Acceptance rates pooled over chains, per Metropolis-governed parameter.
        Out-of-support proposals count as rejected proposals.
        """
        rates = {}
        for name in self.chains[0].proposals:
            accepted = sum(chain.accepted[name] for chain in self.chains)
            proposals = sum(chain.proposals[name] for chain in self.chains)
            rates[name] = accepted / proposals if proposals else float("nan")
        return rates

    def to_dataframe(self, burn: int = 0) -> pd.DataFrame:
        return pd.concat([chain.to_dataframe(burn) for chain in self.chains],
                         ignore_index=True)
