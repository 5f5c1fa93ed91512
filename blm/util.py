import logging
from typing import List, Mapping, Optional, Union

import numpy as np
from sklearn.utils import check_random_state

from blm.samplers.base import InverseGammaPrior, NormalPrior

L = logging.getLogger(__name__)


RandomStateLike = Union[None, int, np.random.RandomState]


def chain_random_states(random_state: RandomStateLike, n_chains: int
                        ) -> List[np.random.RandomState]:
    """
    Derive one independent random state per chain. With an integer seed the
    result is reproducible and does not depend on the order chains are run in.
    """
    if isinstance(random_state, np.random.RandomState):
        seeds = random_state.randint(np.iinfo(np.int32).max, size=n_chains)
    else:
        seeds = np.random.SeedSequence(random_state).generate_state(n_chains)
    return [check_random_state(int(seed)) for seed in seeds]


def as_normal_prior(spec) -> NormalPrior:
    """
    Coerce a prior given as a ``NormalPrior``, a ``(mean, variance)`` pair or a
    mapping with ``mean`` / ``variance`` keys.
    """
    if isinstance(spec, NormalPrior):
        return spec
    if isinstance(spec, Mapping):
        return NormalPrior(**{k: float(v) for k, v in spec.items() if k in NormalPrior._fields})
    mean, variance = spec
    return NormalPrior(float(mean), float(variance))


def as_inverse_gamma_prior(spec) -> InverseGammaPrior:
    if spec is None:
        return InverseGammaPrior()
    if isinstance(spec, InverseGammaPrior):
        return spec
    if isinstance(spec, Mapping):
        return InverseGammaPrior(**{k: float(v) for k, v in spec.items()
                                    if k in InverseGammaPrior._fields})
    shape, scale = spec
    return InverseGammaPrior(float(shape), float(scale))


def burn_in(n_iter: int, burn: Optional[int]) -> int:
    """
    Clip a requested burn-in so that at least one draw survives.
    """
    if burn is None:
        return 0
    if burn < 0:
        raise ValueError(f"Burn-in must be non-negative, got {burn}")
    if burn >= n_iter:
        L.warning("Burn-in of %d discards the whole chain of %d iterations; keeping the last draw",
                  burn, n_iter)
        return n_iter - 1
    return burn
