from dataclasses import dataclass, field
from typing import Dict, Optional

from hydra.core.config_store import ConfigStore


GROUP = "model"


@dataclass
class SamplerConfig:
    """
    Per-parameter sampler choice.
    """

    type: str = "gibbs"
    """
    ``gibbs`` or ``metropolis``.
    """

    tuning: Optional[float] = None
    """
    Standard deviation of the random-walk proposal. Required for ``metropolis``.
    """

    lower: Optional[float] = None
    upper: Optional[float] = None


@dataclass
class NormalPriorConfig:
    mean: float = 0.0
    variance: float = 1000.0


@dataclass
class InverseGammaPriorConfig:
    shape: float = 0.001
    scale: float = 0.001


@dataclass
class ModelConfig:
    iterations: int = 20000
    burn: Optional[int] = 2000
    chains: int = 1

    random_state: Optional[int] = None
    pbar: bool = True
    name: Optional[str] = None


@dataclass
class BLMModelConfig(ModelConfig):

    samplers: Dict[str, SamplerConfig] = field(default_factory=dict)
    """
    Sampler choice per parameter name. Unlisted parameters are Gibbs-sampled.
    """

    priors: Dict[str, NormalPriorConfig] = field(default_factory=dict)
    """
    Normal prior per coefficient name. Unlisted coefficients get N(0, 1000).
    """

    variance_prior: InverseGammaPriorConfig = field(default_factory=InverseGammaPriorConfig)

    initial_values: Optional[Dict[str, float]] = None

    _target_: str = "blm.models.BayesianLinearModel"
    _convert_: str = "all"


@dataclass
class CorrelationModelConfig(ModelConfig):
    tuning: float = 0.1
    initial_value: float = 0.0

    _target_: str = "blm.models.CorrelationModel"


cs = ConfigStore.instance()
cs.store(group=GROUP, name="base_blm", node=BLMModelConfig)
cs.store(group=GROUP, name="base_correlation", node=CorrelationModelConfig)
