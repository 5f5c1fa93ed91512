from dataclasses import dataclass

from hydra.core.config_store import ConfigStore

from blm.config.dataset import DatasetConfig, SimulatedCorrelationConfig, \
    SimulatedRegressionConfig
from blm.config.model import BLMModelConfig, CorrelationModelConfig, \
    InverseGammaPriorConfig, ModelConfig, NormalPriorConfig, SamplerConfig
from blm.config.viz import TensorboardConfig, VizConfig


@dataclass
class Config:
    model: ModelConfig
    dataset: DatasetConfig

    viz: VizConfig


cs = ConfigStore.instance()
cs.store(name="base_config", node=Config)


__all__ = [
    "Config",
    "ModelConfig",
    "BLMModelConfig",
    "CorrelationModelConfig",
    "SamplerConfig",
    "NormalPriorConfig",
    "InverseGammaPriorConfig",
    "DatasetConfig",
    "SimulatedRegressionConfig",
    "SimulatedCorrelationConfig",
    "VizConfig",
    "TensorboardConfig",
]
