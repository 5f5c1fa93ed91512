from blm.generators.regression import SimulatedCorrelation, SimulatedRegression, \
    sample_correlated, sample_dataset


__all__ = [
    "SimulatedRegression",
    "SimulatedCorrelation",

    "sample_dataset",
    "sample_correlated",
]
