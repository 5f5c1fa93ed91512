import logging
import math
from dataclasses import dataclass, field
from typing import List, NamedTuple, Optional, Tuple, Union

import numpy as np
import torch

from blm.typing import Coefficients, CrossProduct, DesignMatrix, Response

L = logging.getLogger(__name__)


class SamplerError(RuntimeError):
    """
    Base class for errors which abort a sampling run. A sweep which raises one of
    these is discarded; nothing is appended to the chain.
    """
    pass


class DegenerateColumn(SamplerError, ValueError):
    pass


class NonPositiveVariance(SamplerError):
    pass


class UnsupportedSamplerType(SamplerError, ValueError):
    pass


class NonFiniteDraw(SamplerError):
    pass


def check_finite(value: float, what: str) -> float:
    if not math.isfinite(value):
        raise NonFiniteDraw(f"Non-finite value for {what}: {value}")
    return value


class NormalPrior(NamedTuple):
    mean: float = 0.0
    variance: float = 1000.0

    def validate(self, name: str = "coefficient") -> "NormalPrior":
        if not self.variance > 0:
            raise ValueError(f"Prior variance for {name} must be positive, got {self.variance}")
        return self


class InverseGammaPrior(NamedTuple):
    shape: float = 0.001
    scale: float = 0.001

    def validate(self) -> "InverseGammaPrior":
        if not (self.shape > 0 and self.scale > 0):
            raise ValueError(f"Inverse-Gamma prior needs positive shape and scale, got {self}")
        return self


class ChainState(NamedTuple):
    """
    Full parameter state of a regression chain at one iteration.
    """

    coefficients: Coefficients
    sigma2: float

    def with_coefficient(self, index: int, value: float) -> "ChainState":
        coefficients = self.coefficients.clone()
        coefficients[index] = value
        return self._replace(coefficients=coefficients)

    def as_vector(self) -> torch.Tensor:
        return torch.cat([self.coefficients,
                          torch.tensor([self.sigma2], dtype=self.coefficients.dtype)])


class CorrelationState(NamedTuple):
    rho: float

    def as_vector(self) -> torch.Tensor:
        return torch.tensor([self.rho], dtype=torch.float64)


State = Union[ChainState, CorrelationState]


@dataclass(frozen=True)
class RegressionData:
    """
    Design matrix and response vector for a regression run, together with the
    cross products every conditional update is computed from. Read-only once
    built, so it can be shared between chains.
    """

    X: DesignMatrix
    y: Response

    names: Optional[List[str]] = None
    """
    Names of the design matrix columns. Defaults to ``b0, b1, ...``.
    """

    xtx: CrossProduct = field(init=False, repr=False)
    xty: Coefficients = field(init=False, repr=False)

    def __post_init__(self):
        X = torch.as_tensor(self.X, dtype=torch.float64)
        y = torch.as_tensor(self.y, dtype=torch.float64)
        if y.ndim == 2 and y.shape[1] == 1:
            y = y.squeeze(1)
        if X.ndim != 2:
            raise ValueError(f"Design matrix must be 2-dimensional, got shape {tuple(X.shape)}")
        if y.ndim != 1 or y.shape[0] != X.shape[0]:
            raise ValueError(f"Response of shape {tuple(y.shape)} does not match "
                             f"design matrix of shape {tuple(X.shape)}")

        names = self.names
        if names is None:
            names = [f"b{j}" for j in range(X.shape[1])]
        elif len(names) != X.shape[1]:
            raise ValueError(f"Got {len(names)} column names for {X.shape[1]} columns")

        xtx = X.T @ X
        degenerate = (xtx.diagonal() == 0).nonzero().flatten().tolist()
        if degenerate:
            raise DegenerateColumn(
                f"Design matrix columns {[names[j] for j in degenerate]} are identically zero")

        # Frozen dataclass: write derived fields directly.
        object.__setattr__(self, "X", X)
        object.__setattr__(self, "y", y)
        object.__setattr__(self, "names", list(names))
        object.__setattr__(self, "xtx", xtx)
        object.__setattr__(self, "xty", X.T @ y)

    @classmethod
    def from_dataframe(cls, df, response: str, predictors: List[str],
                       intercept: bool = True) -> "RegressionData":
        X = torch.tensor(df[predictors].to_numpy(dtype=np.float64))
        names = list(predictors)
        if intercept:
            X = torch.cat([torch.ones(X.shape[0], 1, dtype=torch.float64), X], dim=1)
            names = ["intercept"] + names
        y = torch.tensor(df[response].to_numpy(dtype=np.float64))
        return cls(X, y, names=names)

    @property
    def n_obs(self) -> int:
        return self.X.shape[0]

    @property
    def n_coef(self) -> int:
        return self.X.shape[1]

    def residuals(self, coefficients: Coefficients) -> Response:
        return self.y - self.X @ coefficients

    def sum_squared_residuals(self, coefficients: Coefficients) -> float:
        resid = self.residuals(coefficients)
        return (resid @ resid).item()


class Updater:
    """
    Updates one parameter of a chain state. Updaters hold no per-chain state, so
    a single resolved sampling plan can drive any number of chains.
    """

    #: Name of the parameter this updater governs.
    name: str

    #: Whether this updater can reject (and so reports acceptance counts).
    is_metropolis: bool = False

    def update(self, state: State, data, random_state: np.random.RandomState
               ) -> Tuple[State, bool]:
        """
        Return the updated state and whether the update was an accepted move.
        """
        raise NotImplementedError()
