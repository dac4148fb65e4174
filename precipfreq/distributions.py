"""
precipfreq.distributions - GEV and log-Pearson Type III families

Both families are fitted by the method of L-moments (Hosking, 1990; Hosking
and Wallis, 1997). LP3 is a Pearson Type III fitted to the natural logarithm
of the sample, so its ``cdf``/``ppf``/``pdf`` work on the log scale and the
``data_*`` helpers convert to and from millimetres.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar, Dict, Sequence, Union

import numpy as np
from scipy import stats
from scipy.special import gammaln

from .core import (
    Distribution,
    FitFailureError,
    InvalidInputError,
    LMoments,
    non_exceedance_probability,
    sample_lmoments,
)


EULER_GAMMA = 0.57721566
_LOG2 = np.log(2.0)
_LOG3 = np.log(3.0)


@dataclass(frozen=True)
class GEVParameters:
    """GEV parameters.

    ``shape`` follows the climatological sign convention: xi > 0 gives a
    heavy (Frechet) upper tail, xi = 0 Gumbel, xi < 0 a bounded (Weibull)
    upper tail. Hosking's k equals -xi.
    """

    loc: float
    scale: float
    shape: float

    @property
    def k(self) -> float:
        return -self.shape

    def as_dict(self) -> Dict[str, float]:
        return {"loc": self.loc, "scale": self.scale, "shape": self.shape}


@dataclass(frozen=True)
class LP3Parameters:
    """Pearson Type III parameters of the log-transformed sample.

    Stored as mean, standard deviation and skewness of ln(x). The gamma
    form (shape alpha, location, scale beta) is available as properties;
    beta carries the sign of the skew.
    """

    mean: float
    std: float
    skew: float

    @property
    def alpha(self) -> float:
        return 4.0 / self.skew**2 if self.skew != 0 else np.inf

    @property
    def beta(self) -> float:
        return self.std * self.skew / 2.0

    @property
    def location(self) -> float:
        return self.mean - 2.0 * self.std / self.skew if self.skew != 0 else -np.inf

    @classmethod
    def from_gamma(cls, alpha: float, location: float, beta: float) -> "LP3Parameters":
        """Build parameters from the (shape, location, scale) gamma form."""
        if alpha <= 0 or beta == 0:
            raise ValueError("alpha must be positive and beta non-zero")
        return cls(
            mean=location + alpha * beta,
            std=float(np.sqrt(alpha) * abs(beta)),
            skew=float(np.sign(beta) * 2.0 / np.sqrt(alpha)),
        )

    def as_dict(self) -> Dict[str, float]:
        return {"mean": self.mean, "std": self.std, "skew": self.skew}


class DistributionFamily(ABC):
    """Abstract base class for distributions fitted by L-moments."""

    kind: ClassVar[Distribution]

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    @property
    def name(self) -> str:
        return self.kind.name

    # --- sample handling -------------------------------------------------

    def validate(self, sample: Sequence[float]) -> np.ndarray:
        """Return the sample as a float array or raise InvalidInputError."""
        values = np.asarray(sample, dtype=float).ravel()
        if values.size == 0:
            raise InvalidInputError("Sample is empty")
        if not np.all(np.isfinite(values)):
            raise InvalidInputError("Sample contains missing or non-finite values")
        if values.size < 2:
            raise InvalidInputError(f"At least 2 values are required, got {values.size}")
        return values

    def transform(self, values: np.ndarray) -> np.ndarray:
        return values

    def inverse_transform(self, values: np.ndarray) -> np.ndarray:
        return values

    # --- fitting ---------------------------------------------------------

    @abstractmethod
    def fit_lmoments(self, lmom: LMoments):
        """Invert sample L-moments into distribution parameters."""

    def fit_transformed(self, values: np.ndarray):
        """Fit to values already on the fitting scale."""
        return self.fit_lmoments(sample_lmoments(values))

    def fit(self, sample: Sequence[float]):
        """Validate, transform and fit a sample in data units."""
        values = self.validate(sample)
        return self.fit_transformed(self.transform(values))

    # --- distribution functions on the fitting scale ----------------------

    @abstractmethod
    def cdf(self, x, params) -> np.ndarray:
        pass

    @abstractmethod
    def ppf(self, p, params) -> np.ndarray:
        pass

    @abstractmethod
    def pdf(self, x, params) -> np.ndarray:
        pass

    # --- distribution functions in data units -----------------------------

    def data_cdf(self, x, params) -> np.ndarray:
        return self.cdf(self.transform(np.asarray(x, dtype=float)), params)

    def data_ppf(self, p, params) -> np.ndarray:
        return self.inverse_transform(self.ppf(p, params))

    def data_pdf(self, x, params) -> np.ndarray:
        return self.pdf(np.asarray(x, dtype=float), params)

    def return_levels(self, params, return_periods: Sequence[float]) -> np.ndarray:
        """Quantiles in data units for return periods T (non-exceedance 1 - 1/T)."""
        return self.data_ppf(non_exceedance_probability(return_periods), params)


class GEVFamily(DistributionFamily):
    """Generalized Extreme Value distribution."""

    kind = Distribution.GEV

    # Rational approximations from Hosking's PELGEV
    _A = (0.28377530, -1.21096399, -2.50728214, -1.13455566, -0.07138022)
    _B = (2.06189696, 1.31912239, 0.25077104)
    _C = (1.59921491, -0.48832213, 0.01573152)
    _D = (-0.64363929, 0.08985247)
    _SMALL = 1e-5
    _EPS = 1e-6
    _MAX_ITER = 20

    def fit_lmoments(self, lmom: LMoments) -> GEVParameters:
        t3 = lmom.t3
        if not np.isfinite(lmom.l2) or lmom.l2 <= 0:
            raise FitFailureError(f"L-scale must be positive, got {lmom.l2}")
        if not np.isfinite(t3) or abs(t3) >= 1:
            raise FitFailureError(f"L-skewness out of range for GEV: {t3}")

        A, B, C, D = self._A, self._B, self._C, self._D

        if t3 > 0:
            z = 1 - t3
            g = (-1 + z * (C[0] + z * (C[1] + z * C[2]))) / (1 + z * (D[0] + z * D[1]))
            if abs(g) < self._SMALL:
                scale = lmom.l2 / _LOG2
                return self._checked(lmom.l1 - EULER_GAMMA * scale, scale, 0.0)
        else:
            g = (A[0] + t3 * (A[1] + t3 * (A[2] + t3 * (A[3] + t3 * A[4])))) / (
                1 + t3 * (B[0] + t3 * (B[1] + t3 * B[2]))
            )
            if t3 < -0.8:
                g = self._newton(t3, g)

        if g <= -1:
            raise FitFailureError(f"GEV shape {-g:.4f} implies an infinite mean")
        gam = np.exp(gammaln(1 + g))
        scale = lmom.l2 * g / (gam * (1 - 2.0 ** (-g)))
        loc = lmom.l1 - scale * (1 - gam) / g
        return self._checked(loc, scale, -g)

    def _newton(self, t3: float, g: float) -> float:
        """Refine the shape for strongly negative L-skewness."""
        if t3 <= -0.97:
            g = 1 - np.log1p(t3) / _LOG2
        t0 = (t3 + 3) / 2
        for _ in range(self._MAX_ITER):
            x2 = 2.0 ** (-g)
            x3 = 3.0 ** (-g)
            xx2 = 1 - x2
            xx3 = 1 - x3
            t = xx3 / xx2
            deriv = (xx2 * x3 * _LOG3 - xx3 * x2 * _LOG2) / (xx2 * xx2)
            g_old = g
            g = g - (t - t0) / deriv
            if abs(g - g_old) <= self._EPS * abs(g):
                return g
        raise FitFailureError(f"GEV shape iteration did not converge (t3={t3:.4f})")

    @staticmethod
    def _checked(loc: float, scale: float, shape: float) -> GEVParameters:
        if not (np.isfinite(loc) and np.isfinite(scale) and np.isfinite(shape)) or scale <= 0:
            raise FitFailureError(
                f"GEV fit produced invalid parameters (loc={loc}, scale={scale}, shape={shape})"
            )
        return GEVParameters(loc=float(loc), scale=float(scale), shape=float(shape))

    def cdf(self, x, params: GEVParameters) -> np.ndarray:
        return stats.genextreme.cdf(x, params.k, loc=params.loc, scale=params.scale)

    def ppf(self, p, params: GEVParameters) -> np.ndarray:
        return stats.genextreme.ppf(p, params.k, loc=params.loc, scale=params.scale)

    def pdf(self, x, params: GEVParameters) -> np.ndarray:
        return stats.genextreme.pdf(x, params.k, loc=params.loc, scale=params.scale)


class LP3Family(DistributionFamily):
    """Log-Pearson Type III distribution (natural logarithm)."""

    kind = Distribution.LP3

    # Rational approximations from Hosking's PELPE3
    _A = (0.2906, 0.1882, 0.0442)
    _B = (0.36067, -0.59567, 0.25361)
    _C = (-2.78861, 2.56096, -0.77045)
    _SMALL = 1e-6

    def validate(self, sample: Sequence[float]) -> np.ndarray:
        values = super().validate(sample)
        if np.any(values <= 0):
            raise InvalidInputError(
                "LP3 requires strictly positive values "
                f"({int(np.sum(values <= 0))} non-positive found)"
            )
        return values

    def transform(self, values: np.ndarray) -> np.ndarray:
        return np.log(values)

    def inverse_transform(self, values: np.ndarray) -> np.ndarray:
        return np.exp(values)

    def fit_lmoments(self, lmom: LMoments) -> LP3Parameters:
        if not np.isfinite(lmom.l2) or lmom.l2 <= 0:
            raise FitFailureError(f"L-scale must be positive, got {lmom.l2}")
        if not np.isfinite(lmom.t3) or abs(lmom.t3) >= 1:
            raise FitFailureError(f"L-skewness out of range for Pearson III: {lmom.t3}")

        t3 = abs(lmom.t3)
        if t3 <= self._SMALL:
            return self._checked(lmom.l1, lmom.l2 * np.sqrt(np.pi), 0.0)

        A, B, C = self._A, self._B, self._C
        if t3 < 1 / 3:
            t = 3 * np.pi * t3 * t3
            alpha = (1 + A[0] * t) / (t * (1 + t * (A[1] + t * A[2])))
        else:
            t = 1 - t3
            alpha = t * (B[0] + t * (B[1] + t * B[2])) / (1 + t * (C[0] + t * (C[1] + t * C[2])))

        rt_alpha = np.sqrt(alpha)
        beta = np.sqrt(np.pi) * lmom.l2 * np.exp(gammaln(alpha) - gammaln(alpha + 0.5))
        skew = 2 / rt_alpha if lmom.t3 > 0 else -2 / rt_alpha
        return self._checked(lmom.l1, beta * rt_alpha, skew)

    @staticmethod
    def _checked(mean: float, std: float, skew: float) -> LP3Parameters:
        if not (np.isfinite(mean) and np.isfinite(std) and np.isfinite(skew)) or std <= 0:
            raise FitFailureError(
                f"Pearson III fit produced invalid parameters (mean={mean}, std={std}, skew={skew})"
            )
        return LP3Parameters(mean=float(mean), std=float(std), skew=float(skew))

    def cdf(self, x, params: LP3Parameters) -> np.ndarray:
        return stats.pearson3.cdf(x, params.skew, loc=params.mean, scale=params.std)

    def ppf(self, p, params: LP3Parameters) -> np.ndarray:
        return stats.pearson3.ppf(p, params.skew, loc=params.mean, scale=params.std)

    def pdf(self, x, params: LP3Parameters) -> np.ndarray:
        return stats.pearson3.pdf(x, params.skew, loc=params.mean, scale=params.std)

    def data_pdf(self, x, params: LP3Parameters) -> np.ndarray:
        # Change of variables y = ln(x): f_X(x) = f_Y(ln x) / x
        x = np.asarray(x, dtype=float)
        with np.errstate(divide="ignore", invalid="ignore"):
            dens = np.where(x > 0, self.pdf(np.log(np.where(x > 0, x, 1.0)), params) / x, 0.0)
        return dens


FAMILIES: Dict[Distribution, DistributionFamily] = {
    Distribution.GEV: GEVFamily(),
    Distribution.LP3: LP3Family(),
}


def get_family(kind: Union[str, Distribution, DistributionFamily]) -> DistributionFamily:
    """Return the family instance for a distribution name or enum member."""
    if isinstance(kind, DistributionFamily):
        return kind
    return FAMILIES[Distribution.parse(kind)]
