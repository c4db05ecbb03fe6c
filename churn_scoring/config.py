"""
Churn Scoring Engine - Configuration.

============================================================
PURPOSE
============================================================
Operator-tunable weights and bucket thresholds.

- ScoreWeightsConfig: six bounded integer weights
- RiskBucketThresholds: alert / critical score cut-offs
- ScoringConfig: the pair, swapped atomically as one value

All values are validated on construction from untrusted
input (`from_mapping`). An invalid proposal never becomes
active.

============================================================
WEIGHT BOUNDS
============================================================
call_burst_base        default 25   range 0-50
call_burst_increment   default 5    range 0-30
overdue_invoice_cap    default 25   range 0-60
nps_detractor_bonus    default 30   range 0-50
quality_cap            default 20   range 0-40
behavioral_cap         default 20   range 0-40

============================================================
"""

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Mapping, Optional, Tuple

from core.exceptions import InvalidConfigError


MAX_SCORE = 500


# ============================================================
# VALUE VALIDATION
# ============================================================


def _coerce_int(key: str, value: Any) -> int:
    """Accept ints and integral floats; reject bools, strings and fractions."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidConfigError(key, value, "must be an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidConfigError(key, value, "must be an integer")
        value = int(value)
    return value


# ============================================================
# SCORE WEIGHTS
# ============================================================


@dataclass(frozen=True)
class ScoreWeightsConfig:
    """
    Weights used by the scoring formulas.

    Every field is an integer inside WEIGHT_BOUNDS.
    """

    # Support pillar: points for the 2nd call in 30 days, plus per extra call
    call_burst_base: int = 25
    call_burst_increment: int = 5

    # Financial pillar cap (raw financial baseline is 30)
    overdue_invoice_cap: int = 25

    # NPS pillar value for detractors
    nps_detractor_bonus: int = 30

    # Quality (baseline 25) and behavioral (baseline 20) caps
    quality_cap: int = 20
    behavioral_cap: int = 20

    def __post_init__(self) -> None:
        for f in fields(self):
            value = _coerce_int(f.name, getattr(self, f.name))
            low, high = WEIGHT_BOUNDS[f.name]
            if not low <= value <= high:
                raise InvalidConfigError(f.name, value, f"must be between {low} and {high}")
            object.__setattr__(self, f.name, value)

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        fill_defaults: bool = False,
    ) -> "ScoreWeightsConfig":
        """
        Build from untrusted input.

        Args:
            data: Field name to value
            fill_defaults: When False every field must be present

        Raises:
            InvalidConfigError: unknown key, missing key, bad value
        """
        known = set(WEIGHT_BOUNDS)
        for key in data:
            if key not in known:
                raise InvalidConfigError(str(key), data[key], "unknown weight")
        if not fill_defaults:
            for key in WEIGHT_BOUNDS:
                if key not in data:
                    raise InvalidConfigError(key, None, "missing weight")
        return cls(**dict(data))

    def replace(self, **changes: Any) -> "ScoreWeightsConfig":
        merged = self.to_dict()
        merged.update(changes)
        return ScoreWeightsConfig.from_mapping(merged)

    def to_dict(self) -> Dict[str, int]:
        return {
            "call_burst_base": self.call_burst_base,
            "call_burst_increment": self.call_burst_increment,
            "overdue_invoice_cap": self.overdue_invoice_cap,
            "nps_detractor_bonus": self.nps_detractor_bonus,
            "quality_cap": self.quality_cap,
            "behavioral_cap": self.behavioral_cap,
        }


WEIGHT_BOUNDS: Dict[str, Tuple[int, int]] = {
    "call_burst_base": (0, 50),
    "call_burst_increment": (0, 30),
    "overdue_invoice_cap": (0, 60),
    "nps_detractor_bonus": (0, 50),
    "quality_cap": (0, 40),
    "behavioral_cap": (0, 40),
}


# ============================================================
# BUCKET THRESHOLDS
# ============================================================


@dataclass(frozen=True)
class RiskBucketThresholds:
    """
    Score cut-offs for the risk buckets.

    Valid iff 0 <= alert_min <= critical_min <= MAX_SCORE.
    """

    alert_min: int = 40
    critical_min: int = 70

    def __post_init__(self) -> None:
        alert = _coerce_int("alert_min", self.alert_min)
        critical = _coerce_int("critical_min", self.critical_min)
        if not 0 <= alert <= MAX_SCORE:
            raise InvalidConfigError("alert_min", alert, f"must be between 0 and {MAX_SCORE}")
        if not 0 <= critical <= MAX_SCORE:
            raise InvalidConfigError("critical_min", critical, f"must be between 0 and {MAX_SCORE}")
        if alert > critical:
            raise InvalidConfigError("alert_min", alert, "must not exceed critical_min")
        object.__setattr__(self, "alert_min", alert)
        object.__setattr__(self, "critical_min", critical)

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        fill_defaults: bool = False,
    ) -> "RiskBucketThresholds":
        for key in data:
            if key not in ("alert_min", "critical_min"):
                raise InvalidConfigError(str(key), data[key], "unknown threshold")
        if not fill_defaults:
            for key in ("alert_min", "critical_min"):
                if key not in data:
                    raise InvalidConfigError(key, None, "missing threshold")
        return cls(**dict(data))

    def to_dict(self) -> Dict[str, int]:
        return {"alert_min": self.alert_min, "critical_min": self.critical_min}


# ============================================================
# SCORING CONFIG
# ============================================================


@dataclass(frozen=True)
class ScoringConfig:
    """Weights and thresholds published together."""

    weights: ScoreWeightsConfig = field(default_factory=ScoreWeightsConfig)
    thresholds: RiskBucketThresholds = field(default_factory=RiskBucketThresholds)

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        fill_defaults: bool = False,
    ) -> "ScoringConfig":
        """
        Parse {"weights": {...}, "thresholds": {...}}.

        With fill_defaults, missing sections and keys take defaults.
        """
        for key in data:
            if key not in ("weights", "thresholds"):
                raise InvalidConfigError(str(key), data[key], "unknown section")

        weights_data = data.get("weights")
        thresholds_data = data.get("thresholds")

        if weights_data is None:
            if not fill_defaults:
                raise InvalidConfigError("weights", None, "missing section")
            weights_data = {}
        if thresholds_data is None:
            thresholds_data = {}
            fill_thresholds = True
        else:
            fill_thresholds = fill_defaults

        if not isinstance(weights_data, Mapping):
            raise InvalidConfigError("weights", weights_data, "must be an object")
        if not isinstance(thresholds_data, Mapping):
            raise InvalidConfigError("thresholds", thresholds_data, "must be an object")

        return cls(
            weights=ScoreWeightsConfig.from_mapping(weights_data, fill_defaults=fill_defaults),
            thresholds=RiskBucketThresholds.from_mapping(thresholds_data, fill_defaults=fill_thresholds),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weights": self.weights.to_dict(),
            "thresholds": self.thresholds.to_dict(),
        }


DEFAULT_SCORING_CONFIG = ScoringConfig()

