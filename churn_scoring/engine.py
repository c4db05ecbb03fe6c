"""
Churn Scoring Engine - Core Engine.

============================================================
PURPOSE
============================================================
Turn a CustomerSnapshot into a RiskAssessment.

- Deterministic and side-effect free
- Total: never raises for a well-formed snapshot
- Missing numeric fields count as zero

============================================================
FORMULAS
============================================================
financial  = round(raw_financial / 30 * overdue_invoice_cap)
support    = 0                                  if calls_30d < 2
             call_burst_base                    if calls_30d == 2
             base + increment * (calls_30d - 2) if calls_30d > 2
nps        = nps_detractor_bonus if detractor else round(raw_nps)
quality    = round(raw_quality / 25 * quality_cap)
behavioral = round(raw_behavioral / 20 * behavioral_cap)
score      = clamp(sum, 0, 500)

Rounding is half away from zero.

============================================================
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, Optional, Tuple

from .config import (
    MAX_SCORE,
    RiskBucketThresholds,
    ScoreWeightsConfig,
    ScoringConfig,
)
from .types import (
    CustomerSnapshot,
    Pillar,
    PillarBreakdown,
    RiskAssessment,
    RiskBucket,
)


logger = logging.getLogger(__name__)


# Historical baselines of the raw pillar sub-scores
FINANCIAL_BASELINE = 30
QUALITY_BASELINE = 25
BEHAVIORAL_BASELINE = 20

CALL_BURST_MIN_CALLS = 2


# ============================================================
# ROUNDING
# ============================================================


def round_half_away_from_zero(value: float) -> int:
    """round(2.5) == 3 and round(-2.5) == -3."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _rescale(raw: Optional[float], baseline: int, cap: int) -> int:
    if not raw:
        return 0
    scaled = Decimal(str(raw)) * Decimal(cap) / Decimal(baseline)
    return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ============================================================
# PILLAR FORMULAS
# ============================================================


def financial_pillar(raw_financial: Optional[float], weights: ScoreWeightsConfig) -> int:
    return _rescale(raw_financial, FINANCIAL_BASELINE, weights.overdue_invoice_cap)


def support_pillar(calls_30d: Optional[int], weights: ScoreWeightsConfig) -> int:
    calls = calls_30d or 0
    if calls < CALL_BURST_MIN_CALLS:
        return 0
    return weights.call_burst_base + weights.call_burst_increment * (calls - CALL_BURST_MIN_CALLS)


def nps_pillar(raw_nps: Optional[float], is_detractor: bool, weights: ScoreWeightsConfig) -> int:
    if is_detractor:
        return weights.nps_detractor_bonus
    if not raw_nps:
        return 0
    return round_half_away_from_zero(raw_nps)


def quality_pillar(raw_quality: Optional[float], weights: ScoreWeightsConfig) -> int:
    return _rescale(raw_quality, QUALITY_BASELINE, weights.quality_cap)


def behavioral_pillar(raw_behavioral: Optional[float], weights: ScoreWeightsConfig) -> int:
    return _rescale(raw_behavioral, BEHAVIORAL_BASELINE, weights.behavioral_cap)


def compute_pillars(snapshot: CustomerSnapshot, weights: ScoreWeightsConfig) -> PillarBreakdown:
    return PillarBreakdown(
        financial=financial_pillar(snapshot.raw_financial, weights),
        support=support_pillar(snapshot.calls_30d, weights),
        nps=nps_pillar(snapshot.raw_nps, snapshot.is_detractor, weights),
        quality=quality_pillar(snapshot.raw_quality, weights),
        behavioral=behavioral_pillar(snapshot.raw_behavioral, weights),
    )


# ============================================================
# CLASSIFICATION
# ============================================================


def classify(score: int, thresholds: Optional[RiskBucketThresholds] = None) -> RiskBucket:
    """Map a score to its bucket. Monotonic in score."""
    thresholds = thresholds or RiskBucketThresholds()
    if score >= thresholds.critical_min:
        return RiskBucket.CRITICO
    if score >= thresholds.alert_min:
        return RiskBucket.ALERTA
    return RiskBucket.OK


def compute_assessment(
    snapshot: CustomerSnapshot,
    weights: ScoreWeightsConfig,
    thresholds: Optional[RiskBucketThresholds] = None,
) -> RiskAssessment:
    """
    Score one customer.

    Cancelled customers are scored like any other.
    """
    pillars = compute_pillars(snapshot, weights)
    score = max(0, min(MAX_SCORE, pillars.total))
    return RiskAssessment(
        customer_id=snapshot.customer_id,
        score=score,
        bucket=classify(score, thresholds),
        pillars=pillars,
    )


# ============================================================
# ENGINE
# ============================================================


class RiskScoringEngine:
    """
    Scores snapshots against one ScoringConfig.

    Build a new engine per render pass from the config store's
    current value; the engine never sees a config change mid-pass.
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        self._config = config or ScoringConfig()

    @property
    def config(self) -> ScoringConfig:
        return self._config

    def assess(self, snapshot: CustomerSnapshot) -> RiskAssessment:
        return compute_assessment(snapshot, self._config.weights, self._config.thresholds)

    def assess_snapshots(
        self,
        snapshots: Iterable[CustomerSnapshot],
    ) -> Dict[int, Tuple[CustomerSnapshot, RiskAssessment]]:
        """
        Score a batch, keyed by customer id.

        When a customer appears more than once the highest score wins;
        the winning snapshot is returned with its assessment.
        """
        results: Dict[int, Tuple[CustomerSnapshot, RiskAssessment]] = {}
        duplicates = 0
        for snapshot in snapshots:
            assessment = self.assess(snapshot)
            existing = results.get(snapshot.customer_id)
            if existing is not None:
                duplicates += 1
                if existing[1].score >= assessment.score:
                    continue
            results[snapshot.customer_id] = (snapshot, assessment)

        if duplicates:
            logger.debug(f"Collapsed {duplicates} duplicate snapshots while scoring")
        return results

    def assess_many(self, snapshots: Iterable[CustomerSnapshot]) -> Dict[int, RiskAssessment]:
        """Like assess_snapshots, assessments only."""
        return {cid: pair[1] for cid, pair in self.assess_snapshots(snapshots).items()}


# ============================================================
# FORMATTING
# ============================================================


def _pct(value: int, cap: int) -> str:
    if cap <= 0:
        return "n/a"
    return f"{round_half_away_from_zero(value / cap * 100)}%"


def format_assessment_summary(assessment: RiskAssessment, weights: ScoreWeightsConfig) -> str:
    """
    Human-readable breakdown for operators and logs.

    Capped pillars show how much of their cap they use.
    """
    pillars = assessment.pillars
    driver = assessment.driver
    lines = [
        f"Customer {assessment.customer_id}: score {assessment.score}/{MAX_SCORE} "
        f"[{assessment.bucket.value}]",
        f"  financial:  {pillars.financial:>4} ({_pct(pillars.financial, weights.overdue_invoice_cap)} of cap)",
        f"  support:    {pillars.support:>4}",
        f"  nps:        {pillars.nps:>4}",
        f"  quality:    {pillars.quality:>4} ({_pct(pillars.quality, weights.quality_cap)} of cap)",
        f"  behavioral: {pillars.behavioral:>4} ({_pct(pillars.behavioral, weights.behavioral_cap)} of cap)",
        f"  driver:     {driver.value if driver else '-'}",
    ]
    return "\n".join(lines)


__all__ = [
    "round_half_away_from_zero",
    "financial_pillar",
    "support_pillar",
    "nps_pillar",
    "quality_pillar",
    "behavioral_pillar",
    "compute_pillars",
    "classify",
    "compute_assessment",
    "RiskScoringEngine",
    "format_assessment_summary",
    "Pillar",
]
