"""
Churn Scoring Engine - Type Definitions.

============================================================
PURPOSE
============================================================
Data contracts for the churn scoring engine.

The engine consumes a read-only CustomerSnapshot computed
upstream and produces a RiskAssessment:

- an integer score in [0, 500]
- a discrete RiskBucket (OK / ALERTA / CRÍTICO)
- the per-pillar breakdown behind the score

============================================================
PILLARS
============================================================
The score is the sum of five pillar contributions:

1. FINANCIAL - overdue invoices
2. SUPPORT - call bursts in the last 30 days
3. NPS - satisfaction survey outcome
4. QUALITY - service quality signal
5. BEHAVIORAL - usage behaviour signal

============================================================
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional


# ============================================================
# ENUMS
# ============================================================


class Pillar(str, Enum):
    """The five scoring pillars, in tie-breaking order."""

    FINANCIAL = "financial"
    SUPPORT = "support"
    NPS = "nps"
    QUALITY = "quality"
    BEHAVIORAL = "behavioral"

    @classmethod
    def all_pillars(cls) -> List["Pillar"]:
        """Return all pillars in evaluation order."""
        return [cls.FINANCIAL, cls.SUPPORT, cls.NPS, cls.QUALITY, cls.BEHAVIORAL]


class ChurnStatus(str, Enum):
    """Upstream churn status of a customer."""

    ACTIVE = "active"
    AT_RISK = "at_risk"
    CANCELLED = "cancelled"


class NpsClassification(str, Enum):
    """
    NPS survey classification.

    Upstream systems send Portuguese labels (PROMOTOR, NEUTRO,
    DETRATOR); `parse` accepts those as well as the English ones.
    """

    PROMOTER = "promoter"
    NEUTRAL = "neutral"
    DETRACTOR = "detractor"

    @classmethod
    def parse(cls, label: Optional[str]) -> Optional["NpsClassification"]:
        """Case-insensitive parse. Unknown labels return None."""
        if label is None:
            return None
        return _NPS_ALIASES.get(label.strip().lower())


_NPS_ALIASES: Dict[str, NpsClassification] = {
    "promoter": NpsClassification.PROMOTER,
    "promotor": NpsClassification.PROMOTER,
    "neutral": NpsClassification.NEUTRAL,
    "neutro": NpsClassification.NEUTRAL,
    "passive": NpsClassification.NEUTRAL,
    "detractor": NpsClassification.DETRACTOR,
    "detrator": NpsClassification.DETRACTOR,
}


class RiskBucket(str, Enum):
    """
    Discrete risk tier derived from the score.

    - OK: below the alert threshold
    - ALERTA: at or above alert, below critical
    - CRÍTICO: at or above critical
    """

    OK = "OK"
    ALERTA = "ALERTA"
    CRITICO = "CRÍTICO"

    @property
    def is_at_risk(self) -> bool:
        return self is not RiskBucket.OK


# ============================================================
# INPUT TYPES
# ============================================================


@dataclass(frozen=True)
class NpsReading:
    """Latest NPS survey answer for a customer."""

    score: Optional[int]
    classification: Optional[NpsClassification]
    answered_at: Optional[datetime] = None


@dataclass(frozen=True)
class CustomerSnapshot:
    """
    Per-customer aggregate computed upstream.

    Missing numeric fields are None and score as zero.
    """

    customer_id: int
    name: str
    as_of: datetime
    plan: Optional[str] = None
    monthly_amount: Optional[Decimal] = None
    days_overdue: Optional[int] = None
    last_payment_date: Optional[date] = None

    # Raw pillar sub-scores
    raw_financial: Optional[float] = None
    raw_support: Optional[float] = None
    raw_nps: Optional[float] = None
    raw_quality: Optional[float] = None
    raw_behavioral: Optional[float] = None

    calls_30d: Optional[int] = None
    calls_90d: Optional[int] = None

    nps_score: Optional[int] = None
    nps_classification: Optional[NpsClassification] = None

    lifetime_value: Optional[Decimal] = None
    churn_status: ChurnStatus = ChurnStatus.ACTIVE
    cancelled_at: Optional[datetime] = None

    @property
    def is_detractor(self) -> bool:
        return self.nps_classification is NpsClassification.DETRACTOR

    @property
    def is_cancelled(self) -> bool:
        return self.churn_status is ChurnStatus.CANCELLED


# ============================================================
# OUTPUT TYPES
# ============================================================


@dataclass(frozen=True)
class PillarBreakdown:
    """Integer contribution of each pillar to the total score."""

    financial: int = 0
    support: int = 0
    nps: int = 0
    quality: int = 0
    behavioral: int = 0

    @property
    def total(self) -> int:
        return self.financial + self.support + self.nps + self.quality + self.behavioral

    def contribution(self, pillar: Pillar) -> int:
        return getattr(self, pillar.value)

    @property
    def driver(self) -> Optional[Pillar]:
        """
        Pillar with the largest contribution.

        Ties go to the earliest pillar in evaluation order.
        None when every pillar contributes zero.
        """
        best: Optional[Pillar] = None
        best_value = 0
        for pillar in Pillar.all_pillars():
            value = self.contribution(pillar)
            if value > best_value:
                best, best_value = pillar, value
        return best

    def to_dict(self) -> Dict[str, int]:
        return {pillar.value: self.contribution(pillar) for pillar in Pillar.all_pillars()}


@dataclass(frozen=True)
class RiskAssessment:
    """Scoring result for one customer. Derived, never stored."""

    customer_id: int
    score: int
    bucket: RiskBucket
    pillars: PillarBreakdown = field(default_factory=PillarBreakdown)

    @property
    def driver(self) -> Optional[Pillar]:
        return self.pillars.driver

    def to_dict(self) -> Dict[str, Any]:
        driver = self.driver
        return {
            "customer_id": self.customer_id,
            "score": self.score,
            "bucket": self.bucket.value,
            "driver": driver.value if driver else None,
            "pillars": self.pillars.to_dict(),
        }
