"""
Churn Scoring Engine Package.

Weighted, configurable churn-risk score per customer.

Components:
- types: snapshot, assessment and enum contracts
- config: bounded weights and bucket thresholds
- engine: pillar formulas, classification, RiskScoringEngine
- config_store: the single active config and its persistence
"""

from .types import (
    Pillar,
    ChurnStatus,
    NpsClassification,
    NpsReading,
    RiskBucket,
    CustomerSnapshot,
    PillarBreakdown,
    RiskAssessment,
)
from .config import (
    MAX_SCORE,
    WEIGHT_BOUNDS,
    ScoreWeightsConfig,
    RiskBucketThresholds,
    ScoringConfig,
    DEFAULT_SCORING_CONFIG,
)
from .engine import (
    round_half_away_from_zero,
    financial_pillar,
    support_pillar,
    nps_pillar,
    quality_pillar,
    behavioral_pillar,
    classify,
    compute_assessment,
    RiskScoringEngine,
    format_assessment_summary,
)
from .config_store import (
    ConfigBackend,
    InMemoryConfigBackend,
    JsonFileConfigBackend,
    ScoringConfigStore,
)


__all__ = [
    "Pillar",
    "ChurnStatus",
    "NpsClassification",
    "NpsReading",
    "RiskBucket",
    "CustomerSnapshot",
    "PillarBreakdown",
    "RiskAssessment",
    "MAX_SCORE",
    "WEIGHT_BOUNDS",
    "ScoreWeightsConfig",
    "RiskBucketThresholds",
    "ScoringConfig",
    "DEFAULT_SCORING_CONFIG",
    "round_half_away_from_zero",
    "financial_pillar",
    "support_pillar",
    "nps_pillar",
    "quality_pillar",
    "behavioral_pillar",
    "classify",
    "compute_assessment",
    "RiskScoringEngine",
    "format_assessment_summary",
    "ConfigBackend",
    "InMemoryConfigBackend",
    "JsonFileConfigBackend",
    "ScoringConfigStore",
]
