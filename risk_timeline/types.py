"""
Risk Timeline - Type Definitions.

Risk events shown on a customer's timeline. Persisted events
come from the event store; synthetic ones are derived from the
live snapshot on every request and never written back.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class RiskEventType(str, Enum):
    """Event types the timeline knows how to synthesize."""

    SCORE_FINANCEIRO = "score_financeiro"
    CHAMADO_REINCIDENTE = "chamado_reincidente"
    NPS_DETRATOR = "nps_detrator"
    SCORE_QUALIDADE = "score_qualidade"
    SCORE_COMPORTAMENTAL = "score_comportamental"
    CANCELAMENTO_REAL = "cancelamento_real"

    @property
    def label(self) -> str:
        return EVENT_LABELS[self.value]


EVENT_LABELS: Dict[str, str] = {
    "score_financeiro": "Score Financeiro",
    "chamado_reincidente": "Chamado reincidente",
    "nps_detrator": "NPS Detrator",
    "score_qualidade": "Score Qualidade",
    "score_comportamental": "Score Comportamental",
    "cancelamento_real": "Cancelamento confirmado",
}


@dataclass(frozen=True)
class RiskEvent:
    """
    One timeline entry.

    `type` is a plain string: persisted events may carry types
    beyond RiskEventType.
    """

    id: str
    customer_id: int
    type: str
    impact_score: int
    occurred_at: datetime
    description: Optional[str] = None
    synthetic: bool = False

    @property
    def label(self) -> str:
        return EVENT_LABELS.get(self.type, self.type)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "type": self.type,
            "label": self.label,
            "impact_score": self.impact_score,
            "description": self.description,
            "occurred_at": self.occurred_at.isoformat(),
            "synthetic": self.synthetic,
        }
