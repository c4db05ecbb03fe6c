"""
Retention Workflow - State Machine.

============================================================
PURPOSE
============================================================
Transition rules for the per-customer workflow record.

STATE MACHINE:

         (no record)
              │ start_treatment
              ▼
        EM_TRATAMENTO ◄──────► RESOLVIDO
              ▲                    ▲
              │                    │
              └──────► PERDIDO ◄───┘

- Only EM_TRATAMENTO is reachable from "no record"
- The three statuses are mutually reachable
- Same status is allowed and only bumps updated_at
- No terminal states: a lost customer can be won back

============================================================
"""

import logging
from typing import Dict, Optional, Set, Tuple

from .types import WorkflowStatus


logger = logging.getLogger(__name__)


# ============================================================
# STATE TRANSITION RULES
# ============================================================

# None is the "no record" state
VALID_TRANSITIONS: Dict[Optional[WorkflowStatus], Set[WorkflowStatus]] = {
    None: {
        WorkflowStatus.EM_TRATAMENTO,
    },
    WorkflowStatus.EM_TRATAMENTO: {
        WorkflowStatus.EM_TRATAMENTO,
        WorkflowStatus.RESOLVIDO,
        WorkflowStatus.PERDIDO,
    },
    WorkflowStatus.RESOLVIDO: {
        WorkflowStatus.EM_TRATAMENTO,
        WorkflowStatus.RESOLVIDO,
        WorkflowStatus.PERDIDO,
    },
    WorkflowStatus.PERDIDO: {
        WorkflowStatus.EM_TRATAMENTO,
        WorkflowStatus.RESOLVIDO,
        WorkflowStatus.PERDIDO,
    },
}


# ============================================================
# STATE TRANSITION GUARD
# ============================================================

class TransitionGuard:
    """Checks a transition and explains a denial."""

    @staticmethod
    def can_transition(
        from_state: Optional[WorkflowStatus],
        to_state: WorkflowStatus,
    ) -> Tuple[bool, str]:
        """
        Check if transition is allowed.

        Args:
            from_state: Current status, None when no record exists
            to_state: Target status

        Returns:
            Tuple of (allowed, reason)
        """
        valid_targets = VALID_TRANSITIONS.get(from_state, set())

        if to_state in valid_targets:
            if from_state == to_state:
                return True, "Same state"
            return True, "Valid transition"

        if from_state is None:
            return False, f"A customer without a workflow can only enter {WorkflowStatus.EM_TRATAMENTO.value}"

        return False, f"Invalid transition: {from_state.value} -> {to_state.value}"

