"""
Verify Status Transition Validator
==================================

Guards the per-address status inside a Verify registry.
Status only advances NIL -> ADDED -> APPROVED -> BANNED or resets to NIL on
removal; BANNED is terminal.
"""

import logging
from typing import Dict, Optional, Set, Tuple

from models import VerifyStatus

logger = logging.getLogger(__name__)


class VerifyStatusValidator:
    """
    Validates Verify address status transitions.

    Rejected examples:
    - BANNED -> APPROVED (a batch approve containing a banned address)
    - BANNED -> NIL (removal cannot lift a ban)
    - APPROVED -> ADDED (approval never moves backwards)
    """

    VALID_TRANSITIONS: Dict[VerifyStatus, Set[VerifyStatus]] = {
        # NIL: never seen or removed
        VerifyStatus.NIL: {
            VerifyStatus.ADDED,
            VerifyStatus.APPROVED,
            VerifyStatus.BANNED,
        },

        # ADDED: self-registered, waiting for an approver
        VerifyStatus.ADDED: {
            VerifyStatus.APPROVED,
            VerifyStatus.NIL,
            VerifyStatus.BANNED,
        },

        # APPROVED: can be removed or banned
        VerifyStatus.APPROVED: {
            VerifyStatus.NIL,
            VerifyStatus.BANNED,
        },

        # BANNED: terminal
        VerifyStatus.BANNED: set(),
    }

    TERMINAL_STATES: Set[VerifyStatus] = {
        VerifyStatus.BANNED,
    }

    @classmethod
    def validate_transition(
        cls,
        from_status: VerifyStatus,
        to_status: VerifyStatus,
        account_id: Optional[str] = None,
    ) -> Tuple[bool, str]:
        """
        Validate if a status transition is allowed.

        Returns:
            Tuple[bool, str]: (is_valid, reason)
        """
        account_ref = f"Account {account_id}" if account_id else "Account"

        if from_status == to_status:
            return True, "No status change required"

        valid_next_states = cls.VALID_TRANSITIONS.get(from_status, set())
        if to_status in valid_next_states:
            logger.debug(f"✅ VERIFY_TRANSITION: {account_ref} {from_status.value} -> {to_status.value}")
            return True, "Valid status transition"

        reason = (
            f"Invalid transition: {from_status.value} -> {to_status.value}. "
            f"Valid transitions from {from_status.value}: "
            f"{sorted(s.value for s in valid_next_states)}"
        )
        logger.warning(f"⛔ VERIFY_TRANSITION_BLOCKED: {account_ref} {reason}")
        return False, reason

    @classmethod
    def is_valid_transition(cls, from_status, to_status) -> bool:
        """Boolean check accepting enum members or their string values"""
        try:
            from_enum = VerifyStatus(from_status) if isinstance(from_status, str) else from_status
            to_enum = VerifyStatus(to_status) if isinstance(to_status, str) else to_status
        except ValueError:
            return False
        is_valid, _ = cls.validate_transition(from_enum, to_enum)
        return is_valid

    @classmethod
    def get_valid_next_states(cls, current_status: VerifyStatus) -> Set[VerifyStatus]:
        return cls.VALID_TRANSITIONS.get(current_status, set())

    @classmethod
    def is_terminal_state(cls, status: VerifyStatus) -> bool:
        return status in cls.TERMINAL_STATES
