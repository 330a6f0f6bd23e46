"""
Tests for Verify address status transitions
"""

import pytest

from models import VerifyStatus
from utils.verify_state_validator import VerifyStatusValidator


class TestVerifyStatusValidator:
    """Status moves NIL -> ADDED -> APPROVED -> BANNED, resets to NIL on removal"""

    @pytest.mark.parametrize("from_status,to_status", [
        (VerifyStatus.NIL, VerifyStatus.ADDED),
        (VerifyStatus.NIL, VerifyStatus.APPROVED),
        (VerifyStatus.NIL, VerifyStatus.BANNED),
        (VerifyStatus.ADDED, VerifyStatus.APPROVED),
        (VerifyStatus.ADDED, VerifyStatus.NIL),
        (VerifyStatus.ADDED, VerifyStatus.BANNED),
        (VerifyStatus.APPROVED, VerifyStatus.NIL),
        (VerifyStatus.APPROVED, VerifyStatus.BANNED),
    ])
    def test_allowed_transitions(self, from_status, to_status):
        is_valid, _ = VerifyStatusValidator.validate_transition(from_status, to_status)
        assert is_valid

    @pytest.mark.parametrize("from_status,to_status", [
        (VerifyStatus.BANNED, VerifyStatus.APPROVED),
        (VerifyStatus.BANNED, VerifyStatus.NIL),
        (VerifyStatus.BANNED, VerifyStatus.ADDED),
        (VerifyStatus.APPROVED, VerifyStatus.ADDED),
    ])
    def test_rejected_transitions(self, from_status, to_status):
        is_valid, reason = VerifyStatusValidator.validate_transition(from_status, to_status, "acct")
        assert not is_valid
        assert "Invalid transition" in reason

    def test_same_status_is_a_no_op(self):
        """Re-applying the current status is always allowed, even when terminal"""
        for status in VerifyStatus:
            is_valid, reason = VerifyStatusValidator.validate_transition(status, status)
            assert is_valid
            assert reason == "No status change required"

    def test_banned_is_terminal(self):
        assert VerifyStatusValidator.is_terminal_state(VerifyStatus.BANNED)
        assert not VerifyStatusValidator.is_terminal_state(VerifyStatus.APPROVED)
        assert VerifyStatusValidator.get_valid_next_states(VerifyStatus.BANNED) == set()

    def test_string_values_accepted(self):
        assert VerifyStatusValidator.is_valid_transition("ADDED", "APPROVED")
        assert not VerifyStatusValidator.is_valid_transition("BANNED", "APPROVED")
        assert not VerifyStatusValidator.is_valid_transition("UNKNOWN", "APPROVED")
