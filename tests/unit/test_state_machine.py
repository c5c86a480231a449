"""
Unit tests for ride status transitions and OTP generation.
"""
import pytest

from ridehail.services.lifecycle import can_transition, generate_otp


class TestRideStateMachine:
    def test_pending_to_accepted(self):
        assert can_transition("pending", "accepted")

    def test_accepted_to_ongoing(self):
        assert can_transition("accepted", "ongoing")

    def test_ongoing_to_completed(self):
        assert can_transition("ongoing", "completed")

    def test_completed_is_terminal(self):
        for state in ("pending", "accepted", "ongoing", "completed"):
            assert not can_transition("completed", state)

    def test_no_backward_moves(self):
        assert not can_transition("accepted", "pending")
        assert not can_transition("ongoing", "accepted")
        assert not can_transition("completed", "ongoing")

    def test_no_forward_skips(self):
        assert not can_transition("pending", "ongoing")
        assert not can_transition("pending", "completed")
        assert not can_transition("accepted", "completed")

    def test_unknown_states(self):
        assert not can_transition("cancelled", "pending")
        assert not can_transition("pending", "cancelled")


class TestGenerateOtp:
    def test_six_numeric_digits(self):
        for _ in range(200):
            otp = generate_otp()
            assert len(otp) == 6
            assert otp.isdigit()

    def test_zero_padded(self, monkeypatch):
        monkeypatch.setattr("ridehail.services.lifecycle.secrets.randbelow", lambda n: 42)
        assert generate_otp() == "000042"
