"""Tests for ash.session.base module."""

from ash.config import HostProfile
from ash.session.base import CancelToken, OneShot, SessionOutcome, SessionResult


class TestOneShot:
    """Tests for OneShot class."""

    def test_fires_once(self) -> None:
        """Test that only the first value is kept."""
        shot = OneShot()
        assert not shot.fired
        assert shot.fired_at is None

        assert shot.fire("first") is True
        assert shot.fire("second") is False

        assert shot.fired
        assert shot.value == "first"
        assert shot.fired_at is not None


class TestCancelToken:
    """Tests for CancelToken class."""

    def test_first_reason_wins(self) -> None:
        """Test that a second cancel does not replace the reason."""
        token = CancelToken()
        assert not token.cancelled
        assert token.cancelled_at is None

        token.cancel("received SIGINT")
        token.cancel("received SIGTERM")

        assert token.cancelled
        assert token.reason == "received SIGINT"

    def test_cancelled_at_ordering(self) -> None:
        """Test that firing times compare with other signals."""
        shot = OneShot()
        shot.fire()
        token = CancelToken()
        token.cancel()
        assert shot.fired_at <= token.cancelled_at


class TestSessionOutcome:
    """Tests for SessionOutcome and SessionResult."""

    def test_completed(self) -> None:
        """Test completed versus cancelled."""
        assert SessionOutcome(exit_status=1).completed
        assert not SessionOutcome(cancelled=True).completed

    def test_result_holds_profile(self, box_profile: HostProfile) -> None:
        """Test that the result carries the profile to persist."""
        result = SessionResult(profile=box_profile, outcome=SessionOutcome())
        assert result.profile is box_profile
        assert result.outcome.completed
