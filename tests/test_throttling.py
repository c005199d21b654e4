from datetime import timedelta

from dashboard.backend.auth.sessions import SessionStore
from dashboard.backend.auth.throttling import FixedWindowRateLimiter, LoginAttemptTracker
from dashboard.backend.services.permissions import Principal
from dashboard.backend.services.tiers import Tier
from tests.helpers import FakeClock


def test_lockout_after_max_failures():
    clock = FakeClock()
    tracker = LoginAttemptTracker(max_attempts=5, lockout_seconds=900, clock=clock)

    remaining = [tracker.record_failure("1.2.3.4") for _ in range(5)]

    assert remaining == [4, 3, 2, 1, 0]
    assert tracker.is_locked("1.2.3.4")
    assert tracker.locked_for("1.2.3.4") == 900
    assert not tracker.is_locked("5.6.7.8")


def test_lockout_lapses():
    clock = FakeClock()
    tracker = LoginAttemptTracker(max_attempts=2, lockout_seconds=900, clock=clock)
    tracker.record_failure("ip")
    tracker.record_failure("ip")

    clock.advance(899)
    assert tracker.is_locked("ip")
    clock.advance(1)
    assert not tracker.is_locked("ip")
    assert tracker.record_failure("ip") == 1


def test_success_resets_counter():
    tracker = LoginAttemptTracker(max_attempts=3, lockout_seconds=60, clock=FakeClock())
    tracker.record_failure("ip")
    tracker.record_failure("ip")
    tracker.record_success("ip")

    assert tracker.record_failure("ip") == 2


def test_old_failures_expire():
    clock = FakeClock()
    tracker = LoginAttemptTracker(max_attempts=3, lockout_seconds=60, clock=clock)
    tracker.record_failure("ip")
    tracker.record_failure("ip")
    clock.advance(61)

    assert tracker.record_failure("ip") == 2


def test_rate_limiter_window():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter("api", limit=2, window_seconds=60, clock=clock)

    assert limiter.hit("ip") == 0
    assert limiter.hit("ip") == 0
    assert limiter.hit("ip") == 60
    assert limiter.hit("other") == 0

    clock.advance(60)
    assert limiter.hit("ip") == 0


def test_session_expiry_and_refresh():
    clock = FakeClock()
    store = SessionStore(ttl=timedelta(hours=1), remember_ttl=timedelta(days=1), clock=clock)
    user = Principal(user_id="100000001", tier=Tier.ADP)

    short_id, _ = store.create(user)
    long_id, _ = store.create(user, remember=True)

    assert store.refresh_user("100000001", Principal(user_id="100000001", tier=Tier.CEO)) == 2
    assert store.get(long_id).principal.tier == Tier.CEO

    clock.advance(3600)
    assert store.get(short_id) is None
    assert store.get(long_id) is not None

    assert store.refresh_user("100000001", None) == 1
    assert store.get(long_id) is None


def test_tracker_forgets_stale_clients():
    clock = FakeClock()
    tracker = LoginAttemptTracker(max_attempts=2, lockout_seconds=60, clock=clock)

    for i in range(50):
        tracker.record_failure(f"10.0.0.{i}")
    tracker.record_failure("10.0.0.1")
    assert tracker.active_count() == 50

    clock.advance(60)
    assert not tracker.is_locked("10.0.0.1")
    assert tracker.active_count() == 0


def test_tracker_lookup_does_not_create_state():
    tracker = LoginAttemptTracker(clock=FakeClock())

    for i in range(10):
        assert tracker.locked_for(f"10.0.0.{i}") == 0

    assert tracker.active_count() == 0


def test_rate_limiter_forgets_expired_windows():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter("api", limit=5, window_seconds=60, clock=clock)

    for i in range(100):
        limiter.hit(f"10.0.0.{i}")
    assert limiter.active_count() == 100

    clock.advance(60)
    limiter.hit("10.0.1.1")
    assert limiter.active_count() == 1
