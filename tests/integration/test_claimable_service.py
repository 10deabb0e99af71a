from dataclasses import replace

from streamledger.core.types import Stream
from streamledger.integration import claimable
from streamledger.integration.claimable import ClaimableAmountService

_STREAM = Stream(
    sender="alice",
    recipient="bob",
    token_address="USDC",
    rate_per_second=100,
    deposited_amount=10_000,
    start_time=1_000,
    last_update_time=1_000,
)


class _FakeMillis:
    def __init__(self, ms: int) -> None:
        self.ms = ms

    def __call__(self) -> int:
        return self.ms


def test_answer_at_given_second() -> None:
    svc = ClaimableAmountService(now_ms=_FakeMillis(0))
    res = svc.get_claimable_amount(1, _STREAM, at=1_040)
    assert res.claimable_amount == 4_000
    assert res.actionable
    assert res.calculated_at == 1_040
    assert not res.cached


def test_default_time_is_now() -> None:
    svc = ClaimableAmountService(now_ms=_FakeMillis(1_025_999))
    res = svc.get_claimable_amount(1, _STREAM)
    assert res.calculated_at == 1_025
    assert res.claimable_amount == 2_500


def test_cache_hit_then_expiry() -> None:
    clock = _FakeMillis(0)
    svc = ClaimableAmountService(cache_ttl_ms=1_000, now_ms=clock)
    assert not svc.get_claimable_amount(1, _STREAM, at=1_010).cached
    clock.ms = 999
    assert svc.get_claimable_amount(1, _STREAM, at=1_010).cached
    clock.ms = 1_000
    assert not svc.get_claimable_amount(1, _STREAM, at=1_010).cached


def test_state_change_misses_cache() -> None:
    svc = ClaimableAmountService(now_ms=_FakeMillis(0))
    svc.get_claimable_amount(1, _STREAM, at=1_010)
    moved = replace(_STREAM, withdrawn_amount=500, last_update_time=1_005)
    res = svc.get_claimable_amount(1, moved, at=1_010)
    assert not res.cached
    assert res.claimable_amount == 500


def test_zero_ttl_never_reuses() -> None:
    svc = ClaimableAmountService(cache_ttl_ms=0, now_ms=_FakeMillis(0))
    svc.get_claimable_amount(1, _STREAM, at=1_010)
    assert not svc.get_claimable_amount(1, _STREAM, at=1_010).cached


def test_clear_cache() -> None:
    svc = ClaimableAmountService(now_ms=_FakeMillis(0))
    svc.get_claimable_amount(1, _STREAM, at=1_010)
    svc.clear_cache()
    assert not svc.get_claimable_amount(1, _STREAM, at=1_010).cached


def test_inactive_and_not_started() -> None:
    svc = ClaimableAmountService(now_ms=_FakeMillis(0))
    dead = replace(_STREAM, is_active=False)
    res = svc.get_claimable_amount(1, dead, at=5_000)
    assert (res.claimable_amount, res.actionable) == (0, False)
    early = svc.get_claimable_amount(1, _STREAM, at=500)
    assert (early.claimable_amount, early.actionable) == (0, False)


def test_cache_bound_evicts_oldest(monkeypatch) -> None:
    monkeypatch.setattr(claimable, "MAX_CACHE_ENTRIES", 3)
    svc = ClaimableAmountService(cache_ttl_ms=60_000, now_ms=_FakeMillis(0))
    for sid in (1, 2, 3, 4):
        svc.get_claimable_amount(sid, _STREAM, at=1_010)
    assert svc.get_claimable_amount(4, _STREAM, at=1_010).cached
    assert svc.get_claimable_amount(3, _STREAM, at=1_010).cached
    assert not svc.get_claimable_amount(1, _STREAM, at=1_010).cached


def test_expired_entries_dropped_first() -> None:
    clock = _FakeMillis(0)
    svc = ClaimableAmountService(cache_ttl_ms=1_000, now_ms=clock)
    svc.get_claimable_amount(1, _STREAM, at=1_010)
    clock.ms = 500
    svc.get_claimable_amount(2, _STREAM, at=1_010)
    clock.ms = 1_200
    svc.get_claimable_amount(3, _STREAM, at=1_010)
    assert svc.get_claimable_amount(2, _STREAM, at=1_010).cached
    assert not svc.get_claimable_amount(1, _STREAM, at=1_010).cached
