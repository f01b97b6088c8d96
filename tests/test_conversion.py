from __future__ import annotations

import pytest

from estate_api.services.money import round2, round5, round_rate, round_whole
from estate_api.services.rates.conversion import build_snapshot, convert_amount
from estate_api.services.rates.providers import FallbackRateProvider

from conftest import make_snapshot


def test_round_rate_precision_depends_on_magnitude() -> None:
    assert round_rate(381.355) == 381.36
    assert round_rate(1.08349) == 1.08
    assert round_rate(0.0026222) == 0.00262
    assert round2(2.675) == 2.68  # half-up on the decimal value, not the binary float
    assert round5(0.000025) == 0.00003
    assert round_whole(2.5) == 3


def test_cross_rates_from_clearing_mid_rates() -> None:
    snap = build_snapshot((379.05 + 383.67) / 2, (409.1 + 417.3) / 2, source="rate.am")

    assert snap.usd_to_amd == 381.36
    assert snap.amd_to_usd == 0.00262
    assert snap.eur_to_amd == 413.2
    assert snap.amd_to_eur == 0.00242
    assert snap.eur_to_usd == 1.08
    assert snap.usd_to_eur == 0.92294
    assert snap.source == "rate.am"


def test_reciprocals_agree_within_rounding_tolerance() -> None:
    for usd, eur in [(381.36, 413.2), (400.0, 390.5), (2.5, 3.75), (1500.0, 1650.25)]:
        snap = build_snapshot(usd, eur, source="rate.am")
        assert snap.amd_to_usd == pytest.approx(1 / snap.usd_to_amd, abs=1e-5)
        assert snap.amd_to_eur == pytest.approx(1 / snap.eur_to_amd, abs=1e-5)
        assert snap.usd_to_eur == pytest.approx(1 / snap.eur_to_usd, rel=1e-2)


def test_build_snapshot_rejects_non_positive_rates() -> None:
    with pytest.raises(ValueError):
        build_snapshot(0, 413.2, source="rate.am")


def test_fallback_snapshot_uses_constants() -> None:
    snap = FallbackRateProvider().snapshot()

    assert snap.source == "fallback"
    assert snap.usd_to_amd == 380
    assert snap.amd_to_usd == 0.00263
    assert snap.usd_to_eur == 0.92
    assert snap.eur_to_usd == 1.09
    assert snap.eur_to_amd == 413.04
    assert snap.amd_to_eur == 0.00242


def test_fallback_timestamp_is_fresh_per_call(monkeypatch: pytest.MonkeyPatch) -> None:
    import estate_api.services.rates.conversion as conversion

    ticks = iter([1000, 2000])
    monkeypatch.setattr(conversion, "now_ms", lambda: next(ticks))
    provider = FallbackRateProvider()

    first, second = provider.snapshot(), provider.snapshot()

    assert (first.timestamp, second.timestamp) == (1000, 2000)
    assert first.usd_to_amd == second.usd_to_amd


def test_fallback_rejects_bad_constants() -> None:
    with pytest.raises(ValueError):
        FallbackRateProvider(usd_to_amd=-1)


def test_convert_amount() -> None:
    rates = make_snapshot()

    assert convert_amount(100, "USD", "AMD", rates) == 38136
    assert convert_amount(1_000_000, "amd", "usd", rates) == 2620
    assert convert_amount(100, "EUR", "AMD", rates) == 41320
    assert convert_amount(99.6, "USD", "USD", rates) == 100


def test_convert_amount_rejects_unknown_currency() -> None:
    with pytest.raises(ValueError, match="GBP"):
        convert_amount(1, "GBP", "AMD", make_snapshot())


def test_convert_amount_rejects_out_of_range_amounts() -> None:
    rates = make_snapshot()

    with pytest.raises(ValueError, match="out of range"):
        convert_amount(float("inf"), "USD", "USD", rates)
    with pytest.raises(ValueError, match="out of range"):
        convert_amount(1e308, "USD", "AMD", rates)


def test_round_whole_handles_large_values() -> None:
    assert round_whole(1e30) == 10**30
    assert round_whole(2.5) == 3
