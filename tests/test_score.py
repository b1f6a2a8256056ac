from dataclasses import replace

import pytest

from runfit.models import Personalization, RunType, ScoreModel, Severity, WeatherSnapshot
from runfit.score import (
    IDEAL_UTCI_BAND,
    blend_long_run,
    compute_legacy_breakdown,
    compute_score,
    precip_penalty,
    score_from_utci,
    score_label,
    severity_for,
    temperature_penalty,
    thermal_penalty,
)


class TestUtciScore:
    def test_ideal_band_scores_100(self):
        for utci_f in (IDEAL_UTCI_BAND[0], 47.0, IDEAL_UTCI_BAND[1]):
            assert score_from_utci(utci_f).score == 100
            assert thermal_penalty(utci_f) == 0.0

    def test_mild_overcast(self):
        breakdown = score_from_utci(43.34)
        assert breakdown.score >= 95
        assert breakdown.model is ScoreModel.UTCI

    def test_extreme_heat_scores_zero(self):
        breakdown = score_from_utci(109.0)
        assert breakdown.score == 0
        assert breakdown.dominant_factors[0] == "temperature"
        assert breakdown.factor("extreme").penalty > 0

    def test_monotonic_away_from_ideal(self):
        previous = 100
        for utci_f in range(49, 130):
            score = score_from_utci(float(utci_f)).score
            assert score <= previous
            previous = score
        previous = 100
        for utci_f in range(45, -60, -1):
            score = score_from_utci(float(utci_f)).score
            assert score <= previous
            previous = score

    def test_multiplier_scales_penalties(self):
        assert score_from_utci(60.0, multiplier=0.0).score == 100
        assert score_from_utci(60.0, multiplier=1.0).score > score_from_utci(60.0, multiplier=2.0).score

    def test_non_finite_scores_zero(self):
        assert score_from_utci(float("nan")).score == 0

    @pytest.mark.parametrize("score, label", [
        (100, "Excellent"), (85, "Very Good"), (72, "Good"), (45, "Challenging"), (0, "Dangerous"),
    ])
    def test_labels(self, score, label):
        assert score_label(score) == label


class TestLegacyScore:
    def test_mild_overcast(self, mild_overcast):
        breakdown = compute_legacy_breakdown(mild_overcast)
        assert breakdown.score == 99
        assert breakdown.model is ScoreModel.LEGACY

    def test_freezing_drizzle_factors(self, freezing_drizzle):
        breakdown = compute_legacy_breakdown(freezing_drizzle)
        assert breakdown.factor("precip").penalty == pytest.approx(17.0)
        assert breakdown.factor("iceDanger").penalty == pytest.approx(10.0)
        assert breakdown.dominant_factors == ("temperature", "precip")
        assert breakdown.factor("precip").severity is Severity.HIGH

    def test_factors_sorted_with_shares(self, freezing_drizzle):
        factors = compute_legacy_breakdown(freezing_drizzle).factors
        penalties = [f.penalty for f in factors]
        assert penalties == sorted(penalties, reverse=True)
        assert sum(f.share for f in factors) == pytest.approx(1.0)
        assert len(factors) == 9

    def test_ties_keep_declaration_order(self, mild_overcast):
        zero_keys = [f.key for f in compute_legacy_breakdown(mild_overcast).factors if f.penalty == 0]
        assert zero_keys == ["humidity", "precip", "iceDanger", "uv", "coldSynergy", "heatSynergy", "coldHands"]

    def test_bounds(self):
        brutal = WeatherSnapshot(air_temp=110.0, apparent_temp=125.0, humidity=90.0, wind_speed=40.0,
                                 precip_probability=100.0, precip_rate=2.0, uv_index=11.0)
        assert compute_legacy_breakdown(brutal).score == 1
        perfect = WeatherSnapshot(air_temp=50.0, apparent_temp=50.0, humidity=40.0)
        assert compute_legacy_breakdown(perfect).score == 100

    def test_run_type_ideal(self):
        assert temperature_penalty(43.0, RunType.WORKOUT) == 0.0
        assert temperature_penalty(43.0, RunType.EASY) > 0.0
        assert temperature_penalty(85.0, RunType.EASY) == pytest.approx(99.0)

    def test_cold_hands_penalty(self, freezing_drizzle):
        plain = compute_legacy_breakdown(freezing_drizzle)
        cold = compute_legacy_breakdown(freezing_drizzle, RunType.EASY, cold_hands=True, hands_level=3)
        assert cold.factor("coldHands").penalty == pytest.approx(6.0)
        assert cold.details["total_penalty"] == pytest.approx(plain.details["total_penalty"] + 6.0)
        assert cold.score < plain.score

    def test_hands_level_ignored_without_preference(self, freezing_drizzle):
        assert compute_legacy_breakdown(freezing_drizzle, hands_level=4) == \
            compute_legacy_breakdown(freezing_drizzle)

    def test_compute_score_passes_personalization(self, freezing_drizzle):
        person = Personalization(cold_hands=True)
        breakdown = compute_score(freezing_drizzle, person, ScoreModel.LEGACY, hands_level=2)
        assert breakdown.factor("coldHands").penalty == pytest.approx(4.0)

    def test_precip_penalty_caps(self):
        assert precip_penalty(100.0, 5.0) == pytest.approx(35.0)
        assert precip_penalty(-10.0, -1.0) == 0.0

    @pytest.mark.parametrize("penalty, severity", [
        (0.0, Severity.NONE), (2.0, Severity.LOW), (10.0, Severity.MED), (20.0, Severity.HIGH),
    ])
    def test_severity(self, penalty, severity):
        assert severity_for(penalty) is severity


class TestDispatch:
    def test_blend_long_run(self, mild_overcast):
        upcoming = [
            replace(mild_overcast, air_temp=51.0, apparent_temp=51.0, precip_probability=30.0, precip_rate=0.01),
            replace(mild_overcast, air_temp=55.0, apparent_temp=55.0, precip_probability=70.0, precip_rate=0.02),
            replace(mild_overcast, air_temp=57.0, apparent_temp=57.0),
            replace(mild_overcast, air_temp=90.0, apparent_temp=90.0),
        ]
        blended = blend_long_run(mild_overcast, upcoming)
        assert blended.apparent_temp == pytest.approx((47 + 51 + 55 + 57) / 4)
        assert blended.precip_probability == 70.0
        assert blended.precip_rate == pytest.approx(0.03)

    def test_blend_without_forecast_is_identity(self, mild_overcast):
        assert blend_long_run(mild_overcast, []) is mild_overcast

    def test_compute_score_models(self, mild_overcast):
        person = Personalization()
        assert compute_score(mild_overcast, person, ScoreModel.LEGACY).model is ScoreModel.LEGACY
        assert compute_score(mild_overcast, person).model is ScoreModel.UTCI
