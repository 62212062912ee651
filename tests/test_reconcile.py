"""Tests for name canonicalization and the derived-field policy."""

from __future__ import annotations

import pytest

from country_cache.core.reconcile import (
    MULTIPLIER_MAX,
    MULTIPLIER_MIN,
    canonical_name,
    derive_economics,
    random_multiplier,
    reconcile,
)

from conftest import SAMPLE_COUNTRIES, SAMPLE_RATES


class TestCanonicalName:
    @pytest.mark.parametrize("raw", ["france", "FRANCE", "France", "  fRaNcE "])
    def test_case_variants_share_one_key(self, raw: str) -> None:
        assert canonical_name(raw) == "France"

    def test_each_word_capitalized(self) -> None:
        assert canonical_name("united states of america") == "United States Of America"

    def test_collapses_whitespace(self) -> None:
        assert canonical_name("south   sudan") == "South Sudan"

    @pytest.mark.parametrize(
        "name", ["Peru", "South Africa", "Bosnia And Herzegovina", "Côte D'ivoire"]
    )
    def test_idempotent(self, name: str) -> None:
        assert canonical_name(canonical_name(name)) == canonical_name(name)


class TestRandomMultiplier:
    def test_within_half_open_range(self) -> None:
        for _ in range(1000):
            m = random_multiplier()
            assert MULTIPLIER_MIN <= m < MULTIPLIER_MAX


class TestDeriveEconomics:
    def test_no_currency_means_zero_gdp(self) -> None:
        assert derive_economics(5000, None, SAMPLE_RATES) == (None, 0.0)

    def test_unrated_currency_is_unknown(self) -> None:
        assert derive_economics(5000, "XYZ", SAMPLE_RATES) == (None, None)

    def test_zero_rate_is_treated_as_unrated(self) -> None:
        assert derive_economics(5000, "ABC", {"ABC": 0}) == (None, None)

    def test_rated_currency_uses_formula(self) -> None:
        rate, gdp = derive_economics(1000, "PEN", {"PEN": 4}, multiplier=lambda: 1500)
        assert rate == 4
        assert gdp == pytest.approx(1000 * 1500 / 4)


class TestReconcile:
    def test_skips_zero_population(self, as_of) -> None:
        records = reconcile(SAMPLE_COUNTRIES, SAMPLE_RATES, as_of)
        names = {r.name for r in records}
        assert "Bouvet Island" not in names
        assert len(records) == 4

    @pytest.mark.parametrize(
        "descriptor",
        [
            {"name": "Nowhere"},
            {"name": "Nowhere", "population": None},
            {"name": "Nowhere", "population": -5},
            {"population": 10},
            {"name": "   ", "population": 10},
            {"name": "Nowhere", "population": "lots"},
            "not a descriptor",
        ],
    )
    def test_ineligible_descriptors_are_skipped(self, descriptor, as_of) -> None:
        assert reconcile([descriptor], SAMPLE_RATES, as_of) == []

    def test_no_currency_record(self, as_of) -> None:
        (record,) = reconcile(
            [{"name": "Antarctica", "population": 1000, "currencies": []}],
            SAMPLE_RATES,
            as_of,
        )
        assert record.currency_code is None
        assert record.exchange_rate is None
        assert record.estimated_gdp == 0

    def test_unrated_currency_record(self, as_of) -> None:
        (record,) = reconcile(
            [{"name": "Ghana", "population": 100, "currencies": [{"code": "XXX"}]}],
            SAMPLE_RATES,
            as_of,
        )
        assert record.currency_code == "XXX"
        assert record.exchange_rate is None
        assert record.estimated_gdp is None

    def test_first_currency_wins(self, as_of) -> None:
        (record,) = reconcile(
            [
                {
                    "name": "Zimbabwe",
                    "population": 100,
                    "currencies": [{"code": "EUR"}, {"code": "NGN"}],
                }
            ],
            SAMPLE_RATES,
            as_of,
        )
        assert record.currency_code == "EUR"
        assert record.exchange_rate == SAMPLE_RATES["EUR"]

    def test_rated_record_gdp_in_range(self, as_of) -> None:
        (record,) = reconcile(
            [{"name": "peru", "population": 1000, "currencies": [{"code": "PEN"}]}],
            {"PEN": 4},
            as_of,
        )
        assert record.name == "Peru"
        assert record.source_name == "peru"
        assert record.exchange_rate == 4
        assert 250000 <= record.estimated_gdp < 500000

    def test_pass_through_fields(self, as_of) -> None:
        records = {r.name: r for r in reconcile(SAMPLE_COUNTRIES, SAMPLE_RATES, as_of)}
        nigeria = records["Nigeria"]
        assert nigeria.capital == "Abuja"
        assert nigeria.region == "Africa"
        assert nigeria.flag_url == "https://flagcdn.com/ng.svg"
        assert nigeria.last_refreshed_at == as_of
        assert records["Antarctica"].capital is None

    def test_duplicate_names_last_wins(self, as_of) -> None:
        records = reconcile(
            [
                {"name": "chad", "population": 1},
                {"name": "CHAD", "population": 2},
            ],
            SAMPLE_RATES,
            as_of,
        )
        assert [(r.name, r.population) for r in records] == [("Chad", 2)]
