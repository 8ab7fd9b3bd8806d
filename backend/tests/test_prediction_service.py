"""
Tests for Price Prediction Service

Covers cohort selection (window, floor area, remaining lease), growth
source fallback, scenario math and the unavailable result.
"""

import pytest

from services.prediction_service import get_historical_growth, predict_price


def _seed_bedok_history(make_transaction):
    # Yearly 4 ROOM averages in BEDOK: 400000 -> 420000 -> 441000 (5% / 5%)
    make_transaction(town="BEDOK", month="2022-06", price=400000)
    make_transaction(town="BEDOK", month="2023-06", price=420000)
    make_transaction(town="BEDOK", month="2024-06", price=441000)


class TestPredictPrice:

    def test_empty_store_is_unavailable(self, app_ctx):
        result = predict_price(town="BEDOK", flat_type="4 ROOM")
        assert result == {'available': False, 'reason': 'no_comparable_transactions'}

    def test_projection_from_town_history(self, make_transaction):
        _seed_bedok_history(make_transaction)

        result = predict_price(town="bedok", flat_type="4 room", floor_area=90)

        assert result['available'] is True
        assert result['town'] == "BEDOK"
        assert result['cohort']['from'] == "2024-01"
        assert result['cohort']['to'] == "2024-06"
        assert result['cohort']['sample_size'] == 1
        assert result['cohort']['floor_area_range'] == [80, 100]
        assert result['current_avg'] == 441000
        assert result['current_min'] == 441000
        assert result['current_max'] == 441000

        assert result['historical_growth_rate'] == 5.0
        assert result['growth_source'] == "town"
        assert result['has_historical_data'] is True
        assert result['horizon_years'] == 2

        predictions = result['predictions']
        assert set(predictions) == {'conservative', 'most_likely', 'optimistic'}
        assert predictions['most_likely']['price'] == pytest.approx(486202.5, abs=0.01)
        assert predictions['most_likely']['pct_change'] == 10.25
        assert predictions['conservative']['growth_rate'] == 3.5
        assert predictions['optimistic']['growth_rate'] == 6.5
        assert (predictions['conservative']['price']
                < predictions['most_likely']['price']
                < predictions['optimistic']['price'])

    def test_small_cohort_warns(self, make_transaction):
        _seed_bedok_history(make_transaction)

        result = predict_price(town="BEDOK", flat_type="4 ROOM")

        assert result['warning'] == "limited_data"
        assert result['confidence_score'] == 32
        assert result['confidence_level'] == "low"

    def test_large_cohort_has_no_warning(self, make_transaction):
        _seed_bedok_history(make_transaction)
        for _ in range(29):
            make_transaction(town="BEDOK", month="2024-05", price=441000)

        result = predict_price(town="BEDOK", flat_type="4 ROOM")

        assert result['cohort']['sample_size'] == 30
        assert result['warning'] is None
        assert result['confidence_score'] == 100
        assert result['confidence_level'] == "high"

    def test_floor_area_outside_tolerance(self, make_transaction):
        _seed_bedok_history(make_transaction)

        assert predict_price(town="BEDOK", flat_type="4 ROOM", floor_area=120)['available'] is False
        assert predict_price(town="BEDOK", flat_type="4 ROOM", floor_area=99)['available'] is True

    def test_remaining_lease_tolerance(self, make_transaction):
        _seed_bedok_history(make_transaction)  # remaining lease 70

        assert predict_price(town="BEDOK", flat_type="4 ROOM", remaining_lease=85)['available'] is False
        result = predict_price(town="BEDOK", flat_type="4 ROOM", remaining_lease=75)
        assert result['available'] is True
        assert result['cohort']['remaining_lease_range'] == [65, 85]

    def test_cohort_only_recent_months(self, make_transaction):
        _seed_bedok_history(make_transaction)

        # Anchored a year earlier the cohort is 2023-01..2023-06
        result = predict_price(town="BEDOK", flat_type="4 ROOM", as_of="2023-06")
        assert result['current_avg'] == 420000

        # Latest month in the store is BEDOK 2024-06; nothing in YISHUN
        assert predict_price(town="YISHUN", flat_type="4 ROOM")['available'] is False


class TestHistoricalGrowth:

    def test_town_series(self, make_transaction):
        _seed_bedok_history(make_transaction)
        assert get_historical_growth("BEDOK", "4 ROOM") == (5.0, "town")

    def test_market_fallback(self, make_transaction):
        _seed_bedok_history(make_transaction)
        make_transaction(town="YISHUN", month="2024-06", price=350000)

        rate, source = get_historical_growth("YISHUN", "4 ROOM")
        assert source == "market"

        result = predict_price(town="YISHUN", flat_type="4 ROOM")
        assert result['growth_source'] == "market"
        assert result['has_historical_data'] is False
        assert result['historical_growth_rate'] == pytest.approx(rate, abs=0.01)

    def test_no_history_anywhere(self, make_transaction):
        make_transaction(town="BEDOK", month="2024-06", price=400000)

        assert get_historical_growth("BEDOK", "4 ROOM") == (0.0, "none")
        result = predict_price(town="BEDOK", flat_type="4 ROOM")
        assert result['predictions']['most_likely']['price'] == 400000
        assert result['has_historical_data'] is False
