"""
Tests for Analytics Computation - pure window/rank/histogram functions

Tests:
1. Null-safe arithmetic - pct change, shares, stddev
2. Ranking - sequential ranks, name tie-break, None last
3. Monthly trends - MoM, 3-month MA, YoY with calendar gaps
4. Yearly growth - per-town partitions, gaps
5. Histogram - lower-edge inclusive buckets, cumulative share
6. Lease depreciation - benchmark band per flat type
7. Heatmap - join, exclusion, heat categories
8. Projection - scenarios, confidence
"""

import pytest

from services.analytics_compute import (
    assign_ranks,
    bucket_floor,
    build_scenarios,
    classify_heat,
    compute_confidence,
    compute_heatmap,
    compute_histogram,
    compute_lease_depreciation,
    compute_monthly_trends,
    compute_yearly_growth,
    mean_growth_rate,
    population_stddev,
    project_price,
    rank_within_groups,
    round2,
    safe_diff,
    safe_pct_change,
    safe_ratio,
    safe_share_pct,
    take_latest,
)


# =============================================================================
# NULL-SAFE ARITHMETIC
# =============================================================================

class TestSafeArithmetic:

    def test_pct_change_basic(self):
        assert safe_pct_change(420000, 400000) == 5.0

    def test_pct_change_missing_or_zero_baseline(self):
        assert safe_pct_change(420000, None) is None
        assert safe_pct_change(None, 400000) is None
        assert safe_pct_change(420000, 0) is None

    def test_diff(self):
        assert safe_diff(420000, 400000) == 20000
        assert safe_diff(420000, None) is None

    def test_share_and_ratio(self):
        assert safe_share_pct(1, 3) == 33.33
        assert safe_share_pct(5, 0) is None
        assert safe_ratio(400000, 4) == 100000
        assert safe_ratio(400000, None) is None

    def test_round2_passes_none(self):
        assert round2(None) is None
        assert round2(1.005) == pytest.approx(1.0, abs=0.01)

    def test_population_stddev(self):
        # values 1, 3 -> mean 2, E[x^2] 5 -> variance 1
        assert population_stddev(2.0, 5.0) == 1.0
        assert population_stddev(None, 5.0) is None

    def test_population_stddev_clamps_negative_variance(self):
        assert population_stddev(400000.0, 400000.0 ** 2 - 1e-6) == 0.0


# =============================================================================
# RANKING
# =============================================================================

class TestAssignRanks:

    def test_descending_with_name_tie_break(self):
        rows = [
            {'name': 'TAMPINES', 'value': 500},
            {'name': 'BEDOK', 'value': 500},
            {'name': 'QUEENSTOWN', 'value': 800},
        ]
        assign_ranks(rows, value_key='value', rank_key='rank', name_key='name')

        ranks = {r['name']: r['rank'] for r in rows}
        assert ranks == {'QUEENSTOWN': 1, 'BEDOK': 2, 'TAMPINES': 3}

    def test_ascending(self):
        rows = [{'name': 'A', 'value': 3}, {'name': 'B', 'value': 1}]
        assign_ranks(rows, value_key='value', rank_key='rank', name_key='name', descending=False)
        assert [r['rank'] for r in rows] == [2, 1]

    def test_none_values_rank_last(self):
        rows = [{'name': 'A', 'value': None}, {'name': 'B', 'value': 1}]
        assign_ranks(rows, value_key='value', rank_key='rank', name_key='name')
        assert rows[0]['rank'] == 2

    def test_ranks_are_gapless(self):
        rows = [{'name': str(i), 'value': i % 3} for i in range(10)]
        assign_ranks(rows, value_key='value', rank_key='rank', name_key='name')
        assert sorted(r['rank'] for r in rows) == list(range(1, 11))

    def test_rank_within_groups(self):
        rows = [
            {'year': '2023', 'town': 'A', 'p': 1},
            {'year': '2023', 'town': 'B', 'p': 2},
            {'year': '2024', 'town': 'A', 'p': 5},
        ]
        rank_within_groups(rows, group_key='year', value_key='p', rank_key='r', name_key='town')
        assert [r['r'] for r in rows] == [2, 1, 1]


# =============================================================================
# MONTHLY TRENDS
# =============================================================================

class TestMonthlyTrends:

    def test_mom_example(self):
        rows = [
            {'month': '2024-02', 'avg_price': 420000.0},
            {'month': '2024-01', 'avg_price': 400000.0},
        ]
        result = compute_monthly_trends(rows)

        assert [r['month'] for r in result] == ['2024-01', '2024-02']
        assert result[0]['price_change_mom'] is None
        assert result[0]['pct_change_mom'] is None
        assert result[1]['price_change_mom'] == 20000
        assert result[1]['pct_change_mom'] == 5.0

    def test_gap_month_has_no_predecessor(self):
        rows = [
            {'month': '2024-01', 'avg_price': 400000.0},
            {'month': '2024-03', 'avg_price': 410000.0},
        ]
        result = compute_monthly_trends(rows)

        assert result[1]['prev_month_price'] is None
        assert result[1]['pct_change_mom'] is None
        # Trailing window [Jan, Mar] only has Jan and Mar
        assert result[1]['moving_avg_3month'] == 405000.0

    def test_moving_average_trailing_three(self):
        rows = [{'month': f'2024-0{m}', 'avg_price': float(m * 100)} for m in range(1, 5)]
        result = compute_monthly_trends(rows)

        assert result[0]['moving_avg_3month'] == 100.0
        assert result[1]['moving_avg_3month'] == 150.0
        assert result[3]['moving_avg_3month'] == 300.0

    def test_yoy_uses_exact_month(self):
        rows = [
            {'month': '2023-01', 'avg_price': 400000.0},
            {'month': '2024-01', 'avg_price': 440000.0},
            {'month': '2024-02', 'avg_price': 450000.0},
        ]
        result = compute_monthly_trends(rows)

        assert result[1]['price_12months_ago'] == 400000.0
        assert result[1]['yoy_change_pct'] == 10.0
        assert result[2]['yoy_change_pct'] is None

    def test_take_latest_keeps_order(self):
        rows = [{'month': m} for m in ('2024-01', '2024-02', '2024-03')]
        assert [r['month'] for r in take_latest(rows, 2)] == ['2024-02', '2024-03']
        assert take_latest(rows, 0) == []
        assert len(take_latest(rows, 10)) == 3


# =============================================================================
# YEARLY GROWTH
# =============================================================================

class TestYearlyGrowth:

    def test_per_town_partitions(self):
        rows = [
            {'year': '2023', 'town_name': 'BEDOK', 'avg_price': 400000.0},
            {'year': '2024', 'town_name': 'BEDOK', 'avg_price': 440000.0},
            {'year': '2024', 'town_name': 'YISHUN', 'avg_price': 350000.0},
        ]
        result = compute_yearly_growth(rows)

        assert result[0]['yoy_growth_pct'] is None
        assert result[1]['prev_year_price'] == 400000.0
        assert result[1]['yoy_price_change'] == 40000
        assert result[1]['yoy_growth_pct'] == 10.0
        # YISHUN 2024 must not compare against BEDOK 2023
        assert result[2]['prev_year_price'] is None

    def test_gap_year_breaks_comparison(self):
        rows = [
            {'year': '2021', 'avg_price': 100.0},
            {'year': '2023', 'avg_price': 120.0},
        ]
        result = compute_yearly_growth(rows, partition_key=None)
        assert result[1]['yoy_growth_pct'] is None

    def test_mean_growth_rate_ignores_none(self):
        assert mean_growth_rate([None, 4.0, 6.0]) == 5.0
        assert mean_growth_rate([None]) is None
        assert mean_growth_rate([]) is None


# =============================================================================
# HISTOGRAM
# =============================================================================

class TestHistogram:

    def test_lower_edge_inclusive(self):
        result = compute_histogram([100000, 149999, 150000], 50000)

        assert result[0]['price_bucket'] == 100000
        assert result[0]['count'] == 2
        assert result[1]['price_bucket'] == 150000
        assert result[1]['count'] == 1

    def test_cumulative_reaches_100(self):
        prices = [120000, 260000, 310000, 330000, 455000, 470000, 905000]
        result = compute_histogram(prices, 50000)

        assert sum(r['percentage'] for r in result) == pytest.approx(100, abs=0.1)
        assert result[-1]['cumulative_pct'] == pytest.approx(100, abs=0.01)
        cumulative = [r['cumulative_pct'] for r in result]
        assert cumulative == sorted(cumulative)

    def test_empty_input(self):
        assert compute_histogram([], 50000) == []

    def test_bucket_edges_are_ints_for_integral_size(self):
        assert bucket_floor(149999.0, 50000.0) == 100000
        assert isinstance(bucket_floor(149999.0, 50000.0), int)
        assert bucket_floor(125.0, 12.5) == 125.0


# =============================================================================
# LEASE DEPRECIATION
# =============================================================================

class TestLeaseDepreciation:

    def test_benchmark_is_highest_band_present(self):
        rows = [
            {'flat_type_name': '4 ROOM', 'lease_band_floor': 0, 'avg_price': 300000.0},
            {'flat_type_name': '4 ROOM', 'lease_band_floor': 90, 'avg_price': 600000.0},
            {'flat_type_name': '4 ROOM', 'lease_band_floor': 70, 'avg_price': 450000.0},
        ]
        result = compute_lease_depreciation(rows)

        assert [r['lease_band'] for r in result] == ['90+ years', '70-79 years', 'Below 60 years']
        assert result[0]['depreciation_pct'] == 0.0
        assert result[1]['depreciation_pct'] == -25.0
        assert result[2]['depreciation_pct'] == -50.0
        assert all(r['price_at_90plus'] == 600000.0 for r in result)

    def test_benchmark_without_90_band(self):
        rows = [
            {'flat_type_name': '3 ROOM', 'lease_band_floor': 60, 'avg_price': 300000.0},
            {'flat_type_name': '3 ROOM', 'lease_band_floor': 80, 'avg_price': 400000.0},
        ]
        result = compute_lease_depreciation(rows)

        assert result[0]['benchmark_band'] == '80-89 years'
        assert result[0]['depreciation_pct'] == 0.0
        assert result[1]['depreciation_pct'] == -25.0

    def test_benchmark_per_flat_type(self):
        rows = [
            {'flat_type_name': '3 ROOM', 'lease_band_floor': 60, 'avg_price': 300000.0},
            {'flat_type_name': '5 ROOM', 'lease_band_floor': 90, 'avg_price': 700000.0},
        ]
        result = compute_lease_depreciation(rows)
        assert [r['depreciation_pct'] for r in result] == [0.0, 0.0]


# =============================================================================
# HEATMAP
# =============================================================================

class TestHeatmap:

    @pytest.mark.parametrize("growth,expected", [
        (12.0, 'very_hot'),
        (10.0, 'very_hot'),
        (7.5, 'hot'),
        (2.0, 'warm'),
        (0.0, 'neutral'),
        (-0.01, 'cool'),
        (None, None),
    ])
    def test_classify_heat(self, growth, expected):
        assert classify_heat(growth) == expected

    def test_only_towns_with_baseline(self):
        current = [
            {'town_name': 'BEDOK', 'transaction_count': 3, 'avg_price': 440000.0,
             'avg_price_per_sqm': 4400.0, 'latest_month': '2024-06'},
            {'town_name': 'PUNGGOL', 'transaction_count': 2, 'avg_price': 500000.0,
             'avg_price_per_sqm': 5000.0, 'latest_month': '2024-05'},
            {'town_name': 'YISHUN', 'transaction_count': 1, 'avg_price': 390000.0,
             'avg_price_per_sqm': 3900.0, 'latest_month': '2024-06'},
        ]
        previous = [
            {'town_name': 'BEDOK', 'transaction_count': 4, 'avg_price': 400000.0, 'avg_price_per_sqm': 4000.0},
            {'town_name': 'YISHUN', 'transaction_count': 1, 'avg_price': 400000.0, 'avg_price_per_sqm': 4000.0},
        ]
        result = compute_heatmap(current, previous)

        assert [r['town_name'] for r in result] == ['BEDOK', 'YISHUN']
        assert result[0]['yoy_growth_pct'] == 10.0
        assert result[0]['yoy_growth_psm_pct'] == 10.0
        assert result[0]['heat_category'] == 'very_hot'
        assert result[1]['heat_category'] == 'cool'

    def test_zero_baseline_excluded(self):
        current = [{'town_name': 'A', 'transaction_count': 1, 'avg_price': 1.0, 'avg_price_per_sqm': 1.0}]
        previous = [{'town_name': 'A', 'transaction_count': 1, 'avg_price': 0, 'avg_price_per_sqm': 0}]
        assert compute_heatmap(current, previous) == []


# =============================================================================
# PROJECTION
# =============================================================================

class TestProjection:

    def test_project_price_compounds(self):
        assert project_price(100000, 10.0, 2) == 121000.0
        assert project_price(100000, 0.0, 2) == 100000.0

    def test_scenarios(self):
        result = build_scenarios(100000, 10.0, 2, [('conservative', 0.7), ('most_likely', 1.0)])

        assert result['conservative']['growth_rate'] == 7.0
        assert result['conservative']['price'] == 114490.0
        assert result['most_likely']['pct_change'] == 21.0

    @pytest.mark.parametrize("n,history,score,level", [
        (30, True, 100, 'high'),
        (60, True, 100, 'high'),
        (15, True, 65, 'medium'),
        (30, False, 80, 'high'),
        (3, False, 17, 'low'),
        (0, True, 30, 'low'),
    ])
    def test_confidence(self, n, history, score, level):
        assert compute_confidence(n, history) == (score, level)
