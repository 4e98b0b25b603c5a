"""
Tests for the net position calculator, classification and simulation.
"""

import math

import pytest

from position_engine import settings
from position_engine.calculations import (
    calculate_all_positions,
    calculate_position,
    classify_position,
    compute_dashboard_kpis,
    get_margin_percentage,
    get_risk_positions,
    simulate_new_client_contract,
    sort_positions,
)
from position_engine.schemas import ContractStatus, PositionStatus

from conftest import make_article, make_client_contract, make_supplier_contract


class TestClassifyPosition:
    def test_zero_and_surplus_are_long(self):
        assert classify_position(0) is PositionStatus.LONG
        assert classify_position(0.01) is PositionStatus.LONG
        assert classify_position(1_000_000) is PositionStatus.LONG

    def test_small_deficit_is_short(self):
        assert classify_position(-0.01, threshold_kg=1000) is PositionStatus.SHORT
        assert classify_position(-999.99, threshold_kg=1000) is PositionStatus.SHORT

    def test_deficit_at_or_beyond_threshold_is_critical(self):
        assert classify_position(-1000, threshold_kg=1000) is PositionStatus.CRITICAL
        assert classify_position(-1000.01, threshold_kg=1000) is PositionStatus.CRITICAL

    def test_threshold_is_overridable(self):
        assert classify_position(-150, threshold_kg=100) is PositionStatus.CRITICAL
        assert classify_position(-150, threshold_kg=1000) is PositionStatus.SHORT

    def test_default_threshold_comes_from_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "CRITICAL_THRESHOLD_KG", 100.0)
        assert classify_position(-150) is PositionStatus.CRITICAL
        monkeypatch.setattr(settings, "CRITICAL_THRESHOLD_KG", 1000.0)
        assert classify_position(-150) is PositionStatus.SHORT

    def test_negative_threshold_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            classify_position(-10, threshold_kg=-1000)


class TestCalculatePosition:
    def test_end_to_end_short_then_critical(self):
        """Stock 1000 + supply 500 - demand 2000 -> -500 SHORT; demand 2600 -> CRITICAL."""
        article = make_article("X", stock_kg=1000)
        supplier = [make_supplier_contract("X", qty_remaining_kg=500, qty_in_transit_kg=0)]

        position = calculate_position(
            article, supplier, [make_client_contract("X", qty_remaining_kg=2000)], threshold_kg=1000
        )
        assert position.total_available_kg == 1500
        assert position.net_position_kg == -500
        assert position.status is PositionStatus.SHORT

        position = calculate_position(
            article, supplier, [make_client_contract("X", qty_remaining_kg=2600)], threshold_kg=1000
        )
        assert position.net_position_kg == -1100
        assert position.status is PositionStatus.CRITICAL

    def test_in_transit_counts_as_available(self):
        position = calculate_position(
            make_article("X", stock_kg=100, stock_uvc=10),
            [
                make_supplier_contract(
                    "X", qty_remaining_kg=50, qty_in_transit_kg=25,
                    qty_remaining_uvc=5, qty_in_transit_uvc=2,
                )
            ],
            [make_client_contract("X", qty_remaining_kg=300, qty_remaining_uvc=30)],
        )
        assert position.supply_in_transit_kg == 25
        assert position.total_available_kg == 175
        assert position.net_position_kg == -125
        assert position.net_position_uvc == 10 + 5 + 2 - 30

    def test_completed_contracts_are_ignored(self):
        position = calculate_position(
            make_article("X", stock_kg=0),
            [
                make_supplier_contract("X", qty_remaining_kg=400),
                make_supplier_contract("X", qty_remaining_kg=999, status=ContractStatus.COMPLETED),
            ],
            [make_client_contract("X", qty_remaining_kg=999, status=ContractStatus.COMPLETED)],
        )
        assert position.supply_remaining_kg == 400
        assert position.demand_remaining_kg == 0
        assert position.supplier_contracts == 1
        assert position.client_contracts == 0

    def test_volume_weighted_prices_and_margin(self):
        position = calculate_position(
            make_article("X"),
            [
                make_supplier_contract("X", qty_contracted_kg=1000, price_buy=1.0),
                make_supplier_contract("X", qty_contracted_kg=3000, price_buy=2.0),
            ],
            [make_client_contract("X", qty_contracted_kg=2000, price_sell=2.1)],
        )
        assert position.avg_buy_price == pytest.approx(1.75)
        assert position.avg_sell_price == pytest.approx(2.1)
        assert position.margin_percent == pytest.approx(20.0)

    def test_no_contracts_gives_zero_prices(self):
        position = calculate_position(make_article("X", stock_kg=10), [], [])
        assert position.avg_buy_price == 0
        assert position.avg_sell_price == 0
        assert position.margin_percent == 0
        assert position.status is PositionStatus.LONG

    def test_zero_weight_contracts_do_not_divide_by_zero(self):
        position = calculate_position(
            make_article("X"),
            [make_supplier_contract("X", qty_contracted_kg=0, price_buy=5.0)],
            [make_client_contract("X", qty_contracted_kg=0, price_sell=7.0)],
        )
        for value in (position.avg_buy_price, position.avg_sell_price, position.margin_percent):
            assert math.isfinite(value)
            assert value == 0

    def test_inputs_are_not_mutated(self):
        supplier = [make_supplier_contract("X", qty_remaining_kg=10)]
        client = [make_client_contract("X", qty_remaining_kg=5)]
        before = (list(supplier), list(client))
        calculate_position(make_article("X"), supplier, client)
        assert (supplier, client) == before


class TestCalculateAllPositions:
    def test_orphan_sku_is_included_with_zero_stock(self):
        positions = calculate_all_positions(
            [make_article("A", stock_kg=50, stock_uvc=5)],
            [make_supplier_contract("B", qty_remaining_kg=10)],
            [],
        )
        assert [p.sku for p in positions] == ["A", "B"]
        orphan = positions[1]
        assert orphan.stock_kg == 0
        assert orphan.stock_uvc == 0
        assert orphan.net_position_kg == 10

    def test_client_only_orphan_uses_contract_article_name(self):
        positions = calculate_all_positions(
            [], [], [make_client_contract("Z", qty_remaining_kg=50, article_name="Cocoa")]
        )
        assert len(positions) == 1
        assert positions[0].article_name == "Cocoa"
        assert positions[0].status is PositionStatus.SHORT

    def test_sku_matching_is_case_insensitive(self):
        positions = calculate_all_positions(
            [make_article("AbC-1", stock_kg=100)],
            [make_supplier_contract("abc-1", qty_remaining_kg=20)],
            [make_client_contract("ABC-1", qty_remaining_kg=50)],
        )
        assert len(positions) == 1
        assert positions[0].sku == "AbC-1"
        assert positions[0].net_position_kg == 70

    def test_article_without_contracts_is_included(self):
        positions = calculate_all_positions([make_article("A", stock_kg=5)], [], [])
        assert len(positions) == 1
        assert positions[0].net_position_kg == 5

    def test_book_fixture(self, book):
        positions = calculate_all_positions(*book, threshold_kg=1000)
        by_sku = {p.sku: p for p in positions}

        assert [p.sku for p in positions] == ["FLR-1", "SUG-1", "BUT-1", "COC-9"]
        assert by_sku["FLR-1"].net_position_kg == 2000
        assert by_sku["FLR-1"].status is PositionStatus.LONG
        assert by_sku["FLR-1"].avg_buy_price == pytest.approx(0.5)
        assert by_sku["SUG-1"].status is PositionStatus.SHORT
        assert by_sku["BUT-1"].status is PositionStatus.CRITICAL
        assert by_sku["COC-9"].stock_kg == 0
        assert by_sku["COC-9"].margin_percent == pytest.approx(-100.0)

    def test_sort_positions_most_deficient_first(self, book):
        positions = sort_positions(calculate_all_positions(*book))
        assert [p.sku for p in positions] == ["BUT-1", "SUG-1", "COC-9", "FLR-1"]

    def test_sort_is_stable_for_equal_positions(self):
        positions = calculate_all_positions(
            [make_article("B"), make_article("A"), make_article("C")], [], []
        )
        assert [p.sku for p in sort_positions(positions)] == ["B", "A", "C"]


class TestRiskPositionsAndKpis:
    def test_risk_positions_exclude_long(self, book):
        risky = get_risk_positions(calculate_all_positions(*book))
        assert [p.sku for p in risky] == ["BUT-1", "SUG-1"]

    def test_risk_positions_limit(self, book):
        assert len(get_risk_positions(calculate_all_positions(*book), limit=1)) == 1

    def test_dashboard_kpis(self, book):
        articles, supplier, client = book
        kpis = compute_dashboard_kpis(
            calculate_all_positions(articles, supplier, client), supplier, client
        )
        assert kpis.total_products == 4
        assert kpis.short_count == 1
        assert kpis.critical_count == 1
        assert kpis.active_contracts == 6
        assert kpis.engaged_value_buy == pytest.approx(1600)
        assert kpis.engaged_value_sell == pytest.approx(18000)
        assert kpis.potential_margin == pytest.approx(16400)

    def test_dashboard_kpis_empty(self):
        kpis = compute_dashboard_kpis([], [], [])
        assert kpis.total_products == 0
        assert kpis.avg_margin == 0


class TestMarginPercentage:
    def test_zero_buy_price(self):
        assert get_margin_percentage(0, 10) == 0

    def test_regular_margin(self):
        assert get_margin_percentage(2, 3) == pytest.approx(50.0)


class TestSimulation:
    def test_zero_volume_is_a_no_op(self):
        position = calculate_position(make_article("X", stock_kg=300), [], [])
        result = simulate_new_client_contract(position, 0)
        assert result.after == position.net_position_kg
        assert result.status_after is result.status_before
        assert result.warning is None

    def test_warning_when_long_turns_short(self):
        position = calculate_position(make_article("X", stock_kg=300), [], [])
        result = simulate_new_client_contract(position, 500, threshold_kg=1000)
        assert result.current == 300
        assert result.after == -200
        assert result.status_before is PositionStatus.LONG
        assert result.status_after is PositionStatus.SHORT
        assert result.warning == "This contract would create a deficit of 200 kg"

    def test_warning_when_long_turns_critical(self):
        position = calculate_position(make_article("X", stock_kg=300), [], [])
        result = simulate_new_client_contract(position, 1500, threshold_kg=1000)
        assert result.status_after is PositionStatus.CRITICAL
        assert result.warning is not None

    def test_no_warning_when_already_short(self):
        position = calculate_position(
            make_article("X"), [], [make_client_contract("X", qty_remaining_kg=100)]
        )
        result = simulate_new_client_contract(position, 5000, threshold_kg=1000)
        assert result.status_before is PositionStatus.SHORT
        assert result.status_after is PositionStatus.CRITICAL
        assert result.warning is None

    def test_uses_same_threshold_as_classification(self, monkeypatch):
        monkeypatch.setattr(settings, "CRITICAL_THRESHOLD_KG", 100.0)
        position = calculate_position(make_article("X", stock_kg=0), [], [])
        result = simulate_new_client_contract(position, 150)
        assert result.status_after is classify_position(-150)
        assert result.status_after is PositionStatus.CRITICAL

    def test_negative_volume_rejected(self):
        position = calculate_position(make_article("X"), [], [])
        with pytest.raises(ValueError):
            simulate_new_client_contract(position, -1)
