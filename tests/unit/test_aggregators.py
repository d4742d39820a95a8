"""
Unit Tests - Order Aggregators
"""
from datetime import date

import pytest

from sales_analytics.transformation import aggregators as agg
from sales_analytics.transformation.labels import NO_SHIPPING, SHIPPING_COLORS
from sales_analytics.transformation.records import orders_to_frame
from sales_analytics.transformation.views import CategoryCount


class TestTimeBucketing:
    """Tests for daily and monthly series"""

    def test_revenue_by_day_is_sparse(self, orders_frame):
        series = agg.revenue_by_day(orders_frame)

        assert [(p.date, p.revenue, p.margin, p.orders) for p in series] == [
            (date(2024, 1, 5), 1500.0, 150.0, 2),
            (date(2024, 2, 1), 2000.0, 400.0, 1),
        ]

    def test_revenue_by_month(self, orders_frame):
        series = agg.revenue_by_month(orders_frame)

        assert [(p.month, p.revenue) for p in series] == [("2024-01", 1500.0), ("2024-02", 2000.0)]

    def test_month_keys_are_zero_padded_and_chronological(self, make_order):
        frame = orders_to_frame([
            make_order(date=date(2023, 11, 3)),
            make_order(date=date(2024, 2, 9)),
            make_order(date=date(2023, 9, 30)),
        ])

        assert [p.month for p in agg.revenue_by_month(frame)] == ["2023-09", "2023-11", "2024-02"]

    def test_undated_orders_excluded_from_series(self, make_order):
        frame = orders_to_frame([make_order(date=None), make_order()])

        assert len(agg.revenue_by_day(frame)) == 1
        assert agg.summarize(frame).orders == 2

    def test_available_months_and_years(self, orders_frame):
        assert agg.available_months(orders_frame) == ["2024-02", "2024-01"]
        assert agg.available_years(orders_frame) == [2024]


class TestFilterOrders:
    """Tests for month/year pre-filtering"""

    def test_filter_by_month(self, orders_frame):
        assert agg.filter_orders(orders_frame, months=["2024-01"]).height == 2

    def test_filter_by_year(self, orders_frame):
        assert agg.filter_orders(orders_frame, year=2024).height == 3
        assert agg.filter_orders(orders_frame, year=2023).height == 0

    def test_no_filter(self, orders_frame):
        assert agg.filter_orders(orders_frame).height == 3


class TestSummary:
    """Tests for headline metrics"""

    def test_summarize(self, orders_frame):
        summary = agg.summarize(orders_frame)

        assert summary.revenue == 3500.0
        assert summary.margin == 550.0
        assert summary.fees == 350.0
        assert summary.shipping == 130.0
        assert summary.orders == 3
        assert summary.units == 4
        assert summary.margin_pct == pytest.approx(550 / 3500 * 100)
        assert summary.avg_order_value == pytest.approx(3500 / 3)

    def test_net_shipping_is_a_credit(self, make_order):
        frame = orders_to_frame([make_order(shipping_cost=100.0, shipping_subsidy=150.0)])

        assert agg.summarize(frame).shipping == -50.0
        assert agg.sku_performance(frame)[0].shipping == -50.0

    def test_empty(self):
        summary = agg.summarize(orders_to_frame([]))

        assert summary.revenue == 0.0
        assert summary.orders == 0
        assert summary.margin_pct == 0.0


class TestCategoryBreakdown:
    """Tests for categorical breakdowns"""

    def test_counts_and_revenue_are_conserved(self, orders_frame):
        breakdown = agg.shipping_breakdown(orders_frame)

        assert sum(c.count for c in breakdown) == 3
        assert sum(c.revenue for c in breakdown) == pytest.approx(3500.0)

    def test_shipping_colors(self, orders_frame):
        colors = {c.category: c.color for c in agg.shipping_breakdown(orders_frame)}

        assert colors["FLEX"] == SHIPPING_COLORS["FLEX"]
        assert colors[NO_SHIPPING] == SHIPPING_COLORS[NO_SHIPPING]

    def test_unknown_shipping_type_gets_default_color(self, make_order):
        frame = orders_to_frame([make_order(shipping_type="DRON")])

        assert agg.shipping_breakdown(frame)[0].color == "#555577"

    def test_ties_keep_encounter_order(self, make_order):
        frame = orders_to_frame([
            make_order(shipping_type="RETIRO"),
            make_order(shipping_type="FULL"),
            make_order(shipping_type="FLEX"),
            make_order(shipping_type="FLEX"),
        ])

        assert [c.category for c in agg.shipping_breakdown(frame)] == ["FLEX", "RETIRO", "FULL"]

    def test_installments_sorted_numerically(self, make_order):
        frame = orders_to_frame([make_order(installments=n) for n in (1, 2, 10, 3)])

        labels = [c.category for c in agg.installments_breakdown(frame, locale="en")]

        assert labels == ["Cash", "2 installments", "3 installments", "10 installments"]

    def test_installments_labels_spanish(self, make_order):
        frame = orders_to_frame([make_order(installments=1), make_order(installments=6)])

        labels = [c.category for c in agg.installments_breakdown(frame, locale="es")]

        assert labels == ["Contado", "6 cuotas"]

    def test_payment_labels(self, orders_frame):
        breakdown = agg.payment_breakdown(orders_frame, locale="en", min_share=0.0)

        assert {c.category: c.count for c in breakdown} == {"Visa": 2, "ML Account": 1}

    def test_unknown_payment_code_passes_through(self, make_order):
        frame = orders_to_frame([make_order(payment_method="cripto")])

        assert agg.payment_breakdown(frame)[0].category == "cripto"


class TestMinorCategoryFolding:
    """Tests for long-tail folding"""

    @pytest.fixture
    def twenty_methods(self, make_order):
        orders = [make_order(payment_method="visa") for _ in range(100)]
        orders += [make_order(payment_method="master") for _ in range(100)]
        orders += [make_order(payment_method=f"method-{i}", item_total=10.0) for i in range(18)]
        return orders_to_frame(orders)

    def test_folds_to_at_most_three_entries(self, twenty_methods):
        breakdown = agg.payment_breakdown(twenty_methods, locale="en", min_share=0.04)

        assert len(breakdown) <= 3
        other = next(c for c in breakdown if c.category == "Other")
        assert other.count == 18
        assert other.revenue == pytest.approx(180.0)

    def test_folded_breakdown_sorted_ascending(self, twenty_methods):
        counts = [c.count for c in agg.payment_breakdown(twenty_methods)]

        assert counts == sorted(counts)
        assert sum(counts) == 218

    def test_nothing_to_fold(self):
        counts = [CategoryCount(category="a", count=5), CategoryCount(category="b", count=3)]

        folded = agg.fold_minor_categories(counts, min_share=0.04)

        assert [c.category for c in folded] == ["b", "a"]

    def test_empty(self):
        assert agg.fold_minor_categories([]) == []


class TestRankings:
    """Tests for product and SKU rankings"""

    def test_top_products(self, orders_frame):
        ranking = agg.top_products(orders_frame, limit=10)

        assert [(p.name, p.sku, p.units, p.revenue) for p in ranking] == [
            ("Auriculares Bluetooth", "AUR-001", 3, 3000.0),
            ("Cable USB-C", "CAB-010", 1, 500.0),
        ]

    def test_top_products_truncated(self, make_order):
        frame = orders_to_frame([
            make_order(product=f"P{i}", item_total=float(i)) for i in range(20)
        ])

        ranking = agg.top_products(frame, limit=8)

        assert len(ranking) == 8
        assert ranking[0].name == "P19"

    def test_untitled_product(self, make_order):
        frame = orders_to_frame([make_order(product="")])

        assert agg.top_products(frame, locale="en")[0].name == "Untitled"

    def test_rank_by_units(self, make_order):
        frame = orders_to_frame([
            make_order(product="cheap", quantity=10, item_total=100.0),
            make_order(product="pricey", quantity=1, item_total=900.0),
        ])

        assert agg.top_products(frame, metric="units")[0].name == "cheap"

    def test_sku_performance(self, orders_frame):
        performance = agg.sku_performance(orders_frame)
        top = performance[0]

        assert top.sku == "AUR-001"
        assert top.revenue == 3000.0
        assert top.margin == 600.0
        assert top.fees == 300.0
        assert top.shipping == 130.0
        assert top.margin_pct == pytest.approx(20.0)

    def test_sku_performance_keys_missing_sku_by_product(self, make_order):
        frame = orders_to_frame([
            make_order(sku="", product="Producto sin codigo de barras"),
            make_order(sku="", product="Producto sin codigo de barras"),
        ])

        performance = agg.sku_performance(frame)

        assert len(performance) == 1
        assert performance[0].sku == "Producto sin codigo "
        assert performance[0].units == 2

    def test_sku_performance_search_and_sort(self, orders_frame):
        found = agg.sku_performance(orders_frame, search="cable")

        assert [p.sku for p in found] == ["CAB-010"]
        by_margin = agg.sku_performance(orders_frame, sort_by="margin")
        assert by_margin[-1].sku == "CAB-010"


class TestHeatmap:
    """Tests for the day x hour heatmap"""

    def test_dense_for_empty_input(self):
        cells = agg.sales_heatmap(orders_to_frame([]))

        assert len(cells) == 168
        assert all(c.count == 0 and c.revenue == 0.0 for c in cells)

    def test_cells(self, orders_frame):
        cells = {(c.day, c.hour): c for c in agg.sales_heatmap(orders_frame)}

        assert len(cells) == 168
        # 2024-01-05 is a Friday, 2024-02-01 a Thursday
        assert cells[(5, 14)].count == 1
        assert cells[(5, 14)].revenue == 1000.0
        assert cells[(5, 9)].count == 1
        assert cells[(4, 21)].count == 1
        assert sum(c.count for c in cells.values()) == 3

    def test_sunday_is_day_zero(self, make_order):
        cells = agg.sales_heatmap(orders_to_frame([make_order(date=date(2024, 1, 7), hour=0)]))

        assert cells[0].day == 0 and cells[0].hour == 0
        assert cells[0].count == 1

    def test_undated_orders_excluded(self, make_order):
        cells = agg.sales_heatmap(orders_to_frame([make_order(date=None)]))

        assert sum(c.count for c in cells) == 0


class TestWaterfall:
    """Tests for the revenue-to-margin waterfall"""

    def test_steps(self, orders_frame):
        steps = agg.financial_waterfall(orders_frame, locale="en")

        assert [s.key for s in steps] == [
            "gross_revenue", "fees", "shipping_cost", "shipping_subsidy", "margin",
        ]
        assert [s.value for s in steps] == [3500.0, -350.0, -150.0, 20.0, 550.0]

    def test_running_base(self, orders_frame):
        gross, fees, shipping, subsidy, _ = agg.financial_waterfall(orders_frame)

        assert gross.base == 0.0 and gross.bar == 3500.0
        assert fees.base == 3500.0
        assert fees.bar_start == 3150.0
        assert fees.bar == 350.0
        assert shipping.base == 3150.0
        assert subsidy.base == 3000.0
        assert subsidy.bar_start == 3000.0
        assert subsidy.running_total == 3020.0

    def test_margin_step_restates_recorded_margin(self, orders_frame):
        margin = agg.financial_waterfall(orders_frame)[-1]

        assert margin.is_total
        assert margin.base == 0.0
        assert margin.bar == 550.0
        # Not reconciled with the stacked deltas
        assert margin.value != 3020.0

    def test_only_total_is_flagged(self, orders_frame):
        flags = [s.is_total for s in agg.financial_waterfall(orders_frame)]

        assert flags == [False, False, False, False, True]
