"""
Hypothesis-based fuzzing of the analytics engines.

Boundaries fuzzed here:
- Pricing cascade: any non-negative base, markup and discount
- Rates: any actual count against any expected count
- Scope union: overlapping owned/joined sets
- Statistics: ordering of the sample
- Ranking: tie stability and length
"""

from decimal import Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from event_engines.pricing import PricedEvent, calculate_pricing
from event_engines.ranking import top_n
from event_engines.rates import safe_rate
from event_engines.scope import resolve_scope
from event_engines.statistics import cost_statistics
from event_kernel.domain.dtos import EventSnapshot
from event_kernel.domain.values import DiscountType, MarkupType, Scope

amounts = st.decimals(min_value=0, max_value=10_000_000, places=2, allow_nan=False, allow_infinity=False)
percentages = st.decimals(min_value=0, max_value=500, places=2, allow_nan=False, allow_infinity=False)

_SUPPRESSED = [HealthCheck.too_slow, HealthCheck.function_scoped_fixture]


def _priced(index: int, cost: Decimal) -> PricedEvent:
    return PricedEvent(
        event_id=f"e{index}",
        title=f"E{index}",
        pricing=calculate_pricing(
            base_cost=cost,
            markup_type=MarkupType.FIXED,
            markup_value=Decimal("0"),
            discount_type=DiscountType.NONE,
            discount_value=Decimal("0"),
        ),
    )


class TestPricingProperties:
    @given(
        base=amounts,
        markup_type=st.sampled_from(list(MarkupType)),
        markup=percentages,
        discount_type=st.sampled_from(list(DiscountType)),
        discount=amounts,
    )
    @settings(max_examples=200, suppress_health_check=_SUPPRESSED)
    def test_final_price_never_negative(self, base, markup_type, markup, discount_type, discount):
        result = calculate_pricing(
            base_cost=base,
            markup_type=markup_type,
            markup_value=markup,
            discount_type=discount_type,
            discount_value=discount,
        )
        assert result.final_price >= 0
        assert result.price_after_markup >= result.base_cost
        assert result.gross_profit == result.final_price - result.base_cost

    @given(base=amounts, discount=percentages)
    @settings(suppress_health_check=_SUPPRESSED)
    def test_percentage_discount_within_hundred_never_clamps(self, base, discount):
        discount = min(discount, Decimal("100"))
        result = calculate_pricing(
            base_cost=base,
            markup_type=MarkupType.PERCENTAGE,
            markup_value=Decimal("0"),
            discount_type=DiscountType.PERCENTAGE,
            discount_value=discount,
        )
        assert result.final_price == base - base * discount / 100


class TestRateProperties:
    @given(actual=st.integers(min_value=0, max_value=10**6), expected=st.integers(min_value=-10, max_value=0))
    @settings(suppress_health_check=_SUPPRESSED)
    def test_non_positive_expected_yields_zero(self, actual, expected):
        assert safe_rate(actual, expected) == 0

    @given(actual=st.integers(min_value=0, max_value=10**6), expected=st.integers(min_value=1, max_value=10**6))
    @settings(suppress_health_check=_SUPPRESSED)
    def test_rate_is_non_negative(self, actual, expected):
        assert safe_rate(actual, expected) >= 0


class TestScopeProperties:
    @given(
        owned=st.lists(st.integers(min_value=0, max_value=20), max_size=15),
        joined=st.lists(st.integers(min_value=0, max_value=20), max_size=15),
    )
    @settings(suppress_health_check=_SUPPRESSED)
    def test_both_is_deduplicated_union(self, owned, joined):
        def events(ids):
            return [EventSnapshot(id=str(i), title=str(i), owner_id="u") for i in ids]

        visible = resolve_scope(events(owned), events(joined), Scope.BOTH)
        ids = [e.id for e in visible]
        assert len(ids) == len(set(ids))
        assert set(ids) == {str(i) for i in owned} | {str(i) for i in joined}

        again = resolve_scope(visible, visible, Scope.BOTH)
        assert again == visible


class TestStatisticsProperties:
    @given(st.lists(amounts, min_size=1, max_size=30), st.randoms())
    @settings(suppress_health_check=_SUPPRESSED)
    def test_order_independent(self, sample, rnd):
        shuffled = list(sample)
        rnd.shuffle(shuffled)
        a, b = cost_statistics(sample), cost_statistics(shuffled)
        assert (a.median, a.mode, a.minimum, a.maximum) == (b.median, b.mode, b.minimum, b.maximum)
        assert a.minimum <= a.median <= a.maximum


class TestRankingProperties:
    @given(st.lists(st.integers(min_value=0, max_value=5), max_size=20), st.integers(min_value=0, max_value=25))
    @settings(suppress_health_check=_SUPPRESSED)
    def test_top_n_sorted_and_bounded(self, costs, n):
        priced = [_priced(i, Decimal(c)) for i, c in enumerate(costs)]
        ranked = top_n(priced, n)
        assert len(ranked) == min(n, len(priced))
        values = [p.base_cost for p in ranked]
        assert values == sorted(values, reverse=True)
        for first, second in zip(ranked, ranked[1:]):
            if first.base_cost == second.base_cost:
                assert priced.index(first) < priced.index(second)
