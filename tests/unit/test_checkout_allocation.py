import pytest

from storefront.checkout.allocation import allocate
from storefront.checkout.models import CartLine, SharedCosts


def _total(allocations):
    return sum(a.allocated_amount for a in allocations)


def test_worked_example_two_sellers():
    # 100.00 + 200.00, livraison 5.00, taxe 15.00 -> 320.00
    items = [CartLine("p1", 10000, 1), CartLine("p2", 20000, 1)]
    result = allocate(items, SharedCosts(shipping=500, tax=1500))

    assert [a.product_id for a in result] == ["p1", "p2"]
    assert [a.allocated_amount for a in result] == [10667, 21333]
    assert _total(result) == 32000


def test_single_item_receives_all_shared_costs():
    result = allocate([CartLine("p1", 4999, 2)], SharedCosts(shipping=799, tax=123))
    assert len(result) == 1
    assert result[0].allocated_amount == 4999 * 2 + 799 + 123


def test_empty_cart_is_valid():
    assert allocate([], SharedCosts(shipping=500, tax=100)) == []


def test_rounding_half_up_without_floats():
    # 1 cent réparti sur 2 lignes égales: 0.5 -> 1 pour la première, reste 0 pour la dernière
    items = [CartLine("a", 100, 1), CartLine("b", 100, 1)]
    result = allocate(items, SharedCosts(shipping=1, tax=0))
    assert [a.allocated_amount for a in result] == [101, 100]


@pytest.mark.parametrize(
    "prices,shipping,tax",
    [
        ([333, 333, 334], 100, 7),
        ([1, 1, 1, 1, 1, 1, 1], 10, 3),
        ([99999, 1, 12345], 2999, 1701),
        ([250], 0, 0),
        ([50] * 10 + [1], 16, 0),
    ],
)
def test_allocations_sum_to_charged_total(prices, shipping, tax):
    items = [CartLine(f"p{i}", price, 1) for i, price in enumerate(prices)]
    result = allocate(items, SharedCosts(shipping=shipping, tax=tax))
    assert _total(result) == sum(prices) + shipping + tax
    assert all(a.allocated_amount >= price for a, price in zip(result, prices))


def test_free_items_send_shared_costs_to_last_line():
    items = [CartLine("a", 0, 1), CartLine("b", 0, 3)]
    result = allocate(items, SharedCosts(shipping=500, tax=0))
    assert [a.allocated_amount for a in result] == [0, 500]


def test_quantity_counts_in_line_total():
    items = [CartLine("a", 1000, 3), CartLine("b", 1000, 1)]
    result = allocate(items, SharedCosts(shipping=400, tax=0))
    assert [a.allocated_amount for a in result] == [3300, 1100]


@pytest.mark.parametrize(
    "items,costs",
    [
        ([CartLine("a", 100, 0)], SharedCosts()),
        ([CartLine("a", -1, 1)], SharedCosts()),
        ([CartLine("a", 100, 1)], SharedCosts(shipping=-5)),
    ],
)
def test_invalid_lines_are_rejected(items, costs):
    with pytest.raises(ValueError):
        allocate(items, costs)


def test_small_last_line_keeps_its_own_price_when_earlier_lines_round_up():
    # 10 x 0.50 + 0.01, livraison 0.16: chaque part de 1.597 arrondie à 2 dépasse le total
    items = [CartLine(f"p{i}", 50, 1) for i in range(10)] + [CartLine("last", 1, 1)]
    result = allocate(items, SharedCosts(shipping=16, tax=0))

    amounts = [a.allocated_amount for a in result]
    assert amounts == [51, 51, 51, 51, 52, 52, 52, 52, 52, 52, 1]
    assert _total(result) == 517
    assert all(a.allocated_amount >= item.line_total for a, item in zip(result, items))
