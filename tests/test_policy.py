from grocery_cart.domain import policy
from grocery_cart.domain.schemas import RejectionReason

from conftest import make_product


def test_quantity_within_bounds_is_accepted():
    product = make_product("toned-milk", "45.50", "40.00", min_qty=2, max_qty=5)
    assert policy.validate(product, 2) is None
    assert policy.validate(product, 5) is None


def test_below_minimum_reports_bound_and_shortfall():
    product = make_product("toned-milk", "45.50", "40.00", min_qty=2, max_qty=5)
    rejection = policy.validate(product, 1)

    assert rejection.reason == RejectionReason.BELOW_MINIMUM
    assert rejection.limit == 2
    assert rejection.requested == 1
    assert rejection.difference == 1
    assert rejection.message == "Minimum order quantity is 2"


def test_above_maximum_reports_bound_and_excess():
    product = make_product("toned-milk", "45.50", "40.00", min_qty=2, max_qty=5)
    rejection = policy.validate(product, 8)

    assert rejection.reason == RejectionReason.ABOVE_MAXIMUM
    assert rejection.limit == 5
    assert rejection.difference == 3


def test_no_maximum_means_unbounded():
    product = make_product("basmati-rice", "100.00", "80.00")
    assert policy.validate(product, 500) is None


def test_inactive_product_is_unavailable():
    product = make_product("mustard-oil", "210.00", "190.00", active=False)
    assert policy.validate(product, 1).reason == RejectionReason.PRODUCT_UNAVAILABLE


def test_zero_or_negative_is_below_minimum():
    product = make_product("basmati-rice", "100.00", "80.00", min_qty=0)
    assert policy.validate(product, 0).reason == RejectionReason.BELOW_MINIMUM
    assert policy.validate(product, -2).limit == 1
