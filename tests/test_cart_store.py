from decimal import Decimal

from storefront.models.cart import CartItem
from storefront.models.money import to_decimal
from storefront.models.product import Product
from storefront.storage import CART_NAMESPACE, LocalStorage
from storefront.store.cart import CartStore


def _product(pid, price, name=None):
    return Product(id=pid, name=name or f"Product {pid}", price=Decimal(price), image_url=f"/img/{pid}.jpg")


def test_adding_same_product_twice_merges_lines():
    cart = CartStore()
    cart.add_item(_product(1, "10"))
    cart.add_item(_product(1, "10"))
    assert len(cart.items) == 1
    assert cart.items[0].quantity == 2


def test_lines_keep_first_added_order():
    cart = CartStore()
    cart.add_item(_product(2, "1"))
    cart.add_item(_product(1, "1"))
    cart.add_item(_product(2, "1"))
    assert [it.id for it in cart.items] == [2, 1]


def test_update_quantity_is_absolute():
    cart = CartStore()
    cart.add_item(_product(1, "10"))
    cart.add_item(_product(1, "10"))
    cart.update_quantity(1, 5)
    assert cart.items[0].quantity == 5


def test_update_quantity_to_zero_or_below_removes():
    cart = CartStore()
    cart.add_item(_product(1, "10"))
    cart.add_item(_product(2, "10"))
    cart.update_quantity(1, 0)
    cart.update_quantity(2, -1)
    assert cart.items == []


def test_update_and_remove_unknown_id_are_noops():
    cart = CartStore()
    cart.add_item(_product(1, "10"))
    cart.update_quantity(99, 3)
    cart.remove_item(99)
    assert [(it.id, it.quantity) for it in cart.items] == [(1, 1)]


def test_totals_are_recomputed_after_every_mutation():
    cart = CartStore()
    cart.add_item(_product(1, "10"))
    cart.add_item(_product(1, "10"))
    cart.add_item(_product(2, "5"))
    assert cart.total_price() == Decimal("25")
    assert cart.total_items() == 3

    cart.update_quantity(2, 3)
    assert cart.total_price() == Decimal("35")
    cart.remove_item(1)
    assert cart.total_price() == Decimal("15")
    assert cart.total_items() == 3


def test_clear_cart_empties_everything():
    cart = CartStore()
    cart.add_item(_product(1, "10"))
    cart.add_item(_product(2, "5"))
    cart.clear_cart()
    assert cart.total_items() == 0
    assert cart.total_price() == Decimal("0")


def test_decimal_prices_do_not_drift():
    cart = CartStore()
    for _ in range(3):
        cart.add_item(_product(1, "19.99"))
    assert cart.total_price() == Decimal("59.97")


def test_every_mutation_is_persisted(tmp_path):
    storage = LocalStorage(tmp_path)
    cart = CartStore(storage=storage)
    cart.add_item(_product(7, "12.50", name="Mug"))
    assert storage.get_item(CART_NAMESPACE) == [
        {"id": 7, "name": "Mug", "price": 12.5, "quantity": 1, "image_url": "/img/7.jpg"}
    ]
    cart.update_quantity(7, 4)
    assert storage.get_item(CART_NAMESPACE)[0]["quantity"] == 4
    cart.clear_cart()
    assert storage.get_item(CART_NAMESPACE) == []


def test_restore_reads_snapshot_back(tmp_path):
    storage = LocalStorage(tmp_path)
    cart = CartStore(storage=storage)
    cart.add_item(_product(1, "10"))
    cart.add_item(_product(1, "10"))
    cart.add_item(_product(2, "5"))

    restored = CartStore.restore(storage)
    assert [(it.id, it.quantity) for it in restored.items] == [(1, 2), (2, 1)]
    assert restored.total_price() == Decimal("25")


def test_restore_skips_malformed_entries(tmp_path):
    storage = LocalStorage(tmp_path)
    storage.set_item(
        CART_NAMESPACE,
        [
            {"id": 1, "name": "ok", "price": 3, "quantity": 2, "image_url": ""},
            {"name": "no id", "price": 1, "quantity": 1},
            "garbage",
            {"id": 2, "name": "zero", "price": 1, "quantity": 0, "image_url": ""},
        ],
    )
    restored = CartStore.restore(storage)
    assert [it.id for it in restored.items] == [1]


def test_restore_with_corrupt_file_starts_empty(tmp_path):
    (tmp_path / f"{CART_NAMESPACE}.json").write_text("{not json", encoding="utf-8")
    restored = CartStore.restore(LocalStorage(tmp_path))
    assert restored.items == []


def test_add_item_accepts_plain_dicts():
    cart = CartStore()
    cart.add_item({"id": 3, "name": "Plate", "price": "4.25", "image_url": "/p.jpg"})
    assert cart.items == [CartItem(id=3, name="Plate", price=Decimal("4.25"), image_url="/p.jpg", quantity=1)]


def test_remove_ordered_keeps_units_added_later():
    cart = CartStore()
    cart.add_item(_product(1, "10"))
    cart.add_item(_product(2, "5"))
    ordered = cart.snapshot_lines()
    cart.update_quantity(1, 3)
    cart.add_item(_product(3, "1"))

    cart.remove_ordered(ordered)
    assert [(it.id, it.quantity) for it in cart.items] == [(1, 2), (3, 1)]


def test_snapshot_lines_are_independent_copies():
    cart = CartStore()
    cart.add_item(_product(1, "10"))
    lines = cart.snapshot_lines()
    cart.add_item(_product(1, "10"))
    assert lines[0].quantity == 1


def test_restore_skips_non_finite_prices(tmp_path):
    storage = LocalStorage(tmp_path)
    storage.set_item(
        CART_NAMESPACE,
        [
            {"id": 1, "name": "nan", "price": "NaN", "quantity": 1, "image_url": ""},
            {"id": 2, "name": "inf", "price": "Infinity", "quantity": 1, "image_url": ""},
            {"id": 3, "name": "ok", "price": "2.50", "quantity": "inf", "image_url": ""},
        ],
    )
    restored = CartStore.restore(storage)
    assert [(it.id, it.quantity) for it in restored.items] == [(3, 1)]


def test_to_decimal_rejects_non_finite_values():
    assert to_decimal("NaN") == Decimal("0")
    assert to_decimal(Decimal("-Infinity"), default=None) is None
    assert to_decimal("19.99") == Decimal("19.99")
