"""Unit tests for Tiendanube payload normalization."""

import pytest

from catalog_service.exceptions import ItemSyncError
from catalog_service.services.normalizer import (
    build_permalink,
    localized_text,
    normalize_category,
    normalize_product,
    parse_price,
    parse_timestamp,
    resolve_handle,
    split_tags,
)
from tests.fakes import raw_category, raw_product


class TestLocalizedText:
    def test_plain_string(self) -> None:
        assert localized_text("Remera") == "Remera"

    def test_prefers_requested_language(self) -> None:
        assert localized_text({"pt": "Camiseta", "es": "Remera"}) == "Remera"
        assert localized_text({"pt": "Camiseta", "es": "Remera"}, language="pt") == "Camiseta"

    def test_falls_back_to_any_language(self) -> None:
        assert localized_text({"pt": "Camiseta"}) == "Camiseta"

    def test_empty_values_use_fallback(self) -> None:
        assert localized_text(None, "x") == "x"
        assert localized_text("", "x") == "x"
        assert localized_text({"es": ""}, "x") == "x"


class TestScalars:
    def test_parse_price(self) -> None:
        assert parse_price("199.90") == pytest.approx(199.9)
        assert parse_price(50) == 50.0
        assert parse_price(None) == 0.0

    def test_parse_price_rejects_garbage(self) -> None:
        with pytest.raises(ItemSyncError) as exc:
            parse_price("abc", remote_id=7)
        assert exc.value.remote_id == 7

    def test_parse_timestamp(self) -> None:
        parsed = parse_timestamp("2024-03-01T12:00:00+00:00")
        assert parsed is not None
        assert parsed.tzinfo is not None
        assert parse_timestamp("not a date") is None
        assert parse_timestamp(None) is None

    def test_split_tags(self) -> None:
        assert split_tags("verano, algodon ,,oferta") == ["verano", "algodon", "oferta"]
        assert split_tags("") == []
        assert split_tags(None) == []

    def test_build_permalink(self) -> None:
        assert build_permalink(1, "remera", None) == "https://1.mitiendanube.com/productos/remera"
        assert build_permalink(1, "remera", "https://shop.example/p/remera") == "https://shop.example/p/remera"
        assert build_permalink(1, None, None) is None

    def test_resolve_handle(self) -> None:
        assert resolve_handle("remera", 12, lambda h: False) == "remera"
        assert resolve_handle("remera", 12, lambda h: True) == "remera-12"
        assert resolve_handle(None, 12, lambda h: True) is None


class TestNormalizeProduct:
    def test_full_payload(self) -> None:
        raw = raw_product(5, price="150.50", stock=3, tags="verano,algodon", categories=[9])
        item = normalize_product(raw, shop_id=1001)

        product = item.product
        assert product.product_id == 5
        assert product.shop_id == 1001
        assert product.name == "Producto 5"
        assert product.price == pytest.approx(150.5)
        assert product.handle == "producto-5"
        assert product.permalink == "https://1001.mitiendanube.com/productos/producto-5"
        assert product.tags == ["verano", "algodon"]
        assert product.categories == [9]
        assert product.main_image == "https://cdn.example/5.jpg"
        assert product.published is True

        assert len(item.variants) == 1
        assert item.variants[0].stock == 3
        assert item.variants[0].options == ["Rojo"]
        assert item.images[0].alt == ""

    def test_missing_name_uses_placeholder(self) -> None:
        raw = raw_product(5, name={})
        assert normalize_product(raw, 1).product.name == "Product 5"

    def test_no_variants_means_zero_price(self) -> None:
        raw = raw_product(5)
        raw["variants"] = []
        raw["images"] = []
        product = normalize_product(raw, 1).product
        assert product.price == 0.0
        assert product.main_image is None

    def test_null_stock_is_zero(self) -> None:
        item = normalize_product(raw_product(5, stock=None), 1)
        assert item.variants[0].stock == 0

    def test_missing_id_raises(self) -> None:
        raw = raw_product(5)
        del raw["id"]
        with pytest.raises(ItemSyncError):
            normalize_product(raw, 1)

    def test_invalid_variant_price_raises(self) -> None:
        with pytest.raises(ItemSyncError):
            normalize_product(raw_product(5, price="gratis"), 1)


class TestNormalizeCategory:
    def test_root_category(self) -> None:
        category = normalize_category(raw_category(3, "Ropa"), shop_id=1001)
        assert category.category_id == 3
        assert category.name == "Ropa"
        assert category.parent is None
        assert category.handle == "ropa"

    def test_zero_parent_is_root(self) -> None:
        assert normalize_category(raw_category(3, "Ropa", parent=0), 1).parent is None

    def test_child_category(self) -> None:
        assert normalize_category(raw_category(4, "Remeras", parent=3), 1).parent == 3
