"""Unit tests for the Product model.

Covers:
- SKU uppercase normalisation on save and full_clean.
- SKU uniqueness constraint.
- Stock quantity >= 0 (field + DB constraint).
- INFO log on product creation.
"""

from __future__ import annotations

import logging

import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import CheckConstraint, Q

from modules.products.models import Product

pytestmark = pytest.mark.unit


def _make_product(**overrides) -> Product:
    defaults = {"sku": "SKU-001", "name": "Widget", "stock_quantity": 10}
    defaults.update(overrides)
    return Product.objects.create(**defaults)


class TestSku:
    def test_normalised_on_save(self):
        product = _make_product(sku="  abc-123 ")
        assert product.sku == "ABC-123"

    def test_normalised_on_clean(self):
        product = Product(sku="lower", name="Widget", stock_quantity=1)
        product.full_clean()
        assert product.sku == "LOWER"

    def test_unique(self):
        _make_product(sku="DUP")
        with pytest.raises(IntegrityError), transaction.atomic():
            _make_product(sku="dup")


class TestStock:
    def test_defaults_to_zero(self):
        product = Product.objects.create(sku="ZERO", name="Zero")
        assert product.stock_quantity == 0

    def test_negative_fails_validation(self):
        product = Product(sku="NEG", name="Negative", stock_quantity=-1)
        with pytest.raises(ValidationError):
            product.full_clean()

    def test_negative_rejected_by_database(self):
        product = _make_product(sku="DB-NEG", stock_quantity=1)
        with pytest.raises(IntegrityError), transaction.atomic():
            Product.objects.filter(id=product.id).update(stock_quantity=-1)

    def test_constraint_condition(self):
        (constraint,) = [
            c for c in Product._meta.constraints if isinstance(c, CheckConstraint)
        ]
        assert constraint.name == "products_stock_non_negative"
        assert constraint.condition == Q(stock_quantity__gte=0)


def test_str():
    assert str(_make_product(sku="STR-1", name="Lamp")) == "STR-1 - Lamp"


def test_creation_is_logged(caplog):
    with caplog.at_level(logging.INFO):
        _make_product(sku="LOGGED")

    assert any("product.created" in record.getMessage() for record in caplog.records)
