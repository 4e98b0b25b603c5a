"""
Shared fixtures and record factories for the position engine tests.
"""

from datetime import date

import pytest

from position_engine.schemas import (
    Article,
    ClientContract,
    ContractStatus,
    SupplierContract,
)

AS_OF = date(2025, 6, 1)


def make_article(sku="X", name="Flour T55", stock_kg=0.0, stock_uvc=0):
    return Article(sku=sku, name=name, stock_kg=stock_kg, stock_uvc=stock_uvc)


def make_supplier_contract(
    sku="X",
    supplier_code="S1",
    supplier_name="Mill One",
    qty_remaining_kg=0.0,
    qty_in_transit_kg=0.0,
    qty_contracted_kg=0.0,
    price_buy=0.0,
    status=ContractStatus.ACTIVE,
    **extra,
):
    return SupplierContract(
        sku=sku,
        supplier_code=supplier_code,
        supplier_name=supplier_name,
        qty_remaining_kg=qty_remaining_kg,
        qty_in_transit_kg=qty_in_transit_kg,
        qty_contracted_kg=qty_contracted_kg,
        price_buy=price_buy,
        status=status,
        **extra,
    )


def make_client_contract(
    sku="X",
    client_code="C1",
    client_name="Bakery One",
    qty_remaining_kg=0.0,
    qty_contracted_kg=0.0,
    price_sell=0.0,
    status=ContractStatus.ACTIVE,
    **extra,
):
    return ClientContract(
        sku=sku,
        client_code=client_code,
        client_name=client_name,
        qty_remaining_kg=qty_remaining_kg,
        qty_contracted_kg=qty_contracted_kg,
        price_sell=price_sell,
        status=status,
        **extra,
    )


@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def book():
    """A small book: one balanced SKU, one short, one critical, one orphan."""
    articles = [
        make_article("FLR-1", "Flour", stock_kg=5000, stock_uvc=200),
        make_article("SUG-1", "Sugar", stock_kg=100, stock_uvc=4),
        make_article("BUT-1", "Butter", stock_kg=0, stock_uvc=0),
    ]
    supplier_contracts = [
        make_supplier_contract(
            "FLR-1", "S1", "Mill One", qty_remaining_kg=1000, qty_contracted_kg=2000, price_buy=0.5
        ),
        make_supplier_contract(
            "SUG-1", "S2", "Sugar Co", qty_remaining_kg=200, qty_contracted_kg=500, price_buy=1.0
        ),
        make_supplier_contract(
            "COC-9", "S2", "Sugar Co", qty_remaining_kg=300, qty_contracted_kg=300, price_buy=3.0
        ),
        make_supplier_contract(
            "FLR-1", "S1", "Mill One", qty_remaining_kg=0, qty_contracted_kg=1000,
            price_buy=9.0, status=ContractStatus.COMPLETED,
        ),
    ]
    client_contracts = [
        make_client_contract(
            "flr-1", "C1", "Bakery One", qty_remaining_kg=4000, qty_contracted_kg=4000,
            price_sell=0.6, contract_id="CC-1",
        ),
        make_client_contract(
            "SUG-1", "C2", "Pastry Two", qty_remaining_kg=500, qty_contracted_kg=500,
            price_sell=1.2, contract_id="CC-2",
        ),
        make_client_contract(
            "BUT-1", "C1", "Bakery One", qty_remaining_kg=2500, qty_contracted_kg=3000,
            price_sell=6.0, contract_id="CC-3",
        ),
    ]
    return articles, supplier_contracts, client_contracts
