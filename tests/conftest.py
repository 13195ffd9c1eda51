"""Test configuration and fixtures."""

from decimal import Decimal

import pytest
from sqlmodel import Session, create_engine, SQLModel
from sqlmodel.pool import StaticPool

from p2p_pnl.db.models import OrderRecord  # noqa: F401  (registers table)
from p2p_pnl.domain.models import Order


@pytest.fixture(name="session")
def session_fixture():
    """Create in-memory SQLite test database."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    with Session(engine) as session:
        yield session


@pytest.fixture(name="make_order")
def make_order_fixture():
    """Factory for completed orders; amounts are given as strings."""
    counter = {"n": 0}

    def _make(
        side,
        coin,
        fiat,
        time,
        status="Completed",
        price=None,
        order_no=None,
        counterparty="IID555",
    ):
        counter["n"] += 1
        return Order(
            order_no=order_no or f"{counter['n']:06d}",
            side=side,
            fiat_amount=Decimal(fiat) if fiat is not None else None,
            price=Decimal(price) if price is not None else None,
            coin_amount=Decimal(coin),
            counterparty=counterparty,
            status=status,
            time=time,
        )

    return _make


@pytest.fixture(name="sample_records")
def sample_records_fixture():
    """Wire records as returned by the order-history endpoint."""
    return [
        {
            "Order No.": 22890011,
            "Type": "BUY",
            "Fiat Amount": 1000,
            "Price": 100,
            "Coin Amount": 10,
            "Counterparty": "IID555",
            "Status": "Completed",
            "Time": "2025-01-01 10:00:00",
        },
        {
            "Order No.": 22890012,
            "Type": "SELL",
            "Fiat Amount": 1200,
            "Price": 120,
            "Coin Amount": 10,
            "Counterparty": "ZolotayaScaha",
            "Status": "Completed",
            "Time": "2025-01-02 15:30:00",
        },
        {
            "Order No.": 22890013,
            "Type": "SELL",
            "Fiat Amount": 500,
            "Price": 125,
            "Coin Amount": 4,
            "Counterparty": "Mansur S",
            "Status": "Canceled",
            "Time": "2025-01-03 09:00:00",
        },
    ]


@pytest.fixture(name="sample_csv")
def sample_csv_fixture():
    """Exported order history CSV."""
    return (
        "Order No.,Type,Fiat Amount,Price,Coin Amount,Counterparty,Status,Time\n"
        "22890011,BUY,1000.00,100.00,10,IID555,Completed,2025-01-01 10:00:00\n"
        "22890012,SELL,1200.00,120.00,10,ZolotayaScaha,Completed,2025-01-02 15:30:00\n"
        "22890013,SELL,,125.00,4,Mansur S,Completed,2025-01-03 09:00:00\n"
        "22890014,SELL,100,1,,Mansur S,Completed,2025-01-03 09:00:00\n"
    )
