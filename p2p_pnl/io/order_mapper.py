"""
Order history wire mapping.
Converts exported records (JSON rows or CSV) to Order objects and back.
"""

import io
import logging
from typing import Any, Dict, List, Mapping, Sequence

import pandas as pd

from p2p_pnl.domain.decimal_math import round_money, to_decimal
from p2p_pnl.domain.models import Order

logger = logging.getLogger(__name__)


class OrderParseError(ValueError):
    """A single wire record could not be mapped to an Order."""


class OrderMapper:
    """Map between wire records and Order."""

    # Wire column names, as exported by the exchange
    ORDER_NO = "Order No."
    TYPE = "Type"
    FIAT_AMOUNT = "Fiat Amount"
    PRICE = "Price"
    COIN_AMOUNT = "Coin Amount"
    COUNTERPARTY = "Counterparty"
    STATUS = "Status"
    TIME = "Time"

    COLUMNS = [ORDER_NO, TYPE, FIAT_AMOUNT, PRICE, COIN_AMOUNT, COUNTERPARTY, STATUS, TIME]

    @staticmethod
    def _number(record: Mapping[str, Any], key: str):
        try:
            return to_decimal(record.get(key))
        except ValueError as e:
            raise OrderParseError(f"{key}: {e}") from e

    @staticmethod
    def from_record(record: Mapping[str, Any]) -> Order:
        """
        Map one wire record to an Order.

        Raises:
            OrderParseError: missing order number, time or coin amount,
                or a non-numeric amount
        """
        if not isinstance(record, Mapping):
            raise OrderParseError(f"Record must be a mapping, got {type(record).__name__}")

        order_no = str(record.get(OrderMapper.ORDER_NO) or "").strip()
        if not order_no:
            raise OrderParseError("Missing order number")

        time = str(record.get(OrderMapper.TIME) or "").strip()
        if not time:
            raise OrderParseError(f"Order {order_no}: missing time")

        coin_amount = OrderMapper._number(record, OrderMapper.COIN_AMOUNT)
        if coin_amount is None:
            raise OrderParseError(f"Order {order_no}: missing coin amount")

        return Order(
            order_no=order_no,
            side=str(record.get(OrderMapper.TYPE) or "").strip().upper(),
            fiat_amount=OrderMapper._number(record, OrderMapper.FIAT_AMOUNT),
            price=OrderMapper._number(record, OrderMapper.PRICE),
            coin_amount=coin_amount,
            counterparty=str(record.get(OrderMapper.COUNTERPARTY) or "").strip(),
            status=str(record.get(OrderMapper.STATUS) or "").strip(),
            time=time,
        )

    @staticmethod
    def to_record(order: Order) -> Dict[str, Any]:
        return {
            OrderMapper.ORDER_NO: order.order_no,
            OrderMapper.TYPE: order.side,
            OrderMapper.FIAT_AMOUNT: (
                round_money(order.fiat_amount) if order.fiat_amount is not None else None
            ),
            OrderMapper.PRICE: float(order.price) if order.price is not None else None,
            OrderMapper.COIN_AMOUNT: float(order.coin_amount),
            OrderMapper.COUNTERPARTY: order.counterparty,
            OrderMapper.STATUS: order.status,
            OrderMapper.TIME: order.time,
        }

    @staticmethod
    def parse_records(records: Sequence[Mapping[str, Any]]) -> List[Order]:
        """
        Map a list of wire records, skipping malformed ones.

        Raises:
            TypeError: records is not a list
        """
        if not isinstance(records, (list, tuple)):
            raise TypeError(f"records must be a list, got {type(records).__name__}")

        orders = []
        for idx, record in enumerate(records):
            try:
                orders.append(OrderMapper.from_record(record))
            except OrderParseError as e:
                logger.warning("Skipping record %d: %s", idx, e)
                continue
        return orders

    @staticmethod
    def parse_csv(content: str) -> List[Order]:
        """Parse an exported order-history CSV with the wire column names."""
        df = pd.read_csv(io.StringIO(content), dtype=str, keep_default_na=False)
        df.columns = [c.strip() for c in df.columns]

        missing = [c for c in (OrderMapper.ORDER_NO, OrderMapper.TYPE, OrderMapper.TIME) if c not in df.columns]
        if missing:
            raise ValueError(f"CSV is missing columns: {missing}")

        return OrderMapper.parse_records(df.to_dict(orient="records"))
