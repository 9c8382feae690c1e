"""Payment intent and order storage for the mock cart backend"""

import uuid
from datetime import datetime
from typing import Optional

from ..models import CartRecord, OrderRecord, PaymentIntentRecord


class OrderDatabase:
    """In-memory payment intents and orders"""

    def __init__(self):
        self.intents: dict[str, PaymentIntentRecord] = {}
        self.orders: dict[str, OrderRecord] = {}

    def reset(self) -> None:
        self.intents = {}
        self.orders = {}

    def create_intent(self, cart_id: str, amount: int, currency: str) -> PaymentIntentRecord:
        """Create a payment intent; the secret embeds the intent id"""
        intent_id = f"pi_{uuid.uuid4().hex[:16]}"
        intent = PaymentIntentRecord(
            id=intent_id,
            client_secret=f"{intent_id}_secret_{uuid.uuid4().hex[:16]}",
            cart_id=cart_id,
            amount=amount,
            currency=currency,
        )
        self.intents[intent_id] = intent
        return intent

    def get_intent(self, intent_id: str) -> Optional[PaymentIntentRecord]:
        return self.intents.get(intent_id)

    def create_order(self, cart: CartRecord, intent: PaymentIntentRecord) -> OrderRecord:
        """Record a paid cart as an order"""
        order = OrderRecord(
            order_id=f"ORD-{uuid.uuid4().hex[:8].upper()}",
            cart_id=cart.id,
            payment_intent_id=intent.id,
            amount=intent.amount,
            currency=intent.currency,
            lines=[line.model_copy() for line in cart.lines],
            created_at=datetime.utcnow(),
        )
        intent.finalized = True
        self.orders[order.order_id] = order
        return order

    def get_order(self, order_id: str) -> Optional[OrderRecord]:
        """Get an order by ID"""
        return self.orders.get(order_id)

    def list_orders(self, limit: int = 50) -> list[OrderRecord]:
        """List recent orders"""
        orders = list(self.orders.values())
        orders.sort(key=lambda o: o.created_at, reverse=True)
        return orders[:limit]


# Singleton instance
order_db = OrderDatabase()
