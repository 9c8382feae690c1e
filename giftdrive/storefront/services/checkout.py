"""
Checkout Orchestrator

Drives a donor through idle -> identity -> shipping -> payment -> confirmed.
A backend failure moves the flow to ``failed`` and remembers the step it
happened in so ``retry()`` can return there. Local precondition and cart
availability problems leave the step unchanged.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from giftdrive.models import BuyerIdentity, Cart, CheckoutValidation, FinalizedOrder, ShippingMethod, ShopifyStore, Store
from ..core.errors import BackendAPIError, ErrorKind, Outcome
from ..core.notifications import NotificationFeed
from .backend_client import BackendClient
from .cart_store import CartHandle
from .normalizer import line_item_id, line_item_title, store_heading
from .payment import PaymentBridge, PaymentForm, intent_id_from_secret

logger = logging.getLogger(__name__)

IDENTITY_ERROR_CODE = "INVALID_BUYER_IDENTITY_INFORMATION"


class CheckoutStep(str, Enum):
    IDLE = "idle"
    IDENTITY = "identity"
    SHIPPING = "shipping"
    PAYMENT = "payment"
    CONFIRMED = "confirmed"
    FAILED = "failed"


# Identity errors are expected until the donor has entered an address
IDENTITY_ERRORS_HIDDEN = (CheckoutStep.IDLE, CheckoutStep.IDENTITY)


@dataclass
class CartIssue:
    """One line of the cart error banner"""
    message: str
    kind: ErrorKind
    store: Optional[str] = None
    code: Optional[str] = None


@dataclass
class StoreShipping:
    heading: str
    methods: list[ShippingMethod] = field(default_factory=list)


def unavailable_items_message(store: Store) -> Optional[str]:
    """Banner text naming the lines the store can no longer supply"""
    if store.offer is None or not store.offer.not_available_ids:
        return None

    unavailable = set(store.offer.not_available_ids)
    titles = [
        line_item_title(line, store)
        for line in store.cart_lines
        if line_item_id(line, store) in unavailable
    ]
    if titles:
        return f"Some items became unavailable from {store.store}: {', '.join(titles)}. Please remove them."

    id_type = "Variant ID" if isinstance(store, ShopifyStore) else "Product ID"
    ids = ", ".join(store.offer.not_available_ids)
    return f"Some items ({id_type}s: {ids}) became unavailable from {store.store}. Please remove them."


def collect_cart_issues(cart: Optional[Cart], step: CheckoutStep) -> list[CartIssue]:
    """Unavailable-item messages first, then every store and offer error tagged by store"""
    if cart is None:
        return []

    unavailable = []
    errors = []
    for store in cart.stores:
        message = unavailable_items_message(store)
        if message:
            unavailable.append(CartIssue(message=message, kind=ErrorKind.AVAILABILITY, store=store.store))

        for error in store.all_errors:
            if error.code == IDENTITY_ERROR_CODE:
                if step in IDENTITY_ERRORS_HIDDEN:
                    continue
                kind = ErrorKind.IDENTITY
            else:
                kind = ErrorKind.AVAILABILITY
            errors.append(CartIssue(
                message=f"{store.store} - {error.code}: {error.message}",
                kind=kind,
                store=store.store,
                code=error.code,
            ))
    return unavailable + errors


def has_blocking_issues(cart: Optional[Cart], step: CheckoutStep) -> bool:
    return bool(collect_cart_issues(cart, step))


def is_cost_ready(cart: Optional[Cart]) -> bool:
    """Total known, shipping known, or the backend marked the cost as an estimate"""
    if cart is None or cart.cost is None:
        return False
    cost = cart.cost
    return (
        (cost.total is not None and cost.total.value is not None)
        or cost.shipping is not None
        or cost.is_estimated
    )


def shipping_options(cart: Optional[Cart]) -> list[StoreShipping]:
    """Per-store shipping quotes; informational only"""
    if cart is None:
        return []
    return [
        StoreShipping(
            heading=store_heading(store),
            methods=list(store.offer.shipping_methods) if store.offer else [],
        )
        for store in cart.stores
    ]


class CheckoutOrchestrator:
    """
    Checkout state machine for one donor session.

    Every action returns an Outcome. Actions issued while another is in
    flight are refused.
    """

    def __init__(
        self,
        client: BackendClient,
        cart: CartHandle,
        payments: PaymentBridge,
        notifications: NotificationFeed,
    ):
        self._client = client
        self._cart = cart
        self._payments = payments
        self._notifications = notifications

        self.step = CheckoutStep.IDLE
        self.failed_step: Optional[CheckoutStep] = None
        self.client_secret: Optional[str] = None
        self.order: Optional[FinalizedOrder] = None
        self.error: Optional[str] = None
        self.validation: Optional[CheckoutValidation] = None
        self.processing = False
        # Set once the provider reports success; finalization retries reuse it
        self._paid_intent_id: Optional[str] = None

    # ==================== State helpers ====================

    @property
    def issues(self) -> list[CartIssue]:
        return collect_cart_issues(self._cart.snapshot, self.step)

    def _busy(self) -> Optional[Outcome]:
        if self.processing or self._cart.loading:
            return Outcome.failed("Checkout is already processing. Please wait.", ErrorKind.BUSY)
        return None

    def _wrong_step(self, action: str) -> Outcome:
        logger.warning(f"Cannot {action} during checkout step {self.step.value}")
        return Outcome.failed(f"Cannot {action} right now.", ErrorKind.PRECONDITION)

    def _refuse(self, message: str, kind: ErrorKind) -> Outcome:
        """Reject an action without leaving the current step"""
        self.error = message
        return Outcome.failed(message, kind)

    def _fail(self, step: CheckoutStep, message: str) -> Outcome:
        logger.error(f"Checkout failed at {step.value}: {message}")
        self.failed_step = step
        self.step = CheckoutStep.FAILED
        self.error = message
        self._notifications.error(message)
        return Outcome.failed(message, ErrorKind.TRANSIENT)

    # ==================== Steps ====================

    def begin(self) -> Outcome:
        """Open the identity form; a confirmed order makes room for the next one"""
        if self.step == CheckoutStep.CONFIRMED:
            self.reset()
        if self.step != CheckoutStep.IDLE:
            return self._wrong_step("start checkout")
        cart = self._cart.snapshot
        if cart is None or not cart.has_items:
            return self._refuse("Your cart is empty.", ErrorKind.PRECONDITION)
        if has_blocking_issues(cart, self.step):
            return self._refuse("Please resolve cart issues first.", ErrorKind.AVAILABILITY)

        self.error = None
        self.step = CheckoutStep.IDENTITY
        return Outcome.ok()

    async def submit_identity(self, identity: BuyerIdentity) -> Outcome:
        """Send the donor's address; the returned cart carries shipping and tax"""
        if self.step not in (CheckoutStep.IDENTITY, CheckoutStep.SHIPPING):
            return self._wrong_step("submit your address")
        busy = self._busy()
        if busy:
            return busy
        cart = self._cart.snapshot
        if cart is None or not cart.id:
            return self._refuse("Your cart could not be found. Please refresh the page.", ErrorKind.PRECONDITION)

        self.processing = True
        try:
            updated = await self._client.update_buyer_identity(cart.id, identity.sanitized())
        except BackendAPIError as e:
            return self._fail(CheckoutStep.IDENTITY, e.message)
        finally:
            self.processing = False

        self._cart.replace(updated)
        self.client_secret = None

        if not is_cost_ready(updated):
            return self._fail(
                CheckoutStep.IDENTITY,
                "Could not calculate final shipping/tax for your order. Please try again later or contact support.",
            )

        issues = collect_cart_issues(updated, CheckoutStep.SHIPPING)
        if issues:
            self.step = CheckoutStep.IDENTITY
            kind = ErrorKind.IDENTITY if all(i.kind == ErrorKind.IDENTITY for i in issues) else ErrorKind.AVAILABILITY
            return self._refuse(" ".join(issue.message for issue in issues), kind)

        self.error = None
        self.step = CheckoutStep.SHIPPING
        logger.info(f"Identity accepted for cart {updated.id}")
        return Outcome.ok(data=updated)

    def edit_identity(self) -> Outcome:
        """Go back to the address form, dropping any payment intent"""
        if self.step not in (CheckoutStep.SHIPPING, CheckoutStep.PAYMENT):
            return self._wrong_step("edit your address")
        self.client_secret = None
        self.error = None
        self.step = CheckoutStep.IDENTITY
        return Outcome.ok()

    async def validate(self) -> Outcome:
        """Ask the backend whether cart quantities still fit the needs"""
        try:
            validation = await self._client.validate_checkout()
        except BackendAPIError as e:
            logger.error(f"Checkout validation failed: {e.message}")
            return Outcome.from_error(e)

        self.validation = validation
        if validation.is_valid:
            return Outcome.ok(data=validation)

        details = "; ".join(
            f"{issue.item_name or issue.item_id}: {issue.error}" for issue in validation.issues
        )
        return Outcome.failed(
            f"Some items exceed what is still needed. {details}",
            ErrorKind.AVAILABILITY,
            data=validation,
        )

    def _intent_precondition(self, cart: Optional[Cart]) -> Optional[str]:
        if cart is None or not cart.id:
            return "Cannot initialize payment: Cart ID missing."
        total = cart.total
        if total is None or total.value is None:
            return "Cannot initialize payment: Cart total amount missing."
        if not total.currency:
            return "Cannot initialize payment: Cart currency missing."
        if total.value <= 0:
            return "Cannot initialize payment: Cart total is zero or invalid."
        return None

    async def create_payment_intent(self) -> Outcome:
        """Validate the cart and request a payment intent for its total"""
        if self.step != CheckoutStep.SHIPPING:
            return self._wrong_step("continue to payment")
        busy = self._busy()
        if busy:
            return busy

        cart = self._cart.snapshot
        problem = self._intent_precondition(cart)
        if problem:
            return self._refuse(problem, ErrorKind.PRECONDITION)

        self.processing = True
        try:
            outcome = await self.validate()
            if not outcome.success:
                if outcome.kind == ErrorKind.AVAILABILITY:
                    return self._refuse(outcome.message, ErrorKind.AVAILABILITY)
                return self._fail(CheckoutStep.SHIPPING, outcome.message)

            total = cart.total
            try:
                self.client_secret = await self._client.create_stripe_intent(cart.id, total.value, total.currency)
            except BackendAPIError as e:
                return self._fail(CheckoutStep.SHIPPING, f"Failed to initialize payment system: {e.message}")
        finally:
            self.processing = False

        self.error = None
        self.step = CheckoutStep.PAYMENT
        return Outcome.ok(data=self.client_secret)

    async def confirm_payment(self, form: Optional[PaymentForm]) -> Outcome:
        """Confirm with the provider, then record the order"""
        if self.step != CheckoutStep.PAYMENT:
            return self._wrong_step("confirm payment")
        busy = self._busy()
        if busy:
            return busy
        if not self.client_secret:
            return self._refuse("Payment has not been initialized.", ErrorKind.PRECONDITION)

        self.processing = True
        try:
            if self._paid_intent_id is None:
                result = await self._payments.confirm(self.client_secret, form)
                if not result.success:
                    return self._refuse(result.message, result.kind)
                self._paid_intent_id = result.transaction_id or intent_id_from_secret(self.client_secret)
            return await self._finalize()
        finally:
            self.processing = False

    async def _finalize(self) -> Outcome:
        cart = self._cart.snapshot
        total = cart.total if cart else None
        if cart is None or not cart.id or total is None or total.value is None:
            return self._fail(
                CheckoutStep.PAYMENT,
                "Payment may have succeeded, but order finalization failed: "
                "Essential cart data (ID or total cost) missing for finalization. Please contact support.",
            )

        try:
            order = await self._client.finalize_order(cart.id, self._paid_intent_id, total.value, total.currency)
        except BackendAPIError as e:
            return self._fail(
                CheckoutStep.PAYMENT,
                f"Payment may have succeeded, but order finalization failed: {e.message}. Please contact support.",
            )

        self.order = order
        self.client_secret = None
        self._paid_intent_id = None
        self.error = None
        self._cart.clear()
        self.step = CheckoutStep.CONFIRMED
        self._notifications.success(order.message or "Order placed successfully!")
        logger.info(f"Order {order.order_id} confirmed for cart {cart.id}")
        return Outcome.ok(message=order.message, data=order)

    def retry(self) -> Outcome:
        """Return to the step that failed"""
        if self.step != CheckoutStep.FAILED or self.failed_step is None:
            return self._wrong_step("retry")
        self.step = self.failed_step
        self.failed_step = None
        self.error = None
        return Outcome.ok()

    async def cancel(self) -> Outcome:
        """Abandon checkout; the cart itself is left as it is"""
        if self.step == CheckoutStep.CONFIRMED:
            return self._wrong_step("cancel a placed order")
        if self._paid_intent_id is not None:
            return self._refuse(
                "Payment has already been taken for this order. Please retry or contact support.",
                ErrorKind.PRECONDITION,
            )
        self.step = CheckoutStep.IDLE
        self.failed_step = None
        self.client_secret = None
        self.error = None
        self.validation = None
        return await self._cart.fetch()

    def reset(self) -> None:
        """Start over after a confirmed order"""
        self.step = CheckoutStep.IDLE
        self.failed_step = None
        self.order = None
        self.client_secret = None
        self.error = None
        self.validation = None
        self._paid_intent_id = None
