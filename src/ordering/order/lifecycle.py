"""Order lifecycle — status transitions by admins and owners.

Legality lives on the aggregate (``Order.assert_can_transition``). This
handler adds ownership checks and the one side effect a transition has:
entering CANCELLED releases the stock an order reserved.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.errors import Forbidden
from ordering.inventory.ledger import StockLedger
from ordering.order.order import ActorRole, Order, OrderStatus, parse_status

logger = structlog.get_logger(__name__)


@ordering.command(part_of="Order")
class TransitionOrder:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=50)
    actor_id = Identifier(required=True)
    actor_role = String(
        choices=ActorRole,
        default=ActorRole.CUSTOMER.value,
    )


@ordering.command_handler(part_of=Order)
class OrderLifecycleHandler:
    @handle(TransitionOrder)
    def transition_order(self, command):
        target = parse_status(command.status)
        role = ActorRole(command.actor_role)

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)

        if role == ActorRole.CUSTOMER and not order.is_owned_by(command.actor_id):
            raise Forbidden(f"Order {order.id} does not belong to this customer")

        order.assert_can_transition(target, role)

        if target.value == order.status:
            return order.to_dict()

        if target == OrderStatus.CANCELLED:
            unreleased = self._release_stock(order) if order.stock_reserved else []
            order.cancel(cancelled_by=command.actor_id, unreleased_items=unreleased)
        else:
            order.change_status(target, changed_by=command.actor_id)

        repo.add(order)
        logger.info(
            "order_status_changed",
            order_id=str(order.id),
            new_status=order.status,
            actor_role=role.value,
        )
        return order.to_dict()

    @staticmethod
    def _release_stock(order):
        """Release every line; collect the ones that could not be released."""
        ledger = StockLedger()
        unreleased = []
        for item in order.ordered_line_items():
            try:
                ledger.release(item.product_id, item.quantity, reference=f"order:{order.id}")
            except Exception as exc:
                logger.error(
                    "stock_release_failed",
                    order_id=str(order.id),
                    product_id=str(item.product_id),
                    quantity=item.quantity,
                    error=str(exc),
                )
                unreleased.append({"product_id": str(item.product_id), "quantity": item.quantity})
        return unreleased
