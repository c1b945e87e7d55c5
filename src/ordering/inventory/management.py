"""Product registration and stock replenishment — commands and handler."""

from protean import handle
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from ordering.domain import ordering
from ordering.inventory.ledger import StockLedger
from ordering.inventory.stock import ProductStock


@ordering.command(part_of="ProductStock")
class RegisterProduct:
    """Add a product to the stock ledger."""

    title = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    stock = Integer(default=0)
    product_id = Identifier()  # Optional; reuse the catalog's id when known


@ordering.command(part_of="ProductStock")
class ReplenishStock:
    """Receive new units for a product."""

    product_id = Identifier(required=True)
    quantity = Integer(required=True)


@ordering.command_handler(part_of=ProductStock)
class StockManagementHandler:
    @handle(RegisterProduct)
    def register_product(self, command):
        product = ProductStock.register(
            title=command.title,
            unit_price=command.unit_price,
            stock=command.stock or 0,
            product_id=command.product_id,
        )
        current_domain.repository_for(ProductStock).add(product)
        return str(product.id)

    @handle(ReplenishStock)
    def replenish_stock(self, command):
        product = StockLedger().replenish(command.product_id, command.quantity)
        return product.stock
