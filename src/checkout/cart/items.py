"""Cart management — commands and handler."""

from protean import handle
from protean.fields import Float, Identifier, Integer, String
from protean.utils.globals import current_domain

from checkout.cart.cart import Cart
from checkout.domain import checkout


@checkout.command(part_of="Cart")
class CreateCart:
    """Create an empty cart for a registered owner or a guest session."""

    owner_id = Identifier()
    session_id = String(max_length=255)


@checkout.command(part_of="Cart")
class AddCartLine:
    cart_id = Identifier(required=True)
    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    image_ref = String(max_length=1024)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    stock_limit = Integer(min_value=0)


@checkout.command(part_of="Cart")
class UpdateCartLineQuantity:
    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)
    new_quantity = Integer(required=True, min_value=1)


@checkout.command(part_of="Cart")
class RemoveCartLine:
    cart_id = Identifier(required=True)
    line_id = Identifier(required=True)


@checkout.command(part_of="Cart")
class ClearCart:
    cart_id = Identifier(required=True)


@checkout.command_handler(part_of=Cart)
class ManageCartHandler:
    @handle(CreateCart)
    def create_cart(self, command):
        cart = Cart.create(owner_id=command.owner_id, session_id=command.session_id)
        current_domain.repository_for(Cart).add(cart)
        return str(cart.id)

    @handle(AddCartLine)
    def add_cart_line(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        result = cart.add_line(
            product_id=command.product_id,
            name=command.name,
            unit_price=command.unit_price,
            quantity=command.quantity,
            stock_limit=command.stock_limit,
            image_ref=command.image_ref,
        )
        repo.add(cart)
        return result

    @handle(UpdateCartLineQuantity)
    def update_cart_line_quantity(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        result = cart.update_line_quantity(command.line_id, command.new_quantity)
        repo.add(cart)
        return result

    @handle(RemoveCartLine)
    def remove_cart_line(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        cart.remove_line(command.line_id)
        repo.add(cart)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.get(command.cart_id)
        cart.clear()
        repo.add(cart)
