"""
Customize & order

An order is not stored anywhere: it becomes a pre-filled chat message that the
customer sends from their own messaging app.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
from urllib.parse import quote

from storefront.services.storage import StorageError
from storefront.services.viewstate import LocalPreview

logger = logging.getLogger(__name__)

MIN_QUANTITY = 1

# Same escaping as JavaScript's encodeURIComponent
_URI_COMPONENT_SAFE = "-_.!~*'()"


def parse_quantity(value) -> int:
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        return MIN_QUANTITY
    return max(MIN_QUANTITY, quantity)


@dataclass
class OrderCustomization:
    """State of the order dialog for one product"""
    text: str = ''
    quantity: int = MIN_QUANTITY
    attachment: Optional[LocalPreview] = None

    def increment(self) -> int:
        self.quantity += 1
        return self.quantity

    def decrement(self) -> int:
        self.quantity = max(MIN_QUANTITY, self.quantity - 1)
        return self.quantity

    def attach(self, file):
        """Attach a reference image, releasing the one it replaces"""
        self.remove_attachment()
        self.attachment = LocalPreview(file)

    def remove_attachment(self):
        if self.attachment is not None:
            self.attachment.release()
            self.attachment = None

    def close(self):
        self.remove_attachment()

    def total(self, price) -> Decimal:
        return Decimal(str(price)) * self.quantity

    @classmethod
    def from_form(cls, form, files=None) -> 'OrderCustomization':
        customization = cls(
            text=(form.get('text') or '').strip(),
            quantity=parse_quantity(form.get('quantity')),
        )
        reference = files.get('reference_image') if files else None
        if reference is not None and reference.filename:
            customization.attach(reference)
        return customization


def format_price(price) -> str:
    return f"{Decimal(str(price)):.2f}"


def build_order_message(product, customization: OrderCustomization,
                        reference_url: Optional[str] = None) -> str:
    image_url = product.image_urls[0] if product.image_urls else ''
    message = (
        "Hi! I'd like to order a custom keychain:\n\n"
        f"Product: {product.name}\n"
        f"Price: ${format_price(product.price)}\n"
        f"Quantity: {customization.quantity}\n"
        f"Custom Text: {customization.text}\n"
        f"Product Image: {image_url}"
    )
    if reference_url:
        message += f"\n\nReference Image: {reference_url}"
    return message


def build_chat_link(chat_url: str, message: str) -> str:
    return f"{chat_url}?text={quote(message, safe=_URI_COMPONENT_SAFE)}"


def submit_order(product, customization: OrderCustomization, storage, chat_url: str) -> str:
    """
    Upload the reference image if one is attached, then build the chat link.

    A failed reference upload does not block the order; the message is sent
    without the image. The attachment is released either way.
    """
    reference_url = None
    try:
        if customization.attachment is not None:
            try:
                reference_url = storage.upload_reference_image(customization.attachment)
            except StorageError as e:
                logger.warning(f'Reference image upload failed, ordering without it: {e}')
    finally:
        customization.close()

    logger.info(f'Order link built for product {product.id}', extra={
        'event_type': 'order_handoff',
        'product_id': product.id,
        'quantity': customization.quantity,
        'has_reference_image': reference_url is not None,
    })
    return build_chat_link(chat_url, build_order_message(product, customization, reference_url))
