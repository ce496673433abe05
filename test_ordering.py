#!/usr/bin/env python3
"""
Order message and chat link tests
"""
import io
import unittest
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import Mock
from urllib.parse import parse_qs, urlsplit

from werkzeug.datastructures import FileStorage, MultiDict

from storefront.services.ordering import (
    OrderCustomization, build_chat_link, build_order_message, parse_quantity, submit_order,
)
from storefront.services.storage import StorageError

CHAT_URL = 'https://t.me/Samphors_Pheng'


def keychain(**overrides):
    values = {
        'id': 'p-1',
        'name': 'Name Tag',
        'price': Decimal('4.5'),
        'image_urls': ['https://cdn.example.com/tag.jpg', 'https://cdn.example.com/tag2.jpg'],
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def reference_upload():
    return FileStorage(stream=io.BytesIO(b'logo'), filename='logo.png', content_type='image/png')


def decoded_text(link):
    return parse_qs(urlsplit(link).query)['text'][0]


class TestQuantity(unittest.TestCase):
    def test_never_below_one(self):
        customization = OrderCustomization()
        self.assertEqual(customization.decrement(), 1)
        self.assertEqual(customization.increment(), 2)
        self.assertEqual(customization.decrement(), 1)
        self.assertEqual(customization.decrement(), 1)

    def test_parse(self):
        self.assertEqual(parse_quantity('3'), 3)
        self.assertEqual(parse_quantity('0'), 1)
        self.assertEqual(parse_quantity('-4'), 1)
        self.assertEqual(parse_quantity('many'), 1)
        self.assertEqual(parse_quantity(None), 1)

    def test_total(self):
        customization = OrderCustomization(quantity=3)
        self.assertEqual(customization.total(Decimal('4.50')), Decimal('13.50'))


class TestOrderMessage(unittest.TestCase):
    def test_message_layout(self):
        message = build_order_message(keychain(), OrderCustomization(text='ALEX', quantity=2))

        self.assertEqual(message, (
            "Hi! I'd like to order a custom keychain:\n\n"
            "Product: Name Tag\n"
            "Price: $4.50\n"
            "Quantity: 2\n"
            "Custom Text: ALEX\n"
            "Product Image: https://cdn.example.com/tag.jpg"
        ))

    def test_reference_image_line(self):
        message = build_order_message(keychain(), OrderCustomization(), 'https://cdn.example.com/ref.png')
        self.assertTrue(message.endswith('\n\nReference Image: https://cdn.example.com/ref.png'))

    def test_product_without_images(self):
        message = build_order_message(keychain(image_urls=[]), OrderCustomization())
        self.assertTrue(message.endswith('Product Image: '))

    def test_link_is_component_encoded(self):
        link = build_chat_link(CHAT_URL, "Hi! 50% off & more\n(ok)")

        self.assertEqual(link, CHAT_URL + "?text=Hi!%2050%25%20off%20%26%20more%0A(ok)")
        self.assertEqual(decoded_text(link), "Hi! 50% off & more\n(ok)")


class TestSubmitOrder(unittest.TestCase):
    def test_without_reference_image(self):
        storage = Mock()
        customization = OrderCustomization(text='Mia', quantity=1)

        link = submit_order(keychain(), customization, storage, CHAT_URL)

        self.assertTrue(link.startswith(CHAT_URL + '?text='))
        self.assertNotIn('Reference Image', decoded_text(link))
        storage.upload_reference_image.assert_not_called()

    def test_reference_image_is_uploaded_and_released(self):
        storage = Mock()
        storage.upload_reference_image.return_value = 'https://cdn.example.com/reference-images/1-logo.png'
        customization = OrderCustomization.from_form(
            MultiDict({'text': 'Mia', 'quantity': '2'}),
            MultiDict({'reference_image': reference_upload()}),
        )
        attachment = customization.attachment

        link = submit_order(keychain(), customization, storage, CHAT_URL)

        text = decoded_text(link)
        self.assertIn('Quantity: 2', text)
        self.assertIn('Reference Image: https://cdn.example.com/reference-images/1-logo.png', text)
        self.assertTrue(attachment.released)
        self.assertIsNone(customization.attachment)

    def test_failed_reference_upload_still_orders(self):
        storage = Mock()
        storage.upload_reference_image.side_effect = StorageError('HTTP 500: internal', status_code=500)
        customization = OrderCustomization(text='Mia')
        customization.attach(reference_upload())
        attachment = customization.attachment

        link = submit_order(keychain(), customization, storage, CHAT_URL)

        self.assertIn('Custom Text: Mia', decoded_text(link))
        self.assertNotIn('Reference Image', decoded_text(link))
        self.assertTrue(attachment.released)

    def test_replacing_attachment_releases_previous(self):
        customization = OrderCustomization()
        customization.attach(reference_upload())
        first = customization.attachment
        customization.attach(reference_upload())

        self.assertTrue(first.released)
        self.assertFalse(customization.attachment.released)
        customization.close()


if __name__ == '__main__':
    unittest.main(verbosity=2)
