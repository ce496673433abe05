#!/usr/bin/env python3
"""
Storefront request tests: listing, filter, pagination, preview and ordering
"""
import io
import unittest
from datetime import datetime, timedelta
from decimal import Decimal
from unittest.mock import Mock, patch
from urllib.parse import parse_qs, urlsplit

from storefront import create_app, db
from storefront.models import Category, Product

TEST_CONFIG = {
    'TESTING': True,
    'SECRET_KEY': 'test-secret',
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SUPABASE_URL': 'https://example.supabase.co',
    'SUPABASE_KEY': 'test-key',
    'PRODUCTS_PER_PAGE': 2,
}


class StorefrontTestCase(unittest.TestCase):
    def setUp(self):
        self.app = create_app(TEST_CONFIG)
        self.app_context = self.app.app_context()
        self.app_context.push()
        db.create_all()
        self.client = self.app.test_client()

        self.wood = Category(name='Wood')
        self.acrylic = Category(name='Acrylic')
        db.session.add_all([self.wood, self.acrylic])
        start = datetime(2025, 1, 1)
        self.products = []
        for i, category in enumerate([self.wood, self.wood, self.wood, self.acrylic]):
            product = Product(
                name=f'Keychain {i}',
                description='Handmade',
                price=Decimal('5.00'),
                image_urls=[f'https://cdn.example.com/{i}-front.jpg', f'https://cdn.example.com/{i}-back.jpg'],
                category=category,
                in_stock=i != 1,
                created_at=start + timedelta(days=i),
            )
            db.session.add(product)
            self.products.append(product)
        db.session.commit()

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.app_context.pop()


class TestListing(StorefrontTestCase):
    def test_home_shows_newest_page(self):
        response = self.client.get('/')

        self.assertEqual(response.status_code, 200)
        self.assertIn(b'Keychain 3', response.data)
        self.assertIn(b'Keychain 2', response.data)
        self.assertNotIn(b'Keychain 0', response.data)
        self.assertIn(b'All Categories', response.data)
        self.assertIn(b'1 / 2', response.data)

    def test_category_filter(self):
        response = self.client.get(f'/?category={self.acrylic.id}')

        self.assertIn(b'Keychain 3', response.data)
        self.assertNotIn(b'Keychain 2', response.data)

    def test_second_page(self):
        response = self.client.get(f'/?category={self.wood.id}&page=2')

        self.assertIn(b'Keychain 0', response.data)
        self.assertNotIn(b'Keychain 2', response.data)
        self.assertIn(b'Out of Stock', self.client.get(f'/?category={self.wood.id}').data)

    def test_empty_category(self):
        empty = Category(name='Empty')
        db.session.add(empty)
        db.session.commit()

        response = self.client.get(f'/?category={empty.id}')

        self.assertEqual(response.status_code, 200)
        self.assertIn(b'No products available in this category', response.data)

    def test_bad_page_number_falls_back_to_first(self):
        self.assertIn(b'Keychain 3', self.client.get('/?page=-3').data)
        self.assertIn(b'Keychain 3', self.client.get('/?page=abc').data)

    def test_json_listing(self):
        data = self.client.get(f'/api/products?category={self.wood.id}&limit=10').get_json()

        self.assertEqual(data['total'], 3)
        self.assertEqual([p['name'] for p in data['products']], ['Keychain 2', 'Keychain 1', 'Keychain 0'])
        self.assertEqual(data['products'][0]['category']['name'], 'Wood')

    def test_huge_page_number_renders_empty_listing(self):
        response = self.client.get('/?page=100000000000000000000')
        self.assertEqual(response.status_code, 200)
        self.assertIn(b'No products available', response.data)

        response = self.client.get('/api/products?page=100000000000000000000')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json(), {'products': [], 'total': 0})

    def test_json_limit_is_bounded(self):
        data = self.client.get('/api/products?limit=-1').get_json()
        self.assertEqual(data['total'], 4)
        self.assertEqual(len(data['products']), 1)

        data = self.client.get('/api/products?limit=0').get_json()
        self.assertEqual(len(data['products']), 1)

        with patch('storefront.routes.main.MAX_PAGE_SIZE', 3):
            data = self.client.get('/api/products?limit=500').get_json()
        self.assertEqual(len(data['products']), 3)

    def test_header_and_footer_links(self):
        response = self.client.get('/')

        self.assertIn(b'href="/admin/"', response.data)
        self.assertIn(b'href="https://t.me/Samphors_Pheng"', response.data)
        self.assertIn(b'href="https://www.facebook.com/inn0wood"', response.data)
        self.assertIn(b'href="tel:+85510912190"', response.data)

    def test_health(self):
        self.assertEqual(self.client.get('/health').get_json(), {'status': 'healthy'})


class TestPreview(StorefrontTestCase):
    def test_preview_links_wrap(self):
        product = self.products[0]

        response = self.client.get(f'/products/{product.id}/images/0')

        self.assertEqual(response.status_code, 200)
        self.assertIn(b'https://cdn.example.com/0-front.jpg', response.data)
        self.assertIn(f'/products/{product.id}/images/1'.encode(), response.data)
        self.assertIn(b'ArrowLeft', response.data)

    def test_unknown_product(self):
        self.assertEqual(self.client.get('/products/missing/images/0').status_code, 404)
        self.assertEqual(self.client.get('/products/missing/order').status_code, 404)


class TestOrder(StorefrontTestCase):
    def test_order_form(self):
        response = self.client.get(f'/products/{self.products[0].id}/order')
        self.assertEqual(response.status_code, 200)
        self.assertIn(b'Order via Telegram', response.data)

    def test_order_redirects_to_chat(self):
        product = self.products[0]

        response = self.client.post(f'/products/{product.id}/order', data={'text': 'SAM', 'quantity': '3'})

        self.assertEqual(response.status_code, 302)
        location = response.headers['Location']
        self.assertTrue(location.startswith('https://t.me/Samphors_Pheng?text='))
        text = parse_qs(urlsplit(location).query)['text'][0]
        self.assertIn('Product: Keychain 0', text)
        self.assertIn('Price: $5.00', text)
        self.assertIn('Quantity: 3', text)
        self.assertIn('Custom Text: SAM', text)
        self.assertIn('Product Image: https://cdn.example.com/0-front.jpg', text)

    @patch('storefront.services.storage.requests.post')
    def test_order_with_reference_image(self, mock_post):
        mock_post.return_value = Mock(status_code=200)

        response = self.client.post(
            f'/products/{self.products[0].id}/order',
            data={'text': 'SAM', 'quantity': '1', 'reference_image': (io.BytesIO(b'logo'), 'logo.png')},
            content_type='multipart/form-data',
        )

        self.assertEqual(response.status_code, 302)
        text = parse_qs(urlsplit(response.headers['Location']).query)['text'][0]
        self.assertRegex(text, r'Reference Image: https://example\.supabase\.co/storage/v1/object/public/'
                               r'innowood-image/reference-images/\d+-logo\.png$')

    @patch('storefront.services.storage.requests.post')
    def test_reference_upload_failure_still_orders(self, mock_post):
        mock_post.return_value = Mock(status_code=500, json=Mock(return_value={'message': 'down'}))

        response = self.client.post(
            f'/products/{self.products[0].id}/order',
            data={'quantity': '0', 'reference_image': (io.BytesIO(b'logo'), 'logo.png')},
            content_type='multipart/form-data',
        )

        self.assertEqual(response.status_code, 302)
        text = parse_qs(urlsplit(response.headers['Location']).query)['text'][0]
        self.assertIn('Quantity: 1', text)
        self.assertNotIn('Reference Image', text)


if __name__ == '__main__':
    unittest.main(verbosity=2)
