#!/usr/bin/env python3
"""
Database initialization script
Creates the tables and a few sample categories and products for local development
"""

import sys
import os
from decimal import Decimal

# Add parent directory to path to import storefront
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from storefront import create_app, db
from storefront.models import Category, Product


SAMPLE_CATEGORIES = [
    {'name': 'Wooden Keychains', 'description': 'Laser-engraved wooden keychains'},
    {'name': 'Acrylic Keychains', 'description': 'Printed acrylic keychains'},
    {'name': 'Gift Sets', 'description': None},
]

SAMPLE_PRODUCTS = [
    {
        'name': 'Engraved Name Tag',
        'description': 'Walnut keychain engraved with a name of your choice.',
        'price': Decimal('4.50'),
        'category': 'Wooden Keychains',
        'in_stock': True,
    },
    {
        'name': 'Round Photo Keychain',
        'description': 'Clear acrylic keychain printed with your photo on both sides.',
        'price': Decimal('5.00'),
        'category': 'Acrylic Keychains',
        'in_stock': True,
    },
    {
        'name': 'Couple Puzzle Pair',
        'description': 'Two interlocking wooden pieces with initials.',
        'price': Decimal('8.00'),
        'category': 'Gift Sets',
        'in_stock': False,
    },
]


def init_db():
    app = create_app()

    with app.app_context():
        # Create all tables
        print("Creating database tables...")
        db.create_all()

        if Category.query.first():
            print("Database already initialized.")
            return

        print("Creating sample categories...")
        categories = {}
        for category_data in SAMPLE_CATEGORIES:
            category = Category(**category_data)
            db.session.add(category)
            categories[category.name] = category

        print("Creating sample products...")
        for product_data in SAMPLE_PRODUCTS:
            data = dict(product_data)
            category = categories[data.pop('category')]
            db.session.add(Product(category=category, image_urls=[], **data))

        db.session.commit()
        print(f"Created {len(SAMPLE_CATEGORIES)} categories and {len(SAMPLE_PRODUCTS)} products.")


if __name__ == '__main__':
    init_db()
