#!/usr/bin/env python3
"""
Admin user creation script
Creates an admin account for the storefront back-office
"""

import sys
import os
import getpass

# Add parent directory to path to import storefront
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from storefront import create_app
from storefront.cli import create_admin_user


def create_admin():
    app = create_app()

    email = os.getenv('ADMIN_EMAIL') or input('Admin email: ')
    password = os.getenv('ADMIN_PASSWORD') or getpass.getpass('Admin password: ')

    with app.app_context():
        user, created = create_admin_user(email, password)

        if not created:
            print("Admin user already exists:")
            print(f"Email: {user.email}")
            return

        print("Admin user created successfully!")
        print(f"Email: {user.email}")


if __name__ == '__main__':
    create_admin()
