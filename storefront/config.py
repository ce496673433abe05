"""
Application configuration

Environment variables are read once, when this module is imported. Tests and
embedding code pass overrides to ``create_app``.
"""
import os
from dataclasses import dataclass


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///storefront.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # Hosted object storage
    SUPABASE_URL = os.getenv('SUPABASE_URL', '')
    SUPABASE_KEY = os.getenv('SUPABASE_KEY', '')
    STORAGE_BUCKET = os.getenv('STORAGE_BUCKET', 'innowood-image')
    STORAGE_TIMEOUT = int(os.getenv('STORAGE_TIMEOUT', '30'))

    # Storefront
    PRODUCTS_PER_PAGE = int(os.getenv('PRODUCTS_PER_PAGE', '12'))
    ORDER_CHAT_URL = os.getenv('ORDER_CHAT_URL', 'https://t.me/Samphors_Pheng')
    FACEBOOK_URL = os.getenv('FACEBOOK_URL', 'https://www.facebook.com/inn0wood')
    CONTACT_PHONE = os.getenv('CONTACT_PHONE', '+855 10 912 190')


@dataclass(frozen=True)
class SupabaseConfig:
    """Endpoint and credentials of the hosted object store"""
    url: str
    key: str
    bucket: str = 'innowood-image'
    timeout: int = 30

    @classmethod
    def from_flask_config(cls, config) -> 'SupabaseConfig':
        return cls(
            url=config.get('SUPABASE_URL', '').rstrip('/'),
            key=config.get('SUPABASE_KEY', ''),
            bucket=config.get('STORAGE_BUCKET', 'innowood-image'),
            timeout=config.get('STORAGE_TIMEOUT', 30),
        )
