from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.user import AdminUser

__all__ = ['Category', 'Product', 'AdminUser']
