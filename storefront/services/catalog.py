"""
Catalog data access

Maps storefront and admin operations onto the relational store. Reads never
raise on persistence failure; they degrade to empty results. Writes report
their outcome as a MutationResult instead of raising.
"""
import logging
import math
from dataclasses import dataclass, field, asdict
from decimal import Decimal
from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

from storefront.models import Category, Product
from storefront.services.error_handler import ErrorCategory, record_error

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 12

# The SQLite driver raises OverflowError itself for integers it cannot bind
PERSISTENCE_ERRORS = (SQLAlchemyError, OverflowError)


@dataclass
class MutationResult:
    success: bool
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {'success': self.success}
        if self.error is not None:
            data['error'] = self.error
        return data


@dataclass
class ProductPage:
    """One page of the filtered listing plus the size of the whole filtered set"""
    products: List[Product] = field(default_factory=list)
    total: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'products': [product.to_dict() for product in self.products],
            'total': self.total,
        }


@dataclass
class NewProductInput:
    name: str
    description: str
    price: Decimal
    category_id: Optional[str] = None
    image_urls: List[str] = field(default_factory=list)
    in_stock: bool = False


@dataclass
class ProductPatch:
    """Fields left as None are not written"""
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = None
    category_id: Optional[str] = None
    image_urls: Optional[List[str]] = None
    in_stock: Optional[bool] = None

    def changes(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}


@dataclass
class CategoryInput:
    name: str
    description: Optional[str] = None


def page_offset(page: int, limit: int) -> int:
    """Zero-based offset of the first row of a 1-based page"""
    return (page - 1) * limit


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit > 0 else 0


def page_window(page: int, pages: int) -> List[Optional[int]]:
    """
    Page numbers for the pagination bar: the first and last page and the
    neighbours of the current one. None marks a gap.
    """
    window: List[Optional[int]] = []
    previous = None
    for number in range(1, pages + 1):
        if number in (1, pages) or abs(number - page) <= 1:
            if previous is not None and number != previous + 1:
                window.append(None)
            window.append(number)
            previous = number
    return window


class Catalog:
    """Data access for products and categories, bound to a SQLAlchemy session"""

    def __init__(self, session):
        self.session = session

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    def get_filtered_products(
        self,
        category_id: Optional[str] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE
    ) -> ProductPage:
        offset = page_offset(page, limit)

        try:
            # Count and data are separate queries; a write landing between
            # them can make total disagree with the page contents.
            count_query = self.session.query(func.count(Product.id))
            data_query = self.session.query(Product).options(joinedload(Product.category))

            if category_id:
                count_query = count_query.filter(Product.category_id == category_id)
                data_query = data_query.filter(Product.category_id == category_id)

            total = count_query.scalar() or 0
            products = (
                data_query
                .order_by(Product.created_at.desc(), Product.id.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
        except PERSISTENCE_ERRORS as e:
            self.session.rollback()
            record_error(e, ErrorCategory.DATABASE, {
                'operation': 'get_filtered_products',
                'category_id': category_id,
                'page': page,
                'limit': limit,
            })
            return ProductPage()

        logger.info(f'Loaded {len(products)} of {total} products', extra={
            'event_type': 'data_loaded',
            'category_id': category_id or 'all',
            'page_number': page,
        })
        return ProductPage(products=products, total=total)

    def get_products(self) -> List[Product]:
        try:
            return (
                self.session.query(Product)
                .options(joinedload(Product.category))
                .order_by(Product.created_at.desc(), Product.id.desc())
                .all()
            )
        except PERSISTENCE_ERRORS as e:
            self.session.rollback()
            record_error(e, ErrorCategory.DATABASE, {'operation': 'get_products'})
            return []

    def get_product(self, product_id: str) -> Optional[Product]:
        try:
            return self.session.get(Product, product_id, options=[joinedload(Product.category)])
        except PERSISTENCE_ERRORS as e:
            self.session.rollback()
            record_error(e, ErrorCategory.DATABASE, {
                'operation': 'get_product',
                'product_id': product_id,
            })
            return None

    def add_product(self, data: NewProductInput) -> MutationResult:
        product = Product(
            name=data.name,
            description=data.description,
            price=data.price,
            category_id=data.category_id or None,
            image_urls=list(data.image_urls),
            in_stock=data.in_stock,
        )
        return self._commit('add_product', lambda: self.session.add(product))

    def update_product(self, product_id: str, patch: ProductPatch) -> MutationResult:
        def apply():
            product = self.session.get(Product, product_id)
            if product is None:
                return MutationResult(False, 'Product not found')
            for key, value in patch.changes().items():
                setattr(product, key, value)
            if patch.category_id == '':
                product.category_id = None

        return self._commit('update_product', apply, product_id=product_id)

    def delete_product(self, product_id: str) -> MutationResult:
        def apply():
            product = self.session.get(Product, product_id)
            if product is None:
                return MutationResult(False, 'Product not found')
            self.session.delete(product)

        return self._commit('delete_product', apply, product_id=product_id)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def get_categories(self) -> List[Category]:
        try:
            return self.session.query(Category).order_by(Category.name).all()
        except PERSISTENCE_ERRORS as e:
            self.session.rollback()
            record_error(e, ErrorCategory.DATABASE, {'operation': 'get_categories'})
            return []

    def get_category(self, category_id: str) -> Optional[Category]:
        try:
            return self.session.get(Category, category_id)
        except PERSISTENCE_ERRORS as e:
            self.session.rollback()
            record_error(e, ErrorCategory.DATABASE, {
                'operation': 'get_category',
                'category_id': category_id,
            })
            return None

    def add_category(self, data: CategoryInput) -> MutationResult:
        category = Category(name=data.name, description=data.description or None)
        return self._commit('add_category', lambda: self.session.add(category))

    def update_category(self, category_id: str, data: CategoryInput) -> MutationResult:
        def apply():
            category = self.session.get(Category, category_id)
            if category is None:
                return MutationResult(False, 'Category not found')
            category.name = data.name
            category.description = data.description or None

        return self._commit('update_category', apply, category_id=category_id)

    def delete_category(self, category_id: str) -> MutationResult:
        def apply():
            category = self.session.get(Category, category_id)
            if category is None:
                return MutationResult(False, 'Category not found')
            in_use = (
                self.session.query(func.count(Product.id))
                .filter(Product.category_id == category_id)
                .scalar()
            )
            if in_use:
                return MutationResult(
                    False,
                    f'Category "{category.name}" is still used by {in_use} product(s)'
                )
            self.session.delete(category)

        return self._commit('delete_category', apply, category_id=category_id)

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    def get_catalog_stats(self, recent: int = 5) -> Dict[str, Any]:
        try:
            product_count = self.session.query(func.count(Product.id)).scalar() or 0
            in_stock_count = (
                self.session.query(func.count(Product.id))
                .filter(Product.in_stock.is_(True))
                .scalar() or 0
            )
            category_count = self.session.query(func.count(Category.id)).scalar() or 0
            recent_products = (
                self.session.query(Product)
                .options(joinedload(Product.category))
                .order_by(Product.created_at.desc(), Product.id.desc())
                .limit(recent)
                .all()
            )
        except PERSISTENCE_ERRORS as e:
            self.session.rollback()
            record_error(e, ErrorCategory.DATABASE, {'operation': 'get_catalog_stats'})
            return {
                'product_count': 0,
                'in_stock_count': 0,
                'out_of_stock_count': 0,
                'category_count': 0,
                'recent_products': [],
            }

        return {
            'product_count': product_count,
            'in_stock_count': in_stock_count,
            'out_of_stock_count': product_count - in_stock_count,
            'category_count': category_count,
            'recent_products': recent_products,
        }

    # ------------------------------------------------------------------

    def _commit(self, operation: str, apply, **context) -> MutationResult:
        """Run apply() and commit. apply may return a failed MutationResult to abort."""
        try:
            outcome = apply()
            if outcome is not None and not outcome.success:
                self.session.rollback()
                logger.warning(f'{operation} refused: {outcome.error}', extra={
                    'event_type': 'catalog_write_refused',
                    'operation': operation,
                })
                return outcome
            self.session.commit()
        except PERSISTENCE_ERRORS as e:
            self.session.rollback()
            detail = record_error(e, ErrorCategory.DATABASE, {'operation': operation, **context})
            return MutationResult(False, detail.message)

        logger.info(f'{operation} succeeded', extra={
            'event_type': 'catalog_write',
            'operation': operation,
        })
        return MutationResult(True)


def get_catalog() -> Catalog:
    return current_app.extensions['catalog']
