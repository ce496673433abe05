from flask import Blueprint, render_template, request, current_app, jsonify
from storefront.services.catalog import get_catalog, total_pages, page_window
from storefront.services.viewstate import ImageCarousel

bp = Blueprint('main', __name__)

MAX_PAGE_SIZE = 100


def _listing_args():
    category_id = request.args.get('category') or None
    page = max(request.args.get('page', 1, type=int), 1)
    return category_id, page


@bp.route('/')
def index():
    category_id, page = _listing_args()
    per_page = current_app.config['PRODUCTS_PER_PAGE']

    current_app.logger.info('Home page accessed', extra={
        'event_type': 'page_view',
        'page': 'home',
        'page_number': page,
        'category': category_id or 'all'
    })

    catalog = get_catalog()
    categories = catalog.get_categories()
    listing = catalog.get_filtered_products(category_id=category_id, page=page, limit=per_page)

    pages = total_pages(listing.total, per_page)
    carousels = {
        product.id: ImageCarousel(list(product.image_urls or []), in_stock=product.in_stock)
        for product in listing.products
    }

    current_app.logger.info(f'Displaying {len(listing.products)} products on home page', extra={
        'event_type': 'data_loaded',
        'product_count': len(listing.products),
        'total_pages': pages
    })

    return render_template(
        'index.html',
        products=listing.products,
        total=listing.total,
        categories=categories,
        selected_category=category_id,
        page=page,
        pages=pages,
        page_numbers=page_window(page, pages),
        carousels=carousels,
        auto_hide_seconds=ImageCarousel.AUTO_HIDE_SECONDS,
    )


@bp.route('/api/products')
def api_products():
    category_id, page = _listing_args()
    limit = request.args.get('limit', current_app.config['PRODUCTS_PER_PAGE'], type=int)
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    listing = get_catalog().get_filtered_products(category_id=category_id, page=page, limit=limit)
    return jsonify(listing.to_dict())


@bp.route('/health')
def health():
    current_app.logger.debug('Health check endpoint called')
    return {'status': 'healthy'}, 200
