from decimal import Decimal, InvalidOperation

from flask import Blueprint, render_template, redirect, url_for, flash, request, current_app, abort
from flask_login import login_required, current_user

from storefront.services.catalog import (
    get_catalog, NewProductInput, ProductPatch, CategoryInput
)
from storefront.services.storage import get_storage, StorageError
from storefront.services.viewstate import StagedImages

bp = Blueprint('admin', __name__, url_prefix='/admin')


def _product_fields(form):
    """Read the product form. Raises ValueError for values that cannot be parsed."""
    raw_price = (form.get('price') or '').strip()
    try:
        price = Decimal(raw_price)
    except InvalidOperation:
        raise ValueError(f'Invalid price: {raw_price!r}')
    if not price.is_finite():
        raise ValueError(f'Invalid price: {raw_price!r}')

    return {
        'name': (form.get('name') or '').strip(),
        'description': (form.get('description') or '').strip(),
        'price': price,
        'category_id': form.get('category') or None,
        'in_stock': form.get('in_stock') is not None,
    }


def _category_input(form):
    return CategoryInput(
        name=(form.get('name') or '').strip(),
        description=(form.get('description') or '').strip() or None,
    )


@bp.route('/')
@login_required
def index():
    return redirect(url_for('admin.dashboard'))


@bp.route('/dashboard')
@login_required
def dashboard():
    current_app.logger.info('Admin dashboard viewed', extra={
        'event_type': 'page_view',
        'page': 'admin_dashboard',
        'user_id': current_user.id
    })
    stats = get_catalog().get_catalog_stats()
    return render_template('admin/dashboard.html', stats=stats)


# ----------------------------------------------------------------------
# Products
# ----------------------------------------------------------------------

@bp.route('/products')
@login_required
def products():
    catalog = get_catalog()
    return render_template('admin/products.html', products=catalog.get_products())


def _render_product_form(product=None, status=200):
    categories = get_catalog().get_categories()
    return render_template('admin/product_form.html', product=product, categories=categories), status


def _save_product(product=None):
    """Shared POST handler for the add and edit forms"""
    action = 'update' if product else 'add'

    try:
        fields = _product_fields(request.form)
    except ValueError as e:
        flash(str(e), 'error')
        return _render_product_form(product, 400)

    files = [f for f in request.files.getlist('images') if f and f.filename]

    with StagedImages(product.image_urls if product else []) as staging:
        if product:
            staging.retain(request.form.getlist('keep_images'))
        for file in files:
            staging.stage(file)

        try:
            uploaded = get_storage().upload_product_images(staging.staged)
        except StorageError as e:
            current_app.logger.error(f'Image upload failed: {e}', extra={
                'event_type': 'image_upload_failed',
                'file_count': len(files)
            })
            flash('Failed to upload images', 'error')
            return _render_product_form(product, 502)

        image_urls = staging.compose(uploaded)

    catalog = get_catalog()
    if product:
        # An empty category id clears the category; None would leave it unchanged
        fields['category_id'] = fields['category_id'] or ''
        result = catalog.update_product(product.id, ProductPatch(image_urls=image_urls, **fields))
    else:
        result = catalog.add_product(NewProductInput(image_urls=image_urls, **fields))

    if not result.success:
        flash(f'Failed to {action} product: {result.error}', 'error')
        return _render_product_form(product, 400)

    current_app.logger.info(f'Product {action} succeeded', extra={
        'event_type': f'product_{action}',
        'image_count': len(image_urls)
    })
    flash(f'Product {"updated" if product else "added"}', 'success')
    return redirect(url_for('admin.products'))


@bp.route('/products/new', methods=['GET', 'POST'])
@login_required
def new_product():
    if request.method == 'POST':
        return _save_product()
    return _render_product_form()


@bp.route('/products/<product_id>/edit', methods=['GET', 'POST'])
@login_required
def edit_product(product_id):
    product = get_catalog().get_product(product_id)
    if product is None:
        abort(404)
    if request.method == 'POST':
        return _save_product(product)
    return _render_product_form(product)


@bp.route('/products/<product_id>/delete', methods=['POST'])
@login_required
def delete_product(product_id):
    result = get_catalog().delete_product(product_id)
    if result.success:
        flash('Product deleted', 'success')
    else:
        flash(f'Failed to delete product: {result.error}', 'error')
    return redirect(url_for('admin.products'))


# ----------------------------------------------------------------------
# Categories
# ----------------------------------------------------------------------

@bp.route('/categories', methods=['GET', 'POST'])
@login_required
def categories():
    catalog = get_catalog()
    status = 200

    if request.method == 'POST':
        result = catalog.add_category(_category_input(request.form))
        if result.success:
            flash('Category added', 'success')
            return redirect(url_for('admin.categories'))
        flash(f'Failed to add category: {result.error}', 'error')
        status = 400

    return render_template('admin/categories.html', categories=catalog.get_categories()), status


@bp.route('/categories/<category_id>/edit', methods=['GET', 'POST'])
@login_required
def edit_category(category_id):
    catalog = get_catalog()
    category = catalog.get_category(category_id)
    if category is None:
        abort(404)

    if request.method == 'POST':
        result = catalog.update_category(category_id, _category_input(request.form))
        if result.success:
            flash('Category updated', 'success')
            return redirect(url_for('admin.categories'))
        flash(f'Failed to update category: {result.error}', 'error')
        return render_template('admin/category_form.html', category=category), 400

    return render_template('admin/category_form.html', category=category)


@bp.route('/categories/<category_id>/delete', methods=['POST'])
@login_required
def delete_category(category_id):
    result = get_catalog().delete_category(category_id)
    if result.success:
        flash('Category deleted', 'success')
    else:
        flash(f'Failed to delete category: {result.error}', 'error')
    return redirect(url_for('admin.categories'))
