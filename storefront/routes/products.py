from flask import Blueprint, render_template, request, current_app, redirect, abort
from storefront.services.catalog import get_catalog
from storefront.services.ordering import OrderCustomization, submit_order
from storefront.services.storage import get_storage
from storefront.services.viewstate import ImagePreview

bp = Blueprint('products', __name__, url_prefix='/products')


def _product_or_404(product_id):
    product = get_catalog().get_product(product_id)
    if product is None:
        abort(404)
    return product


@bp.route('/<product_id>/images/<int:index>')
def preview(product_id, index):
    product = _product_or_404(product_id)
    viewer = ImagePreview(list(product.image_urls or []), index=index)

    current_app.logger.info(f'Image preview requested: {product_id}', extra={
        'event_type': 'page_view',
        'page': 'image_preview',
        'product_id': product_id,
        'image_index': viewer.index
    })

    return render_template(
        'preview.html',
        product=product,
        viewer=viewer,
        key_bindings=ImagePreview.KEY_BINDINGS,
    )


@bp.route('/<product_id>/order', methods=['GET', 'POST'])
def order(product_id):
    product = _product_or_404(product_id)

    if request.method == 'GET':
        return render_template('order.html', product=product, customization=OrderCustomization())

    customization = OrderCustomization.from_form(request.form, request.files)

    current_app.logger.info(f'Order submitted for product {product.id}', extra={
        'event_type': 'order_submit',
        'product_id': product.id,
        'product_name': product.name,
        'quantity': customization.quantity,
        'price': float(product.price)
    })

    chat_link = submit_order(
        product,
        customization,
        get_storage(),
        current_app.config['ORDER_CHAT_URL']
    )
    return redirect(chat_link)
