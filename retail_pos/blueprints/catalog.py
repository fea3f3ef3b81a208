"""Catalog blueprint - product listings and product management."""
from flask import Blueprint, jsonify, request

from retail_pos.decorators.permissions import require_permission
from retail_pos.middleware import get_state, json_response, persist
from retail_pos.services import catalog_service
from retail_pos.services.storage_service import PRODUCTS

catalog_bp = Blueprint('catalog', __name__, url_prefix='/products')


@catalog_bp.route('', methods=['GET'])
@require_permission('cashier')
def list_products():
    """
    Product listing.

    Query args:
        view: 'sellable' (in stock only, default) or 'inventory' (all)
        search: name or category substring
        category: exact category
    """
    view = request.args.get('view', 'sellable')
    search = (request.args.get('search') or '').strip()
    category = (request.args.get('category') or '').strip()

    state = get_state()
    with state.lock:
        if view == 'inventory':
            products = catalog_service.list_inventory(state.catalog, search, category)
        else:
            products = catalog_service.list_sellable(state.catalog, search, category)
        return jsonify({
            'products': [p.to_dict() for p in products],
            'categories': state.catalog.categories(),
        })


@catalog_bp.route('/<int:product_id>', methods=['GET'])
@require_permission('cashier')
def get_product(product_id):
    state = get_state()
    with state.lock:
        return jsonify({'product': state.catalog.require(product_id).to_dict()})


@catalog_bp.route('', methods=['POST'])
@require_permission('manager')
def create_product():
    data = request.get_json(silent=True) or {}
    state = get_state()
    with state.lock:
        product = catalog_service.create_product(state.catalog, data)
        saved = persist(PRODUCTS)
    return json_response({'message': 'Product added successfully', 'product': product.to_dict()}, saved, 201)


@catalog_bp.route('/<int:product_id>', methods=['PUT'])
@require_permission('manager')
def update_product(product_id):
    data = request.get_json(silent=True) or {}
    state = get_state()
    with state.lock:
        product = catalog_service.update_product(state.catalog, product_id, data)
        saved = persist(PRODUCTS)
    return json_response({'message': 'Product updated successfully', 'product': product.to_dict()}, saved)


@catalog_bp.route('/<int:product_id>', methods=['DELETE'])
@require_permission('manager')
def delete_product(product_id):
    state = get_state()
    with state.lock:
        catalog_service.delete_product(state.catalog, state.cart, product_id)
        saved = persist(PRODUCTS)
    return json_response({'message': 'Product deleted successfully'}, saved)
