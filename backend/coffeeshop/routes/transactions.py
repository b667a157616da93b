# Overview: Routes for orders: admin management, customer checkout/history and lookups.

from flask import Blueprint, current_app, request

from ..decorators import require_auth, require_role
from ..listing import build_pagination, parse_list_params, parse_page_limit
from ..request_data import current_user_id, read_payload
from ..responses import paged, success
from ..services import transaction_service

admin_transactions_bp = Blueprint("admin_transactions", __name__, url_prefix="/admin/transactions")
orders_bp = Blueprint("orders", __name__)


@admin_transactions_bp.get("")
@require_auth
@require_role("admin")
def list_transactions_route():
    params = parse_list_params(
        request.args, transaction_service.TRANSACTION_LIST, max_limit=current_app.config["MAX_PAGE_LIMIT"]
    )
    items, total = transaction_service.list_transactions(params)
    pagination, links = build_pagination(request.path, params.page, params.limit, total, request.args)
    return paged("Transactions fetched successfully", items, pagination, links)


@admin_transactions_bp.get("/<int:transaction_id>")
@require_auth
@require_role("admin")
def get_transaction_route(transaction_id: int):
    return success("Transaction fetched successfully", transaction_service.get_transaction(transaction_id))


@admin_transactions_bp.patch("/<int:transaction_id>/status")
@require_auth
@require_role("admin")
def update_status_route(transaction_id: int):
    data = read_payload()
    status_id = data.get("status_id", data.get("statusId"))
    result = transaction_service.update_status(transaction_id, status_id)
    return success("Transaction status updated successfully", result)


@admin_transactions_bp.delete("/<int:transaction_id>")
@require_auth
@require_role("admin")
def delete_transaction_route(transaction_id: int):
    transaction_service.delete_transaction(transaction_id)
    return success("Transaction deleted successfully")


@orders_bp.post("/transactions")
@require_auth
def checkout_route():
    order = transaction_service.checkout(current_user_id(), read_payload())
    return success("Transaction created successfully", order, 201)


@orders_bp.get("/history")
@require_auth
def history_route():
    """Query parameters: status (name), month (1-12), page. Five orders per page."""
    page, _ = parse_page_limit(request.args)
    month = request.args.get("month", 0, type=int) or 0
    items, total = transaction_service.history(
        current_user_id(),
        status=request.args.get("status", ""),
        month=month,
        page=page,
    )
    pagination, links = build_pagination(
        request.path, page, transaction_service.HISTORY_PAGE_SIZE, total, request.args
    )
    return paged("History transactions fetched successfully", items, pagination, links)


@orders_bp.get("/history/<int:transaction_id>")
@require_auth
def history_detail_route(transaction_id: int):
    detail = transaction_service.history_detail(current_user_id(), transaction_id)
    return success("Transaction detail fetched successfully", detail)


@orders_bp.get("/payment-methods")
def payment_methods_route():
    return success("Payment methods fetched successfully", transaction_service.list_payment_methods())


@orders_bp.get("/shippings")
def shippings_route():
    return success("Shipping methods fetched successfully", transaction_service.list_shippings())
