from fastapi import Request
from app.core.config import Settings
from app.services.order_service import OrderService
from app.services.reconciler import PaymentReconciler

# Services are built once in create_app() and kept on app.state.
# These dependencies hand them to endpoints so nothing reaches for a
# module-level client.

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service

def get_payment_reconciler(request: Request) -> PaymentReconciler:
    return request.app.state.reconciler
