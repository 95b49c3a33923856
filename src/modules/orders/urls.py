"""Order lifecycle routes.

``orders/`` (list, place), ``orders/{id}/`` and the transition actions
``deliver/``, ``cancel/`` and ``return/``.
"""

from __future__ import annotations

from rest_framework.routers import SimpleRouter

from modules.orders.views import OrderViewSet

order_router = SimpleRouter()
order_router.register(r"orders", OrderViewSet, basename="order")

urlpatterns = order_router.urls
