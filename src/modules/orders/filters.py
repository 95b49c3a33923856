import django_filters

from modules.orders.constants import OrderState
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    state = django_filters.ChoiceFilter(field_name="state", choices=OrderState.choices)
    customer = django_filters.UUIDFilter(field_name="customer_id")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = Order
        fields = ["state", "customer", "start_date", "end_date"]
