import django_filters

from modules.orders.constants import OrderStatus
from modules.orders.models import Order


class UserOrderFilter(django_filters.FilterSet):
    status = django_filters.MultipleChoiceFilter(choices=OrderStatus.choices)
    restaurant_id = django_filters.CharFilter(field_name="restaurant_id")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = Order
        fields = ["status", "restaurant_id", "start_date", "end_date"]
