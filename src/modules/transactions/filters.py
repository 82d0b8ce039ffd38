import django_filters

from modules.transactions.models import Transaction


class TransactionFilter(django_filters.FilterSet):
    kind = django_filters.CharFilter(field_name="kind", lookup_expr="iexact")
    status = django_filters.CharFilter(field_name="status", lookup_expr="iexact")
    counterparty = django_filters.CharFilter(field_name="counterparty_id")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="lte")
    min_total = django_filters.NumberFilter(
        field_name="total_amount", lookup_expr="gte"
    )
    max_total = django_filters.NumberFilter(
        field_name="total_amount", lookup_expr="lte"
    )

    class Meta:
        model = Transaction
        fields = [
            "kind",
            "status",
            "counterparty",
            "start_date",
            "end_date",
            "min_total",
            "max_total",
        ]
