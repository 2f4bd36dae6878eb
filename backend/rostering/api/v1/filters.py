import django_filters

from rostering.domain.models import AuditLog


class AuditLogFilter(django_filters.FilterSet):
    action = django_filters.CharFilter(field_name="action")
    entity_type = django_filters.CharFilter(field_name="entity_type")
    entity_id = django_filters.CharFilter(field_name="entity_id")
    actor_id = django_filters.NumberFilter(field_name="actor_id")
    since = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    until = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = AuditLog
        fields = ["action", "entity_type", "entity_id", "actor_id"]
