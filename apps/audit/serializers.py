from rest_framework import serializers

from .models import AuditAction, AuditLog, AuditTable


class AuditFilterSerializer(serializers.Serializer):
    """
    Validate query parameters for audit listing and bulk delete.

    Query Parameters:
        table (str): meals, bazar or deposits
        action (str): create, update or delete
        actor_email (str): Case-insensitive substring of the actor's email
        source (str): Write origin, e.g. meal_chart
    """

    table = serializers.ChoiceField(choices=AuditTable.choices, required=False)
    action = serializers.ChoiceField(choices=AuditAction.choices, required=False)
    actor_email = serializers.CharField(required=False, allow_blank=True)
    source = serializers.CharField(required=False, allow_blank=True)


class AuditLogSerializer(serializers.ModelSerializer):
    actor_name = serializers.SerializerMethodField()

    class Meta:
        model = AuditLog
        fields = [
            'id',
            'table_name',
            'action',
            'row_id',
            'actor_member',
            'actor_name',
            'actor_email',
            'before',
            'after',
            'source',
            'created_at',
        ]
        read_only_fields = fields

    def get_actor_name(self, obj):
        return obj.actor_member.display_name if obj.actor_member else None
