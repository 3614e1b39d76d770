from rest_framework import serializers

from .models import Member


class MemberSerializer(serializers.ModelSerializer):
    """Member profile as shown in lists and on the profile page."""

    display_name = serializers.CharField(read_only=True)
    has_account = serializers.BooleanField(read_only=True)

    class Meta:
        model = Member
        fields = ['id', 'name', 'display_name', 'email', 'phone', 'has_account', 'created_at', 'updated_at']
        read_only_fields = fields


class MemberProfileUpdateSerializer(serializers.Serializer):
    """Fields a member may change on their own profile."""

    name = serializers.CharField(max_length=100, required=False)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Name cannot be empty.')
        return value
