from rest_framework import serializers
from rostering.domain.models import (
    AuditLog,
    AvailabilityPeriod,
    RosterAssignment,
    SetlistSlot,
)

class PeriodSerializer(serializers.ModelSerializer):
    is_open = serializers.BooleanField(read_only=True)
    class Meta:
        model = AvailabilityPeriod
        fields = ["id","label","starts_on","ends_on","deadline","closed_at","is_open","created_by","created_at"]
        read_only_fields = fields

class PeriodListSerializer(PeriodSerializer):
    response_count = serializers.IntegerField(read_only=True)
    total_musicians = serializers.SerializerMethodField()
    class Meta(PeriodSerializer.Meta):
        fields = PeriodSerializer.Meta.fields + ["response_count","total_musicians"]
        read_only_fields = fields

    def get_total_musicians(self, obj):
        return self.context.get("total_musicians", 0)

class SetlistSlotSerializer(serializers.ModelSerializer):
    song_id = serializers.IntegerField(read_only=True)
    song_title = serializers.CharField(source="song.title", read_only=True)
    song_artist = serializers.CharField(source="song.artist", read_only=True)
    class Meta:
        model = SetlistSlot
        fields = ["id","sunday_date","position","song_id","song_title","song_artist","chosen_key","status","created_by","created_at","updated_at"]
        read_only_fields = fields

class RosterAssignmentSerializer(serializers.ModelSerializer):
    role_id = serializers.IntegerField(read_only=True)
    role = serializers.CharField(source="role.name", read_only=True)
    member_id = serializers.IntegerField(read_only=True, allow_null=True)
    member_name = serializers.SerializerMethodField()
    class Meta:
        model = RosterAssignment
        fields = ["id","date","role_id","role","member_id","member_name","status","assigned_at","locked_at"]
        read_only_fields = fields

    def get_member_name(self, obj):
        return obj.member.name if obj.member_id else None

class AuditLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = AuditLog
        fields = ["id","actor_id","actor_name","actor_role","action","entity_type","entity_id","summary","created_at"]
        read_only_fields = fields
