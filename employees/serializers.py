"""Serializers for employee profiles and dependents."""
from django.conf import settings
from rest_framework import serializers

from bookings.services import EmployeePolicy
from .models import Dependent, Employee


class DependentSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)

    class Meta:
        model = Dependent
        fields = ['id', 'first_name', 'last_name', 'full_name', 'relation', 'date_of_birth', 'created_at']
        read_only_fields = ['id', 'created_at']

    def validate(self, attrs):
        attrs['first_name'] = attrs['first_name'].strip()
        attrs['last_name'] = attrs['last_name'].strip()
        employee = self.context['employee']
        if employee.dependents.filter(first_name=attrs['first_name'], last_name=attrs['last_name']).exists():
            raise serializers.ValidationError("A dependent with this name is already registered.")
        return attrs

    def create(self, validated_data):
        return Dependent.objects.create(employee=self.context['employee'], **validated_data)


class EmployeeSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(read_only=True)
    dependents = DependentSerializer(many=True, read_only=True)
    monthly_quota = serializers.SerializerMethodField()

    class Meta:
        model = Employee
        fields = [
            'employee_code', 'emp_name', 'email', 'designation', 'department',
            'hire_date', 'is_active', 'dependents', 'monthly_quota',
        ]

    def get_monthly_quota(self, obj):
        used = EmployeePolicy(obj).monthly_bookings()
        return quota_usage(used)


def quota_usage(used):
    limit = settings.EMPLOYEE_MONTHLY_QUOTA
    return {'limit': limit, 'used': used, 'remaining': max(limit - used, 0)}
