"""Railway employees and their registered dependents."""
import random
import string

from django.db import models
from django.utils import timezone

from core.models import User


def generate_employee_code():
    return 'EMP' + ''.join(random.choices(string.digits, k=6))


class Employee(models.Model):
    """
    Employee profile attached to a login account.
    Employees travel free within a monthly booking quota.
    """
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='employee_profile')
    employee_code = models.CharField(max_length=12, unique=True, default=generate_employee_code)
    emp_name = models.CharField(max_length=255)
    designation = models.CharField(max_length=100, blank=True)
    department = models.CharField(max_length=100, blank=True)
    hire_date = models.DateField(default=timezone.localdate)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'employees'
        indexes = [
            models.Index(fields=['employee_code']),
        ]

    def __str__(self):
        return f"{self.employee_code} - {self.emp_name}"

    @property
    def email(self):
        return self.user.email


class Dependent(models.Model):
    RELATION_CHOICES = [
        ('spouse', 'Spouse'),
        ('child', 'Child'),
        ('parent', 'Parent'),
        ('sibling', 'Sibling'),
    ]

    employee = models.ForeignKey(Employee, on_delete=models.CASCADE, related_name='dependents')
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    relation = models.CharField(max_length=20, choices=RELATION_CHOICES)
    date_of_birth = models.DateField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'dependents'
        ordering = ['first_name', 'last_name']

    def __str__(self):
        return f"{self.full_name} ({self.relation} of {self.employee.emp_name})"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"
