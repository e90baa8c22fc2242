from django.contrib import admin
from .models import Employee, Dependent


class DependentInline(admin.TabularInline):
    model = Dependent
    extra = 0


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ['employee_code', 'emp_name', 'designation', 'department', 'is_active', 'hire_date']
    list_filter = ['is_active', 'department']
    search_fields = ['employee_code', 'emp_name', 'user__email']
    inlines = [DependentInline]


@admin.register(Dependent)
class DependentAdmin(admin.ModelAdmin):
    list_display = ['first_name', 'last_name', 'relation', 'employee']
    list_filter = ['relation']
    search_fields = ['first_name', 'last_name', 'employee__employee_code']
