"""
URL mappings for the hospital management API.

Paths carry no trailing slash, matching the front-end client.
"""
from django.urls import path, include

from .auth_views import login_view, logout_view, password_reset_view, refresh_view, validate_view
from .views import admin, health, reports
from .views.appointments import appointment_detail, appointments
from .views.dashboard import dashboard_stats
from .views.inventory import inventory_items, stock_report, stock_transactions
from .views.patients import patient_detail, patients
from .views.referrals import referrals
from .views.settings import hospital_settings


urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz, name='healthz'),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/refresh', refresh_view, name='refresh_view'),
    path('api/auth/validate', validate_view, name='validate_view'),
    path('api/auth/logout', logout_view, name='logout_view'),
    path('api/auth/password-reset', password_reset_view, name='password_reset_view'),
    # Dashboard
    path('api/dashboard/stats', dashboard_stats, name='dashboard-stats'),
    # Patients
    path('api/patients', patients, name='patients'),
    path('api/patients/<str:nin>', patient_detail, name='patient-detail'),
    # Appointments
    path('api/appointments', appointments, name='appointments'),
    path('api/appointments/<str:appointment_id>', appointment_detail, name='appointment-detail'),
    # Inventory and reports
    path('api/inventory', inventory_items, name='inventory'),
    path('api/inventory/transactions', stock_transactions, name='stock-transactions'),
    path('api/reports/stock', stock_report, name='stock-report'),
    path('api/reports/patients', reports.patient_report, name='patient-report'),
    path('api/reports/appointments', reports.appointment_report, name='appointment-report'),
    path('api/reports/operational', reports.operational_report, name='operational-report'),
    # Referrals
    path('api/referrals', referrals, name='referrals'),
    # Administration
    path('api/users', admin.staff_users, name='users'),
    path('api/admin/roles', admin.roles, name='roles'),
    path('api/admin/audit-logs', admin.audit_logs, name='audit-logs'),
    path('api/admin/cache', admin.cache_admin, name='cache-admin'),
    path('api/settings/hospital', hospital_settings, name='hospital-settings'),
]
