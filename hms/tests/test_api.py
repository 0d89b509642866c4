"""
Integration tests for the hospital management API.

These exercise access control (401 vs 403 vs 404), cache invalidation
after writes and the inventory, appointment, referral and admin flows.
Each test logs in as one of the seeded staff members:

    ilyes (admin), dr.benali (doctor), nurse.fatima (nurse),
    pharma.omar (pharmacist), accueil.leila (receptionist)
"""
from rest_framework import status
from rest_framework.test import APIClient

from conftest import login

KNOWN_NIN = '123456789012345678'
NEW_PATIENT = {
    'nin': '567890123456789012',
    'full_name': 'Yacine Haddad',
    'date_of_birth': '1990-01-01',
    'gender': 'M',
    'phone': '0555 12 34 56',
}


def cached_keys(memory_cache, prefix):
    return [k for k in memory_cache.keys() if k.startswith(prefix)]


# ----------------------------------------------------------------------------
# Access control
# ----------------------------------------------------------------------------

def test_nurse_can_list_patients(client_for):
    r = client_for('nurse.fatima').get('/api/patients')
    assert r.status_code == status.HTTP_200_OK
    assert r.data['ok'] is True
    assert r.data['pagination']['total'] == 4
    assert [p['full_name'] for p in r.data['data']][0] == 'Ahmed Benali'


def test_nurse_cannot_manage_users(client_for):
    r = client_for('nurse.fatima').get('/api/users')
    assert r.status_code == status.HTTP_403_FORBIDDEN
    assert r.data['error']['code'] == 'AUTHORIZATION_ERROR'


def test_missing_token_is_401_not_404():
    r = APIClient().get('/api/patients/000000000000000000')
    assert r.status_code == status.HTTP_401_UNAUTHORIZED
    assert r.data['error']['code'] == 'AUTHENTICATION_ERROR'


def test_unknown_patient_is_404(client_for):
    r = client_for('nurse.fatima').get('/api/patients/000000000000000000')
    assert r.status_code == status.HTTP_404_NOT_FOUND
    assert r.data['error']['code'] == 'NOT_FOUND'


def test_malformed_nin_is_400(client_for):
    r = client_for('nurse.fatima').get('/api/patients/123')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'VALIDATION_ERROR'


def test_denied_request_is_forbidden_even_for_unknown_records(client_for):
    # permission is checked before the lookup
    r = client_for('nurse.fatima').put('/api/patients/000000000000000000', {'phone': '1'}, format='json')
    assert r.status_code == 403


# ----------------------------------------------------------------------------
# Patients and caching
# ----------------------------------------------------------------------------

def test_patient_list_is_cached_and_invalidated_by_writes(client_for, memory_cache):
    nurse = client_for('nurse.fatima')
    nurse.get('/api/patients')
    assert len(cached_keys(memory_cache, 'patients:list:')) == 1

    r = client_for('accueil.leila').post('/api/patients', NEW_PATIENT, format='json')
    assert r.status_code == status.HTTP_201_CREATED
    assert r.data['data']['primary_hospital_id'] == 'hospital-1'
    assert cached_keys(memory_cache, 'patients:') == []

    r = nurse.get('/api/patients')
    assert r.data['pagination']['total'] == 5


def test_patient_list_filters_and_pages(client_for):
    client = client_for('nurse.fatima')
    r = client.get('/api/patients', {'gender': 'F'})
    assert {p['gender'] for p in r.data['data']} == {'F'}
    r = client.get('/api/patients', {'page': 2, 'limit': 3})
    assert len(r.data['data']) == 1
    assert r.data['pagination'] == {'page': 2, 'limit': 3, 'total': 4, 'pages': 2}
    r = client.get('/api/patients', {'search': 'saidi'})
    assert [p['nin'] for p in r.data['data']] == ['345678901234567890']


def test_duplicate_patient_is_409(client_for):
    r = client_for('accueil.leila').post('/api/patients', {**NEW_PATIENT, 'nin': KNOWN_NIN}, format='json')
    assert r.status_code == status.HTTP_409_CONFLICT
    assert r.data['error']['code'] == 'CONFLICT'


def test_patient_creation_validates_input(client_for):
    r = client_for('accueil.leila').post('/api/patients', {**NEW_PATIENT, 'nin': '12ab'}, format='json')
    assert r.status_code == 400
    assert 'nin' in r.data['error']['details']


def test_nurse_cannot_create_patients(client_for):
    r = client_for('nurse.fatima').post('/api/patients', NEW_PATIENT, format='json')
    assert r.status_code == 403


def test_patient_update_and_view_are_audited(client_for, records):
    client = client_for('accueil.leila')
    r = client.put(f'/api/patients/{KNOWN_NIN}', {'phone': '0770 00 00 00'}, format='json')
    assert r.status_code == 200
    assert r.data['data']['phone'] == '0770 00 00 00'
    assert r.data['data']['full_name'] == 'Ahmed Benali'
    client.get(f'/api/patients/{KNOWN_NIN}')
    actions = [e['action'] for e in records.audit_log]
    assert 'PATIENT_UPDATED' in actions
    assert 'PATIENT_VIEWED' in actions


def test_patient_names_are_sanitised(client_for):
    payload = {**NEW_PATIENT, 'full_name': '<script>x</script>Yacine'}
    r = client_for('accueil.leila').post('/api/patients', payload, format='json')
    assert r.status_code == 201
    assert '<' not in r.data['data']['full_name']


# ----------------------------------------------------------------------------
# Dashboard
# ----------------------------------------------------------------------------

def test_dashboard_stats_are_role_aware_and_cached(client_for, memory_cache):
    r = client_for('dr.benali').get('/api/dashboard/stats')
    assert r.status_code == 200
    assert r.data['data']['total_patients'] == 4
    assert r.data['data']['todays_appointments'] == 3
    assert r.data['data']['critical_stock_items'] == 2

    r = client_for('accueil.leila').get('/api/dashboard/stats')
    assert r.data['data']['pending_appointments'] == 2
    assert len(cached_keys(memory_cache, 'dashboard:stats:')) == 2


# ----------------------------------------------------------------------------
# Appointments
# ----------------------------------------------------------------------------

def test_appointment_lifecycle(client_for, memory_cache):
    desk = client_for('accueil.leila')
    desk.get('/api/appointments')
    assert cached_keys(memory_cache, 'appointments:list:')

    r = desk.post('/api/appointments', {
        'patient_nin': KNOWN_NIN,
        'department': 'Cardiologie',
        'scheduled_at': '2030-01-01T09:00:00Z',
        'doctor_id': '2',
    }, format='json')
    assert r.status_code == 201
    appointment = r.data['data']
    assert appointment['status'] == 'scheduled'
    assert appointment['patient']['full_name'] == 'Ahmed Benali'
    assert not cached_keys(memory_cache, 'appointments:')

    r = client_for('nurse.fatima').put(f"/api/appointments/{appointment['id']}", {'status': 'confirmed'}, format='json')
    assert r.data['data']['status'] == 'confirmed'

    r = desk.delete(f"/api/appointments/{appointment['id']}")
    assert r.status_code == 200
    assert r.data['data']['status'] == 'cancelled'


def test_appointment_guards_and_lookups(client_for):
    nurse = client_for('nurse.fatima')
    assert nurse.delete('/api/appointments/apt_2').status_code == 403
    assert nurse.get('/api/appointments/apt_999').status_code == 404
    r = nurse.get('/api/appointments', {'status': 'in-progress'})
    assert [a['id'] for a in r.data['data']] == ['apt_3']


def test_appointment_for_unknown_patient_is_400(client_for):
    r = client_for('accueil.leila').post('/api/appointments', {
        'patient_nin': '999999999999999999',
        'department': 'Urgences',
        'scheduled_at': '2030-01-01T09:00:00Z',
    }, format='json')
    assert r.status_code == 400


# ----------------------------------------------------------------------------
# Inventory and stock reports
# ----------------------------------------------------------------------------

def test_inventory_listing_filters_by_stock_status(client_for):
    r = client_for('pharma.omar').get('/api/inventory', {'status': 'critical'})
    assert r.status_code == 200
    assert {i['id'] for i in r.data['data']} == {'item_1', 'item_3'}


def test_receptionist_cannot_view_inventory(client_for):
    assert client_for('accueil.leila').get('/api/inventory').status_code == 403


def test_stock_transactions(client_for, records):
    pharmacist = client_for('pharma.omar')
    r = pharmacist.post('/api/inventory/transactions', {
        'item_id': 'item_2', 'transaction_type': 'dispense', 'quantity_change': -5,
    }, format='json')
    assert r.status_code == 201
    assert r.data['data']['stock_after'] == 115
    assert records.inventory['item_2']['current_stock'] == 115
    assert records.transactions[-1]['performed_by'] == '4'

    too_many = {'item_id': 'item_1', 'transaction_type': 'dispense', 'quantity_change': -500}
    assert pharmacist.post('/api/inventory/transactions', too_many, format='json').status_code == 400
    assert records.inventory['item_1']['current_stock'] == 15

    zero = {'item_id': 'item_1', 'transaction_type': 'adjust', 'quantity_change': 0}
    assert pharmacist.post('/api/inventory/transactions', zero, format='json').status_code == 400

    unknown = {'item_id': 'item_404', 'transaction_type': 'receive', 'quantity_change': 1}
    assert pharmacist.post('/api/inventory/transactions', unknown, format='json').status_code == 404


def test_nurse_cannot_move_stock(client_for):
    r = client_for('nurse.fatima').post('/api/inventory/transactions', {
        'item_id': 'item_2', 'transaction_type': 'dispense', 'quantity_change': -1,
    }, format='json')
    assert r.status_code == 403


def test_stock_report_is_refreshed_after_a_transaction(client_for, memory_cache):
    pharmacist = client_for('pharma.omar')
    r = pharmacist.get('/api/reports/stock')
    assert r.status_code == 200
    assert r.data['data']['critical_stock_items'] == 2
    assert cached_keys(memory_cache, 'reports:data:')

    pharmacist.post('/api/inventory/transactions', {
        'item_id': 'item_1', 'transaction_type': 'receive', 'quantity_change': 100,
    }, format='json')
    assert not cached_keys(memory_cache, 'reports:')

    r = pharmacist.get('/api/reports/stock')
    assert r.data['data']['critical_stock_items'] == 1
    assert r.data['data']['movements'][-1]['item_id'] == 'item_1'


def test_new_inventory_item_starts_empty(client_for):
    r = client_for('ilyes').post('/api/inventory', {
        'name': 'Compresses', 'category': 'consumable', 'unit': 'paquet', 'min_threshold': 10,
    }, format='json')
    assert r.status_code == 201
    assert r.data['data']['current_stock'] == 0
    assert r.data['data']['stock_status'] == 'critical'


# ----------------------------------------------------------------------------
# Reports
# ----------------------------------------------------------------------------

def test_patient_report_counts_demographics_and_follows_writes(client_for, memory_cache):
    receptionist = client_for('accueil.leila')
    r = receptionist.get('/api/reports/patients')
    assert r.status_code == 200
    report = r.data['data']
    assert report['total_patients'] == 4
    assert report['by_gender'] == {'F': 2, 'M': 2}
    assert sum(g['count'] for g in report['by_age_group']) == 4
    assert cached_keys(memory_cache, 'reports:data:')

    assert receptionist.post('/api/patients', NEW_PATIENT, format='json').status_code == 201
    assert not cached_keys(memory_cache, 'reports:')
    assert receptionist.get('/api/reports/patients').data['data']['total_patients'] == 5


def test_appointment_report(client_for):
    r = client_for('nurse.fatima').get('/api/reports/appointments')
    assert r.status_code == 200
    report = r.data['data']
    assert report['total_appointments'] == 4
    assert report['by_status']['scheduled'] == 2
    departments = {d['department']: d['count'] for d in report['by_department']}
    assert departments['Cardiologie'] == 2


def test_operational_report_is_admin_only(client_for):
    r = client_for('ilyes').get('/api/reports/operational')
    assert r.status_code == 200
    report = r.data['data']
    assert report['staff_by_role']['doctor'] == 1
    [doctor] = report['staff_performance']
    assert doctor['appointments'] == 3
    assert report['unassigned_appointments'] == 1
    assert report['activity']['AUTH_SUCCESS'] >= 1

    assert client_for('dr.benali').get('/api/reports/operational').status_code == 403
    assert client_for('pharma.omar').get('/api/reports/patients').status_code == 200
    assert APIClient().get('/api/reports/appointments').status_code == 401


# ----------------------------------------------------------------------------
# Referrals
# ----------------------------------------------------------------------------

def test_referrals(client_for):
    nurse = client_for('nurse.fatima')
    assert len(nurse.get('/api/referrals').data['data']) == 2
    assert [r['id'] for r in nurse.get('/api/referrals', {'kind': 'emergency'}).data['data']] == ['REF002']

    payload = {
        'kind': 'emergency',
        'patient_nin': KNOWN_NIN,
        'from_department': 'Urgences',
        'to_department': 'Cardiologie',
        'reason': 'Douleur thoracique',
        'priority': 'emergency',
    }
    assert nurse.post('/api/referrals', payload, format='json').status_code == 403

    doctor = client_for('dr.benali')
    assert doctor.post('/api/referrals', payload, format='json').status_code == 400
    r = doctor.post('/api/referrals', {**payload, 'to_hospital': 'CHU Mustapha'}, format='json')
    assert r.status_code == 201
    assert r.data['data']['status'] == 'pending'
    assert r.data['data']['patient_name'] == 'Ahmed Benali'


# ----------------------------------------------------------------------------
# Administration
# ----------------------------------------------------------------------------

def test_admin_manages_staff(client_for):
    admin = client_for('ilyes')
    r = admin.get('/api/users')
    assert [u['username'] for u in r.data['data']][:2] == ['ilyes', 'dr.benali']

    new_staff = {
        'username': 'dr.kaci', 'full_name': 'Dr. Samir Kaci', 'email': 'kaci@hca.dz',
        'role': 'doctor', 'department': 'Pédiatrie', 'password': 'Pediatre#2024',
    }
    r = admin.post('/api/users', new_staff, format='json')
    assert r.status_code == 201
    assert r.data['data']['id'] == '6'
    assert 'password' not in r.data['data']
    assert admin.post('/api/users', new_staff, format='json').status_code == 409

    assert login(APIClient(), 'dr.kaci', password='Pediatre#2024').status_code == 200


def test_new_staff_passwords_must_be_strong(client_for):
    r = client_for('ilyes').post('/api/users', {
        'username': 'dr.kaci', 'full_name': 'Dr. Samir Kaci', 'email': 'kaci@hca.dz',
        'role': 'doctor', 'password': 'secret1',
    }, format='json')
    assert r.status_code == 400
    assert r.data['error']['code'] == 'VALIDATION_ERROR'
    assert 'password' in r.data['error']['details']


def test_roles_and_audit_logs(client_for):
    admin = client_for('ilyes')
    r = admin.get('/api/admin/roles')
    roles = {role['id']: role for role in r.data['data']}
    assert set(roles) == {'admin', 'doctor', 'nurse', 'pharmacist', 'receptionist'}
    assert roles['admin']['user_count'] == 1
    assert 'manage_users' in roles['admin']['permissions']

    r = admin.get('/api/admin/audit-logs', {'action': 'AUTH_SUCCESS'})
    assert r.status_code == 200
    assert r.data['data'][0]['detail']['username'] == 'ilyes'

    assert client_for('dr.benali').get('/api/admin/roles').status_code == 403
    assert client_for('pharma.omar').get('/api/admin/audit-logs').status_code == 403


def test_cache_admin(client_for, memory_cache):
    admin = client_for('ilyes')
    admin.get('/api/patients')
    r = admin.get('/api/admin/cache')
    assert r.status_code == 200
    assert r.data['data']['size'] == 1
    assert r.data['data']['keys'][0].startswith('patients:list:')

    r = admin.post('/api/admin/cache', {'action': 'invalidate', 'pattern': 'patients:*'}, format='json')
    assert r.data['removed'] == 1
    assert len(memory_cache) == 0

    assert admin.post('/api/admin/cache', {'action': 'invalidate'}, format='json').status_code == 400
    assert admin.post('/api/admin/cache', {'action': 'cleanup'}, format='json').data['removed'] == 0
    assert admin.post('/api/admin/cache', {'action': 'clear'}, format='json').status_code == 200

    assert client_for('nurse.fatima').get('/api/admin/cache').status_code == 403


def test_hospital_settings_are_cached_until_updated(client_for, memory_cache):
    nurse = client_for('nurse.fatima')
    r = nurse.get('/api/settings/hospital')
    assert r.status_code == 200
    assert r.data['data']['code'] == 'HCA001'
    assert 'settings:hospital' in memory_cache.keys()

    assert nurse.put('/api/settings/hospital', {'capacity': 10}, format='json').status_code == 403

    r = client_for('ilyes').put('/api/settings/hospital', {'capacity': 650}, format='json')
    assert r.status_code == 200
    assert 'settings:hospital' not in memory_cache.keys()
    assert nurse.get('/api/settings/hospital').data['data']['capacity'] == 650


def test_healthz_is_public():
    r = APIClient().get('/healthz')
    assert r.status_code == 200
    assert r.json()['ok'] is True
