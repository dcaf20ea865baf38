"""HTTP tests for the REST API."""

import pytest
from rest_framework.test import APIClient

from parking_sessions.models import ParkingSession
from parking_slots.models import ParkingSlot
from slot_requests.models import SlotRequest
from users.models import User
from vehicles.models import Vehicle

pytestmark = pytest.mark.django_db


def request_and_approve(user_client, admin_client, vehicle, slot):
    request_id = user_client.post('/api/slot-requests/', {'vehicle_id': vehicle.id}, format='json').json()['slot_request']['id']
    response = admin_client.post(f'/api/backoffice/slot-requests/{request_id}/approve/', {'slot_id': slot.id}, format='json')
    assert response.status_code == 200
    return request_id


class TestAuthEndpoints:
    """Test the credential endpoints end to end."""

    def test_register_verify_login(self, api_client, email_outbox):
        response = api_client.post('/api/auth/register/', {
            'name': 'Alice',
            'email': 'alice@example.com',
            'password': 'Secret@123',
        }, format='json')
        assert response.status_code == 201
        assert response.json()['user']['role'] == 'ADMIN'

        response = api_client.post('/api/auth/login/', {
            'email': 'alice@example.com', 'password': 'Secret@123',
        }, format='json')
        assert response.status_code == 403
        assert response.json() == {'status': 'error', 'error': 'Email not verified'}

        code = email_outbox.last_code('alice@example.com')
        response = api_client.post('/api/auth/verify-email/', {
            'email': 'alice@example.com', 'code': code,
        }, format='json')
        assert response.status_code == 200
        assert response.json()['access_token']

        response = api_client.post('/api/auth/login/', {
            'email': 'alice@example.com', 'password': 'Secret@123',
        }, format='json')
        assert response.status_code == 200
        token = response.json()['access_token']

        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        response = client.get('/api/profile/')
        assert response.status_code == 200
        assert response.json()['user']['email'] == 'alice@example.com'

    def test_register_validation_error(self, api_client):
        response = api_client.post('/api/auth/register/', {'email': 'not-an-email'}, format='json')

        body = response.json()
        assert response.status_code == 400
        assert body['error'] == 'Validation error'
        assert 'email' in body['details']

    def test_duplicate_registration(self, api_client, user):
        response = api_client.post('/api/auth/register/', {
            'name': 'John', 'email': user.email, 'password': 'Secret@123',
        }, format='json')
        assert response.status_code == 400
        assert response.json()['error'] == 'User already exists'

    def test_wrong_password(self, api_client, user):
        response = api_client.post('/api/auth/login/', {'email': user.email, 'password': 'nope'}, format='json')
        assert response.status_code == 401

    def test_forgot_password_does_not_leak_accounts(self, api_client, user):
        known = api_client.post('/api/auth/forgot-password/', {'email': user.email}, format='json')
        unknown = api_client.post('/api/auth/forgot-password/', {'email': 'ghost@example.com'}, format='json')
        assert known.json() == unknown.json()

    def test_protected_route_requires_token(self, api_client):
        assert api_client.get('/api/vehicles/').status_code == 401

    @pytest.mark.parametrize('password, message', [
        ('secret@123', 'Password must contain at least one uppercase letter'),
        ('SECRET@123', 'Password must contain at least one lowercase letter'),
        ('Secret@abc', 'Password must contain at least one number'),
        ('Secret<123>', "Password must not contain '<' or '>'"),
    ])
    def test_register_rejects_weak_password(self, api_client, password, message):
        response = api_client.post('/api/auth/register/', {
            'name': 'Alice', 'email': 'alice@example.com', 'password': password,
        }, format='json')

        body = response.json()
        assert response.status_code == 400
        assert body['error'] == 'Validation error'
        assert message in body['details']['password']
        assert not User.objects.filter(email='alice@example.com').exists()

    def test_new_passwords_follow_the_same_rules(self, api_client, user_client, user):
        response = user_client.post('/api/profile/change-password/', {
            'current_password': 'User@1234', 'new_password': 'lowercase1',
        }, format='json')
        assert response.status_code == 400
        assert 'new_password' in response.json()['details']

        response = api_client.post('/api/auth/reset-password/', {
            'email': user.email, 'code': '123456', 'new_password': 'NoDigitsHere',
        }, format='json')
        assert response.status_code == 400
        assert 'new_password' in response.json()['details']

        user.refresh_from_db()
        assert user.check_password('User@1234')


class TestVehicleEndpoints:
    """Test vehicle registry endpoints."""

    def test_create_normalises_plate(self, user_client):
        response = user_client.post('/api/vehicles/', {
            'plate_number': 'rab 321 b', 'vehicle_type': 'CAR', 'size': 'MEDIUM',
        }, format='json')
        assert response.status_code == 201
        assert response.json()['vehicle']['plate_number'] == 'RAB321B'

    def test_duplicate_plate(self, user_client, vehicle):
        response = user_client.post('/api/vehicles/', {
            'plate_number': vehicle.plate_number, 'vehicle_type': 'CAR', 'size': 'MEDIUM',
        }, format='json')
        assert response.status_code == 400
        assert response.json()['error'] == 'Vehicle with this plate number already exists'

    def test_list_is_scoped_to_owner(self, api_client, other_user, vehicle):
        api_client.force_authenticate(user=other_user)
        response = api_client.get('/api/vehicles/')
        assert response.json()['pagination']['total'] == 0

    def test_stranger_cannot_view(self, api_client, other_user, vehicle):
        api_client.force_authenticate(user=other_user)
        assert api_client.get(f'/api/vehicles/{vehicle.id}/').status_code == 403

    def test_delete_blocked_while_parked(self, user_client, vehicle, slot):
        ParkingSession.objects.create(vehicle=vehicle, slot=slot, entry_time=slot.created_at)

        response = user_client.delete(f'/api/vehicles/{vehicle.id}/')
        assert response.status_code == 400
        assert Vehicle.objects.filter(id=vehicle.id).exists()

    def test_type_and_size_locked_while_slot_allocated(self, user_client, admin_client, vehicle, slot):
        request_and_approve(user_client, admin_client, vehicle, slot)

        response = user_client.patch(f'/api/vehicles/{vehicle.id}/', {'size': 'LARGE'}, format='json')
        assert response.status_code == 400
        response = user_client.patch(f'/api/vehicles/{vehicle.id}/', {'vehicle_type': 'TRUCK'}, format='json')
        assert response.status_code == 400

        response = user_client.patch(f'/api/vehicles/{vehicle.id}/', {'color': 'Blue', 'size': 'MEDIUM'}, format='json')
        assert response.status_code == 200
        vehicle.refresh_from_db()
        assert (vehicle.vehicle_type, vehicle.size, vehicle.color) == ('CAR', 'MEDIUM', 'Blue')


class TestParkingSlotEndpoints:
    """Test slot listing and admin management."""

    def test_seed_then_paginate(self, admin_client, user_client):
        response = admin_client.post('/api/backoffice/parking-slots/seed/')
        assert response.status_code == 201
        assert ParkingSlot.objects.count() == 100

        response = user_client.get('/api/parking-slots/', {'page': 2, 'limit': 20})
        body = response.json()
        assert body['pagination'] == {'total': 100, 'page': 2, 'total_pages': 5, 'per_page': 20}
        assert body['results'][0]['slot_number'] == 'SLOT-021'

        response = admin_client.post('/api/backoffice/parking-slots/seed/')
        assert response.status_code == 400

    def test_filters(self, user_client, slot):
        ParkingSlot.objects.create(slot_number='SLOT-002', location='Block B', vehicle_type='BUS', size='LARGE')

        body = user_client.get('/api/parking-slots/', {'vehicle_type': 'bus'}).json()
        assert [s['slot_number'] for s in body['results']] == ['SLOT-002']

        body = user_client.get('/api/parking-slots/', {'search': 'block a'}).json()
        assert [s['slot_number'] for s in body['results']] == ['SLOT-001']

    def test_backoffice_requires_admin(self, user_client):
        response = user_client.post('/api/backoffice/parking-slots/', {
            'slot_number': 'SLOT-050', 'location': 'Block A', 'vehicle_type': 'CAR', 'size': 'SMALL',
        }, format='json')
        assert response.status_code == 403

    def test_admin_creates_and_deletes_slot(self, admin_client, slot):
        response = admin_client.post('/api/backoffice/parking-slots/', {
            'slot_number': slot.slot_number, 'location': 'Block A', 'vehicle_type': 'CAR', 'size': 'SMALL',
        }, format='json')
        assert response.status_code == 400

        response = admin_client.delete(f'/api/backoffice/parking-slots/{slot.id}/')
        assert response.status_code == 200
        assert not ParkingSlot.objects.exists()

    def test_occupied_slot_cannot_be_freed_or_resized(self, user_client, admin_client, vehicle, slot):
        request_and_approve(user_client, admin_client, vehicle, slot)
        url = f'/api/backoffice/parking-slots/{slot.id}/'

        for changes in ({'status': 'AVAILABLE'}, {'status': 'MAINTENANCE'}, {'size': 'SMALL'}, {'vehicle_type': 'BUS'}):
            response = admin_client.patch(url, changes, format='json')
            assert response.status_code == 400, changes
        slot.refresh_from_db()
        assert (slot.status, slot.vehicle_type, slot.size) == ('OCCUPIED', 'CAR', 'MEDIUM')

        response = admin_client.patch(url, {'location': 'Block Z'}, format='json')
        assert response.status_code == 200
        assert response.json()['slot']['status'] == 'OCCUPIED'

    def test_second_approval_cannot_share_a_slot(self, user_client, admin_client, user, vehicle, slot):
        request_and_approve(user_client, admin_client, vehicle, slot)
        other_car = Vehicle.objects.create(owner=user, plate_number='RAD456C', vehicle_type='CAR', size='SMALL')
        request_id = user_client.post('/api/slot-requests/', {'vehicle_id': other_car.id}, format='json').json()['slot_request']['id']

        admin_client.patch(f'/api/backoffice/parking-slots/{slot.id}/', {'status': 'AVAILABLE'}, format='json')
        response = admin_client.post(f'/api/backoffice/slot-requests/{request_id}/approve/', {'slot_id': slot.id}, format='json')

        assert response.status_code == 400
        assert ParkingSession.objects.filter(slot=slot, status=ParkingSession.Status.ACTIVE).count() == 1


class TestWorkflowEndpoints:
    """Test requesting, approving and checking out over HTTP."""

    def test_full_parking_cycle(self, user_client, admin_client, vehicle, slot, email_outbox):
        response = user_client.post('/api/slot-requests/', {'vehicle_id': vehicle.id}, format='json')
        assert response.status_code == 201
        request_id = response.json()['slot_request']['id']

        response = admin_client.post(f'/api/backoffice/slot-requests/{request_id}/approve/', {'slot_id': slot.id}, format='json')
        assert response.status_code == 200
        session_id = response.json()['session']['id']
        assert SlotRequest.objects.get(id=request_id).status == SlotRequest.Status.APPROVED

        response = user_client.post(f'/api/parking-sessions/{session_id}/request-checkout/')
        assert response.json()['session']['status'] == 'PENDING_PAYMENT'

        response = admin_client.post(f'/api/backoffice/parking-sessions/{session_id}/check-out/')
        assert response.status_code == 200
        assert response.json()['session']['fee'] == '200.00'

        notifications = user_client.get('/api/notifications/').json()
        assert notifications['pagination']['total'] == 2

        response = user_client.patch('/api/notifications/read-all/')
        assert response.json()['updated'] == 2

    def test_reject_requires_reason(self, user_client, admin_client, vehicle):
        request_id = user_client.post('/api/slot-requests/', {'vehicle_id': vehicle.id}, format='json').json()['slot_request']['id']

        response = admin_client.post(f'/api/backoffice/slot-requests/{request_id}/reject/', {}, format='json')
        assert response.status_code == 400
        assert response.json()['error'] == 'A rejection note is required'

    def test_admin_user_list_counts_vehicles(self, admin_client, admin_user, user, vehicle):
        body = admin_client.get('/api/backoffice/users/', {'role': 'user'}).json()
        assert [(u['email'], u['vehicle_count']) for u in body['results']] == [(user.email, 1)]

    def test_users_cannot_list_users(self, user_client):
        assert user_client.get('/api/backoffice/users/').status_code == 403

    @pytest.mark.parametrize('url', [
        '/api/slot-requests/?user_id=abc',
        '/api/parking-sessions/?vehicle_id=abc',
    ])
    def test_non_numeric_filters_are_rejected(self, admin_client, url):
        response = admin_client.get(url)

        assert response.status_code == 400
        assert response.json()['error'] == 'Validation error'

    def test_first_registered_user_is_admin(self, api_client):
        for email in ('one@example.com', 'two@example.com'):
            api_client.post('/api/auth/register/', {'name': 'Xavier', 'email': email, 'password': 'Secret@123'}, format='json')
        assert User.objects.get(email='one@example.com').role == User.Role.ADMIN
        assert User.objects.get(email='two@example.com').role == User.Role.USER
