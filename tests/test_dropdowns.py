from fastapi.testclient import TestClient

from app.db.schema import DropdownType
from app.services.dropdown import DropdownService
from app.services.integrity import count_referencing, reference_field
from conftest import make_option


def test_create_dropdown(auth_client: TestClient):
    response = auth_client.post('/api/dropdowns', json={
        'type': 'division',
        'label': '  IT Division ',
        'value': 'it',
    })

    assert response.status_code == 201
    dropdown = response.json()['dropdown']
    assert dropdown['label'] == 'IT Division'
    assert dropdown['value'] == 'it'
    assert dropdown['isActive'] is True


def test_create_duplicate_type_value_conflicts(auth_client: TestClient):
    payload = {'type': 'placement', 'label': 'Warehouse A', 'value': 'warehouse-a'}
    assert auth_client.post('/api/dropdowns', json=payload).status_code == 201

    response = auth_client.post('/api/dropdowns', json={**payload, 'label': 'Other'})

    assert response.status_code == 409
    assert response.json()['detail'] == 'placement with value "warehouse-a" already exists'


def test_same_value_allowed_across_types(auth_client: TestClient):
    for dropdown_type in ('division', 'placement'):
        response = auth_client.post('/api/dropdowns', json={
            'type': dropdown_type, 'label': 'Main', 'value': 'main'})
        assert response.status_code == 201


def test_create_rejects_empty_fields(auth_client: TestClient):
    response = auth_client.post('/api/dropdowns', json={
        'type': 'division', 'label': '   ', 'value': 'it'})

    assert response.status_code == 422


def test_create_rejects_unknown_type(auth_client: TestClient):
    response = auth_client.post('/api/dropdowns', json={
        'type': 'color', 'label': 'Red', 'value': 'red'})

    assert response.status_code == 422


def test_list_by_type_sorted_by_label(auth_client: TestClient, session):
    make_option(session, DropdownType.DIVISION, 'Production', 'production')
    make_option(session, DropdownType.DIVISION, 'IT', 'it')
    make_option(session, DropdownType.DIVISION, 'Maintenance', 'maintenance')
    make_option(session, DropdownType.PLACEMENT, 'Warehouse A', 'warehouse-a')

    response = auth_client.get('/api/dropdowns/division')

    assert response.status_code == 200
    assert [d['label'] for d in response.json()] == ['IT', 'Maintenance', 'Production']


def test_list_by_type_hides_inactive_by_default(auth_client: TestClient, session):
    make_option(session, DropdownType.DIVISION, 'IT', 'it')
    retired = make_option(session, DropdownType.DIVISION, 'Legacy', 'legacy')
    retired.is_active = False
    session.add(retired)
    session.commit()

    active = auth_client.get('/api/dropdowns/division').json()
    everything = auth_client.get('/api/dropdowns/division?activeOnly=false').json()

    assert [d['value'] for d in active] == ['it']
    assert sorted(d['value'] for d in everything) == ['it', 'legacy']


def test_list_by_unknown_type(auth_client: TestClient):
    response = auth_client.get('/api/dropdowns/color')

    assert response.status_code == 400
    assert response.json()['detail'] == 'Type must be "division" or "placement"'


def test_all_options(auth_client: TestClient, division, placement):
    response = auth_client.get('/api/dropdowns/all/options')

    assert response.status_code == 200
    data = response.json()
    assert [d['id'] for d in data['divisions']] == [str(division.id)]
    assert [d['id'] for d in data['placements']] == [str(placement.id)]


def test_update_dropdown(auth_client: TestClient, division):
    response = auth_client.put(f'/api/dropdowns/{division.id}', json={
        'label': 'Information Technology', 'value': 'ict'})

    assert response.status_code == 200
    dropdown = response.json()['dropdown']
    assert dropdown['label'] == 'Information Technology'
    assert dropdown['value'] == 'ict'


def test_update_value_collision_conflicts(auth_client: TestClient, session, division):
    make_option(session, DropdownType.DIVISION, 'Production', 'production')

    response = auth_client.put(f'/api/dropdowns/{division.id}', json={'value': 'production'})

    assert response.status_code == 409


def test_update_keeping_own_value_is_not_a_conflict(auth_client: TestClient, division):
    response = auth_client.put(f'/api/dropdowns/{division.id}', json={
        'label': 'IT Dept', 'value': 'it'})

    assert response.status_code == 200


def test_update_unknown_dropdown(auth_client: TestClient):
    response = auth_client.put(
        '/api/dropdowns/00000000-0000-0000-0000-000000000000', json={'label': 'X'})

    assert response.status_code == 404


def test_delete_unreferenced_dropdown(auth_client: TestClient, division):
    response = auth_client.delete(f'/api/dropdowns/{division.id}')

    assert response.status_code == 200
    listed = auth_client.get('/api/dropdowns/division?activeOnly=false').json()
    assert str(division.id) not in [d['id'] for d in listed]


def test_delete_referenced_dropdown_conflicts(auth_client: TestClient, material, division, placement):
    response = auth_client.delete(f'/api/dropdowns/{division.id}')

    assert response.status_code == 409
    detail = response.json()['detail']
    assert 'used by 1 material(s)' in detail
    assert 'divisionId' in detail

    response = auth_client.delete(f'/api/dropdowns/{placement.id}')
    assert response.status_code == 409
    assert 'placementId' in response.json()['detail']


def test_delete_blocked_for_inactive_materials_too(auth_client: TestClient, material, division):
    auth_client.patch(f"/api/materials/{material['id']}/toggle-status")

    response = auth_client.delete(f'/api/dropdowns/{division.id}')

    assert response.status_code == 409


def test_delete_unknown_dropdown(auth_client: TestClient):
    response = auth_client.delete('/api/dropdowns/00000000-0000-0000-0000-000000000000')

    assert response.status_code == 404


def test_count_referencing_is_scoped_by_type(session, material, division, placement):
    """A division id never counts placement references and vice versa"""
    assert count_referencing(session, division.id, DropdownType.DIVISION) == 1
    assert count_referencing(session, division.id, DropdownType.PLACEMENT) == 0
    assert count_referencing(session, placement.id, DropdownType.PLACEMENT) == 1
    assert reference_field(DropdownType.PLACEMENT) == 'placementId'


def test_unique_constraint_backs_up_value_check(auth_client: TestClient, division, monkeypatch):
    """A concurrent insert that slips past the pre-check still conflicts"""
    monkeypatch.setattr(DropdownService, '_value_taken', lambda self, *args, **kwargs: False)

    response = auth_client.post('/api/dropdowns', json={
        'type': 'division', 'label': 'IT again', 'value': 'it'})

    assert response.status_code == 409
    assert response.json()['detail'] == 'division with value "it" already exists'


def test_delete_race_reports_usage(auth_client: TestClient, material, division, monkeypatch):
    """A reference added after the guard ran is caught by the foreign key"""
    calls = []

    def guard_misses_first_time(session, option_id, dropdown_type):
        calls.append(option_id)
        if len(calls) == 1:
            return 0
        return count_referencing(session, option_id, dropdown_type)

    monkeypatch.setattr('app.services.dropdown.count_referencing', guard_misses_first_time)

    response = auth_client.delete(f'/api/dropdowns/{division.id}')

    assert response.status_code == 409
    assert response.json()['detail'] == \
        'Cannot delete. This division is used by 1 material(s) (field: divisionId)'
    assert len(calls) == 2
    assert auth_client.get(f"/api/materials/{material['id']}").json()['division']['label'] == 'IT'
