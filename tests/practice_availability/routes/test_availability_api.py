from datetime import datetime, time

import pytest
from pydantic import ValidationError as RequestValidationError

from practice_availability.core.errors import ForbiddenError, NotFoundError
from practice_availability.routes.availability_routes import (
    BulkSetRequest,
    CheckAvailabilityRequest,
    check_availability,
    get_overview,
)
from practice_availability.services import schedule_editor


def check_body(start: str, end: str, modality: str = 'online', **extra) -> dict:
    return {'modality': modality, 'start_at': start, 'end_at': end, **extra}


def test_check_request_rejects_end_before_start() -> None:
    with pytest.raises(RequestValidationError):
        CheckAvailabilityRequest(
            modality='online',
            start_at=datetime(2026, 1, 5, 11, 0),
            end_at=datetime(2026, 1, 5, 10, 0),
        )


def test_bulk_set_request_requires_a_day() -> None:
    with pytest.raises(RequestValidationError):
        BulkSetRequest(days=[], modality='online', start_time=time(9, 0), end_time=time(17, 0))


def test_bulk_set_request_counts_distinct_days() -> None:
    data = BulkSetRequest(days=[1] * 8, modality='online', start_time=time(9, 0), end_time=time(17, 0))

    assert data.days == [1] * 8


def test_check_availability_defaults_to_calling_practitioner(db, practice, practitioner) -> None:
    schedule_editor.reset_to_defaults(db, practice.id, practitioner.id)
    data = CheckAvailabilityRequest(
        modality='in_person',
        start_at=datetime(2026, 1, 5, 10, 0),
        end_at=datetime(2026, 1, 5, 11, 0),
    )

    response = check_availability(data=data, db=db, current_user=practitioner)

    assert response.available is True
    assert response.reason is None


def test_check_availability_hides_other_practices(db, practitioner, outsider) -> None:
    data = CheckAvailabilityRequest(
        practitioner_id=outsider.id,
        modality='online',
        start_at=datetime(2026, 1, 5, 10, 0),
        end_at=datetime(2026, 1, 5, 11, 0),
    )

    with pytest.raises(NotFoundError):
        check_availability(data=data, db=db, current_user=practitioner)


def test_overview_requires_assignment_for_assistants(db, assistant, colleague) -> None:
    with pytest.raises(ForbiddenError):
        get_overview(practitioner_id=colleague.id, db=db, current_user=assistant)


def test_health_check(client) -> None:
    response = client.get('/')

    assert response.status_code == 200
    assert response.json() == {'status': 'Practice Availability API Running'}


def test_requests_without_token_are_refused(client) -> None:
    response = client.post('/availability/check', json=check_body('2026-01-05T10:00:00', '2026-01-05T11:00:00'))

    assert response.status_code in (401, 403)


def test_invalid_token_is_refused(client) -> None:
    response = client.get('/availability/schedule', headers={'Authorization': 'Bearer not-a-token'})

    assert response.status_code == 401
    assert response.json()['detail'] == 'Invalid token'


def test_practitioner_resets_schedule_and_checks_slots(client, practitioner, headers_for) -> None:
    headers = headers_for(practitioner)

    reset = client.post('/availability/schedule/reset', headers=headers)
    assert reset.status_code == 200
    assert len(reset.json()) == 10

    available = client.post(
        '/availability/check',
        json=check_body('2026-01-05T10:00:00', '2026-01-05T11:00:00'),
        headers=headers,
    )
    assert available.status_code == 200
    assert available.json() == {'available': True, 'reason': None}

    saturday = client.post(
        '/availability/check',
        json=check_body('2026-01-10T10:00:00', '2026-01-10T11:00:00'),
        headers=headers,
    )
    assert saturday.json() == {'available': False, 'reason': 'Outside of regular working hours'}


def test_check_accepts_utc_offsets(client, db, practice, practitioner, headers_for) -> None:
    schedule_editor.reset_to_defaults(db, practice.id, practitioner.id)

    response = client.post(
        '/availability/check',
        json=check_body('2026-01-05T14:00:00Z', '2026-01-05T15:00:00Z'),
        headers=headers_for(practitioner),
    )

    assert response.json() == {'available': True, 'reason': None}


def test_assistant_must_name_the_practitioner(client, assistant, headers_for) -> None:
    response = client.post(
        '/availability/check',
        json=check_body('2026-01-05T10:00:00', '2026-01-05T11:00:00'),
        headers=headers_for(assistant),
    )

    assert response.status_code == 400
    assert response.json()['type'] == 'validation_error'
    assert response.json()['field'] == 'practitioner_id'


def test_assistant_checks_assigned_practitioner(client, db, practice, practitioner, assistant, headers_for) -> None:
    schedule_editor.reset_to_defaults(db, practice.id, practitioner.id)

    response = client.post(
        '/availability/check',
        json=check_body('2026-01-05T10:00:00', '2026-01-05T11:00:00', practitioner_id=practitioner.id),
        headers=headers_for(assistant),
    )

    assert response.status_code == 200
    assert response.json()['available'] is True


def test_assistant_cannot_check_unassigned_practitioner(client, assistant, colleague, headers_for) -> None:
    response = client.post(
        '/availability/check',
        json=check_body('2026-01-05T10:00:00', '2026-01-05T11:00:00', practitioner_id=colleague.id),
        headers=headers_for(assistant),
    )

    assert response.status_code == 403
    assert response.json()['type'] == 'forbidden'


def test_other_practice_is_reported_as_not_found(client, practitioner, outsider, headers_for) -> None:
    response = client.get(
        '/availability/schedule',
        params={'practitioner_id': outsider.id},
        headers=headers_for(practitioner),
    )

    assert response.status_code == 404
    assert response.json() == {'detail': 'Practitioner not found.', 'type': 'not_found', 'field': 'practitioner_id'}


def test_windows_crossing_midnight_are_rejected(client, practitioner, headers_for) -> None:
    response = client.post(
        '/availability/check',
        json=check_body('2026-01-05T23:00:00', '2026-01-06T01:00:00'),
        headers=headers_for(practitioner),
    )

    assert response.status_code == 400
    assert response.json()['detail'] == 'Appointments must start and end on the same day.'


def test_reversed_window_is_a_bad_request(client, practitioner, headers_for) -> None:
    response = client.post(
        '/availability/check',
        json=check_body('2026-01-05T11:00:00', '2026-01-05T10:00:00'),
        headers=headers_for(practitioner),
    )

    assert response.status_code == 400
    assert response.json()['detail'] == 'End datetime must be after start datetime'


def test_unknown_modality_is_a_bad_request(client, practitioner, headers_for) -> None:
    response = client.post(
        '/availability/check',
        json=check_body('2026-01-05T10:00:00', '2026-01-05T11:00:00', modality='telepathy'),
        headers=headers_for(practitioner),
    )

    assert response.status_code == 400
    assert response.json()['field'] == 'modality'


def test_admin_sets_weekend_hours_for_practitioner(client, practitioner, admin, headers_for) -> None:
    response = client.post(
        '/availability/schedule/bulk-set',
        json={
            'practitioner_id': practitioner.id,
            'days': [0, 6],
            'modality': 'online',
            'start_time': '10:00',
            'end_time': '14:00',
        },
        headers=headers_for(admin),
    )

    assert response.status_code == 201
    assert [(slot['day_name'], slot['modality']) for slot in response.json()] == [
        ('Sunday', 'online'),
        ('Saturday', 'online'),
    ]


def test_assistant_cannot_change_schedule(client, practitioner, assistant, headers_for) -> None:
    response = client.post(
        '/availability/schedule/reset',
        json={'practitioner_id': practitioner.id},
        headers=headers_for(assistant),
    )

    assert response.status_code == 403


def test_practitioner_cannot_change_colleague_schedule(client, practitioner, colleague, headers_for) -> None:
    response = client.post(
        '/availability/schedule',
        json={
            'practitioner_id': colleague.id,
            'day_of_week': 1,
            'modality': 'online',
            'start_time': '09:00',
            'end_time': '12:00',
        },
        headers=headers_for(practitioner),
    )

    assert response.status_code == 403


def test_duplicate_slot_is_a_conflict(client, practitioner, headers_for) -> None:
    body = {'day_of_week': 2, 'modality': 'in_person', 'start_time': '09:00', 'end_time': '12:00'}

    first = client.post('/availability/schedule', json=body, headers=headers_for(practitioner))
    second = client.post('/availability/schedule', json=body, headers=headers_for(practitioner))

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()['type'] == 'conflict'


def test_update_and_delete_slot(client, db, practice, practitioner, headers_for) -> None:
    slot = schedule_editor.create_slot(db, practice.id, practitioner.id, 3, 'online', time(9, 0), time(12, 0))
    headers = headers_for(practitioner)

    invalid = client.patch(f'/availability/schedule/{slot.id}', json={'end_time': '08:00'}, headers=headers)
    assert invalid.status_code == 400
    assert invalid.json()['detail'] == 'End time must be after start time'

    updated = client.patch(f'/availability/schedule/{slot.id}', json={'end_time': '15:30'}, headers=headers)
    assert updated.status_code == 200
    assert updated.json()['end_time'] == '15:30:00'

    deleted = client.delete(f'/availability/schedule/{slot.id}', headers=headers)
    assert deleted.status_code == 204

    missing = client.delete(f'/availability/schedule/{slot.id}', headers=headers)
    assert missing.status_code == 404


def test_slots_of_other_practices_are_not_found(client, db, other_practice, outsider, practitioner, headers_for) -> None:
    slot = schedule_editor.create_slot(db, other_practice.id, outsider.id, 1, 'online', time(9, 0), time(12, 0))

    response = client.delete(f'/availability/schedule/{slot.id}', headers=headers_for(practitioner))

    assert response.status_code == 404


def test_overview_groups_schedule_by_day(client, db, practice, practitioner, assistant, headers_for) -> None:
    schedule_editor.reset_to_defaults(db, practice.id, practitioner.id)

    response = client.get(
        '/availability/overview',
        params={'practitioner_id': practitioner.id},
        headers=headers_for(assistant),
    )

    body = response.json()
    assert response.status_code == 200
    assert body['timezone'] == 'America/New_York'
    assert [day['day_name'] for day in body['regular_schedule']] == [
        'Monday',
        'Tuesday',
        'Wednesday',
        'Thursday',
        'Friday',
    ]
    assert all(len(day['slots']) == 2 for day in body['regular_schedule'])
    assert body['exceptions'] == []
