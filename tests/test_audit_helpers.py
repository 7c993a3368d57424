from ledger.models.audit import AuditAction, AuditResourceType
from ledger.services.audit import (
    log_create,
    log_delete,
    log_export,
    log_update,
    log_view,
    query_by_resource,
)
from ledger.utils.audit import diff_fields


def test_log_update_records_modified_fields(db_session, audit_context):
    entry = log_update(
        db_session,
        audit_context,
        AuditResourceType.appointment,
        "appt-9",
        previous_values={"status": "scheduled", "room": "3", "notes": "x"},
        new_values={"status": "confirmed", "room": "3", "doctor": "d-1"},
    )

    assert entry.action is AuditAction.update
    assert entry.modified_fields == ["status", "doctor", "notes"]
    assert entry.previous_values["status"] == "scheduled"
    assert entry.new_values["status"] == "confirmed"


def test_helpers_write_their_action(db_session, audit_context):
    log_view(db_session, audit_context, "medical_record", "mr-1")
    log_create(db_session, audit_context, "medical_record", "mr-1", new_values={"title": "Consulta"})
    log_export(db_session, audit_context, "medical_record", "mr-1", details={"format": "pdf"})
    log_delete(db_session, audit_context, "medical_record", "mr-1", previous_values={"title": "Consulta"})

    entries = query_by_resource(db_session, audit_context.clinic_id, "medical_record", "mr-1")

    assert [entry.action for entry in entries] == [
        AuditAction.delete,
        AuditAction.export,
        AuditAction.create,
        AuditAction.view,
    ]
    assert all(entry.user_name == "Dr. Silva" for entry in entries)


def test_diff_fields_handles_missing_sides():
    assert diff_fields(None, {"a": 1}) == ["a"]
    assert diff_fields({"a": 1}, None) == ["a"]
    assert diff_fields({"a": 1}, {"a": 1}) == []
