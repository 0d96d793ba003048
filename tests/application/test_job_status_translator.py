"""Tests for JobStatusTranslator."""

from datetime import datetime, timedelta, timezone

from core.application.dtos import JobDetails, StateHistoryEntry
from core.application.services import JobStatusTranslator

T0 = datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)


class FakeSubstrate:
    """Fake substrate answering job_details from a dict."""

    def __init__(self, jobs: dict | None = None, error: Exception | None = None) -> None:
        self.jobs = jobs or {}
        self.error = error

    def job_details(self, job_id: str):
        if self.error is not None:
            raise self.error
        return self.jobs.get(job_id)


def _entry(state: str, minutes: int, reason: str | None = None) -> StateHistoryEntry:
    return StateHistoryEntry(state_name=state, created_at=T0 + timedelta(minutes=minutes), reason=reason)


def test_unknown_job_is_not_found():
    view = JobStatusTranslator(FakeSubstrate()).status("42")

    assert view.job_id == "42"
    assert view.status == "NotFound"
    assert view.created_at is None


def test_empty_history_is_unknown():
    substrate = FakeSubstrate({"1": JobDetails(job_id="1", created_at=T0)})

    view = JobStatusTranslator(substrate).status("1")

    assert view.status == "Unknown"
    assert view.created_at == T0
    assert view.error_message is None


def test_latest_state_wins():
    details = JobDetails(
        job_id="1",
        created_at=T0,
        history=[_entry("Succeeded", 3), _entry("Processing", 1), _entry("Enqueued", 0)],
        result={"exit_code": 0},
    )

    view = JobStatusTranslator(FakeSubstrate({"1": details})).status("1")

    assert view.status == "Succeeded"
    assert view.started_at == T0 + timedelta(minutes=1)
    assert view.completed_at == T0 + timedelta(minutes=3)
    assert view.result == {"exit_code": 0}
    assert view.error_message is None


def test_failure_reason_becomes_error_message():
    details = JobDetails(
        job_id="1",
        created_at=T0,
        history=[
            _entry("Failed", 2, reason="Process Setup exited with code 1"),
            _entry("Processing", 1),
            _entry("Enqueued", 0),
        ],
    )

    view = JobStatusTranslator(FakeSubstrate({"1": details})).status("1")

    assert view.status == "Failed"
    assert view.error_message == "Process Setup exited with code 1"
    assert view.completed_at == T0 + timedelta(minutes=2)


def test_in_flight_job_has_no_completion_time():
    details = JobDetails(job_id="1", created_at=T0, history=[_entry("Processing", 1), _entry("Enqueued", 0)])

    view = JobStatusTranslator(FakeSubstrate({"1": details})).status("1")

    assert view.status == "Processing"
    assert view.started_at == T0 + timedelta(minutes=1)
    assert view.completed_at is None


def test_substrate_error_is_reported_not_raised():
    view = JobStatusTranslator(FakeSubstrate(error=ConnectionError("storage down"))).status("1")

    assert view.status == "Error"
    assert view.error_message == "storage down"
