"""Tests for PipelineCompiler."""

from datetime import datetime, timedelta

import pytest

from core.application.dtos import (
    DELAY_QUEUE,
    DEFAULT_QUEUE,
    JobCall,
    WorkflowPipelineRequest,
    WorkflowStep,
)
from core.application.interfaces import IJobSubstrate
from core.domain.enums import WorkloadType
from core.domain.exceptions import EmptyPipelineError
from core.settings import PipelineSettings
from orchestration import (
    FailurePolicy,
    PipelineCompiler,
    PlannedJobKind,
    create_default_compiler,
)


class FakeSubstrate(IJobSubstrate):
    """Fake substrate recording every submission."""

    def __init__(self) -> None:
        """Initialize fake substrate."""
        self.submissions: list[tuple[str, str | None, JobCall]] = []

    def _next_id(self) -> str:
        return str(len(self.submissions) + 1)

    def enqueue(self, call: JobCall) -> str:
        job_id = self._next_id()
        self.submissions.append(("enqueue", None, call))
        return job_id

    def schedule_at(self, call: JobCall, when: datetime) -> str:
        raise AssertionError("pipelines never schedule")

    def add_or_update_recurring(self, recurring_id: str, call: JobCall, cron_expression: str) -> None:
        raise AssertionError("pipelines never register recurring jobs")

    def continue_with(self, parent_job_id: str, call: JobCall) -> str:
        job_id = self._next_id()
        self.submissions.append(("continue_with", parent_job_id, call))
        return job_id

    def delete(self, job_id: str) -> bool:
        return False

    def remove_recurring(self, recurring_id: str) -> None:
        pass

    def job_details(self, job_id: str):
        return None

    def statistics(self):
        return {}


def _pipeline(*steps: WorkflowStep, global_parameters=None) -> WorkflowPipelineRequest:
    return WorkflowPipelineRequest(
        pipeline_name="test_pipeline",
        steps=list(steps),
        global_parameters=global_parameters,
    )


def test_steps_are_chained_in_order_without_delays():
    substrate = FakeSubstrate()
    compiler = PipelineCompiler(substrate)

    submission = compiler.submit(
        _pipeline(
            WorkflowStep(workload_type=WorkloadType.GENERA_CONTRATTI, order=2),
            WorkflowStep(workload_type=WorkloadType.SETUP, order=1),
        )
    )

    assert submission.job_ids == ["1", "2"]
    assert submission.entry_job_id == "1"
    assert str(submission.pipeline_id).startswith("pipeline-")

    (kind_1, parent_1, call_1), (kind_2, parent_2, call_2) = substrate.submissions
    assert (kind_1, parent_1) == ("enqueue", None)
    assert call_1.kwargs["workload_type"] == "Setup"
    assert (kind_2, parent_2) == ("continue_with", "1")
    assert call_2.kwargs["workload_type"] == "GeneraContratti"
    assert call_1.queue == call_2.queue == DEFAULT_QUEUE


def test_equal_orders_keep_list_position():
    compiler = PipelineCompiler(FakeSubstrate())

    planned = compiler.plan(
        _pipeline(
            WorkflowStep(workload_type=WorkloadType.INIZIO_FIRMA_ENTI, order=1),
            WorkflowStep(workload_type=WorkloadType.PREPARAZIONE_FIRMA_ENTE, order=1),
            WorkflowStep(workload_type=WorkloadType.SETUP, order=0),
        )
    )

    assert [job.workload_type for job in planned] == [
        WorkloadType.SETUP,
        WorkloadType.INIZIO_FIRMA_ENTI,
        WorkloadType.PREPARAZIONE_FIRMA_ENTE,
    ]


def test_delay_of_previous_step_inserts_delay_job():
    substrate = FakeSubstrate()
    compiler = PipelineCompiler(substrate)

    submission = compiler.submit(
        _pipeline(
            WorkflowStep(
                workload_type=WorkloadType.PREPARAZIONE_FIRMA_VOLONTARI,
                order=1,
                delay_after_completion=timedelta(minutes=2),
            ),
            WorkflowStep(workload_type=WorkloadType.INIZIO_FIRMA_VOLONTARI, order=2),
        )
    )

    assert submission.job_ids == ["1", "2", "3"]
    delay_kind, delay_parent, delay_call = substrate.submissions[1]
    assert (delay_kind, delay_parent) == ("continue_with", "1")
    assert delay_call.kwargs == {"delay_seconds": 120.0}
    assert delay_call.queue == DELAY_QUEUE

    step_kind, step_parent, step_call = substrate.submissions[2]
    assert (step_kind, step_parent) == ("continue_with", "2")
    assert step_call.kwargs["workload_type"] == "InizioFirmaVolontari"


def test_delay_on_last_step_is_ignored():
    compiler = PipelineCompiler(FakeSubstrate())

    planned = compiler.plan(
        _pipeline(
            WorkflowStep(workload_type=WorkloadType.SETUP, order=1),
            WorkflowStep(
                workload_type=WorkloadType.CONTRATTI_CLEANUP,
                order=2,
                delay_after_completion=timedelta(minutes=5),
            ),
        )
    )

    assert [job.kind for job in planned] == [PlannedJobKind.WORKLOAD, PlannedJobKind.WORKLOAD]


def test_zero_delay_inserts_nothing():
    compiler = PipelineCompiler(FakeSubstrate())

    planned = compiler.plan(
        _pipeline(
            WorkflowStep(workload_type=WorkloadType.SETUP, order=1, delay_after_completion=timedelta(0)),
            WorkflowStep(workload_type=WorkloadType.GENERA_CONTRATTI, order=2),
        )
    )

    assert len(planned) == 2
    assert planned[1].depends_on == 0


def test_complete_contract_workflow_has_expected_shape():
    compiler = PipelineCompiler(FakeSubstrate())

    planned = compiler.plan(
        _pipeline(
            WorkflowStep(workload_type=WorkloadType.SETUP, order=1),
            WorkflowStep(
                workload_type=WorkloadType.PREPARAZIONE_GENERAZIONE_CONTRATTI,
                order=2,
                delay_after_completion=timedelta(minutes=2),
            ),
            WorkflowStep(
                workload_type=WorkloadType.GENERA_CONTRATTI,
                order=3,
                delay_after_completion=timedelta(minutes=5),
            ),
            WorkflowStep(workload_type=WorkloadType.INIZIO_FIRMA_MASSIVA, order=4),
            WorkflowStep(workload_type=WorkloadType.FINALIZZAZIONE_FIRMA_MASSIVA, order=5),
        )
    )

    assert [job.kind.value for job in planned] == [
        "workload", "workload", "delay", "workload", "delay", "workload", "workload",
    ]
    assert [job.depends_on for job in planned] == [None, 0, 1, 2, 3, 4, 5]


def test_global_parameters_merged_with_step_override():
    substrate = FakeSubstrate()
    compiler = PipelineCompiler(substrate)

    compiler.submit(
        _pipeline(
            WorkflowStep(workload_type=WorkloadType.SETUP, order=1, parameters={"b": "3", "c": "4"}),
            WorkflowStep(workload_type=WorkloadType.GENERA_CONTRATTI, order=2),
            global_parameters={"a": "1", "b": "2"},
        )
    )

    first_call = substrate.submissions[0][2]
    second_call = substrate.submissions[1][2]
    assert first_call.kwargs["parameters"] == {"a": "1", "b": "3", "c": "4"}
    assert second_call.kwargs["parameters"] == {"a": "1", "b": "2"}


def test_no_parameters_anywhere_stays_none():
    substrate = FakeSubstrate()
    PipelineCompiler(substrate).submit(_pipeline(WorkflowStep(workload_type=WorkloadType.SETUP)))

    assert substrate.submissions[0][2].kwargs["parameters"] is None


def test_empty_pipeline_is_rejected_before_submission():
    substrate = FakeSubstrate()
    compiler = PipelineCompiler(substrate)

    with pytest.raises(EmptyPipelineError):
        compiler.submit(_pipeline())

    assert substrate.submissions == []


@pytest.mark.parametrize(
    "honor, flagged, expected",
    [
        (False, True, False),
        (True, False, False),
        (True, True, True),
    ],
)
def test_failure_policy_controls_continue_on_error(honor, flagged, expected):
    compiler = PipelineCompiler(FakeSubstrate(), FailurePolicy(honor_continue_on_error=honor))

    planned = compiler.plan(
        _pipeline(WorkflowStep(workload_type=WorkloadType.SETUP, continue_on_error=flagged))
    )

    assert planned[0].call.kwargs["continue_on_error"] is expected


def test_create_default_compiler_reads_policy_from_settings():
    substrate = FakeSubstrate()
    compiler = create_default_compiler(substrate, PipelineSettings(honor_continue_on_error=True))

    planned = compiler.plan(
        _pipeline(WorkflowStep(workload_type=WorkloadType.SETUP, continue_on_error=True))
    )

    assert planned[0].call.kwargs["continue_on_error"] is True


def test_compile_returns_pipeline_id():
    pipeline_id = PipelineCompiler(FakeSubstrate()).compile(
        _pipeline(WorkflowStep(workload_type=WorkloadType.SETUP))
    )

    assert pipeline_id.startswith("pipeline-")
