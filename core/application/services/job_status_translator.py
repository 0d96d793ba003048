"""
Job Status Translator.

Maps the job substrate's raw job history into a JobStatusView.
"""
import logging
from typing import List, Optional

from core.application.dtos import JobStatusView, StateHistoryEntry
from core.application.interfaces import IJobSubstrate
from core.domain.enums import JobState

logger = logging.getLogger(__name__)

NOT_FOUND = "NotFound"
UNKNOWN = "Unknown"
ERROR = "Error"

_FINAL_STATES = {state.value for state in JobState if state.is_final}


def _latest(history: List[StateHistoryEntry], state_names: set) -> Optional[StateHistoryEntry]:
    # History is newest-first
    for entry in history:
        if entry.state_name in state_names:
            return entry
    return None


class JobStatusTranslator:
    """
    Reads job status from the substrate.

    Never raises: when the substrate cannot be queried the view reports
    status "Error" with the failure message.
    """

    def __init__(self, substrate: IJobSubstrate):
        self._substrate = substrate

    def status(self, job_id: str) -> JobStatusView:
        try:
            details = self._substrate.job_details(job_id)

            if details is None:
                return JobStatusView(job_id=job_id, status=NOT_FOUND)

            history = list(details.history)
            latest_state = history[0] if history else None
            started = _latest(history, {JobState.PROCESSING.value})
            completed = latest_state if latest_state and latest_state.state_name in _FINAL_STATES else None

            return JobStatusView(
                job_id=job_id,
                status=latest_state.state_name if latest_state else UNKNOWN,
                created_at=details.created_at,
                started_at=started.created_at if started else None,
                completed_at=completed.created_at if completed else None,
                error_message=latest_state.reason if latest_state else None,
                result=details.result,
            )

        except Exception as e:
            logger.error(f"Error retrieving job status for {job_id}: {e}", exc_info=True)
            return JobStatusView(job_id=job_id, status=ERROR, error_message=str(e))
