"""Parameter merging for pipeline steps."""
from typing import Any, Dict, Mapping, Optional


def merge_parameters(
    global_params: Optional[Mapping[str, Any]],
    step_params: Optional[Mapping[str, Any]],
) -> Optional[Dict[str, Any]]:
    """
    Combine global and step-local parameters.

    Step values win over global values with the same key. The merge is
    shallow: values are copied by reference and never inspected.

    Returns:
        The combined mapping, or None when both inputs are empty or absent
    """
    if not global_params and not step_params:
        return None

    combined: Dict[str, Any] = dict(global_params or {})
    combined.update(step_params or {})
    return combined
