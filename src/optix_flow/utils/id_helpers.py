"""Identifier helper utilities.

Commands accept a full identifier or any unique suffix of one, so users can
type the last few characters shown by ``optix tasks list``.
"""

from optix_flow.models.exceptions import OptixFlowError


class AmbiguousIdError(OptixFlowError):
    """A suffix matched no identifier or more than one."""


def shortest_unique_suffix(ids: list[str], target_id: str) -> str:
    """
    Find the shortest suffix of target_id that uniquely identifies it.

    Args:
        ids: List of all identifiers
        target_id: The identifier to find a unique suffix for

    Returns:
        The shortest unique suffix
    """
    for length in range(1, len(target_id) + 1):
        suffix = target_id[-length:]
        matches = [i for i in ids if i.endswith(suffix)]
        if len(matches) == 1:
            return suffix
    return target_id


def resolve_id(ids: list[str], id_or_suffix: str, kind: str = "task") -> str:
    """
    Resolve an identifier or suffix to a full identifier.

    Raises:
        AmbiguousIdError: If no identifier or several identifiers match
    """
    if id_or_suffix in ids:
        return id_or_suffix

    matches = [i for i in ids if i.endswith(id_or_suffix)]
    if not matches:
        raise AmbiguousIdError(f"No {kind} found with ID or suffix '{id_or_suffix}'")
    if len(matches) > 1:
        suggestions = ", ".join(shortest_unique_suffix(ids, m) for m in matches)
        raise AmbiguousIdError(
            f"Multiple {kind}s match '{id_or_suffix}'. Use one of: {suggestions}"
        )
    return matches[0]
