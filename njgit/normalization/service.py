"""Job normalization service for removing Nomad bookkeeping and ordering noise.

This module implements the normalization logic that:
1. Strips volatile fields Nomad refreshes on every read (indices, timestamps, status)
2. Strips operator-configured ignore fields
3. Rebuilds every map with sorted keys, dropping empty-string values
4. Sorts datacenters, task groups and tasks so fetch order never matters
5. Drops top-level keys the model does not declare (Stop, Version, ...)
6. Returns a fully independent copy; the input specification is never mutated
"""

import copy
import logging
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from njgit.domain.models import (
    JobSpecification,
    NormalizedJob,
    Resources,
    Task,
    TaskGroup,
    UpdateStrategy,
)
from njgit.logging import get_logger

logger = get_logger(__name__, component="normalization")

# Stripped on every normalization regardless of configuration
VOLATILE_FIELDS: Tuple[str, ...] = (
    "modify_index",
    "modify_time",
    "job_modify_index",
    "submit_time",
    "create_index",
    "status",
    "status_description",
)

# Job identity cannot be ignored, the document would have no name
PROTECTED_FIELDS: FrozenSet[str] = frozenset({"id", "name"})


class JobNormalizer:
    """Normalizes JobSpecification instances into NormalizedJob values.

    The ignore set is fixed when the normalizer is created and applies to every
    job it normalizes. Names may use either the Nomad API key (``Meta``) or the
    Python field name (``meta``); unknown names are ignored silently because
    operators may list fields that their Nomad version does not return.
    """

    def __init__(
        self,
        ignore_fields: Iterable[str] = (),
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize JobNormalizer.

        Args:
            ignore_fields: Additional top-level field names to strip
            logger_instance: Logger instance (defaults to module logger)
        """
        self.ignore_fields: Tuple[str, ...] = tuple(ignore_fields)
        self.logger = logger_instance or logger
        self._ignored_fields = self._resolve_ignore_fields(self.ignore_fields)

    def normalize(self, spec: JobSpecification) -> NormalizedJob:
        """Normalize a single job specification.

        Args:
            spec: Raw job specification from Nomad

        Returns:
            NormalizedJob sharing no mutable state with ``spec``
        """
        fields: Dict[str, Any] = {
            "id": spec.id,
            "name": spec.name,
            "namespace": spec.namespace or None,
            "region": spec.region or None,
            "type": spec.type or None,
            "priority": spec.priority,
            "datacenters": sorted(spec.datacenters),
            "meta": normalize_string_map(spec.meta),
            "update": _normalize_update(spec.update),
            "task_groups": [
                _normalize_group(group) for group in _sorted_by_name(spec.task_groups)
            ],
        }

        for field_name in self._ignored_fields:
            field_info = NormalizedJob.model_fields[field_name]
            fields[field_name] = field_info.get_default(call_default_factory=True)

        normalized = NormalizedJob(**fields)

        self.logger.debug(
            f"Normalized job {spec.job_name}",
            extra={
                "event": "normalization.job.normalized",
                "job_name": spec.job_name,
                "task_group_count": len(normalized.task_groups),
                "ignored_fields": len(self._ignored_fields),
            },
        )

        return normalized

    def _resolve_ignore_fields(self, names: Iterable[str]) -> FrozenSet[str]:
        """Map ignore names to declared model fields; other names match nothing."""
        by_alias = {
            (info.alias or field_name): field_name
            for field_name, info in JobSpecification.model_fields.items()
        }

        declared = set()
        for raw_name in names:
            name = raw_name.strip()
            if not name:
                continue

            field_name = by_alias.get(name, name if name in JobSpecification.model_fields else None)
            if field_name is None:
                continue

            if field_name in PROTECTED_FIELDS:
                self.logger.warning(
                    f"Ignore field '{name}' names the job identity and will be kept",
                    extra={"event": "normalization.ignore_field.protected", "field": name},
                )
                continue

            if field_name not in VOLATILE_FIELDS:
                declared.add(field_name)

        return frozenset(declared)


def normalize_job(spec: JobSpecification, ignore_fields: Iterable[str] = ()) -> NormalizedJob:
    """Normalize a job specification.

    Convenience wrapper around :class:`JobNormalizer` for one-off use.

    Args:
        spec: Raw job specification
        ignore_fields: Additional top-level field names to strip

    Returns:
        NormalizedJob
    """
    return JobNormalizer(ignore_fields).normalize(spec)


def normalize_string_map(values: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
    """Rebuild a string map with sorted keys, dropping empty values.

    An empty value is treated exactly like an absent key, and a map with no
    remaining entries is treated like an absent map.

    Example:
        >>> normalize_string_map({"b": "2", "a": "1", "c": ""})
        {'a': '1', 'b': '2'}
    """
    if not values:
        return None
    normalized = {key: values[key] for key in sorted(values) if values[key] != ""}
    return normalized or None


def normalize_config_value(value: Any) -> Any:
    """Deep-copy a driver config value, sorting the keys of nested maps."""
    if isinstance(value, dict):
        return {str(key): normalize_config_value(value[key]) for key in sorted(value, key=str)}
    if isinstance(value, (list, tuple)):
        return [normalize_config_value(item) for item in value]
    return copy.deepcopy(value)


def _sorted_by_name(items: Iterable[Any]) -> List[Any]:
    # sorted() is stable, so duplicate names keep their fetch order
    return sorted(items, key=lambda item: item.name or "")


def _normalize_group(group: TaskGroup) -> TaskGroup:
    return TaskGroup(
        name=group.name,
        count=group.count,
        meta=normalize_string_map(group.meta),
        tasks=[_normalize_task(task) for task in _sorted_by_name(group.tasks)],
    )


def _normalize_task(task: Task) -> Task:
    config = normalize_config_value(task.config) if task.config else None
    return Task(
        name=task.name,
        driver=task.driver or None,
        config=config or None,
        env=normalize_string_map(task.env),
        resources=_normalize_resources(task.resources),
        meta=normalize_string_map(task.meta),
    )


def _normalize_resources(resources: Optional[Resources]) -> Optional[Resources]:
    if resources is None:
        return None
    cpu = resources.cpu if resources.cpu and resources.cpu > 0 else None
    memory_mb = resources.memory_mb if resources.memory_mb and resources.memory_mb > 0 else None
    if cpu is None and memory_mb is None:
        return None
    return Resources(cpu=cpu, memory_mb=memory_mb)


def _normalize_update(update: Optional[UpdateStrategy]) -> Optional[UpdateStrategy]:
    if update is None:
        return None
    max_parallel = update.max_parallel if update.max_parallel and update.max_parallel > 0 else None
    health_check = update.health_check or None
    if max_parallel is None and health_check is None:
        return None
    return UpdateStrategy(max_parallel=max_parallel, health_check=health_check)
