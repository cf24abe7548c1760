"""Render normalized Nomad jobs as canonical HCL-like documents.

The output is a small subset of HCL that is stable byte-for-byte for equal
inputs:

    job "web" {
      datacenters = ["dc1", "dc2"]
      type = "service"

      group "frontend" {
        count = 2

        task "nginx" {
          driver = "docker"
          config {
            image = "nginx:1.0"
          }
        }
      }

    }

Attributes are written in a fixed order at every level, map blocks are sorted
by key, and attributes or blocks that are empty are omitted entirely. Map keys
that are not plain identifiers are quoted. The job should be normalized first;
the writer does not sort groups or tasks itself.
"""

import json
import math
import re
from typing import Any, Dict, Iterable, List, Optional

from njgit.domain.models import JobSpecification, Resources, Task, TaskGroup, UpdateStrategy
from njgit.logging import get_logger

from .exceptions import InvalidJobError

logger = get_logger(__name__, component="hcl")

INDENT = "  "
DEFAULT_NAMESPACE = "default"

# Keys matching this are written bare, anything else is quoted
IDENTIFIER_PATTERN = re.compile(r"[A-Za-z_][A-Za-z0-9_.-]*")


def escape_string(value: str) -> str:
    """Escape a string for use inside double quotes.

    Backslashes are escaped first so that later escapes are not doubled.
    """
    value = value.replace("\\", "\\\\")
    value = value.replace('"', '\\"')
    value = value.replace("\n", "\\n")
    value = value.replace("\t", "\\t")
    return value


def quote(value: str) -> str:
    return f'"{escape_string(value)}"'


def format_key(key: str) -> str:
    if IDENTIFIER_PATTERN.fullmatch(key):
        return key
    return quote(key)


def format_value(value: Any) -> str:
    """Render a single driver config value.

    Strings are quoted, booleans are lowercase literals, integers are decimal,
    floats use the shortest representation that round-trips, and lists render
    their items recursively. Anything else falls back to sorted-key JSON so
    that unexpected shapes still produce a deterministic document.
    """
    if isinstance(value, str):
        return quote(value)
    # bool is a subclass of int, check it first
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(format_value(item) for item in value) + "]"
    if value is None:
        return "null"
    return json.dumps(value, sort_keys=True, default=str)


def _format_float(value: float) -> str:
    if math.isnan(value) or math.isinf(value):
        return json.dumps(str(value))
    return repr(value)


def _is_empty_mapping(value: Any) -> bool:
    """True for None, an empty dict, or a dict containing only empty dicts."""
    if not value:
        return True
    if not isinstance(value, dict):
        return False
    return all(isinstance(v, dict) and _is_empty_mapping(v) for v in value.values())


class DocumentWriter:
    """Accumulates document lines with two-space indentation."""

    def __init__(self) -> None:
        self._parts: List[str] = []

    def line(self, level: int, text: str = "") -> None:
        if text:
            self._parts.append(f"{INDENT * level}{text}\n")
        else:
            self._parts.append("\n")

    def open_block(self, level: int, keyword: str, label: Optional[str] = None) -> None:
        if label is None:
            self.line(level, f"{keyword} {{")
        else:
            self.line(level, f"{keyword} {quote(label)} {{")

    def close_block(self, level: int) -> None:
        self.line(level, "}")

    def attribute(self, level: int, key: str, rendered: str) -> None:
        self.line(level, f"{key} = {rendered}")

    def string_attribute(self, level: int, key: str, value: Optional[str]) -> None:
        if value:
            self.attribute(level, key, quote(value))

    def int_attribute(self, level: int, key: str, value: Optional[int]) -> None:
        if value is not None:
            self.attribute(level, key, str(value))

    def list_attribute(self, level: int, key: str, values: Iterable[str]) -> None:
        values = list(values)
        if values:
            self.attribute(level, key, "[" + ", ".join(quote(v) for v in values) + "]")

    def map_block(self, level: int, keyword: str, values: Optional[Dict[str, str]]) -> None:
        if not values:
            return
        self.open_block(level, keyword)
        for key in sorted(values):
            self.attribute(level + 1, format_key(key), quote(values[key]))
        self.close_block(level)

    def config_block(self, level: int, keyword: str, values: Optional[Dict[str, Any]]) -> None:
        if _is_empty_mapping(values):
            return
        self.open_block(level, keyword)
        for key in sorted(values, key=str):
            value = values[key]
            if isinstance(value, dict):
                self.config_block(level + 1, format_key(str(key)), value)
                continue
            self.attribute(level + 1, format_key(str(key)), format_value(value))
        self.close_block(level)

    def getvalue(self) -> str:
        return "".join(self._parts)


def serialize(job: JobSpecification) -> bytes:
    """Render a normalized job as a canonical document.

    Args:
        job: Normalized job (any JobSpecification is accepted and rendered as-is)

    Returns:
        UTF-8 encoded document

    Raises:
        InvalidJobError: If the job has no ID or name
    """
    name = job.job_name
    if not name:
        raise InvalidJobError("job ID is required")

    writer = DocumentWriter()
    writer.open_block(0, "job", name)
    _write_job_attributes(writer, job)

    for group in job.task_groups:
        _write_group(writer, group)

    writer.close_block(0)

    document = writer.getvalue().encode("utf-8")
    logger.debug(
        f"Serialized job {name}",
        extra={"event": "hcl.job.serialized", "job_name": name, "size_bytes": len(document)},
    )
    return document


def _write_job_attributes(writer: DocumentWriter, job: JobSpecification) -> None:
    if job.namespace and job.namespace != DEFAULT_NAMESPACE:
        writer.string_attribute(1, "namespace", job.namespace)
    writer.list_attribute(1, "datacenters", job.datacenters)
    writer.string_attribute(1, "type", job.type)
    writer.int_attribute(1, "priority", job.priority)
    writer.string_attribute(1, "region", job.region)
    writer.map_block(1, "meta", job.meta)
    _write_update(writer, 1, job.update)
    writer.line(0)


def _write_update(writer: DocumentWriter, level: int, update: Optional[UpdateStrategy]) -> None:
    if update is None:
        return
    has_parallel = update.max_parallel is not None and update.max_parallel > 0
    if not has_parallel and not update.health_check:
        return
    writer.open_block(level, "update")
    if has_parallel:
        writer.int_attribute(level + 1, "max_parallel", update.max_parallel)
    writer.string_attribute(level + 1, "health_check", update.health_check)
    writer.close_block(level)


def _write_group(writer: DocumentWriter, group: TaskGroup) -> None:
    if not group.name:
        return

    writer.open_block(1, "group", group.name)
    writer.int_attribute(2, "count", group.count)
    writer.map_block(2, "meta", group.meta)

    tasks = [task for task in group.tasks if task.name]
    if tasks:
        writer.line(0)
        for task in tasks:
            _write_task(writer, task)

    writer.close_block(1)
    writer.line(0)


def _write_task(writer: DocumentWriter, task: Task) -> None:
    writer.open_block(2, "task", task.name)
    writer.string_attribute(3, "driver", task.driver)
    writer.config_block(3, "config", task.config)
    writer.map_block(3, "env", task.env)
    _write_resources(writer, 3, task.resources)
    writer.map_block(3, "meta", task.meta)
    writer.close_block(2)


def _write_resources(writer: DocumentWriter, level: int, resources: Optional[Resources]) -> None:
    if resources is None:
        return
    has_cpu = resources.cpu is not None and resources.cpu > 0
    has_memory = resources.memory_mb is not None and resources.memory_mb > 0
    if not has_cpu and not has_memory:
        return
    writer.open_block(level, "resources")
    if has_cpu:
        writer.int_attribute(level + 1, "cpu", resources.cpu)
    if has_memory:
        writer.int_attribute(level + 1, "memory", resources.memory_mb)
    writer.close_block(level)
