from typing import Sequence

from pydantic import TypeAdapter, ValidationError

from app.core.errors import CacheDecodeError
from app.models import TaskRecord

_task_list = TypeAdapter(list[TaskRecord])


def encode_tasks(records: Sequence[TaskRecord]) -> bytes:
    """Serialize task records, preserving order, as a JSON array."""
    return _task_list.dump_json(list(records))


def decode_tasks(raw: bytes | str) -> list[TaskRecord]:
    try:
        return _task_list.validate_json(raw)
    except ValidationError as e:
        raise CacheDecodeError(f"malformed task list payload: {e.error_count()} errors") from e
