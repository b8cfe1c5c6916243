"""Data preparation for export."""

import datetime
import json
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, Dict

from .. import __version__


def prepare_export(obj: Any) -> Any:
    """Convert reports, reviews, and summaries into JSON-serializable data."""
    if hasattr(obj, "to_dict"):
        return prepare_export(obj.to_dict())
    if is_dataclass(obj) and not isinstance(obj, type):
        return prepare_export(asdict(obj))
    if isinstance(obj, dict):
        return {
            (k.value if isinstance(k, Enum) else str(k)): prepare_export(v)
            for k, v in obj.items()
        }
    if isinstance(obj, (list, tuple)):
        return [prepare_export(v) for v in obj]
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime.datetime, datetime.date)):
        return obj.isoformat()
    return obj


def export_to_json(data: Any, filename: str) -> Dict[str, Any]:
    """Export data to a JSON file with export metadata."""
    payload = {
        "data": prepare_export(data),
        "metadata": {
            "export_timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
            "version": __version__,
        },
    }

    with open(filename, 'w', encoding='utf-8') as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    return payload
