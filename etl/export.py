import json
import logging
import math
import os

logger = logging.getLogger(__name__)


def json_safe(value):
    """Replace NaN with None so the output is strict JSON."""
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, dict):
        return {k: json_safe(v) for k, v in value.items()}
    if isinstance(value, list):
        return [json_safe(v) for v in value]
    return value


def build_entity_objects(timelines: dict, extras: dict | None = None, rankings: dict | None = None) -> dict:
    """Merge score timelines, extras and rankings into one object per entity.

    Entities without a ranking (no defined rating) get ``None`` for the
    ranking fields.
    """
    extras = extras or {}
    rankings = rankings or {}
    data = {}
    for entity, records in timelines.items():
        obj = {"scores": [r.to_dict() for r in records]}
        obj.update(extras.get(entity, {}))
        ranked = rankings.get(entity)
        obj["score"] = ranked.score if ranked else None
        obj["rank"] = ranked.rank if ranked else None
        obj["percentile"] = ranked.percentile if ranked else None
        obj["grade"] = ranked.grade if ranked else None
        data[entity] = obj
    return json_safe(data)


def write_json(path: str, data) -> str:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(json_safe(data), f, indent=2, allow_nan=False)
    logger.info(f"Wrote {len(data)} entries to {path}")
    return path
