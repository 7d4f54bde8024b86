import copy
import json
from pathlib import Path

from assetplace.schema import AssetRecord, ProjectionConfig


def write_request(tmp_path: Path, data: dict, filename: str = "request.json") -> Path:
    path = tmp_path / filename
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def clone_request(data: dict) -> dict:
    return copy.deepcopy(data)


def make_asset(asset_id: str, asset_class: str, value: float, **fields) -> AssetRecord:
    return AssetRecord.from_dict({"id": asset_id, "asset_class": asset_class, "value": value, **fields}, "asset")


def make_config(**fields) -> ProjectionConfig:
    data = {"years": 5, "start_year": 2025}
    data.update(fields)
    return ProjectionConfig.from_dict(data)
