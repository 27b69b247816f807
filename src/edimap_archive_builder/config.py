"""ビルド設定（build.yml）の読み込み.

設定ファイルの ``build:`` セクションを読み、CLI 引数で上書きする。
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from edimap_archive_builder.core.exceptions import InvalidArgumentError

OUTPUT_FORMATS = ("zip", "directory")


@dataclass(frozen=True)
class BuildConfig:
    definitions: Path
    output: Path
    urn: str
    output_format: str = "zip"
    overwrite: bool = False


def load_build_config(config_path: Path | str) -> dict[str, Any]:
    """設定ファイルを読み込んで ``build:`` セクションを返す.

    Args:
        config_path: YAML 設定ファイルのパス

    Returns:
        設定値の辞書（セクションが無ければ空）
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    values = config.get("build", {}) if isinstance(config, dict) else {}
    if not isinstance(values, dict):
        raise InvalidArgumentError("build", f"must be a mapping in {config_path}")

    logger.info(f"Loaded build config from {config_path}")
    return values


def resolve_build_config(file_values: dict[str, Any] | None = None, **overrides: Any) -> BuildConfig:
    """設定ファイルの値と CLI 引数をマージする（None でない CLI 値が優先）.

    Raises:
        InvalidArgumentError: 必須項目の欠落、または未知の出力形式
    """
    merged: dict[str, Any] = dict(file_values or {})
    merged.update({k: v for k, v in overrides.items() if v is not None})

    for required in ("definitions", "output", "urn"):
        if not merged.get(required):
            raise InvalidArgumentError(required, "is required (config file or command line)")

    output_format = str(merged.get("output_format", "zip"))
    if output_format not in OUTPUT_FORMATS:
        raise InvalidArgumentError("output_format", f"must be one of {', '.join(OUTPUT_FORMATS)}")

    return BuildConfig(
        definitions=Path(merged["definitions"]),
        output=Path(merged["output"]),
        urn=str(merged["urn"]),
        output_format=output_format,
        overwrite=bool(merged.get("overwrite", False)),
    )
