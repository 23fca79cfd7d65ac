from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class RelationConfig(BaseModel):
    key: str
    endpoint: str
    label_key: str = "name"


class ColumnConfig(BaseModel):
    key: str
    label: str
    type: str | None = None
    # Name of a relation whose id -> label map replaces the raw value.
    ref: str | None = None
    # The value may be a list of ids; labels are joined with ", ".
    join: bool = False
    sortable: bool = True
    hideable: bool = True


class FilterConfig(BaseModel):
    key: str
    label: str
    component: str = "text"
    props: dict[str, Any] = Field(default_factory=dict)
    options_from: str | None = None


class ScreenConfig(BaseModel):
    title: str
    endpoint: str
    # Falls back to Settings.default_page_size.
    page_size: int | None = Field(default=None, gt=0)
    messages: dict[str, str] = Field(default_factory=dict)
    relations: list[RelationConfig] = Field(default_factory=list)
    columns: list[ColumnConfig] = Field(default_factory=list)
    filters: list[FilterConfig] = Field(default_factory=list)
    form: str | None = None
    export_formats: list[str] = Field(default_factory=list)
    filter_fn: str | None = None
    row_action: str | None = None
    close_on_delete_error: bool = True


class ScreensConfigModel(BaseModel):
    screens: dict[str, ScreenConfig] = Field(default_factory=dict)


def load_screens_config(path: Path) -> dict[str, ScreenConfig]:
    raw_text = Path(path).read_text(encoding="utf-8")
    raw: dict[str, Any] = yaml.safe_load(raw_text) or {}

    if "screens" not in raw:
        raise ValueError(f"Missing top-level 'screens' key in config: {path}")

    return ScreensConfigModel.model_validate(raw).screens
