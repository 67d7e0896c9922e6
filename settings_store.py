"""Persisted settings record: load, save and validated edits.

The record is stored as a JSON object with camelCase keys::

    {"outputDirectory": "FieldNotes", "alphaThreshold": 180, ...}

Missing keys take their defaults. Stored values that fail validation are
dropped with a warning and replaced by the default, field by field, so one
bad entry never discards the rest of the file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from config import (
    ALPHA_THRESHOLD,
    CONTRAST_ADJUSTMENT,
    CONVERT_TO_GRAYSCALE,
    FEATHERING_RANGE,
    FILE_NAME_TEMPLATE,
    INVERT_PROCESSING,
    MAX_HEIGHT,
    MAX_WIDTH,
    OUTPUT_DIRECTORY,
    PRESERVE_INK_COLOR,
    SETTINGS_FILE_NAME,
    USE_LUMINOSITY_FOR_ALPHA,
)
from errors import FileSystemError, InvalidSettingValueError
from processing.config import NUMERIC_LIMITS, InkSettings, check_numeric_setting

logger = logging.getLogger(__name__)

TRUE_WORDS = {"true", "yes", "on", "1"}
FALSE_WORDS = {"false", "no", "off", "0"}


class InkporterSettings(BaseModel):
    """Full settings record: output location, naming and processing.

    Attributes:
        output_directory: Folder receiving processed images.
        file_name_template: Naming pattern, see naming.generate_file_name().
        The remaining fields mirror processing.config.InkSettings.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    output_directory: str = OUTPUT_DIRECTORY
    file_name_template: str = FILE_NAME_TEMPLATE
    max_width: int = MAX_WIDTH
    max_height: int = MAX_HEIGHT
    contrast_adjustment: int = CONTRAST_ADJUSTMENT
    alpha_threshold: int = ALPHA_THRESHOLD
    feathering_range: int = FEATHERING_RANGE
    invert_processing: bool = INVERT_PROCESSING
    preserve_ink_color: bool = PRESERVE_INK_COLOR
    convert_to_grayscale: bool = CONVERT_TO_GRAYSCALE
    use_luminosity_for_alpha: bool = USE_LUMINOSITY_FOR_ALPHA

    @field_validator(*NUMERIC_LIMITS, mode="before")
    @classmethod
    def _validate_range(cls, v: Any, info) -> int:
        return check_numeric_setting(info.field_name, v)

    @field_validator("output_directory")
    @classmethod
    def _default_output_directory(cls, v: str) -> str:
        v = v.strip().strip("/\\")
        return v or OUTPUT_DIRECTORY

    @field_validator("file_name_template")
    @classmethod
    def _default_template(cls, v: str) -> str:
        return v.strip() or FILE_NAME_TEMPLATE

    @model_validator(mode="after")
    def _preserve_color_disables_grayscale(self) -> InkporterSettings:
        if self.preserve_ink_color and self.convert_to_grayscale:
            self.convert_to_grayscale = False
        return self

    def to_ink_settings(self) -> InkSettings:
        """Snapshot the processing fields for one pipeline run."""
        return InkSettings(
            alpha_threshold=self.alpha_threshold,
            feathering_range=self.feathering_range,
            contrast_adjustment=self.contrast_adjustment,
            invert_processing=self.invert_processing,
            preserve_ink_color=self.preserve_ink_color,
            convert_to_grayscale=self.convert_to_grayscale,
            use_luminosity_for_alpha=self.use_luminosity_for_alpha,
            max_width=self.max_width,
            max_height=self.max_height,
        )


def resolve_field_name(key: str) -> str:
    """Map a field name or its camelCase alias to the field name.

    Raises:
        InvalidSettingValueError: If no such setting exists.
    """
    fields = InkporterSettings.model_fields
    if key in fields:
        return key
    for name, info in fields.items():
        if info.alias == key:
            return name
    raise InvalidSettingValueError(key, None, f"Unknown setting: {key}")


def parse_setting_value(name: str, raw: Any) -> Any:
    """Convert text input (CLI, text fields) to the field's type.

    Non-string values are passed through for the model to validate.

    Raises:
        InvalidSettingValueError: If text cannot be parsed for the field type.
    """
    if not isinstance(raw, str):
        return raw
    annotation = InkporterSettings.model_fields[name].annotation
    text = raw.strip()
    if annotation is bool:
        lowered = text.lower()
        if lowered in TRUE_WORDS:
            return True
        if lowered in FALSE_WORDS:
            return False
        raise InvalidSettingValueError(name, raw, f"{name} must be true or false, got {raw!r}")
    if annotation is int:
        try:
            return int(text, 10)
        except ValueError:
            raise InvalidSettingValueError(name, raw, f"{name} must be an integer, got {raw!r}")
    return raw


def _first_error_message(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    message = errors[0].get("msg", str(exc))
    return message.removeprefix("Value error, ")


def update_setting(settings: InkporterSettings, key: str, raw_value: Any) -> InkporterSettings:
    """Return a copy of settings with one field changed.

    The input record is never modified, so on failure the caller still holds
    the prior valid value.

    Args:
        settings: Current record.
        key: Field name or camelCase alias.
        raw_value: New value, as text or already typed.

    Raises:
        InvalidSettingValueError: If the key is unknown or the value is rejected.
    """
    name = resolve_field_name(key)
    value = parse_setting_value(name, raw_value)
    data = settings.model_dump()
    data[name] = value
    try:
        return InkporterSettings.model_validate(data)
    except ValidationError as exc:
        raise InvalidSettingValueError(name, raw_value, _first_error_message(exc)) from exc


def settings_from_blob(blob: Any) -> InkporterSettings:
    """Build a record from a stored blob, defaulting missing or invalid fields."""
    settings = InkporterSettings()
    if not isinstance(blob, dict):
        logger.warning("Ignoring settings blob of type %s; using defaults", type(blob).__name__)
        return settings

    for key, value in blob.items():
        try:
            name = resolve_field_name(key)
        except InvalidSettingValueError:
            logger.debug("Ignoring unknown setting %r", key)
            continue
        try:
            settings = update_setting(settings, name, value)
        except InvalidSettingValueError as exc:
            logger.warning("Ignoring stored %s=%r: %s", name, value, exc)
    return settings


def get_settings_path() -> Path:
    return Path.cwd() / SETTINGS_FILE_NAME


def load_settings(path: Path | None = None) -> InkporterSettings:
    """Load the settings record, or defaults if the file does not exist.

    Raises:
        FileSystemError: If the file exists but cannot be read.
    """
    if path is None:
        path = get_settings_path()
    if not path.exists():
        return InkporterSettings()
    try:
        with open(path, "r", encoding="utf-8") as f:
            blob = json.load(f)
    except json.JSONDecodeError as exc:
        logger.warning("Settings file %s is not valid JSON (%s); using defaults", path, exc)
        return InkporterSettings()
    except OSError as exc:
        raise FileSystemError(f"Could not read settings file {path}: {exc}") from exc
    return settings_from_blob(blob)


def save_settings(settings: InkporterSettings, path: Path | None = None) -> None:
    """Write the settings record as camelCase JSON.

    Raises:
        FileSystemError: If the file cannot be written.
    """
    if path is None:
        path = get_settings_path()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(settings.model_dump(by_alias=True), f, indent=2)
    except OSError as exc:
        raise FileSystemError(f"Could not write settings file {path}: {exc}") from exc
