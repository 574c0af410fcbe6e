"""Data models for FCB1010 presets."""

from fcbmanager.models.preset import GlobalSettings, Preset, PresetModel

__all__ = ["GlobalSettings", "Preset", "PresetModel"]
