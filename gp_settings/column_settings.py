"""Per-column settings editor backed by the store's ``column`` category."""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Mapping, Optional

from pydantic import ValidationError

from gp_common.errors import ColumnSettingsValidationError
from gp_conversion.api import (
    ColumnSettings,
    NativeColumnConfig,
    ensure_valid,
    from_native_column_config,
    merge_column_settings,
    to_native_column_config,
)
from gp_settings.store import SettingsStore

logger = logging.getLogger(__name__)

COLUMN_CATEGORY = "column"

NativeLookup = Callable[[str], Optional[Mapping[str, Any]]]


class ColumnSettingsEditor:
    """Creates entries lazily on first edit and keeps them until reset.

    ``native_lookup`` returns the live native config of a column; it seeds a
    new entry so that untouched fields reflect what the grid shows.
    """

    def __init__(self, store: SettingsStore, native_lookup: NativeLookup | None = None) -> None:
        self._store = store
        self._native_lookup = native_lookup

    def get(self, column_id: str) -> ColumnSettings | None:
        raw = self._store.get_settings(COLUMN_CATEGORY).get(column_id)
        if raw is None:
            return None
        return ColumnSettings.model_validate(raw)

    def all(self) -> dict[str, ColumnSettings]:
        return {
            column_id: ColumnSettings.model_validate(raw)
            for column_id, raw in self._store.get_settings(COLUMN_CATEGORY).items()
        }

    def _seed(self, column_id: str) -> ColumnSettings:
        native = self._native_lookup(column_id) if self._native_lookup else None
        if native is None:
            return ColumnSettings(column_id=column_id)
        return from_native_column_config(native, column_id)

    def update(self, column_id: str, section: str, changes: Mapping[str, Any]) -> ColumnSettings:
        """Apply one user edit; a failing edit raises and leaves the store untouched."""
        existing = self.get(column_id) or self._seed(column_id)
        try:
            merged = merge_column_settings(existing, column_id, section, dict(changes))
        except (ValueError, ValidationError) as exc:
            raise ColumnSettingsValidationError(
                f"Invalid {section} settings for column {column_id!r}",
                errors=[str(exc)],
                column_id=column_id,
                cause=exc,
            ) from exc
        ensure_valid(merged)
        self._store.update_settings(COLUMN_CATEGORY, {column_id: merged.to_wire()})
        logger.debug("Column %s section %s updated", column_id, section)
        return merged

    def reset(self, column_id: str | None = None) -> list[str]:
        """Drop the entry for ``column_id``, or every entry when omitted."""
        current = self._store.get_settings(COLUMN_CATEGORY)
        targets: Iterable[str] = list(current) if column_id is None else [column_id]
        removed = [key for key in targets if key in current]
        self._store.remove_keys(COLUMN_CATEGORY, removed)
        return removed

    def load(self, settings: Iterable[ColumnSettings]) -> None:
        """Seed entries from an external source such as a loaded profile."""
        bag = {entry.column_id: entry.to_wire() for entry in settings}
        if bag:
            self._store.update_settings(COLUMN_CATEGORY, bag)

    def native_overrides(self) -> list[NativeColumnConfig]:
        return [to_native_column_config(entry) for entry in self.all().values()]
