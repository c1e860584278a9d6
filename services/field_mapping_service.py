"""
Field mapping engine.

Proposes and tracks correspondences between the source headers of one feed
and the standard target catalog, plus any user-defined custom fields.
One engine per workflow session; nothing here is module-level state.
"""

import re
from typing import Optional, Sequence

import structlog

from config.catalog import STANDARD_TARGET_FIELDS
from exceptions import CustomFieldNotFoundError, MissingRequiredFieldsError
from models.history import MappingSnapshot
from models.mapping import (
    CUSTOM_MAPPINGS_KEY,
    NOT_MAPPED,
    CustomFieldMapping,
    CustomFieldUpdate,
    FieldMapping,
    MappingCounts,
    MappingState,
    is_mapped,
)
from models.schema import TargetFieldSpec

logger = structlog.get_logger(__name__)

_TRAILING_NUMBER = re.compile(r"\d+$")


def find_matching_header(target_name: str, source_fields: Sequence[str]) -> Optional[str]:
    """
    First header whose lowercase form contains, or is contained in, the
    lowercase target name. Plain substring test, no scoring.
    """
    target = target_name.lower()
    for source in source_fields:
        candidate = source.lower()
        if candidate in target or target in candidate:
            return source
    return None


class FieldMappingEngine:
    """
    Mapping state for one feed.

    Attributes:
        source_fields: Headers of the parsed feed, in file order
        mappings: target name -> source header or NOT_MAPPED
        custom_fields: User-defined correspondences
    """

    def __init__(
        self,
        source_fields: Sequence[str],
        catalog: Sequence[TargetFieldSpec] = STANDARD_TARGET_FIELDS,
        auto_map: bool = True,
    ):
        self.catalog = tuple(catalog)
        self.source_fields: list[str] = list(source_fields)
        self.mappings: FieldMapping = {spec.name: NOT_MAPPED for spec in self.catalog}
        self.custom_fields: list[CustomFieldMapping] = []
        self._next_custom_id = 1
        if auto_map:
            self.auto_map()

    # ===================
    # STANDARD MAPPINGS
    # ===================

    def auto_map(self) -> FieldMapping:
        """
        Map every target to the first header matching it by substring.

        Targets without a match keep whatever they were mapped to before.

        Returns:
            Copy of the resulting mappings
        """
        matched = 0
        for spec in self.catalog:
            source = find_matching_header(spec.name, self.source_fields)
            if source is not None:
                self.mappings[spec.name] = source
                matched += 1
            else:
                self.mappings.setdefault(spec.name, NOT_MAPPED)

        logger.info("fields_auto_mapped", matched=matched, targets=len(self.catalog))
        return dict(self.mappings)

    def set_mapping(self, target: str, source: str) -> None:
        """
        Point `target` at `source`.

        No membership check: a source that is not a header simply never
        reaches the schema, which re-validates on generation.
        """
        self.mappings[target] = source
        logger.debug("field_mapping_set", target=target, source=source)

    def set_source_fields(self, source_fields: Sequence[str]) -> None:
        """Replace the header set; mappings to vanished headers are reset."""
        self.source_fields = list(source_fields)
        available = set(self.source_fields)
        reset = []
        for target, source in self.mappings.items():
            if source != NOT_MAPPED and source not in available:
                self.mappings[target] = NOT_MAPPED
                reset.append(target)
        if reset:
            logger.info("field_mappings_reset", targets=reset)

    @property
    def unmapped_source_fields(self) -> list[str]:
        """Headers used by neither a standard nor a custom mapping."""
        used = {source for source in self.mappings.values() if is_mapped(source)}
        used.update(cf.source_field for cf in self.custom_fields if is_mapped(cf.source_field))
        return [source for source in self.source_fields if source not in used]

    # ===================
    # CUSTOM FIELDS
    # ===================

    def add_custom_field(self) -> CustomFieldMapping:
        """Append an unmapped custom field with the next session-wide number."""
        number = self._next_custom_id
        self._next_custom_id += 1
        custom_field = CustomFieldMapping(
            id=f"custom-{number}",
            name=f"custom_field_{number}",
            source_field=NOT_MAPPED,
        )
        self.custom_fields.append(custom_field)
        logger.debug("custom_field_added", id=custom_field.id)
        return custom_field

    def update_custom_field(self, custom_field_id: str, patch: CustomFieldUpdate) -> CustomFieldMapping:
        """
        Merge `patch` into a custom field.

        Raises:
            CustomFieldNotFoundError: If no custom field has this id
        """
        index = self._custom_index(custom_field_id)
        changes = patch.model_dump(exclude_none=True)
        updated = self.custom_fields[index].model_copy(update=changes)
        self.custom_fields[index] = updated
        logger.debug("custom_field_updated", id=custom_field_id, changes=list(changes))
        return updated

    def remove_custom_field(self, custom_field_id: str) -> None:
        """
        Raises:
            CustomFieldNotFoundError: If no custom field has this id
        """
        del self.custom_fields[self._custom_index(custom_field_id)]
        logger.debug("custom_field_removed", id=custom_field_id)

    def _custom_index(self, custom_field_id: str) -> int:
        for index, custom_field in enumerate(self.custom_fields):
            if custom_field.id == custom_field_id:
                return index
        raise CustomFieldNotFoundError(custom_field_id)

    # ===================
    # VALIDATION & OUTPUT
    # ===================

    def missing_required_fields(self) -> list[str]:
        return [
            spec.name
            for spec in self.catalog
            if spec.required and not is_mapped(self.mappings.get(spec.name))
        ]

    def validate_required(self) -> None:
        """
        Gate before schema design.

        Raises:
            MissingRequiredFieldsError: If a required target is not mapped
        """
        missing = self.missing_required_fields()
        if missing:
            logger.info("mapping_validation_failed", missing=missing)
            raise MissingRequiredFieldsError(missing)
        logger.info("mapping_validated")

    def combined_mappings(self) -> dict:
        """
        Standard mappings plus a CUSTOM_MAPPINGS_KEY entry (name -> source)
        for custom fields that have a source.

        When two custom fields share a name the first one wins.
        """
        combined: dict = dict(self.mappings)
        custom: dict[str, str] = {}
        for cf in self.custom_fields:
            if not is_mapped(cf.source_field):
                continue
            if cf.name in custom:
                logger.warning("custom_field_name_conflict", names=[cf.name], id=cf.id)
                continue
            custom[cf.name] = cf.source_field
        if custom:
            combined[CUSTOM_MAPPINGS_KEY] = custom
        return combined

    def mapped_counts(self) -> MappingCounts:
        return MappingCounts(
            standard=sum(1 for source in self.mappings.values() if is_mapped(source)),
            custom=sum(1 for cf in self.custom_fields if is_mapped(cf.source_field)),
        )

    def state(self) -> MappingState:
        return MappingState(
            source_fields=list(self.source_fields),
            mappings=dict(self.mappings),
            custom_fields=list(self.custom_fields),
            unmapped_source_fields=self.unmapped_source_fields,
            missing_required_fields=self.missing_required_fields(),
            counts=self.mapped_counts(),
        )

    # ===================
    # SNAPSHOTS
    # ===================

    def snapshot_fields(self) -> dict:
        """Fields of a MappingSnapshot (id/timestamp/name are added by history)."""
        return {
            "source_fields": list(self.source_fields),
            "mappings": dict(self.mappings),
            "custom_fields": list(self.custom_fields),
            "unmapped_fields": self.unmapped_source_fields,
        }

    def load_snapshot(self, snapshot: MappingSnapshot) -> None:
        """
        Restore mappings and custom fields verbatim.

        The source headers stay those of the current feed. Custom field
        numbering continues after the last restored custom field.
        """
        self.mappings = dict(snapshot.mappings)
        self.custom_fields = list(snapshot.custom_fields)
        if self.custom_fields:
            match = _TRAILING_NUMBER.search(self.custom_fields[-1].id)
            if match:
                self._next_custom_id = int(match.group()) + 1
        logger.info(
            "mapping_snapshot_loaded",
            snapshot_id=snapshot.id,
            custom_fields=len(self.custom_fields),
        )
