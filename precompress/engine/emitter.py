"""Applies compression results to the asset registry."""

from typing import Union

from ..assets.registry import AssetInfo, AssetRegistry
from ..assets.sources import RawSource
from ..util.logging import get_logger
from .naming import keeps_content_name

logger = get_logger(__name__)

DeleteMode = Union[bool, str]
KEEP_SOURCE_MAP = "keep-source-map"


class Emitter:
    """Emits compressed assets and does the bookkeeping on originals."""

    def __init__(self, registry: AssetRegistry, delete_mode: DeleteMode = False) -> None:
        self.registry = registry
        self.delete_mode = delete_mode

    def apply(
        self,
        stage_index: int,
        is_last_stage: bool,
        original_name: str,
        original_info: AssetInfo,
        template: str,
        new_name: str,
        compressed_source: RawSource,
        relation_name: str,
    ) -> bool:
        """Emit ``new_name`` and, on the last stage, delete or annotate the original.

        Returns True when the original was deleted.
        """
        info = AssetInfo(compressed=True)
        if original_info.immutable and keeps_content_name(template):
            info.immutable = True

        deleted = False
        if is_last_stage:
            deleted = self._finish_original(original_name, new_name, relation_name)

        self.registry.emit(new_name, compressed_source, info)
        logger.debug(f"Stage {stage_index}: {original_name} -> {new_name}")
        return deleted

    def _finish_original(self, original_name: str, new_name: str, relation_name: str) -> bool:
        if original_name not in self.registry:
            return False

        if self.delete_mode:
            if self.delete_mode == KEEP_SOURCE_MAP:
                # Drop the relation so the source map survives the delete
                self.registry.update(original_name, info_update={"related": {"sourceMap": None}})

            self.registry.delete(original_name)
            return True

        self.registry.update(original_name, info_update={"related": {relation_name: new_name}})
        return False
