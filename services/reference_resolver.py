"""
Reference resolver: maps category and supplier names to backend identifiers.

A resolver lives for exactly one import batch. It fetches each reference
list at most once, then answers from its dedup cache keyed by
(kind, normalized name), so a batch issues at most one create call per
distinct name no matter how many rows mention it.

Failed creations are not cached: a later row with the same name gets a
fresh attempt.
"""

from typing import Optional
import structlog

from exceptions import AppError, BackendUnavailableError, ResolutionError
from models.imports import ReferenceKind, ResolvedReference
from services.backend import InventoryBackend
from utils.text_utils import normalize_reference_name

logger = structlog.get_logger(__name__)


CacheKey = tuple[ReferenceKind, str]


class ReferenceResolver:
    """
    Batch-scoped name → identifier resolution with create-once semantics.

    Args:
        backend: Inventory backend
        allow_create: Per-kind switch; when False a missing name fails the row
            without any create call
    """

    def __init__(
        self,
        backend: InventoryBackend,
        allow_create: Optional[dict[ReferenceKind, bool]] = None
    ):
        self.backend = backend
        self.allow_create = {
            ReferenceKind.CATEGORY: True,
            ReferenceKind.SUPPLIER: True,
            **(allow_create or {}),
        }
        self._cache: dict[CacheKey, ResolvedReference] = {}
        self._existing: dict[ReferenceKind, dict[str, dict]] = {}
        self._created: dict[ReferenceKind, list[ResolvedReference]] = {
            ReferenceKind.CATEGORY: [],
            ReferenceKind.SUPPLIER: [],
        }

    # ===================
    # LOOKUP LISTS
    # ===================

    def prefetch(self, *kinds: ReferenceKind) -> None:
        """Load the reference lists up front (default: all kinds)."""
        for kind in kinds or tuple(ReferenceKind):
            self._existing_for(kind)

    def _existing_for(self, kind: ReferenceKind) -> dict[str, dict]:
        """
        Existing entities of ``kind`` keyed by normalized name.

        Fetched once per resolver. A failed fetch means the batch cannot
        proceed, so it surfaces as BackendUnavailableError.
        """
        if kind not in self._existing:
            fetch = (
                self.backend.list_categories
                if kind == ReferenceKind.CATEGORY
                else self.backend.list_suppliers
            )
            try:
                rows = fetch()
            except BackendUnavailableError:
                raise
            except AppError as e:
                raise BackendUnavailableError(f"list_{kind.value}", e.message) from e

            index: dict[str, dict] = {}
            for entity in rows:
                key = normalize_reference_name(entity.get("name"))
                # First match wins if the backend already holds duplicates
                if key is not None and key not in index:
                    index[key] = entity
            self._existing[kind] = index

            logger.debug("reference_list_loaded", kind=kind.value, count=len(index))

        return self._existing[kind]

    def find_existing(self, kind: ReferenceKind, raw_name: str) -> Optional[dict]:
        """Read-only lookup, used by dry runs."""
        key = normalize_reference_name(raw_name)
        if key is None:
            return None
        return self._existing_for(kind).get(key)

    # ===================
    # RESOLUTION
    # ===================

    def resolve(
        self,
        kind: ReferenceKind,
        raw_name: str,
        store_scope: Optional[str] = None
    ) -> ResolvedReference:
        """
        Resolve ``raw_name`` to a backend identifier.

        Raises:
            ResolutionError: Name missing and creation disabled or rejected
            BackendUnavailableError: Backend cannot be reached
        """
        kind = ReferenceKind(kind)
        key = normalize_reference_name(raw_name)
        if key is None:
            raise ResolutionError(kind.value, str(raw_name or ""), reason="empty name")

        cached = self._cache.get((kind, key))
        if cached is not None:
            return cached

        existing = self._existing_for(kind).get(key)
        if existing is not None:
            resolved = ResolvedReference(
                kind=kind,
                name=existing["name"],
                id=existing["id"],
                created=False
            )
            self._cache[(kind, key)] = resolved
            return resolved

        if not self.allow_create.get(kind, False):
            logger.info(
                "reference_missing_creation_disabled",
                kind=kind.value,
                name=raw_name,
                store=store_scope
            )
            raise ResolutionError(kind.value, raw_name.strip(), reason="creation disabled")

        return self._create(kind, key, raw_name.strip(), store_scope)

    def _create(
        self,
        kind: ReferenceKind,
        key: str,
        name: str,
        store_scope: Optional[str]
    ) -> ResolvedReference:
        create = (
            self.backend.create_category
            if kind == ReferenceKind.CATEGORY
            else self.backend.create_supplier
        )
        try:
            entity = create(name)
        except BackendUnavailableError:
            raise
        except AppError as e:
            logger.warning(
                "reference_create_failed",
                kind=kind.value,
                name=name,
                store=store_scope,
                error=e.message
            )
            raise ResolutionError(kind.value, name, reason=e.message) from e

        resolved = ResolvedReference(
            kind=kind,
            name=entity.get("name", name),
            id=entity["id"],
            created=True
        )
        self._cache[(kind, key)] = resolved
        self._created[kind].append(resolved)

        logger.info(
            "reference_created",
            kind=kind.value,
            name=resolved.name,
            id=resolved.id,
            store=store_scope
        )
        return resolved

    def created_references(self, kind: ReferenceKind) -> list[ResolvedReference]:
        """References created by this resolver, first-created-first-listed."""
        return list(self._created[ReferenceKind(kind)])
