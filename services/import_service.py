"""
Batch importer for product and order rows.

Each row runs validate → resolve → build → create in input order. A row
that fails at any stage is recorded and the batch moves on; only an
unreachable backend stops the batch, and even then the rows already
processed are handed back inside BatchAbortedError.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Union
import threading
import structlog

from pydantic import BaseModel, ValidationError as PydanticValidationError

from config import Settings, get_settings
from exceptions import (
    AppError,
    BackendUnavailableError,
    BatchAbortedError,
    CreationError,
    RowValidationError,
    ValidationError,
)
from models.imports import (
    CandidateRow,
    ImportKind,
    ImportOptions,
    ImportPreview,
    ImportReport,
    ReferenceKind,
    ResolvedReference,
    RowPreview,
    RowResult,
    RowStage,
)
from models.order import OrderPayload
from models.product import ProductPayload
from services.backend import InventoryBackend, get_backend
from services.entity_builder import OrderBuilder, ProductBuilder
from services.reference_resolver import ReferenceResolver
from services.row_adapter import adapt_row
from services.schema_validator import RowValidator, get_validator
from utils.text_utils import normalize_reference_name

logger = structlog.get_logger(__name__)


RawRow = Union[CandidateRow, Mapping[str, Any], BaseModel]


class CancellationToken:
    """Cooperative cancel flag, checked by the importer between rows."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class ImportPipeline:
    """Validator, builder, references and create call for one import kind."""
    kind: ImportKind
    entity: str
    validator: RowValidator
    builder: Union[ProductBuilder, OrderBuilder]
    references: dict[ReferenceKind, str]
    create_method: str


def _product_pipeline(settings: Settings, options: ImportOptions) -> ImportPipeline:
    return ImportPipeline(
        kind=ImportKind.PRODUCT,
        entity="Product",
        validator=get_validator(ImportKind.PRODUCT),
        builder=ProductBuilder(settings.default_min_stock_level),
        references={
            ReferenceKind.CATEGORY: "category",
            ReferenceKind.SUPPLIER: "supplier",
        },
        create_method="create_product",
    )


def _order_pipeline(settings: Settings, options: ImportOptions) -> ImportPipeline:
    return ImportPipeline(
        kind=ImportKind.ORDER,
        entity="Order",
        validator=get_validator(ImportKind.ORDER),
        builder=OrderBuilder(options.channel),
        references={},
        create_method="create_order",
    )


PIPELINES = {
    ImportKind.PRODUCT: _product_pipeline,
    ImportKind.ORDER: _order_pipeline,
}


class ImportService:
    """
    Bulk import orchestration.

    A fresh ReferenceResolver (and so a fresh dedup cache) is built for
    every batch.
    """

    def __init__(
        self,
        backend: Optional[InventoryBackend] = None,
        settings: Optional[Settings] = None
    ):
        self.backend = backend if backend is not None else get_backend()
        self.settings = settings or get_settings()

    # ===================
    # IMPORT
    # ===================

    def import_batch(
        self,
        rows: Iterable[RawRow],
        kind: ImportKind,
        store_id: str,
        options: Optional[ImportOptions] = None,
        cancel_token: Optional[CancellationToken] = None
    ) -> ImportReport:
        """
        Import rows of one kind into one store.

        Args:
            rows: Mappings, CandidateRows or pydantic models, in input order
            kind: PRODUCT or ORDER
            store_id: Store every created entity belongs to
            options: Creation switches and order channel
            cancel_token: Checked between rows

        Returns:
            ImportReport with one RowResult per processed row

        Raises:
            ValidationError: Missing store or oversized batch (nothing imported)
            BatchAbortedError: Backend became unreachable; carries partial report
        """
        kind = ImportKind(kind)
        options = options or ImportOptions.from_settings(self.settings)
        candidates = self._to_candidates(rows)
        self._check_batch(candidates, store_id)

        pipeline = PIPELINES[kind](self.settings, options)
        resolver = ReferenceResolver(
            self.backend,
            allow_create={ref: options.allows_create(ref) for ref in ReferenceKind}
        )

        logger.info(
            "import_batch_started",
            kind=kind.value,
            store_id=store_id,
            rows=len(candidates),
            create_categories=options.create_missing_categories,
            create_suppliers=options.create_missing_suppliers
        )

        results: list[RowResult] = []
        cancelled = False

        try:
            if candidates and pipeline.references:
                resolver.prefetch(*pipeline.references)

            for row in candidates:
                if cancel_token is not None and cancel_token.cancelled:
                    cancelled = True
                    logger.warning(
                        "import_batch_cancelled",
                        processed=len(results),
                        remaining=len(candidates) - len(results)
                    )
                    break
                results.append(self._process_row(row, pipeline, resolver, store_id))

        except BackendUnavailableError as e:
            report = self._build_report(kind, store_id, results, resolver, cancelled)
            logger.error(
                "import_batch_aborted",
                kind=kind.value,
                processed=report.total,
                successful=report.successful,
                error=e.message
            )
            raise BatchAbortedError(report, e) from e

        report = self._build_report(kind, store_id, results, resolver, cancelled)

        logger.info(
            "import_batch_completed",
            kind=kind.value,
            store_id=store_id,
            total=report.total,
            successful=report.successful,
            failed=report.failed,
            new_categories=len(report.new_categories),
            new_suppliers=len(report.new_suppliers),
            cancelled=report.cancelled
        )

        return report

    def _process_row(
        self,
        row: CandidateRow,
        pipeline: ImportPipeline,
        resolver: ReferenceResolver,
        store_id: str
    ) -> RowResult:
        """Run one row through the state machine; failures end the row only."""
        stage = RowStage.VALIDATING
        try:
            adapted = adapt_row(row)
            validation = pipeline.validator.validate(adapted)
            validation.raise_for_errors()

            stage = RowStage.RESOLVING
            refs: dict[ReferenceKind, ResolvedReference] = {}
            for ref_kind, field_name in pipeline.references.items():
                refs[ref_kind] = resolver.resolve(ref_kind, validation.values[field_name], store_id)

            stage = RowStage.BUILDING
            payload = self._build(pipeline, validation.values, refs, store_id)

            stage = RowStage.CREATING
            created = self._create(pipeline, payload)

        except BackendUnavailableError:
            raise
        except AppError as e:
            logger.info(
                "row_failed",
                row=row.index,
                stage=stage.value,
                code=e.code,
                error=e.message
            )
            return RowResult(
                row_index=row.index,
                success=False,
                error=e.message,
                error_code=e.code
            )
        except Exception as e:
            logger.error(
                "row_failed_unexpectedly",
                row=row.index,
                stage=stage.value,
                error=str(e),
                error_type=type(e).__name__
            )
            return RowResult(
                row_index=row.index,
                success=False,
                error=str(e),
                error_code="UNEXPECTED_ERROR"
            )

        logger.debug("row_imported", row=row.index, entity_id=created.get("id"))

        return RowResult(
            row_index=row.index,
            success=True,
            entity=payload,
            entity_id=created.get("id")
        )

    def _build(
        self,
        pipeline: ImportPipeline,
        values: dict[str, Any],
        refs: dict[ReferenceKind, ResolvedReference],
        store_id: str
    ) -> Union[ProductPayload, OrderPayload]:
        try:
            return pipeline.builder.build(values, refs, store_id)
        except PydanticValidationError as e:
            fields = [".".join(str(p) for p in err["loc"]) or "row" for err in e.errors()]
            raise RowValidationError(
                fields,
                [{"field": f, "error": err["msg"]} for f, err in zip(fields, e.errors())]
            ) from e

    def _create(
        self,
        pipeline: ImportPipeline,
        payload: Union[ProductPayload, OrderPayload]
    ) -> dict:
        create = getattr(self.backend, pipeline.create_method)
        try:
            return create(payload.model_dump(mode="json")) or {}
        except BackendUnavailableError:
            raise
        except AppError as e:
            raise CreationError(pipeline.entity, e.message, details={"cause": e.code}) from e

    # ===================
    # DRY RUN
    # ===================

    def preview_batch(
        self,
        rows: Iterable[RawRow],
        kind: ImportKind
    ) -> ImportPreview:
        """
        Validate rows and list the references an import would create.

        Reads reference lists but never writes to the backend.
        """
        kind = ImportKind(kind)
        candidates = self._to_candidates(rows)
        if len(candidates) > self.settings.import_max_rows:
            raise ValidationError(
                f"Batch has {len(candidates)} rows, limit is {self.settings.import_max_rows}",
                code="IMPORT_TOO_LARGE"
            )

        pipeline = PIPELINES[kind](self.settings, ImportOptions.from_settings(self.settings))
        resolver = ReferenceResolver(self.backend)

        previews: list[RowPreview] = []
        unknown: dict[ReferenceKind, list[str]] = {k: [] for k in ReferenceKind}
        seen: dict[ReferenceKind, set[str]] = {k: set() for k in ReferenceKind}

        for row in candidates:
            validation = pipeline.validator.validate(adapt_row(row))
            previews.append(RowPreview(
                row_index=row.index,
                valid=validation.valid,
                errors=[f"{e.field}: {e.error}" for e in validation.errors]
            ))
            if not validation.valid:
                continue

            for ref_kind, field_name in pipeline.references.items():
                name = validation.values[field_name]
                key = normalize_reference_name(name)
                if key in seen[ref_kind]:
                    continue
                seen[ref_kind].add(key)
                if resolver.find_existing(ref_kind, name) is None:
                    unknown[ref_kind].append(name)

        valid = sum(1 for p in previews if p.valid)

        logger.info(
            "import_preview_completed",
            kind=kind.value,
            total=len(previews),
            valid=valid,
            unknown_categories=len(unknown[ReferenceKind.CATEGORY]),
            unknown_suppliers=len(unknown[ReferenceKind.SUPPLIER])
        )

        return ImportPreview(
            kind=kind,
            total=len(previews),
            valid=valid,
            invalid=len(previews) - valid,
            rows=previews,
            unknown_categories=unknown[ReferenceKind.CATEGORY],
            unknown_suppliers=unknown[ReferenceKind.SUPPLIER],
        )

    # ===================
    # HELPERS
    # ===================

    def _to_candidates(self, rows: Iterable[RawRow]) -> list[CandidateRow]:
        """Number rows from 1 in input order; CandidateRows keep their index."""
        candidates = []
        for position, row in enumerate(rows, start=1):
            if isinstance(row, CandidateRow):
                candidates.append(row)
            elif isinstance(row, BaseModel):
                candidates.append(CandidateRow(index=position, values=row.model_dump()))
            elif isinstance(row, Mapping):
                candidates.append(CandidateRow(index=position, values=dict(row)))
            else:
                # Not an object at all: validates as a row with every field missing
                candidates.append(CandidateRow(index=position, values={}))
        return candidates

    def _check_batch(self, candidates: list[CandidateRow], store_id: str) -> None:
        if not store_id or not str(store_id).strip():
            raise ValidationError(
                "A target store is required for import",
                code="STORE_REQUIRED"
            )
        if len(candidates) > self.settings.import_max_rows:
            raise ValidationError(
                f"Batch has {len(candidates)} rows, limit is {self.settings.import_max_rows}",
                code="IMPORT_TOO_LARGE",
                details={"rows": len(candidates), "limit": self.settings.import_max_rows}
            )

    def _build_report(
        self,
        kind: ImportKind,
        store_id: str,
        results: list[RowResult],
        resolver: ReferenceResolver,
        cancelled: bool
    ) -> ImportReport:
        return ImportReport.from_results(
            kind=kind,
            store_id=store_id,
            results=results,
            new_categories=_unique_by_id(resolver.created_references(ReferenceKind.CATEGORY)),
            new_suppliers=_unique_by_id(resolver.created_references(ReferenceKind.SUPPLIER)),
            cancelled=cancelled,
        )


def _unique_by_id(refs: list[ResolvedReference]) -> list[ResolvedReference]:
    seen = set()
    unique = []
    for ref in refs:
        if ref.id not in seen:
            seen.add(ref.id)
            unique.append(ref)
    return unique


# Singleton instance for convenience
_import_service: Optional[ImportService] = None

def get_import_service() -> ImportService:
    """Get or create ImportService instance."""
    global _import_service
    if _import_service is None:
        _import_service = ImportService()
    return _import_service
