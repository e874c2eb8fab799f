"""MarkupFieldProcessor -- document-facing stage of the ingestkit-markup pipeline.

Runs a document through the following steps:

1. For every configured field present on the document, strip markup from
   each string value via :class:`MarkupStripper`.
2. Space-normalize the stripped values when ``space_normalize`` is set.
3. Record warnings for values that ended inside unterminated markup or
   referenced unknown entities.
4. Hand the document to the injected next stage.
5. Assemble and return :class:`ProcessingResult`.

Non-string values, missing fields, field order and boosts pass through
untouched.  Stages compose by passing one processor (or any callable
taking an ``InputDocument``) as another's ``next_stage``.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from typing import Any

from ingestkit_markup.config import MarkupProcessorConfig
from ingestkit_markup.errors import ErrorCode, IngestError
from ingestkit_markup.events import EventHook, logging_event_hook
from ingestkit_markup.models import InputDocument, ProcessingEvent, ProcessingResult
from ingestkit_markup.normalize import normalize_space
from ingestkit_markup.stripper import MarkupStripper

NextStage = Callable[[InputDocument], Any]


class MarkupFieldProcessor:
    """Strips markup from configured document fields, then forwards the document.

    Parameters
    ----------
    config:
        Stage configuration.  Uses defaults when *None*.
    next_stage:
        Called with the processed document.  Exceptions it raises
        propagate to the caller of :meth:`process`.
    event_hook:
        Receives :class:`ProcessingEvent` objects.  Defaults to
        :func:`logging_event_hook`.
    """

    def __init__(
        self,
        config: MarkupProcessorConfig | None = None,
        next_stage: NextStage | None = None,
        event_hook: EventHook | None = None,
    ) -> None:
        self._config = config or MarkupProcessorConfig()
        self._stripper = MarkupStripper.from_config(self._config)
        self._next_stage = next_stage
        self._emit = event_hook or logging_event_hook

    @property
    def config(self) -> MarkupProcessorConfig:
        return self._config

    @property
    def stripper(self) -> MarkupStripper:
        return self._stripper

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def clean_value(self, value: str | None) -> str:
        """Strip (and, if enabled, space-normalize) a single value."""
        stripped = self._stripper.strip(value)
        if self._config.space_normalize:
            return normalize_space(stripped)
        return stripped

    def process(self, document: InputDocument) -> ProcessingResult:
        """Clean the configured fields of *document* in place and forward it.

        Parameters
        ----------
        document:
            The document to process.  Field values are replaced in place;
            the same instance is forwarded and returned in the result.

        Returns
        -------
        ProcessingResult
            Counters, warnings and the processed document.
        """
        overall_start = time.monotonic()
        config = self._config

        fields_processed: list[str] = []
        fields_missing: list[str] = []
        warning_details: list[IngestError] = []
        values_stripped = 0
        values_passed_through = 0

        for field_name in config.fields:
            field = document.get_field(field_name)
            if field is None:
                fields_missing.append(field_name)
                self._emit(ProcessingEvent(name="field_missing", field_name=field_name))
                continue

            new_values: list[Any] = []
            field_stripped = 0
            for index, value in enumerate(field.values):
                if not isinstance(value, str):
                    new_values.append(value)
                    values_passed_through += 1
                    continue

                result = self._stripper.strip_detailed(value)
                text = normalize_space(result.text) if config.space_normalize else result.text
                new_values.append(text)
                field_stripped += 1

                if result.unterminated is not None:
                    warning_details.append(
                        IngestError(
                            code=ErrorCode.W_MARKUP_UNTERMINATED,
                            message=(
                                f"Value {index} ended inside unterminated markup "
                                f"({result.unterminated.value}); the open span was discarded"
                            ),
                            stage="strip",
                            recoverable=True,
                            field_name=field_name,
                        )
                    )
                    self._emit(
                        ProcessingEvent(
                            name="markup_unterminated",
                            field_name=field_name,
                            detail={"value_index": index, "state": result.unterminated.value},
                        )
                    )
                if result.entities_unknown:
                    warning_details.append(
                        IngestError(
                            code=ErrorCode.W_ENTITY_UNKNOWN,
                            message=(
                                f"Value {index} kept {len(result.entities_unknown)} unknown "
                                f"entity reference(s) literally"
                            ),
                            stage="strip",
                            recoverable=True,
                            field_name=field_name,
                        )
                    )
                    self._emit(
                        ProcessingEvent(
                            name="entity_unknown",
                            field_name=field_name,
                            detail={
                                "value_index": index,
                                "entities": ",".join(sorted(set(result.entities_unknown))),
                            },
                        )
                    )

            field.values = new_values
            values_stripped += field_stripped
            fields_processed.append(field_name)
            self._emit(
                ProcessingEvent(
                    name="field_processed",
                    field_name=field_name,
                    detail={"values": len(new_values), "stripped": field_stripped},
                )
            )

        forwarded = False
        if self._next_stage is not None:
            self._next_stage(document)
            forwarded = True
            self._emit(ProcessingEvent(name="document_forwarded"))

        elapsed = time.monotonic() - overall_start
        self._emit(
            ProcessingEvent(
                name="document_processed",
                detail={
                    "fields": len(fields_processed),
                    "missing": len(fields_missing),
                    "stripped": values_stripped,
                    "warnings": len(warning_details),
                    "time": f"{elapsed:.3f}s",
                },
            )
        )

        return ProcessingResult(
            document=document,
            parser_version=config.parser_version,
            tenant_id=config.tenant_id,
            fields_processed=fields_processed,
            fields_missing=fields_missing,
            values_stripped=values_stripped,
            values_passed_through=values_passed_through,
            forwarded=forwarded,
            warnings=[e.code for e in warning_details],
            error_details=warning_details,
            processing_time_seconds=elapsed,
        )

    def __call__(self, document: InputDocument) -> ProcessingResult:
        return self.process(document)

    async def aprocess(self, document: InputDocument) -> ProcessingResult:
        """Async wrapper around :meth:`process`.

        Offloads the synchronous ``process()`` call to a thread via
        ``asyncio.to_thread()``.
        """
        return await asyncio.to_thread(self.process, document)
