"""
Structured Response Validator.

Turns raw generator output into HairAnalysis / ColorPlan records, or
rejects it with a tagged failure. This is the only place generator text
is parsed; everything downstream sees validated records.
"""

from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Mapping, Optional, Type, TypeVar, Union
import json

from pydantic import ValidationError

from chromalab.core.exceptions import (
    IncompleteResponseError,
    MalformedResponseError,
    UnparseableResponseError,
)
from chromalab.models.analysis import HairAnalysis
from chromalab.models.enums import ValidationFailureKind
from chromalab.models.plan import ColorPlan, FashionOverlay, PreLighten, Tone
from chromalab.models.wire import (
    AnalysisPayload,
    FashionOverlayPayload,
    PlanCorePayload,
    PreLightenPayload,
    TonePayload,
    WirePayload,
)
from chromalab.utils.logger import get_logger

logger = get_logger(__name__)

RecordT = TypeVar("RecordT")
RawPayload = Union[str, bytes, Mapping[str, Any]]


@dataclass(frozen=True)
class ValidationResult(Generic[RecordT]):
    """
    Tagged validation outcome.

    Exactly one of record / (kind, message) is meaningful, selected by ok.
    """
    ok: bool
    record: Optional[RecordT] = None
    kind: Optional[ValidationFailureKind] = None
    message: Optional[str] = None
    fields: tuple = ()

    @classmethod
    def success(cls, record: RecordT) -> "ValidationResult[RecordT]":
        return cls(ok=True, record=record)

    @classmethod
    def failure(cls, error: MalformedResponseError) -> "ValidationResult[RecordT]":
        return cls(
            ok=False,
            kind=error.kind,
            message=error.message,
            fields=tuple(error.fields),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "ok": self.ok,
            "record": self.record.to_dict() if self.record is not None else None,
            "kind": self.kind.value if self.kind else None,
            "message": self.message,
            "fields": list(self.fields),
        }


def _error_fields(error: ValidationError) -> List[str]:
    """Top-level field names (wire keys) named by a pydantic error."""
    names: List[str] = []
    for item in error.errors():
        loc = item.get("loc") or ()
        if loc:
            name = str(loc[0])
            if name not in names:
                names.append(name)
    return names


class ResponseValidator:
    """
    Validator for generator payloads.

    Parsing rules:
    - Text is stripped and must start with '{' and end with '}', then parse
      as a JSON object. No markdown fence stripping or substring recovery.
    - Analyses need all eight string fields. Porosity is not constrained.
    - Plans need a non-empty path and a non-empty list of string steps.
      A malformed optional section is dropped (None) with a warning.

    Usage:
        validator = ResponseValidator()
        analysis = validator.validate_analysis(raw_text)
        result = validator.check_plan(raw_text)
    """

    # (wire key, payload schema, record class)
    PLAN_SECTIONS = (
        ("preLighten", PreLightenPayload, PreLighten),
        ("tone", TonePayload, Tone),
        ("fashionOverlay", FashionOverlayPayload, FashionOverlay),
    )

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def validate_analysis(self, raw: RawPayload) -> HairAnalysis:
        """
        Validate raw analysis output.

        Raises:
            UnparseableResponseError: Not a JSON object
            IncompleteResponseError: Missing or non-string fields
        """
        data = self._parse(raw)
        try:
            payload = AnalysisPayload.model_validate(data)
        except ValidationError as e:
            fields = _error_fields(e)
            raise IncompleteResponseError(
                f"Analysis is missing or has invalid fields: {', '.join(fields)}",
                fields=fields,
            ) from None

        analysis = HairAnalysis(**payload.model_dump())
        if analysis.porosity_level is None:
            logger.info(
                "Analysis porosity outside canonical labels",
                porosity=analysis.porosity,
            )
        return analysis

    def validate_plan(self, raw: RawPayload) -> ColorPlan:
        """
        Validate raw plan output.

        Raises:
            UnparseableResponseError: Not a JSON object
            IncompleteResponseError: Bad path or steps
        """
        data = self._parse(raw)
        try:
            core = PlanCorePayload.model_validate(data)
        except ValidationError as e:
            fields = _error_fields(e)
            raise IncompleteResponseError(
                f"Plan is missing or has invalid fields: {', '.join(fields)}",
                fields=fields,
            ) from None

        sections: Dict[str, Any] = {}
        for key, schema, record_cls in self.PLAN_SECTIONS:
            sections[key] = self._section(data.get(key), key, schema, record_cls)

        return ColorPlan(
            path=core.path,
            steps=tuple(core.steps),
            pre_lighten=sections["preLighten"],
            tone=sections["tone"],
            fashion_overlay=sections["fashionOverlay"],
        )

    def check_analysis(self, raw: RawPayload) -> ValidationResult[HairAnalysis]:
        """Tagged form of validate_analysis. Never raises."""
        try:
            return ValidationResult.success(self.validate_analysis(raw))
        except MalformedResponseError as e:
            return ValidationResult.failure(e)

    def check_plan(self, raw: RawPayload) -> ValidationResult[ColorPlan]:
        """Tagged form of validate_plan. Never raises."""
        try:
            return ValidationResult.success(self.validate_plan(raw))
        except MalformedResponseError as e:
            return ValidationResult.failure(e)

    # =========================================================================
    # INTERNALS
    # =========================================================================

    @staticmethod
    def _parse(raw: RawPayload) -> Dict[str, Any]:
        """Parse raw output into a JSON object."""
        if isinstance(raw, Mapping):
            return dict(raw)

        if isinstance(raw, bytes):
            try:
                raw = raw.decode("utf-8")
            except UnicodeDecodeError:
                raise UnparseableResponseError("Response is not valid UTF-8 text") from None

        if not isinstance(raw, str):
            raise UnparseableResponseError(
                f"Response has unsupported type {type(raw).__name__}"
            )

        text = raw.strip()
        if not text.startswith("{") or not text.endswith("}"):
            raise UnparseableResponseError("Response is not a JSON object")

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise UnparseableResponseError(f"Response is not valid JSON: {e.msg}") from None

        if not isinstance(data, dict):
            raise UnparseableResponseError("Response is not a JSON object")
        return data

    @staticmethod
    def _section(
        value: Any,
        key: str,
        schema: Type[WirePayload],
        record_cls: Type[Any],
    ) -> Optional[Any]:
        """Validate one optional plan section. Malformed sections become None."""
        if value is None:
            return None
        if not isinstance(value, Mapping):
            logger.warning(
                "Dropping malformed plan section",
                section=key,
                reason="not an object",
            )
            return None
        try:
            payload = schema.model_validate(value)
        except ValidationError as e:
            logger.warning(
                "Dropping malformed plan section",
                section=key,
                fields=_error_fields(e),
            )
            return None
        return record_cls(**payload.model_dump())
