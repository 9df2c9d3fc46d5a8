"""
Student Answer Models

One frozen answer class per answer shape. Every answer carries the
``question_type`` it was produced for; ``to_wire()`` renders the camelCase
``answerData`` object expected by the submission store, with the lowercase
``type`` discriminator, and ``from_wire()`` parses it back.
"""

import math
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, FrozenSet, Mapping, Optional, Tuple

from assessment_engine.assessments.base.models import QuestionType


def _str_list(value: Any, name: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"'{name}' must be a list")
    return tuple(str(item) for item in value)


def _str_map(value: Any, name: str) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"'{name}' must be an object")
    return {str(k): "" if v is None else str(v) for k, v in value.items()}


@dataclass(frozen=True)
class StudentAnswer:
    """Base class for all answers."""

    ALLOWED_TYPES: ClassVar[FrozenSet[QuestionType]] = frozenset()

    def __post_init__(self):
        question_type = getattr(self, "question_type", None)
        if question_type not in self.ALLOWED_TYPES:
            raise ValueError(
                f"{type(self).__name__} cannot answer a {question_type} question"
            )

    @property
    def kind(self) -> str:
        return self.question_type.wire_kind

    def to_wire(self) -> Dict[str, Any]:
        raise NotImplementedError

    @classmethod
    def from_wire(cls, data: Mapping[str, Any], question_type: QuestionType) -> 'StudentAnswer':
        """
        Parse an ``answerData`` object.

        Raises:
            ValueError: If the payload does not have this answer's shape
        """
        raise NotImplementedError


@dataclass(frozen=True)
class ChoiceAnswer(StudentAnswer):
    """Selected option ids for multiple and single choice questions."""
    question_type: QuestionType
    selected_option_ids: Tuple[str, ...] = ()

    ALLOWED_TYPES: ClassVar[FrozenSet[QuestionType]] = frozenset({
        QuestionType.MULTIPLE_CHOICE, QuestionType.SINGLE_CHOICE
    })

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, "selected_option_ids", tuple(self.selected_option_ids))

    def to_wire(self) -> Dict[str, Any]:
        return {"selectedOptionIds": list(self.selected_option_ids), "type": self.kind}

    @classmethod
    def from_wire(cls, data, question_type):
        return cls(question_type, _str_list(data.get("selectedOptionIds"), "selectedOptionIds"))


@dataclass(frozen=True)
class TrueFalseAnswer(StudentAnswer):
    value: Optional[bool] = None
    question_type: QuestionType = QuestionType.TRUE_FALSE

    ALLOWED_TYPES: ClassVar[FrozenSet[QuestionType]] = frozenset({QuestionType.TRUE_FALSE})

    def to_wire(self) -> Dict[str, Any]:
        return {"value": self.value, "type": self.kind}

    @classmethod
    def from_wire(cls, data, question_type):
        value = data.get("value")
        if value is not None and not isinstance(value, bool):
            raise ValueError("'value' must be true, false or null")
        return cls(value=value, question_type=question_type)


@dataclass(frozen=True)
class TextAnswer(StudentAnswer):
    """Free text for short and long answer questions."""
    question_type: QuestionType
    text: str = ""

    ALLOWED_TYPES: ClassVar[FrozenSet[QuestionType]] = frozenset({
        QuestionType.SHORT_ANSWER, QuestionType.LONG_ANSWER
    })

    def to_wire(self) -> Dict[str, Any]:
        return {"text": self.text, "type": self.kind}

    @classmethod
    def from_wire(cls, data, question_type):
        text = data.get("text")
        if text is not None and not isinstance(text, str):
            raise ValueError("'text' must be a string")
        return cls(question_type, text or "")


@dataclass(frozen=True)
class MatchingAnswer(StudentAnswer):
    """Prompt id to response id."""
    pairs: Dict[str, str] = field(default_factory=dict)
    question_type: QuestionType = QuestionType.MATCHING

    ALLOWED_TYPES: ClassVar[FrozenSet[QuestionType]] = frozenset({QuestionType.MATCHING})

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, "pairs", dict(self.pairs))

    def to_wire(self) -> Dict[str, Any]:
        return {"pairs": dict(self.pairs), "type": self.kind}

    @classmethod
    def from_wire(cls, data, question_type):
        return cls(pairs=_str_map(data.get("pairs"), "pairs"), question_type=question_type)


@dataclass(frozen=True)
class OrderingAnswer(StudentAnswer):
    """Option ids in the order the student arranged them."""
    order: Tuple[str, ...] = ()
    question_type: QuestionType = QuestionType.ORDERING

    ALLOWED_TYPES: ClassVar[FrozenSet[QuestionType]] = frozenset({QuestionType.ORDERING})

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, "order", tuple(self.order))

    def to_wire(self) -> Dict[str, Any]:
        return {"order": list(self.order), "type": self.kind}

    @classmethod
    def from_wire(cls, data, question_type):
        return cls(order=_str_list(data.get("order"), "order"), question_type=question_type)


@dataclass(frozen=True)
class FillInBlankAnswer(StudentAnswer):
    """
    Blank id to text, plus the template with every blank substituted.

    Completeness is judged on ``text``, the formatted template.
    """
    blanks: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    question_type: QuestionType = QuestionType.FILL_IN_BLANK

    ALLOWED_TYPES: ClassVar[FrozenSet[QuestionType]] = frozenset({QuestionType.FILL_IN_BLANK})

    def __post_init__(self):
        super().__post_init__()
        object.__setattr__(self, "blanks", dict(self.blanks))

    def to_wire(self) -> Dict[str, Any]:
        return {"blanks": dict(self.blanks), "text": self.text, "type": self.kind}

    @classmethod
    def from_wire(cls, data, question_type):
        return cls(
            blanks=_str_map(data.get("blanks"), "blanks"),
            text=str(data.get("text") or ""),
            question_type=question_type
        )


@dataclass(frozen=True)
class NumericAnswer(StudentAnswer):
    value: Optional[float] = None
    unit: str = ""
    question_type: QuestionType = QuestionType.NUMERIC

    ALLOWED_TYPES: ClassVar[FrozenSet[QuestionType]] = frozenset({QuestionType.NUMERIC})

    @property
    def is_nan(self) -> bool:
        return self.value is not None and math.isnan(self.value)

    def to_wire(self) -> Dict[str, Any]:
        return {"value": self.value, "unit": self.unit, "type": self.kind}

    @classmethod
    def from_wire(cls, data, question_type):
        value = data.get("value")
        if value is not None:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValueError("'value' must be a number or null")
            value = float(value)
        return cls(value=value, unit=str(data.get("unit") or ""), question_type=question_type)


@dataclass(frozen=True)
class FileUploadAnswer(StudentAnswer):
    """
    Metadata of an uploaded file. Upload transport is not handled here; the
    answer only records where the file ended up.
    """
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    file_url: Optional[str] = None
    question_type: QuestionType = QuestionType.FILE_UPLOAD

    ALLOWED_TYPES: ClassVar[FrozenSet[QuestionType]] = frozenset({QuestionType.FILE_UPLOAD})

    def to_wire(self) -> Dict[str, Any]:
        return {
            "fileName": self.file_name,
            "fileType": self.file_type,
            "fileSize": self.file_size,
            "fileUrl": self.file_url,
            "type": self.kind
        }

    @classmethod
    def from_wire(cls, data, question_type):
        size = data.get("fileSize")
        if size is not None:
            if isinstance(size, bool) or not isinstance(size, (int, float)):
                raise ValueError("'fileSize' must be a number or null")
            size = int(size)
        return cls(
            file_name=data.get("fileName"),
            file_type=data.get("fileType"),
            file_size=size,
            file_url=data.get("fileUrl") or None,
            question_type=question_type
        )
