"""
Assessment Definition Models

This module defines the immutable data model of a deliverable assessment:
assessments, sections, questions, their options and the type-specific
format payloads. Definitions are parsed from the camelCase wire form served by
the assessment store; snake_case keys are accepted as well.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, Union


class QuestionType(enum.Enum):
    """The closed set of question variants the engine delivers."""
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    SINGLE_CHOICE = "SINGLE_CHOICE"
    TRUE_FALSE = "TRUE_FALSE"
    SHORT_ANSWER = "SHORT_ANSWER"
    LONG_ANSWER = "LONG_ANSWER"
    MATCHING = "MATCHING"
    ORDERING = "ORDERING"
    FILL_IN_BLANK = "FILL_IN_BLANK"
    NUMERIC = "NUMERIC"
    FILE_UPLOAD = "FILE_UPLOAD"
    UNSUPPORTED = "UNSUPPORTED"

    @classmethod
    def parse(cls, tag: Optional[str]) -> 'QuestionType':
        """Map a wire tag to a type; unknown tags (HOTSPOT, MATRIX, ...) become UNSUPPORTED."""
        if not tag:
            return cls.UNSUPPORTED
        try:
            return cls(str(tag).upper())
        except ValueError:
            return cls.UNSUPPORTED

    @property
    def wire_kind(self) -> str:
        """The lowercase ``type`` tag carried by answer payloads."""
        return self.value.lower()


class MediaType(enum.Enum):
    """Kinds of media attached to questions."""
    IMAGE = "IMAGE"
    AUDIO = "AUDIO"
    VIDEO = "VIDEO"
    DOCUMENT = "DOCUMENT"
    INTERACTIVE = "INTERACTIVE"

    @classmethod
    def parse(cls, tag: Optional[str]) -> Optional['MediaType']:
        if not tag:
            return None
        try:
            return cls(str(tag).upper())
        except ValueError:
            return None


def _get(data: Mapping[str, Any], camel: str, snake: Optional[str] = None, default: Any = None) -> Any:
    """Read ``camel`` or its snake_case spelling from a wire mapping."""
    if camel in data:
        return data[camel]
    if snake and snake in data:
        return data[snake]
    return default


def _require(data: Mapping[str, Any], key: str, what: str) -> Any:
    value = data.get(key)
    if value is None or value == "":
        raise ValueError(f"{what} is missing required field '{key}'")
    return value


def _optional_number(value: Any, what: str) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{what} must be a number, got {value!r}")


@dataclass(frozen=True)
class QuestionOption:
    """A selectable option (choice types) or an item to arrange (ordering)."""
    id: str
    text: str
    order_index: int = 0
    is_correct: bool = False
    media_url: Optional[str] = None
    media_type: Optional[MediaType] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'QuestionOption':
        return cls(
            id=str(_require(data, "id", "Option")),
            text=str(data.get("text", "")),
            order_index=int(_get(data, "orderIndex", "order_index", 0)),
            is_correct=bool(_get(data, "isCorrect", "is_correct", False)),
            media_url=_get(data, "mediaUrl", "media_url"),
            media_type=MediaType.parse(_get(data, "mediaType", "media_type"))
        )


@dataclass(frozen=True)
class MatchingPair:
    """A prompt and the response it should be matched with."""
    id: str
    prompt_text: str
    response_text: str
    order_index: int = 0
    prompt_media_url: Optional[str] = None
    response_media_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'MatchingPair':
        return cls(
            id=str(_require(data, "id", "Matching pair")),
            prompt_text=str(_get(data, "promptText", "prompt_text", "")),
            response_text=str(_get(data, "responseText", "response_text", "")),
            order_index=int(_get(data, "orderIndex", "order_index", 0)),
            prompt_media_url=_get(data, "promptMediaUrl", "prompt_media_url"),
            response_media_url=_get(data, "responseMediaUrl", "response_media_url")
        )


@dataclass(frozen=True)
class TextFormat:
    """Format of short and long answer questions."""
    max_length: Optional[int] = None
    min_length: int = 0
    placeholder: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'TextFormat':
        max_length = _get(data, "maxLength", "max_length")
        return cls(
            max_length=int(max_length) if max_length else None,
            min_length=int(_get(data, "minLength", "min_length", 0) or 0),
            placeholder=data.get("placeholder")
        )


@dataclass(frozen=True)
class BlankField:
    """A blank in a fill-in-blank template, matched to markers by position."""
    id: str
    position: int
    correct_answer: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'BlankField':
        return cls(
            id=str(_require(data, "id", "Blank")),
            position=int(data.get("position", 0)),
            correct_answer=_get(data, "correctAnswer", "correct_answer")
        )


@dataclass(frozen=True)
class FillInBlankFormat:
    """Template text with ``{blank}`` markers and the blanks that fill them."""
    text: str = ""
    blanks: Tuple[BlankField, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'FillInBlankFormat':
        return cls(
            text=str(data.get("text") or ""),
            blanks=tuple(BlankField.from_dict(b) for b in data.get("blanks") or [])
        )

    @property
    def sorted_blanks(self) -> List[BlankField]:
        return sorted(self.blanks, key=lambda b: b.position)


@dataclass(frozen=True)
class NumericFormat:
    """Bounds, stepper increment, display precision and unit of a numeric question."""
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    unit: str = ""
    precision: Optional[int] = None

    def __post_init__(self):
        if self.min is not None and self.max is not None and self.min > self.max:
            raise ValueError(f"Numeric format min {self.min} exceeds max {self.max}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'NumericFormat':
        precision = data.get("precision")
        return cls(
            min=_optional_number(data.get("min"), "Numeric min"),
            max=_optional_number(data.get("max"), "Numeric max"),
            step=_optional_number(data.get("step"), "Numeric step") or None,
            unit=str(data.get("unit") or ""),
            precision=int(precision) if precision else None
        )


@dataclass(frozen=True)
class FileUploadFormat:
    """Accepted MIME types / extensions and the size limit of a file upload."""
    accepted_types: Tuple[str, ...] = ()
    max_size_mb: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'FileUploadFormat':
        return cls(
            accepted_types=tuple(_get(data, "acceptedTypes", "accepted_types") or ()),
            max_size_mb=_optional_number(_get(data, "maxSizeInMB", "max_size_mb"), "Max file size") or None
        )


QuestionFormat = Union[TextFormat, FillInBlankFormat, NumericFormat, FileUploadFormat]

_FORMAT_BY_TYPE: Dict[QuestionType, Type] = {
    QuestionType.SHORT_ANSWER: TextFormat,
    QuestionType.LONG_ANSWER: TextFormat,
    QuestionType.FILL_IN_BLANK: FillInBlankFormat,
    QuestionType.NUMERIC: NumericFormat,
    QuestionType.FILE_UPLOAD: FileUploadFormat,
}


@dataclass(frozen=True)
class Question:
    """
    A single deliverable question.

    ``raw_type`` keeps the wire tag, which differs from ``question_type`` only
    for tags the engine does not deliver.
    """
    id: str
    question_text: str
    question_type: QuestionType
    required: bool = False
    points: float = 1
    order_index: Optional[int] = None
    raw_type: Optional[str] = None
    media_url: Optional[str] = None
    media_type: Optional[MediaType] = None
    options: Tuple[QuestionOption, ...] = ()
    match_pairs: Tuple[MatchingPair, ...] = ()
    format: Optional[QuestionFormat] = None
    feedback: Optional[str] = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("Question ID is required")
        if self.points < 0:
            raise ValueError(f"Question {self.id} has negative points")

    @property
    def sorted_options(self) -> List[QuestionOption]:
        return sorted(self.options, key=lambda o: o.order_index)

    @property
    def sorted_pairs(self) -> List[MatchingPair]:
        return sorted(self.match_pairs, key=lambda p: p.order_index)

    @property
    def type_label(self) -> str:
        return self.raw_type or self.question_type.value

    def format_or_default(self, format_cls: Type) -> Any:
        """Return the question's format, or a default instance of ``format_cls``."""
        if isinstance(self.format, format_cls):
            return self.format
        return format_cls()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Question':
        raw_type = _get(data, "questionType", "question_type")
        question_type = QuestionType.parse(raw_type)
        question_id = str(_require(data, "id", "Question"))

        format_data = data.get("format")
        question_format = None
        format_cls = _FORMAT_BY_TYPE.get(question_type)
        if format_cls is not None and isinstance(format_data, Mapping):
            question_format = format_cls.from_dict(format_data)

        order_index = _get(data, "orderIndex", "order_index")
        points = data.get("points")

        return cls(
            id=question_id,
            question_text=str(_get(data, "questionText", "question_text", "")),
            question_type=question_type,
            required=bool(data.get("required", False)),
            points=float(points) if points is not None else 1,
            order_index=int(order_index) if order_index is not None else None,
            raw_type=str(raw_type) if raw_type else None,
            media_url=_get(data, "mediaUrl", "media_url"),
            media_type=MediaType.parse(_get(data, "mediaType", "media_type")),
            options=tuple(QuestionOption.from_dict(o) for o in data.get("options") or []),
            match_pairs=tuple(
                MatchingPair.from_dict(p) for p in _get(data, "matchPairs", "match_pairs") or []
            ),
            format=question_format,
            feedback=data.get("feedback")
        )


def _check_unique_order(questions: Tuple[Question, ...], scope: str) -> None:
    seen = set()
    for question in questions:
        if question.order_index is None:
            continue
        if question.order_index in seen:
            raise ValueError(f"Duplicate orderIndex {question.order_index} in {scope}")
        seen.add(question.order_index)


@dataclass(frozen=True)
class Section:
    """An ordered group of questions inside an assessment."""
    id: str
    title: str
    order_index: int = 0
    description: Optional[str] = None
    instructions: Optional[str] = None
    time_limit: Optional[float] = None
    questions: Tuple[Question, ...] = ()

    def __post_init__(self):
        _check_unique_order(self.questions, f"section {self.id}")

    def contains(self, question_id: str) -> bool:
        return any(q.id == question_id for q in self.questions)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Section':
        return cls(
            id=str(_require(data, "id", "Section")),
            title=str(data.get("title", "")),
            order_index=int(_get(data, "orderIndex", "order_index", 0)),
            description=data.get("description"),
            instructions=data.get("instructions"),
            time_limit=_optional_number(_get(data, "timeLimit", "time_limit"), "Section time limit"),
            questions=tuple(Question.from_dict(q) for q in data.get("questions") or [])
        )


@dataclass(frozen=True)
class Assessment:
    """
    A complete assessment definition.

    ``time_limit`` is in minutes. When ``sections`` is non-empty the flat
    ``questions`` list is ignored for delivery.
    """
    id: str
    title: str
    description: Optional[str] = None
    instructions: Optional[str] = None
    time_limit: Optional[float] = None
    questions: Tuple[Question, ...] = ()
    sections: Tuple[Section, ...] = ()
    shuffle_questions: bool = False
    metadata: Dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        if not self.id:
            raise ValueError("Assessment ID is required")
        if self.time_limit is not None and self.time_limit <= 0:
            raise ValueError(f"Assessment time limit must be positive, got {self.time_limit}")
        if not self.sections:
            _check_unique_order(self.questions, f"assessment {self.id}")

    @property
    def time_limit_seconds(self) -> Optional[int]:
        if self.time_limit is None:
            return None
        return int(round(self.time_limit * 60))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Assessment':
        """
        Parse an assessment served by the assessment store.

        Raises:
            ValueError: If the payload is malformed
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"Assessment payload must be an object, got {type(data).__name__}")

        known = {
            "id", "title", "description", "instructions", "timeLimit", "time_limit",
            "questions", "sections", "shuffleQuestions", "shuffle_questions"
        }
        try:
            return cls(
                id=str(_require(data, "id", "Assessment")),
                title=str(data.get("title", "")),
                description=data.get("description"),
                instructions=data.get("instructions"),
                time_limit=_optional_number(_get(data, "timeLimit", "time_limit"), "Time limit") or None,
                questions=tuple(Question.from_dict(q) for q in data.get("questions") or []),
                sections=tuple(Section.from_dict(s) for s in data.get("sections") or []),
                shuffle_questions=bool(_get(data, "shuffleQuestions", "shuffle_questions", False)),
                metadata={k: v for k, v in data.items() if k not in known}
            )
        except (TypeError, AttributeError) as e:
            raise ValueError(f"Malformed assessment payload: {e}") from e
