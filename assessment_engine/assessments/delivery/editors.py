"""
Question Editors

One editor per question variant. An editor owns the local input state of a
single question, turns user edits into typed answers and hands every accepted
answer to its ``on_answer_change`` callback synchronously. Rejected input
raises ``InvalidLocalInputError`` and never reaches the callback.

Every editor also accepts a complete wire payload through ``apply()``, which
runs the same checks as the individual edit operations, and exposes a
display model through ``render()``.
"""

import re
import math
import random
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, ClassVar, Dict, FrozenSet, List, Mapping, Optional

from assessment_engine.assessments.base.models import (
    FileUploadFormat,
    FillInBlankFormat,
    NumericFormat,
    Question,
    QuestionType,
    TextFormat,
)
from assessment_engine.assessments.base.answers import (
    ChoiceAnswer,
    FileUploadAnswer,
    FillInBlankAnswer,
    MatchingAnswer,
    NumericAnswer,
    OrderingAnswer,
    StudentAnswer,
    TextAnswer,
    TrueFalseAnswer,
)
from assessment_engine.common.config import EditorConfig, get_config
from assessment_engine.common.error_handling import InvalidLocalInputError
from assessment_engine.common.randomness import fisher_yates, make_rng

logger = logging.getLogger(__name__)

AnswerCallback = Callable[[StudentAnswer], None]

BLANK_MARKER = re.compile(r"\{blank\}", re.IGNORECASE)


def format_number(value: float) -> str:
    """Render a number the way it is shown to students: ``5`` rather than ``5.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def points_label(points: float) -> str:
    return "1 point" if points == 1 else f"{format_number(points)} points"


class QuestionEditor(ABC):
    """
    Base class for all editors.

    Args:
        question: The question being answered
        on_answer_change: Called with every accepted answer
        current_answer: A previously stored answer to restore
        rng: Random source for shuffles (matching responses, initial ordering)
        config: Editor defaults; the process configuration when omitted
    """

    question_types: ClassVar[FrozenSet[QuestionType]] = frozenset()

    def __init__(
        self,
        question: Question,
        on_answer_change: AnswerCallback,
        current_answer: Optional[StudentAnswer] = None,
        rng: Optional[random.Random] = None,
        config: Optional[EditorConfig] = None
    ):
        if question.question_type not in self.question_types:
            raise ValueError(
                f"{type(self).__name__} cannot edit {question.question_type.value} questions"
            )
        self.question = question
        self._on_answer_change = on_answer_change
        self._answer = current_answer
        self._rng = rng or make_rng()
        self._config = config or get_config().editors
        self.error: Optional[str] = None

    @property
    def answer(self) -> Optional[StudentAnswer]:
        """The last answer this editor accepted or was restored with."""
        return self._answer

    @property
    def read_only(self) -> bool:
        return False

    def _emit(self, answer: StudentAnswer) -> None:
        # Local state follows the store only once the store accepted the write.
        self._on_answer_change(answer)
        self._answer = answer
        self.error = None

    def _reject(self, reason: str, **details) -> None:
        self.error = reason
        logger.debug(f"Rejected input for question {self.question.id}: {reason}")
        raise InvalidLocalInputError(self.question.id, reason, details=details or None)

    def _parse(self, answer_data: Mapping[str, Any], answer_cls):
        try:
            return answer_cls.from_wire(answer_data, self.question.question_type)
        except ValueError as e:
            self._reject(str(e))

    @abstractmethod
    def apply(self, answer_data: Mapping[str, Any]) -> None:
        """
        Apply a complete ``answerData`` payload.

        Raises:
            InvalidLocalInputError: If the payload is rejected
        """
        pass

    @abstractmethod
    def _render_body(self) -> Dict[str, Any]:
        pass

    def render(self) -> Dict[str, Any]:
        """Build the display model of the question and its current input state."""
        question = self.question
        media = None
        if question.media_url:
            media = {
                "url": question.media_url,
                "type": question.media_type.value if question.media_type else None
            }
        return {
            "id": question.id,
            "type": question.type_label,
            "question_text": question.question_text,
            "required": question.required,
            "points": question.points,
            "points_label": points_label(question.points),
            "media": media,
            "feedback": question.feedback,
            "error": self.error,
            "body": self._render_body()
        }


class ChoiceEditor(QuestionEditor):
    """Common option handling of the choice editors."""

    def _option_ids(self) -> List[str]:
        return [option.id for option in self.question.sorted_options]

    def _selected(self) -> tuple:
        if isinstance(self._answer, ChoiceAnswer):
            return self._answer.selected_option_ids
        return ()

    def _check_option(self, option_id: str) -> None:
        if option_id not in self._option_ids():
            self._reject(f"Unknown option: {option_id}", option_id=option_id)

    def _render_body(self) -> Dict[str, Any]:
        selected = set(self._selected())
        return {
            "multiple": self.question.question_type == QuestionType.MULTIPLE_CHOICE,
            "options": [
                {
                    "id": option.id,
                    "text": option.text,
                    "media_url": option.media_url,
                    "selected": option.id in selected
                }
                for option in self.question.sorted_options
            ]
        }


class MultipleChoiceEditor(ChoiceEditor):
    question_types = frozenset({QuestionType.MULTIPLE_CHOICE})

    def toggle(self, option_id: str) -> None:
        """Select ``option_id`` if unselected, otherwise deselect it."""
        self._check_option(option_id)
        selected = list(self._selected())
        if option_id in selected:
            selected.remove(option_id)
        else:
            selected.append(option_id)
        self._emit(ChoiceAnswer(QuestionType.MULTIPLE_CHOICE, tuple(selected)))

    def apply(self, answer_data):
        answer = self._parse(answer_data, ChoiceAnswer)
        for option_id in answer.selected_option_ids:
            self._check_option(option_id)
        if len(set(answer.selected_option_ids)) != len(answer.selected_option_ids):
            self._reject("Options may only be selected once")
        self._emit(answer)


class SingleChoiceEditor(ChoiceEditor):
    question_types = frozenset({QuestionType.SINGLE_CHOICE})

    def select(self, option_id: str) -> None:
        self._check_option(option_id)
        self._emit(ChoiceAnswer(QuestionType.SINGLE_CHOICE, (option_id,)))

    def apply(self, answer_data):
        answer = self._parse(answer_data, ChoiceAnswer)
        if len(answer.selected_option_ids) > 1:
            self._reject("Only one option can be selected")
        for option_id in answer.selected_option_ids:
            self._check_option(option_id)
        self._emit(answer)


class TrueFalseEditor(QuestionEditor):
    question_types = frozenset({QuestionType.TRUE_FALSE})

    def set_value(self, value: bool) -> None:
        if not isinstance(value, bool):
            self._reject("Answer must be true or false")
        self._emit(TrueFalseAnswer(value=value))

    def apply(self, answer_data):
        self._emit(self._parse(answer_data, TrueFalseAnswer))

    def _render_body(self):
        value = self._answer.value if isinstance(self._answer, TrueFalseAnswer) else None
        return {
            "value": value,
            "options": [{"value": True, "label": "True"}, {"value": False, "label": "False"}]
        }


class TextEditor(QuestionEditor):
    """Short and long free-text answers, bounded by ``max_length``."""

    question_types = frozenset({QuestionType.SHORT_ANSWER, QuestionType.LONG_ANSWER})

    @property
    def is_long(self) -> bool:
        return self.question.question_type == QuestionType.LONG_ANSWER

    @property
    def max_length(self) -> int:
        text_format = self.question.format_or_default(TextFormat)
        if text_format.max_length:
            return text_format.max_length
        if self.is_long:
            return self._config.long_answer_max_length
        return self._config.short_answer_max_length

    @property
    def min_length(self) -> int:
        if not self.is_long:
            return 0
        return self.question.format_or_default(TextFormat).min_length

    @property
    def text(self) -> str:
        return self._answer.text if isinstance(self._answer, TextAnswer) else ""

    @property
    def length_hint(self) -> str:
        """Counter text, or the minimum-length guidance while below it."""
        length = len(self.text)
        if self.min_length > 0 and length < self.min_length:
            return (
                f"Minimum {self.min_length} characters required "
                f"({self.min_length - length} more needed)"
            )
        return f"{length}/{self.max_length}"

    def set_text(self, text: str) -> None:
        if len(text) > self.max_length:
            self._reject(
                f"Answer must be at most {self.max_length} characters",
                max_length=self.max_length, length=len(text)
            )
        self._emit(TextAnswer(self.question.question_type, text))

    def apply(self, answer_data):
        self.set_text(self._parse(answer_data, TextAnswer).text)

    def _render_body(self):
        if not self.is_long:
            label = f"Short answer (max {self.max_length} characters)"
        elif self.min_length > 0:
            label = f"Long answer ({self.min_length}-{self.max_length} characters)"
        else:
            label = f"Long answer (max {self.max_length} characters)"
        return {
            "text": self.text,
            "multiline": self.is_long,
            "placeholder": self.question.format_or_default(TextFormat).placeholder,
            "max_length": self.max_length,
            "min_length": self.min_length,
            "label": label,
            "length_hint": self.length_hint
        }


class MatchingEditor(QuestionEditor):
    """
    Prompts are shown in definition order; the response list is shuffled once
    when the editor is created.
    """

    question_types = frozenset({QuestionType.MATCHING})

    def __init__(self, question, on_answer_change, current_answer=None, rng=None, config=None):
        super().__init__(question, on_answer_change, current_answer, rng, config)
        self.prompts = question.sorted_pairs
        self.responses = fisher_yates(self.prompts, self._rng)

    @property
    def pairs(self) -> Dict[str, str]:
        return dict(self._answer.pairs) if isinstance(self._answer, MatchingAnswer) else {}

    def _check_pair(self, prompt_id: str, response_id: str) -> None:
        pair_ids = {pair.id for pair in self.prompts}
        if prompt_id not in pair_ids:
            self._reject(f"Unknown prompt: {prompt_id}", prompt_id=prompt_id)
        if response_id not in pair_ids:
            self._reject(f"Unknown response: {response_id}", response_id=response_id)

    def match(self, prompt_id: str, response_id: str) -> None:
        self._check_pair(prompt_id, response_id)
        pairs = self.pairs
        pairs[prompt_id] = response_id
        self._emit(MatchingAnswer(pairs=pairs))

    def apply(self, answer_data):
        answer = self._parse(answer_data, MatchingAnswer)
        for prompt_id, response_id in answer.pairs.items():
            self._check_pair(prompt_id, response_id)
        self._emit(answer)

    def _render_body(self):
        pairs = self.pairs
        return {
            "prompts": [
                {"id": p.id, "text": p.prompt_text, "media_url": p.prompt_media_url,
                 "selected_response_id": pairs.get(p.id)}
                for p in self.prompts
            ],
            "responses": [
                {"id": p.id, "text": p.response_text, "media_url": p.response_media_url}
                for p in self.responses
            ]
        }


class OrderingEditor(QuestionEditor):
    """
    Without a prior answer the items start in a shuffled order, which is
    emitted immediately so the store always holds what the student sees.
    """

    question_types = frozenset({QuestionType.ORDERING})

    def __init__(self, question, on_answer_change, current_answer=None, rng=None, config=None):
        super().__init__(question, on_answer_change, current_answer, rng, config)
        if isinstance(current_answer, OrderingAnswer) and current_answer.order:
            self.order = list(current_answer.order)
        elif question.options:
            order = [o.id for o in fisher_yates(question.sorted_options, self._rng)]
            self._emit(OrderingAnswer(order=tuple(order)))
            self.order = order
        else:
            self.order = []

    def move_up(self, index: int) -> None:
        if 0 < index < len(self.order):
            self._swap(index, index - 1)

    def move_down(self, index: int) -> None:
        if 0 <= index < len(self.order) - 1:
            self._swap(index, index + 1)

    def _swap(self, a: int, b: int) -> None:
        order = list(self.order)
        order[a], order[b] = order[b], order[a]
        self._emit(OrderingAnswer(order=tuple(order)))
        self.order = order

    def apply(self, answer_data):
        answer = self._parse(answer_data, OrderingAnswer)
        expected = sorted(o.id for o in self.question.options)
        if sorted(answer.order) != expected:
            self._reject("Order must contain every item exactly once")
        self._emit(answer)
        self.order = list(answer.order)

    def _render_body(self):
        options = {o.id: o for o in self.question.options}
        return {
            "items": [
                {"id": item_id, "text": options[item_id].text, "position": i + 1}
                for i, item_id in enumerate(self.order) if item_id in options
            ]
        }


class FillInBlankEditor(QuestionEditor):
    """
    Blanks are matched to ``{blank}`` markers by ascending ``position``. The
    stored answer also carries the template with every marker replaced by
    ``[answer]``, or ``[____]`` while the blank is empty.
    """

    question_types = frozenset({QuestionType.FILL_IN_BLANK})

    @property
    def template(self) -> FillInBlankFormat:
        return self.question.format_or_default(FillInBlankFormat)

    @property
    def blanks(self) -> Dict[str, str]:
        return dict(self._answer.blanks) if isinstance(self._answer, FillInBlankAnswer) else {}

    def formatted_text(self, blanks: Optional[Mapping[str, str]] = None) -> str:
        blanks = self.blanks if blanks is None else blanks
        template = self.template
        if not template.text or not template.blanks:
            return template.text

        sorted_blanks = template.sorted_blanks
        counter = iter(range(len(BLANK_MARKER.findall(template.text))))

        def substitute(_match):
            index = next(counter)
            blank = sorted_blanks[index] if index < len(sorted_blanks) else None
            value = blanks.get(blank.id) if blank else None
            return f"[{value or '____'}]"

        return BLANK_MARKER.sub(substitute, template.text)

    def set_blank(self, blank_id: str, text: str) -> None:
        if blank_id not in {b.id for b in self.template.blanks}:
            self._reject(f"Unknown blank: {blank_id}", blank_id=blank_id)
        blanks = self.blanks
        blanks[blank_id] = text
        self._emit(FillInBlankAnswer(blanks=blanks, text=self.formatted_text(blanks)))

    def apply(self, answer_data):
        answer = self._parse(answer_data, FillInBlankAnswer)
        known = {b.id for b in self.template.blanks}
        for blank_id in answer.blanks:
            if blank_id not in known:
                self._reject(f"Unknown blank: {blank_id}", blank_id=blank_id)
        self._emit(FillInBlankAnswer(blanks=answer.blanks, text=self.formatted_text(answer.blanks)))

    def _render_body(self):
        template = self.template
        if not template.text:
            return {"segments": [{"text": self.question.question_text}], "formatted_text": ""}

        blanks = self.blanks
        sorted_blanks = template.sorted_blanks
        segments: List[Dict[str, Any]] = []
        for index, part in enumerate(BLANK_MARKER.split(template.text)):
            segments.append({"text": part})
            if index < len(sorted_blanks):
                blank = sorted_blanks[index]
                segments.append({
                    "blank_id": blank.id,
                    "label": f"Blank {index + 1}",
                    "value": blanks.get(blank.id, "")
                })
        return {"segments": segments, "formatted_text": self.formatted_text(blanks)}


class NumericEditor(QuestionEditor):
    """
    The display text may hold input that does not parse or is out of range;
    only valid values are stored. Clearing the input stores ``value=None``.
    """

    question_types = frozenset({QuestionType.NUMERIC})

    def __init__(self, question, on_answer_change, current_answer=None, rng=None, config=None):
        super().__init__(question, on_answer_change, current_answer, rng, config)
        self.display = ""
        if isinstance(current_answer, NumericAnswer) and current_answer.value is not None:
            self.display = format_number(current_answer.value)

    @property
    def numeric_format(self) -> NumericFormat:
        return self.question.format_or_default(NumericFormat)

    @property
    def step(self) -> float:
        return self.numeric_format.step or self._config.numeric_step

    @property
    def precision(self) -> int:
        return self.numeric_format.precision or self._config.numeric_precision

    @property
    def unit(self) -> str:
        return self.numeric_format.unit

    def _validate(self, value: float) -> None:
        fmt = self.numeric_format
        if math.isnan(value) or math.isinf(value):
            self._reject("Please enter a valid number")
        if fmt.min is not None and value < fmt.min:
            self._reject(f"Value must be greater than or equal to {format_number(fmt.min)}")
        if fmt.max is not None and value > fmt.max:
            self._reject(f"Value must be less than or equal to {format_number(fmt.max)}")

    def set_input(self, text: str) -> None:
        """Accept raw keyboard input."""
        self.display = text
        if not text.strip():
            self._emit(NumericAnswer(value=None, unit=self.unit))
            return
        try:
            value = float(text)
        except ValueError:
            self._reject("Please enter a valid number")
        self.set_value(value, display=text)

    def set_value(self, value: Optional[float], display: Optional[str] = None) -> None:
        if value is None:
            self.display = ""
            self._emit(NumericAnswer(value=None, unit=self.unit))
            return
        value = float(value)
        if display is not None:
            self.display = display
        else:
            self.display = format_number(value)
        self._validate(value)
        self._emit(NumericAnswer(value=value, unit=self.unit))

    def _current(self) -> float:
        try:
            return float(self.display) if self.display.strip() else 0.0
        except ValueError:
            if isinstance(self._answer, NumericAnswer) and self._answer.value is not None:
                return self._answer.value
            return 0.0

    def _stepped(self, value: float) -> None:
        # Ties round away from zero.
        quantum = Decimal(1).scaleb(-self.precision)
        text = str(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))
        self.set_value(float(text), display=text)

    def increment(self) -> None:
        """Step up; a no-op at ``max``."""
        fmt = self.numeric_format
        current = self._current()
        if fmt.max is not None and current >= fmt.max:
            return
        target = current + self.step
        if fmt.max is not None:
            target = min(target, fmt.max)
        self._stepped(target)

    def decrement(self) -> None:
        """Step down; a no-op at ``min``."""
        fmt = self.numeric_format
        current = self._current()
        if fmt.min is not None and current <= fmt.min:
            return
        target = current - self.step
        if fmt.min is not None:
            target = max(target, fmt.min)
        self._stepped(target)

    @property
    def range_hint(self) -> Optional[str]:
        fmt = self.numeric_format
        unit = f" {self.unit}" if self.unit else ""
        if fmt.min is not None and fmt.max is not None:
            return f"Valid range: {format_number(fmt.min)} to {format_number(fmt.max)}{unit}"
        if fmt.min is not None:
            return f"Minimum value: {format_number(fmt.min)}{unit}"
        if fmt.max is not None:
            return f"Maximum value: {format_number(fmt.max)}{unit}"
        return None

    def apply(self, answer_data):
        answer = self._parse(answer_data, NumericAnswer)
        self.set_value(answer.value)

    def _render_body(self):
        fmt = self.numeric_format
        current = self._current()
        return {
            "display": self.display,
            "unit": self.unit,
            "min": fmt.min,
            "max": fmt.max,
            "step": self.step,
            "precision": self.precision,
            "range_hint": self.range_hint,
            "can_increment": fmt.max is None or current < fmt.max,
            "can_decrement": fmt.min is None or current > fmt.min
        }


@dataclass(frozen=True)
class SelectedFile:
    """A file chosen by the student and the location it was uploaded to."""
    name: str
    mime_type: str
    size: int
    url: str

    @property
    def extension(self) -> str:
        return "." + self.name.rsplit(".", 1)[-1].lower()


class FileUploadEditor(QuestionEditor):
    question_types = frozenset({QuestionType.FILE_UPLOAD})

    @property
    def upload_format(self) -> FileUploadFormat:
        return self.question.format_or_default(FileUploadFormat)

    @property
    def max_size_mb(self) -> float:
        return self.upload_format.max_size_mb or self._config.file_upload_max_size_mb

    def is_accepted(self, selected: SelectedFile) -> bool:
        """Match against MIME types, ``.ext`` extensions and ``type/*`` wildcards."""
        accepted = self.upload_format.accepted_types
        if not accepted:
            return True
        for accepted_type in accepted:
            if accepted_type == selected.mime_type or accepted_type == selected.extension:
                return True
            if accepted_type.endswith("/*") and selected.mime_type.startswith(accepted_type[:-1]):
                return True
        return False

    def select_file(self, selected: SelectedFile) -> None:
        if selected.size > self.max_size_mb * 1024 * 1024:
            self._reject(
                f"File size exceeds the maximum limit of {format_number(self.max_size_mb)}MB",
                size=selected.size
            )
        if not self.is_accepted(selected):
            accepted = ", ".join(self.upload_format.accepted_types)
            self._reject(f"File type not accepted. Please upload one of these types: {accepted}")
        self._emit(FileUploadAnswer(
            file_name=selected.name,
            file_type=selected.mime_type,
            file_size=selected.size,
            file_url=selected.url
        ))

    def clear(self) -> None:
        self._emit(FileUploadAnswer())

    def apply(self, answer_data):
        answer = self._parse(answer_data, FileUploadAnswer)
        if not answer.file_url:
            self.clear()
            return
        self.select_file(SelectedFile(
            name=answer.file_name or "",
            mime_type=answer.file_type or "",
            size=answer.file_size or 0,
            url=answer.file_url
        ))

    def _render_body(self):
        accepted = self.upload_format.accepted_types
        answer = self._answer if isinstance(self._answer, FileUploadAnswer) else FileUploadAnswer()
        return {
            "accept": ",".join(accepted) if accepted else "*/*",
            "constraints": (
                f"Accepted file types: {', '.join(accepted) if accepted else 'Any'}; "
                f"maximum size {format_number(self.max_size_mb)}MB"
            ),
            "file": answer.to_wire() if answer.file_url else None
        }


class UnsupportedEditor(QuestionEditor):
    """Read-only placeholder for question types the engine does not deliver."""

    question_types = frozenset({QuestionType.UNSUPPORTED})

    @property
    def read_only(self) -> bool:
        return True

    def apply(self, answer_data):
        self._reject(f"Question type {self.question.type_label} cannot be answered")

    def _render_body(self):
        return {
            "raw_type": self.question.type_label,
            "message": (
                f"This question type ({self.question.type_label}) is not yet supported "
                "in the assessment engine."
            ),
            "notice": "This question will be skipped during scoring."
        }
