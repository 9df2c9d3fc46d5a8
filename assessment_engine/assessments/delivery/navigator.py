"""Position tracking over the sequenced question list."""

from typing import Optional, Sequence, Tuple

from assessment_engine.assessments.base.models import Question, Section


def current_section(
    questions: Sequence[Question],
    sections: Sequence[Section],
    index: int
) -> Optional[Section]:
    """Return the section containing the question at ``index``, if any."""
    if not 0 <= index < len(questions):
        return None
    question_id = questions[index].id
    for section in sections:
        if section.contains(question_id):
            return section
    return None


class Navigator:
    """
    Current-question cursor. Moves past either end and out-of-range jumps are
    ignored, so ``current_index`` always stays within bounds.
    """

    def __init__(self, question_count: int, current_index: int = 0):
        self.question_count = question_count
        self.current_index = current_index if 0 <= current_index < question_count else 0

    @property
    def is_first(self) -> bool:
        return self.current_index == 0

    @property
    def is_last(self) -> bool:
        return self.question_count == 0 or self.current_index == self.question_count - 1

    @property
    def progress(self) -> Tuple[int, int]:
        """1-based position and total."""
        if self.question_count == 0:
            return 0, 0
        return self.current_index + 1, self.question_count

    def previous(self) -> int:
        if self.current_index > 0:
            self.current_index -= 1
        return self.current_index

    def next(self) -> int:
        if self.current_index < self.question_count - 1:
            self.current_index += 1
        return self.current_index

    def jump_to(self, index: int) -> int:
        if 0 <= index < self.question_count:
            self.current_index = index
        return self.current_index
