"""
Practice Session Module - Headless state machine for a training run.

The session hands out examples one at a time, scores the learner's
answers and collects wrong examples for a later retry run. Rendering,
timers and sounds belong to the UI; it only calls into this object.

State Flow:
    READY -> SHOWING -> (answer / expire) -> SHOWING ... -> FINISHED
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


__all__ = [
    "SessionState",
    "SessionStats",
    "AnswerResult",
    "SessionResults",
    "PracticeSession",
    "display_steps",
]


ExampleSource = Callable[[], Dict[str, Any]]


class SessionState(Enum):
    """
    States:
        READY: Created, no example shown yet
        SHOWING: An example is shown and waits for an answer
        FINISHED: All examples done or the run was stopped
    """
    READY = auto()
    SHOWING = auto()
    FINISHED = auto()


@dataclass
class SessionStats:
    correct: int = 0
    incorrect: int = 0
    total: int = 0

    @property
    def completed(self) -> int:
        return self.correct + self.incorrect

    @property
    def percent_correct(self) -> int:
        if self.completed == 0:
            return 0
        return round(self.correct / self.completed * 100)

    @property
    def percent_incorrect(self) -> int:
        if self.completed == 0:
            return 0
        return round(self.incorrect / self.completed * 100)


@dataclass(frozen=True)
class AnswerResult:
    is_correct: bool
    expected: int
    given: int


@dataclass
class SessionResults:
    """
    Outcome of a finished run, as read by the results screen.

    Attributes:
        total: Examples planned for the run
        success: Correct answers
        wrong_examples: Wrong or timed-out examples with the learner's answer
    """
    total: int
    success: int
    wrong_examples: List[Dict[str, Any]] = field(default_factory=list)


def display_steps(example: Dict[str, Any]) -> List[str]:
    """Step strings of an example; bridging step dicts contribute their "step"."""
    result = []
    for step in example.get("steps") or []:
        if isinstance(step, dict):
            result.append(str(step.get("step", "")))
        else:
            result.append(str(step))
    return result


def parse_answer(raw: Any) -> int:
    """
    Parse a learner's answer.

    Raises:
        ValueError: If the answer is not an integer
    """
    if isinstance(raw, bool):
        raise ValueError(f"Not a numeric answer: {raw!r}")
    if isinstance(raw, int):
        return raw
    text = str(raw).strip()
    if not text:
        raise ValueError("Empty answer")
    return int(text)


class PracticeSession:
    """
    One training run over a fixed number of examples.

    Args:
        example_source: Callable returning a trainer-format example
        total: Number of examples in the run
        on_finish: Called once with SessionResults when the run ends
        review_queue: Previously wrong examples to replay instead of
            generating new ones (retry mode)
    """

    def __init__(self, example_source: Optional[ExampleSource], total: int,
                 on_finish: Optional[Callable[[SessionResults], None]] = None,
                 review_queue: Optional[List[Dict[str, Any]]] = None):
        self._example_source = example_source
        self._on_finish = on_finish
        self._review_queue: List[Dict[str, Any]] = list(review_queue or [])
        self._review_index = 0

        total = len(self._review_queue) if self._review_queue else total
        self.stats = SessionStats(total=max(0, total))
        self.incorrect_examples: List[Dict[str, Any]] = []

        self._state = SessionState.READY
        self._current: Optional[Dict[str, Any]] = None
        self._results: Optional[SessionResults] = None

    @classmethod
    def retry_mistakes(cls, results: SessionResults,
                       on_finish: Optional[Callable[[SessionResults], None]] = None
                       ) -> "PracticeSession":
        """
        Build a session replaying the wrong examples of a previous run.
        """
        queue = []
        for wrong in results.wrong_examples:
            example = {k: v for k, v in wrong.items() if k not in ("userAnswer", "timedOut")}
            queue.append(example)
        logger.info(f"Retry session with {len(queue)} examples")
        return cls(None, len(queue), on_finish=on_finish, review_queue=queue)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current_example(self) -> Optional[Dict[str, Any]]:
        return self._current

    @property
    def completed(self) -> int:
        return self.stats.completed

    @property
    def is_retry(self) -> bool:
        return bool(self._review_queue)

    @property
    def results(self) -> Optional[SessionResults]:
        return self._results

    def next_example(self) -> Optional[Dict[str, Any]]:
        """
        Advance to the next example.

        Returns:
            The example to show, or None when the run has finished
        """
        if self._state == SessionState.FINISHED:
            return None
        if self.completed >= self.stats.total:
            self.finish()
            return None

        if self._review_queue:
            if self._review_index >= len(self._review_queue):
                self.finish()
                return None
            example = self._review_queue[self._review_index]
        else:
            example = self._example_source()

        if not example or not isinstance(example.get("steps"), list):
            logger.error(f"Invalid example: {example}")
            self.finish()
            return None

        self._current = example
        self._state = SessionState.SHOWING
        logger.debug(f"Next example: {display_steps(example)}, answer {example.get('answer')}")
        return example

    def submit_answer(self, answer: Any) -> AnswerResult:
        """
        Score an answer to the current example.

        Raises:
            ValueError: If the answer is not an integer (nothing is counted)
            RuntimeError: If no example is being shown
        """
        if self._state != SessionState.SHOWING or self._current is None:
            raise RuntimeError("No example is waiting for an answer")

        given = parse_answer(answer)
        example = self._current
        expected = int(example["answer"])
        is_correct = given == expected

        if is_correct:
            self.stats.correct += 1
        else:
            self.stats.incorrect += 1
            self.incorrect_examples.append({**example, "userAnswer": given})

        self._after_answer()
        return AnswerResult(is_correct=is_correct, expected=expected, given=given)

    def expire(self) -> None:
        """Per-example time ran out: count the current example as wrong."""
        if self._state != SessionState.SHOWING or self._current is None:
            return
        self.stats.incorrect += 1
        self.incorrect_examples.append({**self._current, "userAnswer": None, "timedOut": True})
        logger.info("Example timed out")
        self._after_answer()

    def _after_answer(self) -> None:
        self._current = None
        if self._review_queue:
            self._review_index += 1
        if self.completed >= self.stats.total:
            self.finish()
        else:
            self._state = SessionState.READY

    def finish(self) -> SessionResults:
        """Stop the run and notify on_finish exactly once."""
        if self._results is not None:
            return self._results

        self._state = SessionState.FINISHED
        self._current = None
        self._results = SessionResults(
            total=self.stats.total,
            success=self.stats.correct,
            wrong_examples=list(self.incorrect_examples),
        )
        logger.info(
            f"Training finished: {self.stats.correct}/{self.stats.total} correct, "
            f"{len(self.incorrect_examples)} wrong"
        )
        if self._on_finish:
            self._on_finish(self._results)
        return self._results
