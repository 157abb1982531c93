# exam_builder/services/exam_service.py

"""
EXAM AGGREGATE SERVICE

Owns the exam -> question -> (options | formula answer) tree.

RULES ENFORCED HERE:
1. A question is only created against an existing exam
2. Options only attach to MULTIPLE_CHOICE questions
3. A FORMULA question has at most one answer
4. Partial updates apply only the fields the caller supplied
5. Deletes are single statements; the database cascades to descendants

Missing ids on read/update/delete come back as None / False, never raised.
"""

from collections import Counter, defaultdict
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from exam_builder.core.errors import (
    ConstraintViolation,
    ParentNotFoundError,
    ValidationError,
)
from exam_builder.models.exam import Exam, utcnow
from exam_builder.models.question import (
    FormulaAnswer,
    MultipleChoiceOption,
    Question,
    QuestionType,
)
from exam_builder.schemas.exam import (
    ExamAggregate,
    ExamCreate,
    ExamIssue,
    ExamRead,
    ExamUpdate,
    FormulaAnswerCreate,
    FormulaAnswerRead,
    FormulaAnswerUpdate,
    FormulaPayload,
    OptionCreate,
    OptionRead,
    OptionsPayload,
    OptionUpdate,
    QuestionCreate,
    QuestionUpdate,
    QuestionWithPayload,
)

logger = logging.getLogger(__name__)


def _require_text(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required")
    return value


def _require_points(value: float) -> float:
    if value is None or value <= 0:
        raise ValidationError("points must be positive")
    return value


def _require_order_index(value: int) -> int:
    if value is None or value < 0:
        raise ValidationError("order_index must be non-negative")
    return value


def _supplied_fields(payload, nullable: Iterable[str] = ()) -> Dict[str, Any]:
    """
    Fields explicitly present in the payload.

    An explicit None counts as "not supplied" unless the column is nullable.
    """
    data = payload.model_dump(exclude_unset=True)
    return {
        key: value
        for key, value in data.items()
        if value is not None or key in nullable
    }


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _next_timestamp(previous: Optional[datetime]) -> datetime:
    """Current time, nudged forward so it is strictly after `previous`."""
    now = utcnow()
    if previous is not None:
        previous = _as_utc(previous)
        if now <= previous:
            now = previous + timedelta(microseconds=1)
    return now


class ExamService:
    """
    Aggregate store for exams.

    The SQLAlchemy session is injected; each public method is one transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _write(self, action: str):
        try:
            yield
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"{action} failed: {str(e)}")
            raise
        except Exception:
            self.db.rollback()
            raise

    # ==============================
    # EXAMS
    # ==============================

    def create_exam(self, payload: ExamCreate) -> Exam:
        title = _require_text(payload.title, "title")

        now = utcnow()
        exam = Exam(
            title=title,
            description=payload.description,
            created_at=now,
            updated_at=now,
        )

        with self._write("Exam creation"):
            self.db.add(exam)

        self.db.refresh(exam)
        logger.info(f"Created exam {exam.id}")
        return exam

    def list_exams(self) -> List[Exam]:
        return self.db.query(Exam).order_by(Exam.id).all()

    def get_exam(self, exam_id: int) -> Optional[Exam]:
        return self.db.query(Exam).filter(Exam.id == exam_id).first()

    def get_exam_with_questions(self, exam_id: int) -> Optional[ExamAggregate]:
        """
        Build the full exam tree.

        Questions and options are ordered by order_index, ties by id. A question
        with nothing stored yet gets payload=None rather than an empty list.
        """
        exam = self.get_exam(exam_id)
        if not exam:
            return None

        questions = (
            self.db.query(Question)
            .filter(Question.exam_id == exam_id)
            .order_by(Question.order_index, Question.id)
            .all()
        )

        options_by_question: Dict[int, List[MultipleChoiceOption]] = defaultdict(list)
        answers_by_question: Dict[int, FormulaAnswer] = {}

        if questions:
            options = (
                self.db.query(MultipleChoiceOption)
                .join(Question, MultipleChoiceOption.question_id == Question.id)
                .filter(Question.exam_id == exam_id)
                .order_by(MultipleChoiceOption.order_index, MultipleChoiceOption.id)
                .all()
            )
            for option in options:
                options_by_question[option.question_id].append(option)

            answers = (
                self.db.query(FormulaAnswer)
                .join(Question, FormulaAnswer.question_id == Question.id)
                .filter(Question.exam_id == exam_id)
                .all()
            )
            for answer in answers:
                answers_by_question[answer.question_id] = answer

        items: List[QuestionWithPayload] = []

        for q in questions:
            payload = None

            if q.type == QuestionType.MULTIPLE_CHOICE and options_by_question.get(q.id):
                payload = OptionsPayload(
                    options=[
                        OptionRead.model_validate(o)
                        for o in options_by_question[q.id]
                    ]
                )
            elif q.type == QuestionType.FORMULA and q.id in answers_by_question:
                payload = FormulaPayload(
                    answer=FormulaAnswerRead.model_validate(answers_by_question[q.id])
                )

            items.append(
                QuestionWithPayload(
                    id=q.id,
                    exam_id=q.exam_id,
                    type=q.type,
                    question_text=q.question_text,
                    points=q.points,
                    order_index=q.order_index,
                    created_at=q.created_at,
                    payload=payload,
                )
            )

        return ExamAggregate(
            **ExamRead.model_validate(exam).model_dump(),
            questions=items,
        )

    def update_exam(self, exam_id: int, payload: ExamUpdate) -> Optional[Exam]:
        """
        Apply the supplied fields. updated_at always moves forward, even when
        nothing else is supplied.
        """
        changes = _supplied_fields(payload, nullable=("description",))
        if "title" in changes:
            _require_text(changes["title"], "title")

        exam = self.get_exam(exam_id)
        if not exam:
            return None

        with self._write("Exam update"):
            for field, value in changes.items():
                setattr(exam, field, value)
            exam.updated_at = _next_timestamp(exam.updated_at)

        self.db.refresh(exam)
        logger.info(f"Updated exam {exam.id} (fields: {sorted(changes) or 'none'})")
        return exam

    def delete_exam(self, exam_id: int) -> bool:
        with self._write("Exam deletion"):
            deleted = (
                self.db.query(Exam)
                .filter(Exam.id == exam_id)
                .delete(synchronize_session="fetch")
            )

        if deleted:
            logger.info(f"Deleted exam {exam_id} and its questions")
        return deleted > 0

    # ==============================
    # QUESTIONS
    # ==============================

    def create_question(self, payload: QuestionCreate) -> Question:
        _require_text(payload.question_text, "question_text")
        _require_points(payload.points)
        _require_order_index(payload.order_index)

        if not self.get_exam(payload.exam_id):
            logger.warning(f"Question rejected: exam {payload.exam_id} not found")
            raise ParentNotFoundError("Exam", payload.exam_id)

        question = Question(
            exam_id=payload.exam_id,
            type=payload.type,
            question_text=payload.question_text,
            points=payload.points,
            order_index=payload.order_index,
        )

        with self._write("Question creation"):
            self.db.add(question)

        self.db.refresh(question)
        logger.info(f"Created {question.type.value} question {question.id} in exam {question.exam_id}")
        return question

    def get_question(self, question_id: int) -> Optional[Question]:
        return self.db.query(Question).filter(Question.id == question_id).first()

    def update_question(self, question_id: int, payload: QuestionUpdate) -> Optional[Question]:
        """Returns None when nothing is supplied; the existing row is not re-read."""
        changes = _supplied_fields(payload)
        if not changes:
            return None

        if "question_text" in changes:
            _require_text(changes["question_text"], "question_text")
        if "points" in changes:
            _require_points(changes["points"])
        if "order_index" in changes:
            _require_order_index(changes["order_index"])

        question = self.get_question(question_id)
        if not question:
            return None

        with self._write("Question update"):
            for field, value in changes.items():
                setattr(question, field, value)

        self.db.refresh(question)
        logger.info(f"Updated question {question.id}")
        return question

    def delete_question(self, question_id: int) -> bool:
        with self._write("Question deletion"):
            deleted = (
                self.db.query(Question)
                .filter(Question.id == question_id)
                .delete(synchronize_session="fetch")
            )

        if deleted:
            logger.info(f"Deleted question {question_id}")
        return deleted > 0

    # ==============================
    # MULTIPLE CHOICE OPTIONS
    # ==============================

    def create_multiple_choice_option(self, payload: OptionCreate) -> MultipleChoiceOption:
        _require_text(payload.option_text, "option_text")
        _require_order_index(payload.order_index)

        question = self.get_question(payload.question_id)
        if not question:
            logger.warning(f"Option rejected: question {payload.question_id} not found")
            raise ParentNotFoundError("Question", payload.question_id)

        if question.type != QuestionType.MULTIPLE_CHOICE:
            logger.warning(f"Option rejected: question {question.id} is {question.type.value}")
            raise ConstraintViolation(
                f"Question with id {question.id} is not a multiple choice question"
            )

        option = MultipleChoiceOption(
            question_id=question.id,
            option_text=payload.option_text,
            is_correct=payload.is_correct,
            order_index=payload.order_index,
        )

        with self._write("Multiple choice option creation"):
            self.db.add(option)

        self.db.refresh(option)
        logger.info(f"Created option {option.id} for question {option.question_id}")
        return option

    def get_multiple_choice_option(self, option_id: int) -> Optional[MultipleChoiceOption]:
        return (
            self.db.query(MultipleChoiceOption)
            .filter(MultipleChoiceOption.id == option_id)
            .first()
        )

    def update_multiple_choice_option(
        self,
        option_id: int,
        payload: OptionUpdate,
    ) -> Optional[MultipleChoiceOption]:
        """Same empty-update policy as questions: nothing supplied -> None."""
        changes = _supplied_fields(payload)
        if not changes:
            return None

        if "option_text" in changes:
            _require_text(changes["option_text"], "option_text")
        if "order_index" in changes:
            _require_order_index(changes["order_index"])

        option = self.get_multiple_choice_option(option_id)
        if not option:
            return None

        with self._write("Multiple choice option update"):
            for field, value in changes.items():
                setattr(option, field, value)

        self.db.refresh(option)
        logger.info(f"Updated option {option.id}")
        return option

    def delete_multiple_choice_option(self, option_id: int) -> bool:
        with self._write("Multiple choice option deletion"):
            deleted = (
                self.db.query(MultipleChoiceOption)
                .filter(MultipleChoiceOption.id == option_id)
                .delete(synchronize_session="fetch")
            )

        if deleted:
            logger.info(f"Deleted option {option_id}")
        return deleted > 0

    # ==============================
    # FORMULA ANSWERS
    # ==============================

    def create_formula_answer(self, payload: FormulaAnswerCreate) -> FormulaAnswer:
        _require_text(payload.expected_answer, "expected_answer")

        question = self.get_question(payload.question_id)
        if not question:
            logger.warning(f"Formula answer rejected: question {payload.question_id} not found")
            raise ParentNotFoundError("Question", payload.question_id)

        if question.type != QuestionType.FORMULA:
            logger.warning(f"Formula answer rejected: question {question.id} is {question.type.value}")
            raise ConstraintViolation(
                f"Question with id {question.id} is not a formula question"
            )

        question_id = question.id

        if self.get_formula_answer_for_question(question_id):
            logger.warning(f"Formula answer rejected: question {question.id} already answered")
            raise ConstraintViolation(
                f"Formula answer already exists for question {question.id}"
            )

        answer = FormulaAnswer(
            question_id=question.id,
            expected_answer=payload.expected_answer,
        )

        try:
            with self._write("Formula answer creation"):
                self.db.add(answer)
        except IntegrityError as exc:
            # another writer may have answered between the check and the insert;
            # anything else (e.g. the question vanished) propagates unchanged
            if not self.get_formula_answer_for_question(question_id):
                raise
            logger.warning(f"Formula answer rejected: question {question_id} answered concurrently")
            raise ConstraintViolation(
                f"Formula answer already exists for question {question_id}"
            ) from exc

        self.db.refresh(answer)
        logger.info(f"Created formula answer {answer.id} for question {answer.question_id}")
        return answer

    def get_formula_answer_for_question(self, question_id: int) -> Optional[FormulaAnswer]:
        return (
            self.db.query(FormulaAnswer)
            .filter(FormulaAnswer.question_id == question_id)
            .first()
        )

    def get_formula_answer(self, answer_id: int) -> Optional[FormulaAnswer]:
        return (
            self.db.query(FormulaAnswer)
            .filter(FormulaAnswer.id == answer_id)
            .first()
        )

    def update_formula_answer(
        self,
        answer_id: int,
        payload: FormulaAnswerUpdate,
    ) -> Optional[FormulaAnswer]:
        """Nothing supplied -> the existing record, unchanged."""
        answer = self.get_formula_answer(answer_id)
        if not answer:
            return None

        changes = _supplied_fields(payload)
        if not changes:
            return answer

        _require_text(changes["expected_answer"], "expected_answer")

        with self._write("Formula answer update"):
            answer.expected_answer = changes["expected_answer"]

        self.db.refresh(answer)
        logger.info(f"Updated formula answer {answer.id}")
        return answer

    def delete_formula_answer(self, answer_id: int) -> bool:
        with self._write("Formula answer deletion"):
            deleted = (
                self.db.query(FormulaAnswer)
                .filter(FormulaAnswer.id == answer_id)
                .delete(synchronize_session="fetch")
            )

        if deleted:
            logger.info(f"Deleted formula answer {answer_id}")
        return deleted > 0

    # ==============================
    # ADVISORY CHECKS
    # ==============================

    def check_exam(self, exam_id: int) -> Optional[List[ExamIssue]]:
        """
        Report UI conventions the store does not enforce: unique order_index
        per owner, a payload on every question, and at least one correct option.
        Nothing here blocks a write.
        """
        aggregate = self.get_exam_with_questions(exam_id)
        if aggregate is None:
            return None

        issues: List[ExamIssue] = []

        question_orders = Counter(q.order_index for q in aggregate.questions)
        for order_index, count in sorted(question_orders.items()):
            if count > 1:
                ids = [q.id for q in aggregate.questions if q.order_index == order_index]
                issues.append(ExamIssue(
                    code="DUPLICATE_QUESTION_ORDER",
                    message=f"Questions {ids} share order_index {order_index}",
                ))

        for q in aggregate.questions:
            if q.payload is None:
                expected = "options" if q.type == QuestionType.MULTIPLE_CHOICE else "an answer"
                issues.append(ExamIssue(
                    code="MISSING_PAYLOAD",
                    message=f"Question {q.id} has no {expected} yet",
                    question_id=q.id,
                ))
                continue

            if not isinstance(q.payload, OptionsPayload):
                continue

            if not any(o.is_correct for o in q.payload.options):
                issues.append(ExamIssue(
                    code="NO_CORRECT_OPTION",
                    message=f"Question {q.id} has no correct option",
                    question_id=q.id,
                ))

            option_orders = Counter(o.order_index for o in q.payload.options)
            for order_index, count in sorted(option_orders.items()):
                if count > 1:
                    issues.append(ExamIssue(
                        code="DUPLICATE_OPTION_ORDER",
                        message=f"Question {q.id} has {count} options at order_index {order_index}",
                        question_id=q.id,
                    ))

        return issues
