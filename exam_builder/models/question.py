import enum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    Text,
)

from exam_builder.db.base import Base
from exam_builder.models.exam import utcnow


class QuestionType(str, enum.Enum):
    """Supported question types."""
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    FORMULA = "FORMULA"


# =========================
# Question
# =========================
class Question(Base):
    __tablename__ = "questions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    exam_id = Column(
        Integer,
        ForeignKey("exams.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    type = Column(Enum(QuestionType, name="question_type"), nullable=False)
    question_text = Column(Text, nullable=False)

    points = Column(Float, nullable=False)

    # Advisory position within the exam, duplicates are allowed
    order_index = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


# =========================
# Multiple choice option
# =========================
class MultipleChoiceOption(Base):
    __tablename__ = "multiple_choice_options"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    question_id = Column(
        Integer,
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    option_text = Column(Text, nullable=False)
    is_correct = Column(Boolean, default=False, nullable=False)
    order_index = Column(Integer, nullable=False)


# =========================
# Formula answer (1:1 with question)
# =========================
class FormulaAnswer(Base):
    __tablename__ = "formula_answers"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    question_id = Column(
        Integer,
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    # Either a formula ("2x") or a literal value ("3.14")
    expected_answer = Column(Text, nullable=False)

