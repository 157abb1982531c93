# exam_builder/core/errors.py


class ExamBuilderError(Exception):
    """Base class for errors raised by the exam aggregate."""


class ValidationError(ExamBuilderError, ValueError):
    """Malformed input, e.g. a blank title. Never retried."""


class ParentNotFoundError(ExamBuilderError, LookupError):
    """A create referenced an exam or question that does not exist."""

    def __init__(self, entity: str, entity_id: int):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} with id {entity_id} not found")


class ConstraintViolation(ExamBuilderError, ValueError):
    """A write that would break a cross-entity rule (payload kind, 1:1 answer)."""
