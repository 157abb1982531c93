from fastapi import APIRouter, Depends, HTTPException, status

from exam_builder.api.deps import get_exam_service
from exam_builder.core.errors import ParentNotFoundError, ValidationError
from exam_builder.schemas.exam import (
    DeleteResponse,
    QuestionCreate,
    QuestionRead,
    QuestionUpdate,
)
from exam_builder.services.exam_service import ExamService

router = APIRouter(prefix="/questions", tags=["Questions"])


@router.post(
    "",
    response_model=QuestionRead,
    status_code=status.HTTP_201_CREATED,
)
def create_question(
    payload: QuestionCreate,
    service: ExamService = Depends(get_exam_service),
):
    try:
        return service.create_question(payload)
    except ParentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.patch("/{question_id}", response_model=QuestionRead)
def update_question(
    question_id: int,
    payload: QuestionUpdate,
    service: ExamService = Depends(get_exam_service),
):
    """
    An empty body is a no-op and answers 404, same as an unknown id.
    """
    try:
        question = service.update_question(question_id, payload)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    if not question:
        raise HTTPException(status_code=404, detail="Question not found or nothing to update")
    return question


@router.delete("/{question_id}", response_model=DeleteResponse)
def delete_question(
    question_id: int,
    service: ExamService = Depends(get_exam_service),
):
    return DeleteResponse(deleted=service.delete_question(question_id))
