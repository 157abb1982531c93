from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from exam_builder.api.deps import get_exam_service
from exam_builder.core.errors import ValidationError
from exam_builder.schemas.exam import (
    DeleteResponse,
    ExamAggregate,
    ExamCreate,
    ExamIssue,
    ExamRead,
    ExamUpdate,
)
from exam_builder.services.exam_service import ExamService

router = APIRouter(prefix="/exams", tags=["Exams"])


@router.post(
    "",
    response_model=ExamRead,
    status_code=status.HTTP_201_CREATED,
)
def create_exam(
    payload: ExamCreate,
    service: ExamService = Depends(get_exam_service),
):
    try:
        return service.create_exam(payload)
    except ValidationError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        )


@router.get("", response_model=List[ExamRead])
def list_exams(service: ExamService = Depends(get_exam_service)):
    """Lightweight listing, no questions."""
    return service.list_exams()


@router.get("/{exam_id}", response_model=ExamAggregate)
def get_exam(
    exam_id: int,
    service: ExamService = Depends(get_exam_service),
):
    exam = service.get_exam_with_questions(exam_id)
    if not exam:
        raise HTTPException(status_code=404, detail="Exam not found")
    return exam


@router.patch("/{exam_id}", response_model=ExamRead)
def update_exam(
    exam_id: int,
    payload: ExamUpdate,
    service: ExamService = Depends(get_exam_service),
):
    try:
        exam = service.update_exam(exam_id, payload)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    if not exam:
        raise HTTPException(status_code=404, detail="Exam not found")
    return exam


@router.delete("/{exam_id}", response_model=DeleteResponse)
def delete_exam(
    exam_id: int,
    service: ExamService = Depends(get_exam_service),
):
    return DeleteResponse(deleted=service.delete_exam(exam_id))


@router.get("/{exam_id}/issues", response_model=List[ExamIssue])
def check_exam(
    exam_id: int,
    service: ExamService = Depends(get_exam_service),
):
    issues = service.check_exam(exam_id)
    if issues is None:
        raise HTTPException(status_code=404, detail="Exam not found")
    return issues
