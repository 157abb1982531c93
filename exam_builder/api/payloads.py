from fastapi import APIRouter, Depends, HTTPException, status

from exam_builder.api.deps import get_exam_service
from exam_builder.core.errors import (
    ConstraintViolation,
    ParentNotFoundError,
    ValidationError,
)
from exam_builder.schemas.exam import (
    DeleteResponse,
    FormulaAnswerCreate,
    FormulaAnswerRead,
    FormulaAnswerUpdate,
    OptionCreate,
    OptionRead,
    OptionUpdate,
)
from exam_builder.services.exam_service import ExamService

router = APIRouter(tags=["Question Payloads"])


# -------------------------------------------------
# Multiple choice options
# -------------------------------------------------

@router.post(
    "/options",
    response_model=OptionRead,
    status_code=status.HTTP_201_CREATED,
)
def create_option(
    payload: OptionCreate,
    service: ExamService = Depends(get_exam_service),
):
    try:
        return service.create_multiple_choice_option(payload)
    except ParentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ConstraintViolation as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.patch("/options/{option_id}", response_model=OptionRead)
def update_option(
    option_id: int,
    payload: OptionUpdate,
    service: ExamService = Depends(get_exam_service),
):
    try:
        option = service.update_multiple_choice_option(option_id, payload)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    if not option:
        raise HTTPException(status_code=404, detail="Option not found or nothing to update")
    return option


@router.delete("/options/{option_id}", response_model=DeleteResponse)
def delete_option(
    option_id: int,
    service: ExamService = Depends(get_exam_service),
):
    return DeleteResponse(deleted=service.delete_multiple_choice_option(option_id))


# -------------------------------------------------
# Formula answers
# -------------------------------------------------

@router.post(
    "/formula-answers",
    response_model=FormulaAnswerRead,
    status_code=status.HTTP_201_CREATED,
)
def create_formula_answer(
    payload: FormulaAnswerCreate,
    service: ExamService = Depends(get_exam_service),
):
    try:
        return service.create_formula_answer(payload)
    except ParentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except ConstraintViolation as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.patch("/formula-answers/{answer_id}", response_model=FormulaAnswerRead)
def update_formula_answer(
    answer_id: int,
    payload: FormulaAnswerUpdate,
    service: ExamService = Depends(get_exam_service),
):
    """An empty body returns the stored answer unchanged."""
    try:
        answer = service.update_formula_answer(answer_id, payload)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    if not answer:
        raise HTTPException(status_code=404, detail="Formula answer not found")
    return answer


@router.delete("/formula-answers/{answer_id}", response_model=DeleteResponse)
def delete_formula_answer(
    answer_id: int,
    service: ExamService = Depends(get_exam_service),
):
    return DeleteResponse(deleted=service.delete_formula_answer(answer_id))
