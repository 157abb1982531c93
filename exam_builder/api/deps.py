from fastapi import Depends
from sqlalchemy.orm import Session

from exam_builder.db.session import get_db
from exam_builder.services.exam_service import ExamService


def get_exam_service(db: Session = Depends(get_db)) -> ExamService:
    return ExamService(db)
