import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.session import get_db


logger = logging.getLogger(__name__)

router = APIRouter(tags=['health'])


@router.get('/health')
def health(db: Session = Depends(get_db)) -> dict[str, str]:
    database = 'ok'
    try:
        db.execute(text('select 1'))
    except SQLAlchemyError as exc:
        logger.warning('Health check database query failed: %s', exc)
        database = 'unavailable'
    return {'status': 'ok', 'environment': settings.APP_ENV, 'database': database}
