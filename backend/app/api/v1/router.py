from fastapi import APIRouter

from app.api.v1.endpoints import attempts, health, quizzes, statistics
from app.schemas.common import ErrorOut


# Typed QuizEngineError bodies, documented once for every engine route.
ERROR_RESPONSES = {
    403: {'model': ErrorOut},
    404: {'model': ErrorOut},
    409: {'model': ErrorOut},
    422: {'model': ErrorOut},
}

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(quizzes.router, responses=ERROR_RESPONSES)
api_router.include_router(attempts.router, responses=ERROR_RESPONSES)
api_router.include_router(statistics.router, responses=ERROR_RESPONSES)
