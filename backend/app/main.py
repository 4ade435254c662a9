from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1.router import api_router
from app.core.config import settings
from app.core.exceptions import InvalidRequestError, QuizEngineError
from app.core.logging import configure_logging


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    configure_logging()
    logger.info('Quiz attempt service starting (env=%s)', settings.APP_ENV)
    yield


app = FastAPI(
    title='Quiz Attempt Engine API',
    version='0.1.0',
    openapi_url='/api/v1/openapi.json',
    docs_url='/api/v1/docs',
    redoc_url='/api/v1/redoc',
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


@app.exception_handler(QuizEngineError)
async def quiz_engine_error_handler(request: Request, exc: QuizEngineError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error('%s %s failed: %s', request.method, request.url.path, exc.detail)
    else:
        logger.info('%s %s rejected (%s): %s', request.method, request.url.path, exc.code, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            'loc': [str(part) for part in error.get('loc', ())],
            'msg': error.get('msg', ''),
            'type': error.get('type', ''),
        }
        for error in exc.errors()
    ]
    logger.info('%s %s rejected (validation_error): %s errors', request.method, request.url.path, len(errors))
    error = InvalidRequestError('Request validation failed', errors=errors)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


app.include_router(api_router, prefix='/api/v1')


@app.get('/')
def root() -> dict[str, str]:
    return {'service': 'quiz-attempt-engine', 'status': 'running'}
