from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI, Request

from lingo.backend.client import get_backend_client
from lingo.config import settings
from lingo.deps import get_auth_context
from lingo.routers import auth, calendar, class_session, instructor_profile, student_rating

logging.basicConfig(
    level=getattr(logging, (settings.log_level or 'INFO').upper(), logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s %(message)s',
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    get_auth_context().check_user_status()
    yield
    get_backend_client().close()


app = FastAPI(title=settings.app_name, version='0.1.0', lifespan=lifespan)


@app.middleware('http')
async def slow_request_logger(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - started) * 1000.0
    if duration_ms >= settings.request_slow_ms:
        logger.warning(
            'slow_request duration_ms=%.2f method=%s path=%s status=%s',
            duration_ms,
            request.method,
            request.url.path,
            response.status_code,
        )
    return response


@app.get('/health')
def health():
    return {'status': 'ok', 'env': settings.app_env}


app.include_router(auth.router)
app.include_router(instructor_profile.router)
app.include_router(calendar.router)
app.include_router(class_session.router)
app.include_router(student_rating.router)
