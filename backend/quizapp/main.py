import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .db import SessionLocal
from .bootstrap import init_db
from .errors import QuizAppError
from .settings import settings
from .routers import auth
from .routers import quizzes
from .routers import admin

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Quiz Platform API")
app.add_middleware(
	CORSMiddleware,
	allow_origins=["*"],
	allow_methods=["*"],
	allow_headers=["*"],
)
app.include_router(auth.router)
app.include_router(quizzes.router)
app.include_router(admin.router)


@app.exception_handler(QuizAppError)
async def quiz_app_error_handler(request: Request, exc: QuizAppError):
	if exc.status_code >= 500:
		logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
	return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=exc.headers)


@app.get("/info")
def root():
	return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key)}


@app.on_event("startup")
async def startup_event():
	db = SessionLocal()
	try:
		init_db(db, settings)
	finally:
		db.close()
