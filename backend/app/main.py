import logging
import uvicorn

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .settings import settings
from .routers import health
from .routers import exam_papers
from .routers import ai_papers

logging.basicConfig(
	level=settings.log_level.upper(),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="11 Plus Exam Papers API")
app.include_router(health.router)
app.include_router(exam_papers.router)
app.include_router(ai_papers.router)

if settings.cors_origins:
	app.add_middleware(
		CORSMiddleware,
		allow_origins=settings.cors_origins,
		allow_methods=["GET", "POST"],
		allow_headers=["*"],
		expose_headers=["Content-Disposition"],
	)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
	# Layout and encoding failures end the request; no partial PDF is sent
	logger.exception("unhandled error on %s %s", request.method, request.url.path)
	return JSONResponse(status_code=500, content={"error": "Failed to generate exam paper"})


@app.get("/info")
def root():
	return {"status": "ok", "ai_configured": bool(settings.gemini_api_key)}


def run() -> None:
	uvicorn.run("backend.app.main:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
	run()
