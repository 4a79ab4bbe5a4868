import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .db import init_db
from .gemini_client import CallMetric, GeminiClient
from .settings import settings
from .routers import health, questions, solve

logging.basicConfig(
	level=getattr(logging, settings.log_level.upper(), logging.INFO),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Prompt Quiz API")
app.add_middleware(
	CORSMiddleware,
	allow_origins=settings.cors_origin_list,
	allow_credentials=True,
	allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
	allow_headers=["Origin", "Content-Type", "Accept", "Authorization"],
	expose_headers=["Content-Length"],
	max_age=12 * 60 * 60,
)
app.include_router(health.router)
app.include_router(questions.router)
app.include_router(solve.router)
app.state.gemini_client = None


@app.get("/info")
def root():
	return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key)}


def _log_gemini_metric(metric: CallMetric) -> None:
	if metric.status == "success":
		logger.info(
			"gemini model=%s attempts=%d latency=%.3fs prompt_size=%d",
			metric.model, metric.attempts, metric.latency, metric.prompt_size,
		)
	else:
		logger.warning(
			"gemini model=%s attempts=%d latency=%.3fs prompt_size=%d failed: %s",
			metric.model, metric.attempts, metric.latency, metric.prompt_size, metric.error,
		)


@app.on_event("startup")
async def startup_event():
	# Initialize DB schema
	init_db()
	if settings.gemini_api_key:
		app.state.gemini_client = GeminiClient(observer=_log_gemini_metric)
	else:
		logger.warning("GEMINI_API_KEY is not set; /api/v1/solve will answer 503")


@app.on_event("shutdown")
async def shutdown_event():
	client = app.state.gemini_client
	if client is not None:
		await client.aclose()
		app.state.gemini_client = None
