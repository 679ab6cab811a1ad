import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException

from trip_planner.api.routes_chat import router as chat_router
from trip_planner.api.routes_suggestions import router as suggestions_router
from trip_planner.api.routes_discovery import router as discovery_router
from trip_planner.api.routes_itinerary import router as itinerary_router
from trip_planner.api.routes_pdf import router as pdf_router
from trip_planner.api.routes_profile import router as profile_router
from trip_planner.api.routes_programs import router as programs_router

from trip_planner.core.config_loader import settings
from trip_planner.core.errors import MalformedOutputError, TripPlannerError
from trip_planner.core.logger import get_logger

log = get_logger("http")


app = FastAPI(
    title="NYC Trip Planner",
    description="AI-assisted day planning for a New York City trip: chat, region guides, discovery and itinerary",
    version="1.0.0"
)

# -------------------------------------------------------------
# OPTIONS + CORS
# -------------------------------------------------------------
# Registered before CORSMiddleware so real preflights are still answered by
# it; any other OPTIONS request gets a bare 200.
@app.middleware("http")
async def answer_options(request: Request, call_next):
    if request.method == "OPTIONS":
        return Response(status_code=200)
    return await call_next(request)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -------------------------------------------------------------
# ERRORS → {"error": ...}
# -------------------------------------------------------------
@app.exception_handler(TripPlannerError)
def handle_trip_planner_error(request: Request, exc: TripPlannerError):
    if isinstance(exc, MalformedOutputError):
        log.error(f"{request.url.path}: {exc} | excerpt={exc.excerpt!r}")
    elif exc.status_code >= 500:
        log.error(f"{request.url.path}: {exc}")
    else:
        log.info(f"{request.url.path}: {exc.status_code} {exc}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.user_message})


@app.exception_handler(HTTPException)
def handle_http_exception(request: Request, exc: HTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
def handle_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Requisição inválida")
    log.info(f"{request.url.path}: invalid request ({field}: {message})")
    return JSONResponse(status_code=400, content={"error": f"{field}: {message}" if field else message})


# -------------------------------------------------------------
# ROUTES
# -------------------------------------------------------------
app.include_router(chat_router)
app.include_router(suggestions_router)
app.include_router(discovery_router)
app.include_router(itinerary_router)
app.include_router(pdf_router)
app.include_router(profile_router)
app.include_router(programs_router)


# -------------------------------------------------------------
# ROOT ENDPOINT
# -------------------------------------------------------------
@app.get("/")
def root():
    return {
        "status": "ok",
        "message": "NYC Trip Planner backend is running",
        "env": settings.environment
    }


# -------------------------------------------------------------
# RUN LOCAL
# -------------------------------------------------------------
if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
