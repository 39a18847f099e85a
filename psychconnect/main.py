import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from psychconnect.config import settings
from psychconnect.routers import admin, appointments, patients, psychiatrists

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="PsychConnect")

app.include_router(psychiatrists.router)
app.include_router(patients.router)
app.include_router(appointments.router)
app.include_router(admin.router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    fields = {}
    for error in exc.errors():
        # Drop the "body"/"query" prefix so the key matches the form field
        location = [str(part) for part in error.get("loc", ())[1:]] or ["request"]
        fields.setdefault(".".join(location), error.get("msg", "Invalid value"))
    message = "; ".join(f"{field}: {msg}" for field, msg in fields.items())
    logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=422, content={"error": message, "fields": fields})


@app.get("/")
def read_root():
    return "Welcome to the PsychConnect backend!"
