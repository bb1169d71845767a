from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from typing import Optional
import logging
from contextlib import asynccontextmanager

# Local imports
from config import load_settings
from models import BookRequest
from service import BookingError, BookingService, InvalidInput, MethodNotSupported
from store import StoreError, build_store

# ---------- Config ----------
settings = load_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger("booking_api")

BOOK_PATH = "/book"


# ---------- App Lifecycle ----------
@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.service = BookingService(
        build_store(settings),
        settings.admin_key,
        default_max_spots=settings.default_max_spots,
    )
    logger.info(f"Booking service started ({settings.store_backend} store, namespace '{settings.namespace}').")
    yield
    logger.info("Application shutting down.")

app = FastAPI(title="Class Booking API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["POST", "GET", "OPTIONS", "DELETE"],
    allow_headers=["Content-Type"],
)


def get_service(request: Request) -> BookingService:
    return request.app.state.service


# ---------- Error Handlers ----------
@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"message": "Invalid data"})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = "Method not supported" if exc.status_code == 405 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"message": message}, headers=exc.headers)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Storage failure on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"message": "Storage error, please try again later."})


# ---------- API Endpoints ----------
@app.options(BOOK_PATH)
def preflight():
    return Response(status_code=200)


@app.get(BOOK_PATH)
async def read_bookings(
    class_id: Optional[str] = Query(None, alias="classId"),
    admin: Optional[str] = None,
    key: Optional[str] = None,
    service: BookingService = Depends(get_service),
):
    if admin == "true" and key:
        records = await service.list_all(key)
        return {class_id: record.to_json() for class_id, record in records.items()}
    if class_id:
        availability = await service.get_availability(class_id)
        return availability.to_json()
    raise InvalidInput("Missing classId parameter")


@app.post(BOOK_PATH)
async def book_class(request: Request, service: BookingService = Depends(get_service)):
    try:
        body = await request.json()
        req = BookRequest.model_validate(body)
    except (ValueError, ValidationError):
        raise InvalidInput("Invalid data")
    confirmation = await service.create_booking(req)
    return confirmation.to_json()


@app.delete(BOOK_PATH)
async def reset_bookings(
    key: Optional[str] = None,
    class_id: Optional[str] = Query(None, alias="classId"),
    reset_all: Optional[str] = Query(None, alias="resetAll"),
    service: BookingService = Depends(get_service),
):
    # 401 comes before the 400 for a missing target. The service checks the key again on its own.
    service.check_admin(key)
    if class_id:
        return {"message": await service.delete_one(class_id, key)}
    if reset_all == "true":
        return {"message": await service.reset_all(key)}
    raise InvalidInput("Specify classId or resetAll=true")


@app.api_route(BOOK_PATH, methods=["PUT", "PATCH"], include_in_schema=False)
async def unsupported_method():
    raise MethodNotSupported("Method not supported")


@app.get("/health")
def health():
    return {"status": "ok"}


# ---------- Run ----------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
