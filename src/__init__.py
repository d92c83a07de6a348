from fastapi import FastAPI, HTTPException, Request, status
from contextlib import asynccontextmanager
from src.db.main import init_db
from src.db.redis import redis_client, check_redis_connection
from src.config import Config

from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.closings.routes import closing_router
from src.payouts.routes import payout_router
from src.customers.routes import customer_router
from src.utils.limiter import limiter
from src.utils.logger import app_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    app_logger.info("---Server Started---")

    await init_db()

    await check_redis_connection()

    yield

    app_logger.info("---Closing Redis Connection---")
    if redis_client:
        await redis_client.aclose()
    app_logger.info("---Server Closed---")

app = FastAPI(
    title="SMD Back-Office API",
    description="Closings, monthly rent payouts and payments for leased SMDs",
    lifespan=lifespan
)

# Required for SlowAPI to function correctly on routes
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.get("/")
def health_check():
    return {
        "status": "Success",
        "message": "Server Working"
    }

@app.exception_handler(HTTPException)
async def custom_http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=jsonable_encoder({
            "success": False,
            "message": exc.detail,
            "data": getattr(exc, "data", None)
        }),
        headers=getattr(exc, "headers", None)
    )

def format_validation_errors(errors):
    formatted = []
    for err in errors:
        # Skip the first element if it's "body", "query", etc.
        loc = err["loc"]
        field = ".".join(str(l) for l in loc[1:]) if len(loc) > 1 else str(loc[0])
        formatted.append({
            "field": field,
            "message": err["msg"]
        })
    return formatted

@app.exception_handler(RequestValidationError)
async def custom_validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "message": "Validation error",
            "errors": format_validation_errors(exc.errors()),
            "data": None
        }
    )

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    app_logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "message": "internal server error",
            "data": None
        }
    )

app.include_router(closing_router, prefix="/api/smd-closings", tags=["SMD Closings"])
app.include_router(payout_router, prefix="/api/monthly-payout", tags=["Monthly Payouts"])
app.include_router(customer_router, prefix="/api", tags=["Customers"])
