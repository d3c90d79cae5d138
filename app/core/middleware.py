from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import time
import logging

from app.core.exceptions import PDVError
from app.shared.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

def setup_middleware(app: FastAPI):
    """Configure all middleware for the application"""

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure properly for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request, call_next):
        start_time = time.time()

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(
            f"{request.method} {request.url.path} - "
            f"Status: {response.status_code} - "
            f"Time: {process_time:.4f}s"
        )

        return response

    @app.exception_handler(PDVError)
    async def pdv_error_handler(request: Request, exc: PDVError):
        logger.warning(f"{request.method} {request.url.path} rechazado: [{exc.error_code}] {exc.detail}")
        body = ErrorResponse(
            message=exc.detail,
            error_code=exc.error_code,
            details=exc.details
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder(body)
        )
