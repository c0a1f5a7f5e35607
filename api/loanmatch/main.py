import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from loanmatch.api.applications_routes import router as applications_router
from loanmatch.api.assessments_routes import router as assessments_router
from loanmatch.api.lenders_routes import router as lenders_router
from loanmatch.api.offers_routes import router as offers_router
from loanmatch.core.config import settings
from loanmatch.core.errors import LoanMatchError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title = "Loan Offers API",
    version = "0.1.0",
    description = "Multi-bank loan offer matching and application tracking"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LoanMatchError)
async def loanmatch_error_handler(request: Request, exc: LoanMatchError) -> JSONResponse:
    # Anything a router did not translate into an HTTPException itself
    logger.warning("Unhandled %s on %s: %s", type(exc).__name__, request.url.path, exc)
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


@app.get("/health")
def health_check() -> dict:
    """
    Simple healthcheck endpoint
    """
    return {"status": "ok"}

# Mount routers
app.include_router(lenders_router, prefix="/api")
app.include_router(offers_router, prefix="/api")
app.include_router(applications_router, prefix="/api")
app.include_router(assessments_router, prefix="/api")
