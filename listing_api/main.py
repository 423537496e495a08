import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from listing_api.deps import LOG_LEVEL
from listing_api.errors import BackendUnavailable, InconsistentSchema, InvalidArgument
from listing_api.routers import listings

logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO),
                    format="%(asctime)s | %(levelname)s | %(message)s")
LOG = logging.getLogger("api")

app = FastAPI(
    title="Property Listings API",
    version="1.0.0",
    description="Query live property listings: filters, pagination and proximity search."
)

app.include_router(listings.router)


@app.exception_handler(InvalidArgument)
async def invalid_argument(request: Request, exc: InvalidArgument):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(BackendUnavailable)
async def backend_unavailable(request: Request, exc: BackendUnavailable):
    return JSONResponse(status_code=503, content={"detail": "Listing store unavailable"})


@app.exception_handler(InconsistentSchema)
async def inconsistent_schema(request: Request, exc: InconsistentSchema):
    LOG.error("Inconsistent listing data on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": "Inconsistent listing data"})


@app.get("/api/health")
def health():
    return {"status": "ok"}
