"""
Nova product scraper - FastAPI Application
Thin HTTP surface over the scrape pipeline.
"""
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from nova import __version__
from nova.config import config
from nova.layers.ingestion import IngestionLayer
from nova.utils.logger import get_logger, set_trace_id


# Initialize FastAPI app
app = FastAPI(
    title="Nova Product Scraper",
    description="Extracts normalized product records from e-commerce product pages",
    version=__version__,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ingestion_layer = IngestionLayer()

logger = get_logger("main")


# Request/Response models
class ScrapeRequest(BaseModel):
    """Request model for product scraping."""
    url: Optional[str] = None


class ScrapeResponse(BaseModel):
    """Response model for product scraping."""
    success: bool
    product: dict
    trace_id: str


# API Routes
@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.post("/api/scrape")
async def scrape_product(request: ScrapeRequest):
    """
    Scrape a product page into a normalized product record.

    Extraction failures never surface as errors; the response then
    carries the demo product with isDemo=true.
    """
    if not request.url or not request.url.strip():
        raise HTTPException(status_code=400, detail="URL is required")

    trace_id = set_trace_id()
    logger.info("scrape_request", url=request.url, trace_id=trace_id)

    record = await ingestion_layer.scrape(request.url)

    logger.info(
        "scrape_response",
        url=request.url,
        platform=record.platform.value,
        is_demo=record.is_demo,
    )

    return ScrapeResponse(
        success=True,
        product=record.to_api_dict(),
        trace_id=trace_id,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=config.HOST,
        port=config.PORT,
        log_level="debug" if config.DEBUG else "info",
    )
