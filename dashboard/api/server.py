"""
BTC-Predictor Dashboard API Server
Thin HTTP wrapper around the analysis engine.

Run with:
    uvicorn dashboard.api.server:app --port 8000
"""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from btc_predictor import __version__
from btc_predictor.errors import AllSourcesExhausted, InsufficientHistory
from btc_predictor.pipeline.engine import AnalysisEngine
from btc_predictor.utils.logger import setup_logger

logger = setup_logger("api")

app = FastAPI(title="BTC-Predictor Dashboard API", version=__version__)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

engine = AnalysisEngine()


@app.get("/api/health")
def health():
    return {"status": "ok", "version": __version__}


@app.get("/api/price")
def price():
    """Spot price (dashboard polls this every few seconds)."""
    try:
        return engine.get_spot_price().to_dict()
    except AllSourcesExhausted as e:
        logger.error("Spot price unavailable: %s", e)
        raise HTTPException(status_code=503, detail="All price sources failed")


@app.get("/api/analysis")
def analysis():
    """Full analysis (dashboard polls this every ~15 minutes)."""
    try:
        return engine.get_analysis().to_dict()
    except AllSourcesExhausted as e:
        logger.error("Historical data unavailable: %s", e)
        raise HTTPException(status_code=503, detail="Failed to fetch historical data")
    except InsufficientHistory as e:
        logger.error("Historical data too short: %s", e)
        raise HTTPException(status_code=503, detail=str(e))
