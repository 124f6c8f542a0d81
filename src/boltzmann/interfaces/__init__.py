"""
Web Interface - FastAPI app serving crypto price quotes and gas price estimates
"""

from typing import Any, Dict, List, Optional
from datetime import datetime, timezone

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
from loguru import logger

from .. import __version__
from ..data.config import Settings, load_settings
from ..data.errors import ProviderError
from ..data.models import Coin, Currency, GasOracleSource, GasQuote, Quote
from ..data.pipelines.gas_service import gas_prices
from ..data.pipelines.price_oracle import aggregate_price_quotes, all_totals_finite
from ..data.registry import DataRegistry


def _error_body(message: str, status: str, code: int, provider: Optional[str] = None) -> Dict[str, Any]:
    return {"error": {"message": message, "status": status, "provider": provider, "code": code}}


def _invalid_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=422, content=_error_body(message, "invalid_request", 422))


def parse_currencies(values: List[str]) -> List[Currency]:
    """Accept repeated ``currency`` params as well as comma-separated lists."""
    codes = [code for value in values for code in value.split(",")]
    return [Currency.parse(code) for code in codes]


def create_app(settings: Optional[Settings] = None, registry: Optional[DataRegistry] = None) -> FastAPI:
    settings = settings or load_settings()
    registry = registry or DataRegistry(settings)

    app = FastAPI(
        title="Boltzmann API",
        description="ETH price quotes and Ethereum gas price estimates from multiple providers",
        version=__version__,
    )
    app.state.settings = settings
    app.state.registry = registry
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["GET"], allow_headers=["*"])

    @app.get("/api/v1/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "Boltzmann API",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/api/v1/status")
    async def get_status():
        return {"version": __version__, "providers": settings.configured_providers()}

    @app.get("/api/v1/price/prices", response_model=List[Quote])
    async def get_crypto_prices(
        amount: float = Query(1.0, ge=0, allow_inf_nan=False, description="Amount of the coin to value"),
        currency: List[str] = Query(["USD"], description="Fiat currency codes, repeated or comma-separated"),
        coin: str = Query("ETH"),
    ):
        """Quotes from every configured price provider that answered, in provider priority order."""
        try:
            currencies = parse_currencies(currency)
            asset = Coin(coin.strip().upper())
        except ValueError as e:
            return _invalid_request(str(e))
        quotes = await aggregate_price_quotes(asset, currencies, amount, registry)
        if not all_totals_finite(quotes):
            return _invalid_request(f"amount {amount} is too large to value")
        return quotes

    @app.get("/api/v1/gas/prices", response_model=GasQuote)
    async def get_gas_estimates(provider: str = Query("etherscan", description="etherscan or onchain")):
        """Low/average/high gas prices in gwei from the selected oracle."""
        try:
            source = GasOracleSource.parse(provider)
        except ValueError as e:
            return _invalid_request(str(e))
        return await gas_prices(source, registry)

    @app.exception_handler(ProviderError)
    async def provider_error_handler(request: Request, exc: ProviderError):
        logger.error(f"{request.url.path} failed: {exc}")
        return JSONResponse(status_code=exc.http_status, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors())
        return _invalid_request(details)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content=_error_body("Internal server error", "internal_error", 500))

    return app


def run_web_server(settings: Settings) -> None:
    """Run the web server"""
    logger.info(f"Starting Boltzmann API on {settings.host}:{settings.port}")
    logger.info(f"Swagger UI available at: http://{settings.host}:{settings.port}/docs")
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level="debug" if settings.debug else "warning",
    )
