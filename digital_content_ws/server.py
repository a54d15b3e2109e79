#!/usr/bin/env python3
"""
FastAPI service for digital content lookups.

GET /api/resource/{id} resolves one record from Solr, validates and reshapes
it into a record with one entry per part, and enriches parts with PDF
status. /healthcheck probes Solr; /version reports build information.
"""
import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .auth import authenticate
from .config import load_config
from .context import ClientContext
from .errors import ConfigurationError, DigitalContentError
from .service import ServiceContext, build_service_context, handle_item_request, handle_ping_request

logger = logging.getLogger(__name__)


api_router = APIRouter(prefix="/api", dependencies=[Depends(authenticate)])


@api_router.get("/resource/{identifier}")
async def resource_handler(identifier: str, request: Request):
    """Assembled record for one identifier, or a plain-text error"""
    svc: ServiceContext = request.app.state.service
    ctx = ClientContext.from_request(request)

    ctx.log_request()
    try:
        record = await handle_item_request(svc, identifier, ctx)
    except DigitalContentError as e:
        ctx.log_response(e.status_code, e)
        return PlainTextResponse(str(e), status_code=e.status_code)

    ctx.log_response(200)
    return JSONResponse(content=record)


def create_app(service: Optional[ServiceContext] = None) -> FastAPI:
    """
    Create the application.

    When no service context is given, one is built from the environment at
    startup. The service clients are closed at shutdown either way.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "service", None) is None:
            app.state.service = build_service_context(load_config())
        logger.info("[SERVICE] ready")

        yield

        logger.info("Shutting down digital content service...")
        await app.state.service.close()

    app = FastAPI(
        title="Digital Content Service",
        description="Digital content record lookups backed by Solr",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(GZipMiddleware)

    @app.get("/")
    @app.get("/favicon.ico")
    async def ignore_handler():
        return Response(status_code=200)

    @app.get("/version")
    async def version_handler(request: Request):
        """Build information"""
        return JSONResponse(content=request.app.state.service.version.to_dict())

    @app.get("/healthcheck")
    async def health_check_handler(request: Request):
        """Solr health, probed with a synthetic lookup"""
        svc: ServiceContext = request.app.state.service
        ctx = ClientContext.from_request(request, nolog=True)

        ctx.log_request()
        try:
            await handle_ping_request(svc, ctx)
        except DigitalContentError as e:
            ctx.log_response(500, e)
            return JSONResponse(status_code=500, content={"solr": {"healthy": False, "message": str(e)}})

        ctx.log_response(200)
        return JSONResponse(content={"solr": {"healthy": True}})

    app.include_router(api_router)

    return app


app = create_app()


def main():
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        config = load_config()
        service = build_service_context(config)
    except ConfigurationError as e:
        logger.error(f"exiting due to configuration error(s): {e}")
        sys.exit(1)

    port = int(config.port)
    logger.info(f"Starting digital content service on 0.0.0.0:{port}")

    uvicorn.run(create_app(service), host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
