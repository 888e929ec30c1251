"""HTTP front-end exposing the bridge's lights API subset."""

import logging
from importlib import resources
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from echobridge.bridge.commands import (
    InvalidCommandError,
    apply_command,
    parse_command,
    success_payload,
)
from echobridge.bridge.device_registry import DeviceRegistry, LightNotFoundError
from echobridge.bridge.upnp_server import HTTP_PORT
from echobridge.devices.base import DeviceError, DeviceResult

logger = logging.getLogger(__name__)

URLBASE_PLACEHOLDER = "##URLBASE##"

# Error types reported in-band, as the bridge API does
ERROR_INVALID_JSON = 2
ERROR_RESOURCE_NOT_AVAILABLE = 3
ERROR_INVALID_VALUE = 7
ERROR_DEVICE_UNREACHABLE = 201
ERROR_INTERNAL = 901


def hue_error(error_type: int, address: str, description: str) -> list[dict[str, Any]]:
    """Build a bridge API error response array."""
    return [{"error": {"type": error_type, "address": address, "description": description}}]


def device_error(address: str, result: DeviceResult) -> list[dict[str, Any]]:
    """Translate a failed device result into an error response array."""
    if result.error is DeviceError.UNREACHABLE:
        return hue_error(ERROR_DEVICE_UNREACHABLE, address, f"device unreachable: {result.message}")
    if result.error is DeviceError.OUT_OF_RANGE:
        return hue_error(ERROR_INVALID_VALUE, address, f"invalid value: {result.message}")
    return hue_error(ERROR_INTERNAL, address, f"device rejected request: {result.detail}")


def load_description(host_ip: str) -> str:
    """Render the bridge description document for ``host_ip``."""
    template = resources.files("echobridge.bridge").joinpath("description.xml").read_text()
    return template.replace(URLBASE_PLACEHOLDER, f"{host_ip}:{HTTP_PORT}")


def _peer(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def create_app(registry: DeviceRegistry, host_ip: str) -> FastAPI:
    """Create the HTTP application.

    Args:
        registry: Lights exposed by the bridge
        host_ip: Outbound IP substituted into the description document
    """
    app = FastAPI(title="Echo Hue Bridge", docs_url=None, redoc_url=None, openapi_url=None)
    description = load_description(host_ip)

    @app.exception_handler(404)
    async def not_found(request: Request, exc: Exception) -> Response:
        logger.info(f"Got request ({request.url.path}) from: {_peer(request)}")
        return PlainTextResponse("Not found!", status_code=404)

    @app.get("/description.xml")
    async def get_description(request: Request) -> Response:
        logger.info(f"Got description request from: {_peer(request)}")
        return Response(content=description, media_type="application/xml")

    @app.get("/api/{user}/lights")
    async def list_lights(user: str, request: Request) -> JSONResponse:
        logger.info(f"Got list request from: {_peer(request)}")
        return JSONResponse({str(light_id): device.descriptor() for light_id, device in registry.items()})

    @app.get("/api/{user}/lights/{light_id}")
    async def show_light(user: str, light_id: str, request: Request) -> JSONResponse:
        try:
            device = registry.resolve(light_id)
        except LightNotFoundError as e:
            return JSONResponse(hue_error(ERROR_RESOURCE_NOT_AVAILABLE, f"/lights/{light_id}", str(e)))

        logger.info(f"Got show request from: {_peer(request)} for light {light_id}")
        return JSONResponse(device.descriptor())

    @app.get("/api/{user}/lights/{light_id}/state")
    async def show_light_state(user: str, light_id: str, request: Request) -> JSONResponse:
        logger.info(f"Got show state request from: {_peer(request)}")
        try:
            device = registry.resolve(light_id)
        except LightNotFoundError as e:
            return JSONResponse(hue_error(ERROR_RESOURCE_NOT_AVAILABLE, f"/lights/{light_id}", str(e)))

        return JSONResponse({"state": device.current_state().to_api_dict()})

    @app.put("/api/{user}/lights/{light_id}/state")
    async def set_light_state(user: str, light_id: str, request: Request) -> JSONResponse:
        logger.info(f"Got set state request from: {_peer(request)}")
        address = f"/lights/{light_id}/state"
        try:
            device = registry.resolve(light_id)
        except LightNotFoundError as e:
            return JSONResponse(hue_error(ERROR_RESOURCE_NOT_AVAILABLE, f"/lights/{light_id}", str(e)))

        try:
            command = parse_command(await request.body())
        except InvalidCommandError as e:
            logger.warning(f"Rejected command for light {light_id}: {e}")
            error_type = ERROR_INVALID_JSON if e.invalid_json else ERROR_INVALID_VALUE
            return JSONResponse(hue_error(error_type, address, str(e)))

        result = await apply_command(device, command)
        if not result.success:
            return JSONResponse(device_error(address, result))

        return JSONResponse(success_payload(int(light_id), command))

    return app
