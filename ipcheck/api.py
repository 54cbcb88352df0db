"""HTTP API exposing IP lookups, cache management and provider management."""

from __future__ import annotations

import argparse
import ipaddress
import json
import logging
from typing import Any

from flask import Flask, Response, jsonify, request

from ipcheck.models import IPRequest
from ipcheck.service import IPService, ProviderError, ProviderNotFoundError

logger = logging.getLogger(__name__)

SERVICE_NAME = "IP Check API"
SERVICE_VERSION = "1.0.0"
DEFAULT_PORT = 8080
VALID_IPV_TYPES = ("4", "6")


def is_valid_ip(ip: Any) -> bool:
    """Return True if ``ip`` is a textual IPv4 or IPv6 address without a zone."""
    if not isinstance(ip, str) or "%" in ip:
        return False
    try:
        ipaddress.ip_address(ip)
    except ValueError:
        return False
    return True


def _error(status: int, message: str, details: str | None = None) -> tuple[Response, int]:
    body: dict[str, Any] = {"error": message}
    if details is not None:
        body["details"] = details
    return jsonify(body), status


def _decode_body() -> Any:
    """Decode the request body as JSON whatever its content type; raise ValueError if it is not."""
    raw = request.get_data(as_text=True)
    if not raw.strip():
        raise ValueError("request body is empty")
    return json.loads(raw)


def _parse_enable_request(data: Any) -> tuple[str, bool]:
    if not isinstance(data, dict):
        raise ValueError("request body must be a JSON object")
    name = data.get("name")
    if name is None:
        name = ""
    if not isinstance(name, str):
        raise ValueError("field 'name' must be of type str")
    if not name:
        raise ValueError("field 'name' is required")
    enabled = data.get("enabled")
    if enabled is None:
        enabled = False
    if not isinstance(enabled, bool):
        raise ValueError("field 'enabled' must be of type bool")
    return name, enabled


def create_app(service: IPService | None = None) -> Flask:
    """Build the Flask application serving the API on top of ``service``."""
    ip_service = service if service is not None else IPService()
    app = Flask(__name__)
    app.json.sort_keys = False

    def lookup(ip: str, ipv_type: str) -> tuple[Response, int]:
        try:
            info = ip_service.get_ip_info(ip, ipv_type)
        except ProviderError as exc:
            return _error(500, "Failed to retrieve IP information", str(exc))
        return jsonify({"success": True, "data": info.to_dict()}), 200

    def lookup_by_body() -> tuple[Response, int]:
        try:
            req = IPRequest.from_dict(_decode_body())
        except ValueError as exc:
            return _error(400, "Invalid request format", str(exc))
        if not is_valid_ip(req.ip):
            return _error(400, "Invalid IP address format")
        ipv_type = req.ipv_type or "4"
        if ipv_type not in VALID_IPV_TYPES:
            return _error(400, "IPV type must be '4' or '6'")
        return lookup(req.ip, ipv_type)

    def lookup_by_query() -> tuple[Response, int]:
        ip = request.args.get("ip", "")
        if not ip:
            return _error(400, "IP parameter is required")
        if not is_valid_ip(ip):
            return _error(400, "Invalid IP address format")
        ipv_type = request.args.get("ipv_type", "4")
        if ipv_type not in VALID_IPV_TYPES:
            return _error(400, "IPV type must be '4' or '6'")
        return lookup(ip, ipv_type)

    def cache_stats() -> tuple[Response, int]:
        return jsonify({"success": True, "data": ip_service.cache_stats()}), 200

    def clear_cache() -> tuple[Response, int]:
        ip_service.clear_cache()
        return jsonify({"success": True, "message": "Cache cleared successfully"}), 200

    def providers() -> tuple[Response, int]:
        data = [provider.to_dict() for provider in ip_service.list_providers()]
        return jsonify({"success": True, "data": data}), 200

    def enable_provider() -> tuple[Response, int]:
        try:
            name, enabled = _parse_enable_request(_decode_body())
        except ValueError as exc:
            return _error(400, "Invalid request format", str(exc))
        try:
            ip_service.enable_provider(name, enabled)
        except ProviderNotFoundError as exc:
            return _error(404, "Provider not found", str(exc))
        action = "enabled" if enabled else "disabled"
        return jsonify({"success": True, "message": f"Provider {name} {action} successfully"}), 200

    def health() -> tuple[Response, int]:
        return jsonify({"status": "healthy", "service": SERVICE_NAME, "version": SERVICE_VERSION}), 200

    app.add_url_rule("/api/v1/ip/lookup", "lookup_by_body", lookup_by_body, methods=["POST"])
    app.add_url_rule("/api/v1/ip/lookup", "lookup_by_query", lookup_by_query, methods=["GET"])
    app.add_url_rule("/api/v1/cache/stats", "cache_stats", cache_stats, methods=["GET"])
    app.add_url_rule("/api/v1/cache", "clear_cache", clear_cache, methods=["DELETE"])
    app.add_url_rule("/api/v1/providers", "providers", providers, methods=["GET"])
    app.add_url_rule("/api/v1/providers/enable", "enable_provider", enable_provider, methods=["PUT"])
    app.add_url_rule("/api/v1/health", "v1_health", health, methods=["GET"])
    app.add_url_rule("/health", "health", health, methods=["GET"])

    @app.before_request
    def _preflight() -> Response | None:
        if request.method == "OPTIONS":
            return Response(status=204)
        return None

    @app.after_request
    def _cors(response: Response) -> Response:
        response.headers["Access-Control-Allow-Origin"] = "*"
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type, Authorization"
        return response

    return app


def main(argv: list[str] | None = None) -> int:
    """Run the API server."""
    parser = argparse.ArgumentParser(prog="ipcheck", description="Serve the IP Check API.")
    parser.add_argument("--host", default="0.0.0.0", help="interface to listen on")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="port to listen on")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    app = create_app()
    logger.info("Starting IP Check API server on port :%d", args.port)
    logger.info("Health check available at: http://localhost:%d/health", args.port)
    logger.info("API documentation available at: http://localhost:%d/api/v1/health", args.port)
    try:
        app.run(host=args.host, port=args.port)
    except OSError as exc:
        logger.error("Failed to start server: %s", exc)
        return 1
    return 0