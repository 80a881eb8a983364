"""
kinnikureward/api.py

REST API server for kinnikureward.

Endpoints:
    POST /api/send-transaction   reward a workout with tokens and a message
    GET  /api/balance/{address}  token balance and level of an address
    GET  /health                 liveness and configuration check
    GET  /metrics                Prometheus metrics
    GET  /                       service info
"""

import json
import logging
import time
import trio
from typing import Any, Callable, Dict, List, Optional, Tuple
from dataclasses import dataclass, field
from urllib.parse import parse_qs, urlparse

from .config import DEFAULT_CATALOG, REWARD_MOSAIC_ID, VERSION, ExerciseCatalog, Settings
from .errors import InvalidAddressError, InvalidWorkoutError, LedgerError
from .ledger.address import parse_address
from .ledger.client import NodeClient
from .ledger.submitter import TransactionSubmitter, is_client_error
from .ledger.tx_builder import TransactionRequest
from .levels import compute_level
from .messages import GeminiTextGenerator, MessageGenerator, TextGenerator
from .metrics import MetricsCollector
from .rewards import calculate_reward, parse_workouts, summarize

logger = logging.getLogger("kinnikureward.api")

MAX_BODY_SIZE = 64 * 1024

STATUS_TEXT = {
    200: "OK",
    400: "Bad Request",
    404: "Not Found",
    405: "Method Not Allowed",
    500: "Internal Server Error",
    502: "Bad Gateway",
    503: "Service Unavailable",
}


@dataclass
class Request:
    """HTTP request representation."""
    method: str
    path: str
    query: Dict[str, List[str]]
    headers: Dict[str, str]
    body: bytes
    path_params: Dict[str, str] = field(default_factory=dict)


@dataclass
class Response:
    """HTTP response representation."""
    status: int
    headers: Dict[str, str]
    body: bytes

    @classmethod
    def json(cls, data: Any, status: int = 200) -> "Response":
        """Create JSON response."""
        body = json.dumps(data, indent=2, ensure_ascii=False).encode("utf-8")
        return cls(
            status=status,
            headers={"Content-Type": "application/json; charset=utf-8"},
            body=body,
        )

    @classmethod
    def text(cls, text: str, status: int = 200, content_type: str = "text/plain") -> "Response":
        """Create text response."""
        return cls(
            status=status,
            headers={"Content-Type": content_type},
            body=text.encode("utf-8"),
        )

    @classmethod
    def error(cls, message: str, status: int = 400, error: Optional[str] = None) -> "Response":
        """Create error response: {"message": ..., "error": ...}."""
        data = {"message": message}
        if error is not None:
            data["error"] = error
        return cls.json(data, status=status)


class RewardAPI:
    """
    REST API server for workout rewards.

    Usage:
        settings = Settings.from_env()
        api = RewardAPI.from_settings(settings)
        trio.run(api.start)

        # API available at http://127.0.0.1:8080
    """

    def __init__(
        self,
        node_client: NodeClient,
        message_generator: MessageGenerator,
        submitter: TransactionSubmitter,
        catalog: ExerciseCatalog = DEFAULT_CATALOG,
        host: str = "127.0.0.1",
        port: int = 8080,
        enable_metrics: bool = True,
        mosaic_id: int = REWARD_MOSAIC_ID,
    ):
        """
        Initialize REST API server.

        Args:
            node_client: Ledger node client (balances)
            message_generator: Produces the transaction message
            submitter: Sends the reward transaction
            catalog: Exercise catalog used to price workouts
            host: Host to bind to (default: localhost)
            port: Port to listen on (default: 8080)
            enable_metrics: Enable Prometheus metrics endpoint
            mosaic_id: Token whose balance the balance route reports
        """
        self.node_client = node_client
        self.message_generator = message_generator
        self.submitter = submitter
        self.catalog = catalog
        self.host = host
        self.port = port
        self.mosaic_id = mosaic_id

        self.metrics = MetricsCollector() if enable_metrics else None

        # Server state
        self._running = False
        self._start_time = time.time()

        # Route handlers
        self._routes: Dict[Tuple[str, str], Callable] = {
            ("GET", "/"): self._handle_root,
            ("GET", "/health"): self._handle_health,
            ("POST", "/api/send-transaction"): self._handle_send_transaction,
            ("GET", "/api/balance/{address}"): self._handle_balance,
            ("GET", "/metrics"): self._handle_metrics,
        }

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        catalog: ExerciseCatalog = DEFAULT_CATALOG,
        text_generator: Optional[TextGenerator] = None,
        **kwargs,
    ) -> "RewardAPI":
        """
        Wire up the service from settings.

        Args:
            settings: Process settings
            catalog: Exercise catalog
            text_generator: Override the Gemini generator (tests, offline)
            **kwargs: Passed to NodeClient (e.g. transport)
        """
        node_client = NodeClient(settings.node_url, timeout=settings.http_timeout, **kwargs)
        if text_generator is None:
            text_generator = GeminiTextGenerator(
                settings.gemini_api_key,
                model_name=settings.gemini_model,
                timeout=settings.gemini_timeout,
            )
        return cls(
            node_client=node_client,
            message_generator=MessageGenerator(text_generator, catalog),
            submitter=TransactionSubmitter(node_client, settings.private_key),
            catalog=catalog,
            host=settings.host,
            port=settings.port,
        )

    async def start(self) -> None:
        """Start the API server."""
        if self._running:
            logger.warning("API server already running")
            return

        self._running = True
        logger.info(f"Starting REST API server on {self.host}:{self.port}")
        if not self.submitter.has_signing_key:
            logger.warning("PRIVATE_KEY not set; reward requests will be rejected")

        try:
            await trio.serve_tcp(
                self._handle_connection,
                self.port,
                host=self.host,
            )
        except Exception as e:
            logger.error(f"API server error: {e}")
            self._running = False
            raise

    async def stop(self) -> None:
        """Stop the API server and release the node client."""
        self._running = False
        await self.node_client.close()
        logger.info("REST API server stopped")

    async def _handle_connection(self, stream: trio.SocketStream) -> None:
        """Handle incoming TCP connection."""
        try:
            request = await self._read_request(stream)
            if not request:
                return

            response = await self._route_request(request)
            await self._send_response(stream, response)

        except Exception as e:
            logger.error(f"Connection error: {type(e).__name__}: {e}")
            try:
                error_response = Response.error("Internal Server Error", status=500, error=str(e))
                await self._send_response(stream, error_response)
            except trio.BrokenResourceError:
                logger.debug("Client went away before the error response")
        finally:
            await stream.aclose()

    async def _read_request(self, stream: trio.SocketStream) -> Optional[Request]:
        """Read and parse HTTP request."""
        try:
            data = b""
            while b"\r\n\r\n" not in data:
                chunk = await stream.receive_some(4096)
                if not chunk:
                    return None
                data += chunk
                if len(data) > MAX_BODY_SIZE:
                    logger.warning("Request headers too large")
                    return None

            header_end = data.index(b"\r\n\r\n")
            header_data = data[:header_end].decode("utf-8")
            body = data[header_end + 4:]

            lines = header_data.split("\r\n")
            request_line = lines[0].split(" ")
            method = request_line[0].upper()
            path_with_query = request_line[1] if len(request_line) > 1 else "/"

            parsed = urlparse(path_with_query)
            path = parsed.path
            query = parse_qs(parsed.query)

            headers = {}
            for line in lines[1:]:
                if ":" in line:
                    key, value = line.split(":", 1)
                    headers[key.strip().lower()] = value.strip()

            content_length = int(headers.get("content-length", 0))
            if content_length > MAX_BODY_SIZE:
                logger.warning(f"Request body too large: {content_length} bytes")
                return None

            while len(body) < content_length:
                chunk = await stream.receive_some(4096)
                if not chunk:
                    break
                body += chunk

            return Request(
                method=method,
                path=path,
                query=query,
                headers=headers,
                body=body[:content_length] if content_length else body,
            )

        except (ValueError, UnicodeDecodeError, trio.BrokenResourceError) as e:
            logger.error(f"Error reading request: {e}")
            return None

    async def _send_response(self, stream: trio.SocketStream, response: Response) -> None:
        """Send HTTP response."""
        status_text = STATUS_TEXT.get(response.status, "Unknown")

        lines = [f"HTTP/1.1 {response.status} {status_text}"]

        response.headers["Content-Length"] = str(len(response.body))
        response.headers["Connection"] = "close"
        response.headers["Server"] = f"kinnikureward/{VERSION}"

        for key, value in response.headers.items():
            lines.append(f"{key}: {value}")

        lines.append("")
        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"

        await stream.send_all(header_bytes + response.body)

    async def _route_request(self, request: Request) -> Response:
        """Route request to appropriate handler."""
        handler = self._routes.get((request.method, request.path))
        if handler:
            return await handler(request)

        path_known = False
        for (method, pattern), handler in self._routes.items():
            match, params = self._match_path(pattern, request.path)
            if not match:
                continue
            if method != request.method:
                path_known = True
                continue
            request.path_params = params
            return await handler(request)

        if path_known:
            return Response.error("Method Not Allowed", status=405)
        return Response.error("Not Found", status=404)

    def _match_path(self, pattern: str, path: str) -> Tuple[bool, Dict[str, str]]:
        """Match path against pattern with parameters."""
        pattern_parts = pattern.split("/")
        path_parts = path.split("/")

        if len(pattern_parts) != len(path_parts):
            return False, {}

        params = {}
        for p_part, path_part in zip(pattern_parts, path_parts):
            if p_part.startswith("{") and p_part.endswith("}"):
                if not path_part:
                    return False, {}
                params[p_part[1:-1]] = path_part
            elif p_part != path_part:
                return False, {}

        return True, params

    # ========== Route Handlers ==========

    async def _handle_root(self, request: Request) -> Response:
        """Handle root endpoint."""
        return Response.json({
            "name": "kinnikureward",
            "version": VERSION,
            "endpoints": list(f"{m} {p}" for (m, p) in self._routes.keys()),
        })

    async def _handle_health(self, request: Request) -> Response:
        """Handle health check."""
        return Response.json({
            "status": "healthy",
            "signing_key_configured": self.submitter.has_signing_key,
            "uptime_seconds": time.time() - self._start_time,
        })

    async def _handle_send_transaction(self, request: Request) -> Response:
        """Handle reward request."""
        response = await self._send_transaction(request)
        if self.metrics:
            self.metrics.record_request(response.status)
        return response

    async def _send_transaction(self, request: Request) -> Response:
        try:
            body = json.loads(request.body) if request.body else None
        except (json.JSONDecodeError, UnicodeDecodeError):
            return Response.error("Invalid JSON", status=400)

        if not isinstance(body, dict):
            body = {}

        recipient_address = body.get("recipientAddress")
        workouts = body.get("workouts")
        lang = body.get("lang")

        if not recipient_address or not isinstance(workouts, list) or not workouts:
            logger.info("Invalid input")
            return Response.error(
                "Invalid input. Please provide a valid address and at least one workout.",
                status=400,
            )

        try:
            parse_address(recipient_address)
        except InvalidAddressError as e:
            return Response.error("Invalid recipient address.", status=400, error=str(e))

        if not self.submitter.has_signing_key:
            logger.error("PRIVATE_KEY not set")
            return Response.error("Server configuration error: Private key not set.", status=500)

        try:
            reward = calculate_reward(parse_workouts(workouts), self.catalog)
        except InvalidWorkoutError as e:
            return Response.error(str(e), status=400)

        logger.info(f"Reward computed: {summarize(reward)}")

        message = await self.message_generator.generate(reward.workouts, lang)
        if self.metrics and message.fallback:
            self.metrics.record_message_fallback()

        started = time.monotonic()
        result = await self.submitter.submit(TransactionRequest(
            recipient_address=recipient_address,
            message=message.text,
            token_amount=reward.total_token_amount,
        ))

        if not result.ok:
            if self.metrics:
                self.metrics.record_ledger_failure(result.step.value)
            if is_client_error(result):
                return Response.error("Invalid recipient address.", status=400, error=result.error)
            return Response.error(
                "An error occurred during the transaction process.",
                status=500,
                error=result.error,
            )

        if self.metrics:
            self.metrics.record_reward(
                reward.total_token_amount,
                reward.total_calories,
                time.monotonic() - started,
            )

        return Response.json({
            "message": "Transaction announced successfully!",
            "transactionMessage": result.signed.message_text,
            "estimatedCalories": reward.total_calories,
            "tokenAmount": reward.total_token_amount,
            "transactionHash": result.signed.hash,
        })

    async def _handle_balance(self, request: Request) -> Response:
        """Handle balance + level lookup."""
        raw_address = request.path_params.get("address")
        try:
            address = parse_address(raw_address)
        except InvalidAddressError as e:
            return Response.error("Invalid address.", status=400, error=str(e))

        try:
            balance = await self.node_client.get_mosaic_balance(address, self.mosaic_id)
        except LedgerError as e:
            return Response.error("Failed to query balance.", status=502, error=str(e))

        level = compute_level(balance)
        data = {"address": address.plain, "mosaic_id": f"{self.mosaic_id:016X}"}
        data.update(level.to_dict())
        return Response.json(data)

    async def _handle_metrics(self, request: Request) -> Response:
        """Handle Prometheus metrics endpoint."""
        if not self.metrics:
            return Response.error("Metrics not enabled", status=404)

        return Response.text(
            self.metrics.collect(),
            content_type="text/plain; version=0.0.4; charset=utf-8",
        )
