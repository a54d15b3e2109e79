"""
Per-request client context: request id, verbosity and request logging.
"""
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass
class ClientContext:
    """Identifies one inbound request in the logs."""
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    verbose: bool = False
    nolog: bool = False
    method: str = ""
    path: str = ""
    started_at: float = field(default_factory=time.monotonic)

    @classmethod
    def from_request(cls, request, nolog: bool = False) -> "ClientContext":
        """Build a context from a FastAPI Request (?verbose=true enables verbose logging)."""
        verbose = str(request.query_params.get("verbose", "")).lower() in ("1", "true", "yes")
        return cls(
            verbose=verbose,
            nolog=nolog and not verbose,
            method=request.method,
            path=request.url.path,
        )

    def log(self, message: str):
        if self.nolog:
            return
        logger.info(f"[{self.request_id}] {message}")

    def err(self, message: str):
        logger.error(f"[{self.request_id}] {message}")

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)

    def log_request(self):
        self.log(f"{self.method} {self.path}")

    def log_response(self, status: int, error: Optional[Exception] = None):
        if error is not None:
            self.log(f"response: status {status}, error: {error}, elapsed {self.elapsed_ms()} ms")
        else:
            self.log(f"response: status {status}, elapsed {self.elapsed_ms()} ms")
