import logging
import sys
import time

from fastapi import FastAPI, Request

logger = logging.getLogger("todo_api.http")


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once at startup."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root.addHandler(handler)
    logging.captureWarnings(True)


def register_request_logging(app: FastAPI) -> None:
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # the error handler renders the 500; this only records the request line
            logger.info("%s %s 500 %.3fs", request.method, request.url.path, time.perf_counter() - start)
            raise
        elapsed = time.perf_counter() - start
        response.headers["X-Process-Time"] = f"{elapsed:.4f}"
        logger.info("%s %s %s %.3fs", request.method, request.url.path, response.status_code, elapsed)
        return response
