"""
Structured logging: JSON formatter, setup, and request logging middleware
with PII masking.
"""

import json
import logging
import re
import time
import traceback
import uuid
from typing import Any, Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)


# Field names whose values are never logged
SENSITIVE_FIELD_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r'password',
        r'passwd',
        r'token',
        r'api[_-]?key',
        r'secret',
        r'authorization',
        r'cookie',
        r'session',
        r'ssn',
        r'private[_-]?key',
    )
]

# PII in free-text values
PII_PATTERNS = [
    (re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b'), '[EMAIL]'),
    (re.compile(r'\+\d{1,3}[-.\s]?\d{1,4}[-.\s]?\d{1,4}[-.\s]?\d{1,9}'), '[PHONE]'),
    (re.compile(r'\b\d{3}[-.]?\d{3}[-.]?\d{4}\b'), '[PHONE]'),
    (re.compile(r'\b\d{3}-\d{2}-\d{4}\b'), '[SSN]'),
]

# Workflow identifiers copied from log records into JSON output
CONTEXT_FIELDS = (
    'request_id',
    'actor_type',
    'actor_id',
    'application_id',
    'interview_id',
    'company_id',
    'seeker_id',
)

SKIP_PATHS = ('/health', '/ready')


def is_sensitive_field(field_name: str) -> bool:
    return any(pattern.search(field_name) for pattern in SENSITIVE_FIELD_PATTERNS)


def mask_pii(text: str) -> str:
    for pattern, replacement in PII_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def mask_sensitive_data(data: Any, depth: int = 0, max_depth: int = 10) -> Any:
    """
    Recursively mask sensitive fields and PII in dictionaries and lists.

    Args:
        data: Data structure to mask
        depth: Current recursion depth
        max_depth: Maximum recursion depth

    Returns:
        Masked copy of ``data``
    """
    if depth > max_depth:
        return "[MAX_DEPTH_EXCEEDED]"

    if isinstance(data, dict):
        return {
            key: "[REDACTED]"
            if is_sensitive_field(str(key))
            else mask_sensitive_data(value, depth + 1, max_depth)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [mask_sensitive_data(item, depth + 1, max_depth) for item in data]
    if isinstance(data, str):
        return mask_pii(data)
    return data


def mask_headers(headers: dict) -> dict:
    """Mask sensitive headers; authorization keeps its scheme."""
    masked = {}
    for key, value in headers.items():
        if not is_sensitive_field(key):
            masked[key] = value
        elif key.lower() == 'authorization' and ' ' in value:
            masked[key] = f"{value.split(' ', 1)[0]} [REDACTED]"
        else:
            masked[key] = "[REDACTED]"
    return masked


def should_log_request(path: str) -> bool:
    return not path.startswith(SKIP_PATHS)


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs one ``request_started`` and one ``request_completed`` event per
    request, tagged with a request id and the calling actor.
    """

    def __init__(
        self,
        app: ASGIApp,
        log_request_body: bool = False,
        log_response_body: bool = False,
        max_body_size: int = 1024,
    ):
        super().__init__(app)
        self.log_request_body = log_request_body
        self.log_response_body = log_response_body
        self.max_body_size = max_body_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get('x-request-id', str(uuid.uuid4()))
        request.state.request_id = request_id

        if not should_log_request(request.url.path):
            response = await call_next(request)
            response.headers['x-request-id'] = request_id
            return response

        start_time = time.time()
        context = {
            'request_id': request_id,
            'actor_type': request.headers.get('x-actor-type'),
            'actor_id': request.headers.get('x-actor-id'),
        }

        request_log = {
            'event': 'request_started',
            **context,
            'method': request.method,
            'path': request.url.path,
            'query_params': mask_sensitive_data(dict(request.query_params)),
            'headers': mask_headers(dict(request.headers)),
        }
        if self.log_request_body and request.method in ('POST', 'PUT', 'PATCH'):
            body = await self._get_request_body(request)
            if body is not None:
                request_log['body'] = mask_sensitive_data(body)

        logger.info(json.dumps(request_log), extra=context)

        response = None
        error_details = None
        try:
            response = await call_next(request)
        except Exception as exc:
            error_details = {'type': type(exc).__name__, 'message': str(exc)}
            logger.error(
                f"Request processing error: {request.method} {request.url.path}",
                exc_info=True,
                extra=context,
            )
            raise
        finally:
            duration = time.time() - start_time
            status_code = response.status_code if response else 500
            response_log = {
                'event': 'request_completed',
                **context,
                'method': request.method,
                'path': request.url.path,
                'duration_ms': round(duration * 1000, 2),
                'status_code': status_code,
            }
            if error_details:
                response_log['error'] = error_details

            if status_code >= 500:
                logger.error(json.dumps(response_log), extra=context)
            elif status_code >= 400:
                logger.warning(json.dumps(response_log), extra=context)
            else:
                logger.info(json.dumps(response_log), extra=context)

            if response:
                response.headers['x-request-id'] = request_id

        return response

    async def _get_request_body(self, request: Request) -> Any:
        content_type = request.headers.get('content-type', '')
        if 'application/json' not in content_type:
            return {'_content_type': content_type}

        body_bytes = await request.body()
        if len(body_bytes) > self.max_body_size:
            return {'_truncated': True, '_size': len(body_bytes)}
        try:
            return json.loads(body_bytes.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.debug(f"Could not parse request body: {e}")
            return None


class StructuredFormatter(logging.Formatter):
    """Formats log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = "INFO", json_logs: bool = True):
    """
    Configure application-wide logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_logs: Whether to format logs as JSON
    """
    level = getattr(logging, log_level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    if json_logs:
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(
            logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        )
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('celery').setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
