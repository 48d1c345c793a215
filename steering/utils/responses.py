"""
JSON error bodies shared by the router and the exception handlers.
"""

from datetime import datetime
from http import HTTPStatus
from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


def error_response(status_code: int, message: str, request: Request,
                   error_type: str = "HTTPError", extra: Optional[Dict[str, Any]] = None) -> JSONResponse:
    content = {
        "error": f"{status_code} {HTTPStatus(status_code).phrase.lower()}",
        "message": message,
        "type": error_type,
        "timestamp": datetime.now().isoformat(),
        "path": str(request.url),
    }
    if extra:
        content.update(extra)
    return JSONResponse(status_code=status_code, content=content)
