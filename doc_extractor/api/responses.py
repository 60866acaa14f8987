import json

from fastapi.responses import JSONResponse


class UnicodeJSONResponse(JSONResponse):
    """JSON response that keeps accented characters readable (no \\uXXXX escapes)."""

    def render(self, content) -> bytes:
        return json.dumps(
            content,
            ensure_ascii=False,
            allow_nan=False,
            indent=None,
            separators=(",", ":"),
        ).encode("utf-8")
