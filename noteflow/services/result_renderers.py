"""
Presentation of a finished Notion authorization.

The same ``FlowResult`` can be delivered to a popup opened by the settings page
or to a full-page redirect back to the settings page.
"""

from __future__ import annotations

import html
import json
from typing import Any, Dict, Optional, Protocol
from urllib.parse import urlencode

from fastapi.responses import HTMLResponse, RedirectResponse, Response

from noteflow.core.config import ResultMode
from noteflow.services.notion_provisioning import FlowResult

SUCCESS_MESSAGE_TYPE = "NOTION_AUTH_SUCCESS"
ERROR_MESSAGE_TYPE = "NOTION_AUTH_ERROR"

_POPUP_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{title}</title>
</head>
<body>
  <p>{text}</p>
  <script>
    (function () {{
      var message = {message};
      if (window.opener) {{
        window.opener.postMessage(message, {origin});
      }}
      window.close();
    }})();
  </script>
</body>
</html>
"""


def _script_json(value: Any) -> str:
    """JSON literal that is safe to inline in a <script> element."""
    return (
        json.dumps(value, ensure_ascii=False)
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )


class ResultRenderer(Protocol):
    def render(self, result: FlowResult) -> Response:
        ...


class PopupMessageRenderer:
    """Posts the outcome to ``window.opener`` and closes the popup."""

    def __init__(self, target_origin: str) -> None:
        self._target_origin = target_origin

    @staticmethod
    def build_message(result: FlowResult) -> Dict[str, Any]:
        if result.succeeded and result.record is not None:
            return {"type": SUCCESS_MESSAGE_TYPE, "data": result.record.to_client_payload()}
        return {"type": ERROR_MESSAGE_TYPE, "error": result.message}

    def render(self, result: FlowResult) -> Response:
        message = self.build_message(result)
        if message["type"] == SUCCESS_MESSAGE_TYPE:
            title, text = "Authorization complete", "Notion is connected. You can close this window."
        else:
            title, text = "Authorization failed", result.message or ""
        body = _POPUP_TEMPLATE.format(
            title=html.escape(title),
            text=html.escape(text),
            message=_script_json(message),
            origin=_script_json(self._target_origin),
        )
        return HTMLResponse(content=body)


class RedirectRenderer:
    """Sends the browser back to the settings page with the outcome in the query."""

    def __init__(self, settings_url: str) -> None:
        self._settings_url = settings_url

    @staticmethod
    def build_params(result: FlowResult) -> Dict[str, str]:
        if not result.succeeded or result.record is None:
            return {"notionError": result.message or "Unknown error"}
        record = result.record
        return {
            "notionAuthSuccess": "true",
            "workspace_name": record.workspace_name or "",
            "workspace_id": record.workspace_id or "",
            "bot_id": record.bot_id or "",
            "database_id": record.resource_id or "",
            "database_name": record.resource_name or "",
            "authorized_at": record.authorized_at.isoformat() if record.authorized_at else "",
        }

    def render(self, result: FlowResult) -> Response:
        separator = "&" if "?" in self._settings_url else "?"
        location = f"{self._settings_url}{separator}{urlencode(self.build_params(result))}"
        return RedirectResponse(url=location, status_code=302)


def select_renderer(
    result: FlowResult,
    *,
    default_mode: ResultMode,
    origin: str,
    settings_path: str,
) -> ResultRenderer:
    """Honour the mode requested when the flow was started, else the default."""
    mode: Optional[str] = result.claims.mode if result.claims else None
    if mode not in ("popup", "redirect"):
        mode = default_mode
    if mode == "popup":
        return PopupMessageRenderer(target_origin=origin)
    return RedirectRenderer(settings_url=f"{origin}{settings_path}")


__all__ = [
    "ERROR_MESSAGE_TYPE",
    "PopupMessageRenderer",
    "RedirectRenderer",
    "ResultRenderer",
    "SUCCESS_MESSAGE_TYPE",
    "select_renderer",
]
