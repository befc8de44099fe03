"""
Index page rendering.

The built frontend's index.html is read once at startup. Each render
injects a freshly minted session nonce as a meta tag right before
`</head>`, which the frontend sends back in `X-Session-Nonce`.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from tts_gateway.core.logging import get_logger, info

_LOG = get_logger("tts-gateway.frontend")

NONCE_META_NAME = "session-nonce"


class IndexPage:
    def __init__(self, template: Optional[str]):
        self.template = template

    @classmethod
    def load(cls, path: str | Path) -> "IndexPage":
        """Load the template; a missing file means no built frontend."""
        p = Path(path)
        try:
            template = p.read_text(encoding="utf-8")
        except OSError:
            info(_LOG, "frontend_not_built", path=str(p))
            return cls(None)
        return cls(template)

    @property
    def available(self) -> bool:
        return self.template is not None

    def render(self, nonce: str) -> str:
        if self.template is None:
            raise RuntimeError("frontend template not loaded")
        tag = f'<meta name="{NONCE_META_NAME}" content="{nonce}">\n</head>'
        return self.template.replace("</head>", tag, 1)
