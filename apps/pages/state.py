from dataclasses import asdict, dataclass
from typing import Dict, Optional

from django.db import models

from apps.visualization.schema import AnalysisResult

SESSION_KEY = "app_state"

COLOR_SCHEME_HINT = "Sec-CH-Prefers-Color-Scheme"


class Tab(models.TextChoices):
    UPLOAD = "upload", "Upload Data"
    VISUALIZE = "visualize", "Visualize"
    DASHBOARD = "dashboard", "Dashboard"


def prefers_dark_scheme(request) -> bool:
    hint = request.headers.get(COLOR_SCHEME_HINT, "")
    return hint.strip().strip('"').lower() == "dark"


@dataclass
class AppState:
    """
    Per-session UI state: the open tab, the theme flag and the current upload.

    Until the user toggles the theme, ``dark_mode`` follows the browser's
    color scheme hint on every request. ``upload`` holds
    ``AnalysisResult.to_dict()`` of the last successful upload, and is
    replaced wholesale by the next one.
    """

    active_tab: str = Tab.UPLOAD.value
    dark_mode: bool = False
    theme_chosen: bool = False
    upload: Optional[Dict] = None

    @classmethod
    def load(cls, request) -> "AppState":
        data = request.session.get(SESSION_KEY) or {}

        theme_chosen = bool(data.get("theme_chosen", False))
        if theme_chosen:
            dark_mode = bool(data.get("dark_mode", False))
        else:
            dark_mode = prefers_dark_scheme(request)

        state = cls(
            dark_mode=dark_mode, theme_chosen=theme_chosen, upload=data.get("upload")
        )
        state.select_tab(data.get("active_tab"))
        return state

    def save(self, request) -> None:
        request.session[SESSION_KEY] = asdict(self)

    def select_tab(self, tab: Optional[str]) -> None:
        self.active_tab = tab if tab in Tab.values else Tab.UPLOAD.value

    def toggle_dark_mode(self) -> None:
        self.dark_mode = not self.dark_mode
        self.theme_chosen = True

    def replace_upload(self, result: AnalysisResult) -> None:
        self.upload = result.to_dict()

    def reset_upload(self) -> None:
        self.upload = None
