"""
Per-turn routing: which orchestrator (and which toolset or capability)
handles a user message.

Decision order:
    1. A video list is loaded          -> VIDEO_TOOLS
    2. A table is loaded, was not just attached, and the message does
       not ask for Python-only analysis -> TABLE_TOOLS
    3. The message asks for code/analysis -> CODE_EXECUTION (streaming)
    4. Anything else                   -> SEARCH (streaming, grounded)

General code keywords only count when no table is loaded; with a table,
the table tools already cover plotting and statistics.
"""

from __future__ import annotations

import enum
import re

CODE_KEYWORDS = re.compile(
    r"\b(plot|chart|graph|analyz|statistic|regression|correlat|histogram|visualiz|calculat"
    r"|compute|run code|write code|execute|pandas|numpy|matplotlib|csv|data)\b",
    re.IGNORECASE,
)

PYTHON_ONLY_KEYWORDS = re.compile(
    r"\b(regression|scatter|histogram|seaborn|matplotlib|numpy|time.?series|heatmap|box.?plot"
    r"|violin|distribut|linear.?model|logistic|forecast|trend.?line)\b",
    re.IGNORECASE,
)


class Route(enum.Enum):
    VIDEO_TOOLS = "video_tools"
    TABLE_TOOLS = "table_tools"
    CODE_EXECUTION = "code_execution"
    SEARCH = "search"

    @property
    def uses_tools(self) -> bool:
        return self in (Route.VIDEO_TOOLS, Route.TABLE_TOOLS)


def wants_python(message: str) -> bool:
    return bool(PYTHON_ONLY_KEYWORDS.search(message or ""))


def choose_route(
    message: str,
    *,
    has_videos: bool = False,
    has_table: bool = False,
    table_just_attached: bool = False,
) -> Route:
    """Pick the route for ``message`` given which datasets are available."""
    want_python = wants_python(message)
    want_code = bool(CODE_KEYWORDS.search(message or "")) and not has_table

    if has_videos:
        return Route.VIDEO_TOOLS
    if has_table and not want_python and not want_code and not table_just_attached:
        return Route.TABLE_TOOLS
    if want_python or want_code:
        return Route.CODE_EXECUTION
    return Route.SEARCH
