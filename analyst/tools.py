"""
Tool definitions for Gemini function calling.

Each tool schema defines what the model can call and what parameters it
needs. Two static toolsets exist: one for a loaded video list and one for
a loaded table. Tools are executed by ``analyst.tool_handlers`` against
the attached Dataset.
"""

from __future__ import annotations

from .llm.base import FunctionSchema

VIDEO_TOOLSET = "videos"
TABLE_TOOLSET = "table"

TOOLS = [
    {
        "name": "compute_stats",
        "description": """Compute descriptive statistics (count, mean, median, std, min, max) for a numeric field of the loaded data. Use this when:
- User asks for an average, median, spread, minimum or maximum
- User asks for summary numbers or a distribution

Numeric video fields: viewCount, likeCount, commentCount, durationSeconds.""",
        "parameters": {
            "type": "object",
            "properties": {
                "field": {
                    "type": "string",
                    "description": "Numeric field name, e.g. 'viewCount', 'likeCount', 'commentCount', 'durationSeconds'"
                }
            },
            "required": ["field"]
        }
    },
    {
        "name": "plot_metric_vs_time",
        "description": """Plot a numeric field against the record date. Returns chart data rendered as an interactive time-series chart.

Use this when the user asks to plot, chart, graph, or visualize a metric over time.""",
        "parameters": {
            "type": "object",
            "properties": {
                "metric": {
                    "type": "string",
                    "description": "Numeric field to plot on the Y axis, e.g. 'viewCount', 'likeCount', 'durationSeconds'"
                },
                "title": {
                    "type": "string",
                    "description": "Optional chart title. If omitted, one is generated."
                }
            },
            "required": ["metric"]
        }
    },
    {
        "name": "play_video",
        "description": """Find a video in the loaded channel data and return a playable video card (title, thumbnail, URL).

The video can be named by:
- Title words (e.g. "the asbestos video")
- Ordinal (e.g. "first", "third", "12th")
- Criteria (e.g. "most viewed", "least viewed", "most liked", "latest", "oldest", "shortest", "longest")

Use this when the user asks to play, open, watch, or show a video.""",
        "parameters": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "How to find the video: title words, an ordinal like 'first' or '3rd', or criteria like 'most viewed'"
                }
            },
            "required": ["query"]
        }
    },
    {
        "name": "generate_image",
        "description": """Generate an image from a text prompt. An image attached by the user is used as a style reference.

Use this when the user asks to create, generate, make, or draw an image.""",
        "parameters": {
            "type": "object",
            "properties": {
                "prompt": {
                    "type": "string",
                    "description": "Text description of the image to generate."
                }
            },
            "required": ["prompt"]
        }
    },
]

TOOLSETS: dict[str, tuple[str, ...]] = {
    VIDEO_TOOLSET: ("compute_stats", "plot_metric_vs_time", "play_video", "generate_image"),
    TABLE_TOOLSET: ("compute_stats", "plot_metric_vs_time"),
}


def get_tool_schemas(names: list[str] | tuple[str, ...] | None = None) -> list[dict]:
    """Return tool schema dicts, optionally restricted to ``names`` (TOOLS order kept)."""
    if names is None:
        return list(TOOLS)
    wanted = set(names)
    return [t for t in TOOLS if t["name"] in wanted]


def get_function_schemas(names: list[str] | tuple[str, ...] | None = None) -> list[FunctionSchema]:
    """Return tool schemas as ``FunctionSchema`` objects ready for LLM adapters."""
    return [
        FunctionSchema(
            name=ts["name"],
            description=ts["description"],
            parameters=ts["parameters"],
        )
        for ts in get_tool_schemas(names=names)
    ]


def get_toolset(toolset: str) -> list[FunctionSchema]:
    """Return the declarations for ``"videos"`` or ``"table"``."""
    try:
        names = TOOLSETS[toolset]
    except KeyError:
        raise ValueError(f"Unknown toolset: {toolset!r}") from None
    return get_function_schemas(names)
