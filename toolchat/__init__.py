"""
Toolchat - tool-using chat client for MCP servers

Lets any chat model use tools exposed by MCP servers, without relying on
the model's native function-calling API:
- Tool catalog rendered into the system prompt
- Tool-call detection from plain model text (JSON first, text patterns second)
- Turn-based session loop that runs the tool and asks the model to summarize
"""

__version__ = "0.1.0"

from pathlib import Path

# Package paths
PACKAGE_DIR = Path(__file__).parent
PROJECT_ROOT = PACKAGE_DIR.parent


# User data directory (for settings, .env, logs)
def get_data_dir() -> Path:
    """Get the user data directory for toolchat."""
    import os

    custom_dir = os.environ.get("TOOLCHAT_DATA_DIR")
    if custom_dir:
        return Path(custom_dir)

    return Path.home() / ".toolchat"


def ensure_data_dir() -> Path:
    """Ensure the data directory exists with required structure."""
    data_dir = get_data_dir()

    (data_dir / "config").mkdir(parents=True, exist_ok=True)
    (data_dir / "logs").mkdir(parents=True, exist_ok=True)

    return data_dir
