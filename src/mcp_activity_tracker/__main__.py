"""Module entrypoint.

Allows:
    python -m mcp_activity_tracker
"""

from __future__ import annotations

from mcp_activity_tracker.server.tracker_server import main

if __name__ == "__main__":
    main()
