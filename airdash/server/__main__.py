"""Web server entrypoint.

Runs the Starlette application using uvicorn. A single worker is
required: the BLE link and the snapshots live in the server process.

    uvicorn airdash.server.entrypoint:create_app --factory --port 5000

Usage: python -m airdash.server
"""
import uvicorn

from airdash.lib.config import get_settings


def main() -> None:
    """Run the web server."""
    server = get_settings().server
    uvicorn.run(
        "airdash.server.entrypoint:create_app",
        factory=True,
        host=server.host,
        port=server.port,
    )


if __name__ == "__main__":
    main()
