"""
Algebra calculator — Entry point.

Serve the calculator API with uvicorn on ``$PORT`` (default 5001).
"""

import logging

import uvicorn

from algebra.config import server_port
from backend.app.main import app


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=server_port())


if __name__ == "__main__":
    main()
