#!/usr/bin/env python3
"""Run the Rebuzzle answer API server."""

import os

import uvicorn


def main():
    host = os.environ.get('REBUZZLE_HOST', '0.0.0.0')
    port = int(os.environ.get('REBUZZLE_PORT', '8000'))
    print("Starting Rebuzzle answer API server...")
    print(f"API documentation available at: http://localhost:{port}/docs")
    uvicorn.run(
        "server.app:app",
        host=host,
        port=port,
        reload=os.environ.get('REBUZZLE_RELOAD', '1') == '1'
    )


if __name__ == "__main__":
    main()
