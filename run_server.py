#!/usr/bin/env python3
"""Run the wordcraft API server."""

import os

import uvicorn


def main():
    port = int(os.environ.get('WORDCRAFT_PORT', '8000'))
    print("Starting WordCraft API server...")
    print(f"Storage: {os.environ.get('WORDCRAFT_STORAGE', 'file')}")
    print(f"API documentation available at: http://localhost:{port}/docs")
    uvicorn.run(
        "server.app:app",
        host="0.0.0.0",
        port=port,
        reload=True
    )


if __name__ == "__main__":
    main()
