"""Serve the demo oracles: python -m demo_api"""
import os

import uvicorn


def main():
    host = os.environ.get("CIPHER_BREAKER_DEMO_HOST", "127.0.0.1")
    port = int(os.environ.get("CIPHER_BREAKER_DEMO_PORT", "8000"))
    uvicorn.run("demo_api.api:app", host=host, port=port)


if __name__ == "__main__":
    main()
