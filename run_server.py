"""Run the Storefront API with uvicorn."""
import os
import signal
import sys

import uvicorn


def handle_signal(sig, frame):
    print(f"\nReceived signal {sig}, shutting down...")
    sys.exit(0)


signal.signal(signal.SIGINT, handle_signal)
signal.signal(signal.SIGTERM, handle_signal)

if __name__ == "__main__":
    uvicorn.run(
        "storefront.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )
