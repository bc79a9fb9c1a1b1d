"""Startup script for the Taxi Ledger API server."""
import uvicorn

from taxiledger import config

if __name__ == "__main__":
    print(f"Starting uvicorn on port {config.PORT}", flush=True)
    uvicorn.run(
        "taxiledger.app:app",
        host="0.0.0.0",
        port=config.PORT,
        log_level="info",
    )
