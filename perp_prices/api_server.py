"""FastAPI server exposing the price board to a list UI.

Serves the featured/search views as JSON over REST, and pushes them over a
WebSocket whose client can change the search text at any time.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from perp_prices import __version__
from perp_prices.board import PriceBoard
from perp_prices.config import PriceFeedConfig

logger = logging.getLogger(__name__)

app = FastAPI(title="Hyperliquid Perp Prices API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify your frontend URL
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global board, created on startup
price_board: Optional[PriceBoard] = None


@app.on_event("startup")
async def startup_event():
    """Create the price board and load the first snapshot."""
    global price_board

    config = PriceFeedConfig.from_env()
    logger.info("Starting price board on %s", config.network.name)

    price_board = PriceBoard(config=config)
    await price_board.refresh(force=True)


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "Hyperliquid Perp Prices API", "version": __version__}


@app.get("/api/prices")
async def get_prices(q: str = "") -> Dict[str, Any]:
    """Featured prices for an empty ``q``, search results otherwise."""
    if price_board is None:
        return {"error": "Price board not initialized"}

    await price_board.refresh()
    return price_board.view(q).to_dict()


@app.get("/api/prices/{symbol}")
async def get_price(symbol: str) -> Dict[str, Any]:
    """Single listing by exact symbol."""
    if price_board is None:
        return {"error": "Price board not initialized"}

    await price_board.refresh()
    listing = price_board.find(symbol)
    if listing is None:
        raise HTTPException(status_code=404, detail=f"Unknown symbol: {symbol}")
    return listing.to_dict()


@app.websocket("/ws/prices")
async def websocket_prices(websocket: WebSocket, q: str = ""):
    """Push the board view every ``stream_interval_seconds``.

    The client may send ``{"query": "<text>"}`` to change the search text;
    the new view is pushed immediately.
    """
    await websocket.accept()

    if price_board is None:
        await websocket.send_json({"error": "Price board not initialized"})
        await websocket.close()
        return

    board = price_board
    query = q

    try:
        while True:
            await board.refresh()
            await websocket.send_json(board.view(query).to_dict())

            try:
                message = await asyncio.wait_for(
                    websocket.receive_json(),
                    timeout=board.config.stream_interval_seconds,
                )
            except asyncio.TimeoutError:
                continue
            except ValueError:
                logger.warning("Ignoring non-JSON WebSocket message")
                continue

            if isinstance(message, dict) and "query" in message:
                query = str(message.get("query") or "")

    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected (query=%r)", query)


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    uvicorn.run(app, host="0.0.0.0", port=8000)
