from realtime_console.channel.websocket import WebSocketChannel, WebSocketNegotiator

__all__ = ["WebSocketChannel", "WebSocketNegotiator"]
