from realtime_console.services.chat_client import ChatCompletionsClient
from realtime_console.services.image_client import ImageAnalysisClient
from realtime_console.services.sse import iter_sse_payloads

__all__ = ["ChatCompletionsClient", "ImageAnalysisClient", "iter_sse_payloads"]
