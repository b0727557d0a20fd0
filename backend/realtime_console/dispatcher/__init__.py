from realtime_console.dispatcher.engine import EventDispatcher, response_request, user_message_item

__all__ = ["EventDispatcher", "response_request", "user_message_item"]
