from .client import AnthropicClient, parse_messages_response

__all__ = ["AnthropicClient", "parse_messages_response"]
