"""Conversation orchestration: tool-calling loop, streaming, routing and the chat service."""
