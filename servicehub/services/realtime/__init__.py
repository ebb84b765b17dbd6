"""Realtime rooms: event envelopes, publishing, SSE and WebSocket delivery."""
