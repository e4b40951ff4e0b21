"""
Wellness Bot - a voice-first wellness chatbot service.

This package provides a small webserver that records a user's voice turn,
asks a hosted generative-AI provider for mood assessment, transcription,
chat replies and coping strategies, and hands the reply back for speech
synthesis on the client.
"""

__version__ = "0.1.0"
