"""Audio OS: a voice-command relay between browser clients and the OpenAI Realtime API."""

__version__ = "0.1.0"
