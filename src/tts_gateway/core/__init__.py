"""
Core Infrastructure for tts-gateway.

    - config.py: Settings loading and validation
    - logging/: Structured logging with numeric levels
"""
