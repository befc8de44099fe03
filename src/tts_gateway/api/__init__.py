"""
FastAPI HTTP Layer for tts-gateway.

    - routes.py: Session, synthesis and metadata endpoints
    - middleware.py: CORS, request logging, 404/500 handlers
    - schemas.py: Request/response Pydantic models
    - dependencies.py: FastAPI dependency injection
"""
