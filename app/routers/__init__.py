from app.routers import analysis

__all__ = ["analysis"]
