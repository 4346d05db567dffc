"""Base model class for all pipeline data models."""

from datetime import datetime

from pydantic import BaseModel


class NewsModel(BaseModel):
    """Base model for pipeline data models."""

    class Config:
        """Pydantic config."""

        from_attributes = True
        json_encoders = {
            datetime: lambda v: v.isoformat() if v else None,
        }
