"""
Common Pydantic schemas for API request/response handling.
"""

from typing import Literal

from pydantic import BaseModel, Field


class StatusResponse(BaseModel):
    """
    Acknowledgement returned by every mutating endpoint.

    Attributes:
        status: Always "ok"
    """

    status: Literal["ok"] = Field(default="ok", description="Operation status")
