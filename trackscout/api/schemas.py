"""
Request bodies for the API.
"""
from typing import List, Optional, Union

from pydantic import BaseModel, Field


class VectorSearchRequest(BaseModel):
    """Body of ``POST /api/music/search/vector``."""

    vector: Optional[List[float]] = Field(None, description="Query embedding, same width as the stored ones")
    # Kept loose so numeric strings parse the same way as query parameters
    limit: Optional[Union[int, str]] = Field(None, description="Maximum number of results")
    threshold: Optional[Union[float, str]] = Field(None, description="Similarity floor (cosine) or distance ceiling")
    metric: Optional[str] = Field(None, description="cosine, euclidean or manhattan")
