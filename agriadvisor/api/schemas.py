"""
Pydantic request/response schemas for the advisory FastAPI service.

Request fields are optional at the schema level so that missing fields are
reported with the service's own 400 message instead of a generic 422.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class QueryRequest(BaseModel):
    """Input schema for /query."""
    query: Optional[str] = Field(None, description="The farmer's question")
    email: Optional[str] = Field(None, description="Email of a registered user")

    model_config = {"json_schema_extra": {
        "examples": [{
            "query": "Should I irrigate my wheat this week?",
            "email": "a@x.com",
        }]
    }}


class CoordinatesOut(BaseModel):
    lat: float
    lng: float
    formatted_address: str = Field(..., alias="formattedAddress")

    model_config = {"populate_by_name": True}


class DataCollectedOut(BaseModel):
    """True when the real provider answered, False when a fallback was used."""
    weather: bool
    crop_price: bool = Field(..., alias="cropPrice")
    maps: bool

    model_config = {"populate_by_name": True}


class QueryResponse(BaseModel):
    """Output schema for /query."""
    advice: str
    location: str
    coordinates: CoordinatesOut
    data_collected: DataCollectedOut = Field(..., alias="dataCollected")

    model_config = {"populate_by_name": True}


class RegisterRequest(BaseModel):
    """Input schema for /register."""
    name: Optional[str] = None
    email: Optional[str] = None
    location: Optional[str] = Field(None, description="Free-text location, e.g. 'Jaipur, India'")


class LoginRequest(BaseModel):
    """Input schema for /login."""
    email: Optional[str] = None


class UserOut(BaseModel):
    name: str
    email: str
    location: str


class UserEnvelope(BaseModel):
    message: str
    user: UserOut


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response; each provider is 'live' or 'fallback'."""
    status: str
    providers: Dict[str, str]
    version: str
