"""API server configuration."""

from pydantic import BaseModel, Field


class AuthConfig(BaseModel):
    """JWT bearer authentication settings."""

    jwt_secret: str | None = Field(
        default=None,
        description="HMAC secret for bearer tokens (GARRISON_API__AUTH__JWT_SECRET)",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT signing algorithm")


class APIConfig(BaseModel):
    """HTTP API configuration."""

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, ge=1, le=65535, description="Bind port")
    cors_origins: list[str] = Field(
        default_factory=list,
        description="Allowed CORS origins",
    )
    cors_allow_credentials: bool = Field(default=True, description="Allow credentials")
    auth: AuthConfig = Field(default_factory=AuthConfig, description="Authentication")
