"""Pydantic models for API requests and responses."""

from pydantic import BaseModel, Field, field_validator, model_validator

from table_to_xlsx.table_document import TitleConfig


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: str
    version: str


class TitleConfigModel(BaseModel):
    """Title rows placed above the converted table."""

    num_of_rows: int = Field(
        ..., ge=0, le=100, description="Number of title rows to insert"
    )
    titles: list[str] = Field(
        default_factory=list,
        description="Title text per row; missing entries are left blank",
    )

    def to_title_config(self) -> TitleConfig:
        """Convert to the internal title configuration."""
        return TitleConfig(num_of_rows=self.num_of_rows, titles=tuple(self.titles))


class ConvertRequest(BaseModel):
    """Request model for the conversion endpoint."""

    html: str = Field(..., description="HTML document containing a <table>")
    title_config: TitleConfigModel | None = Field(
        default=None, description="Optional title rows above the table"
    )
    stream: bool = Field(
        default=False,
        description=(
            "Use chunked parsing and the streaming sheet profile; "
            "cannot be combined with title_config"
        ),
    )
    filename: str = Field(
        default="table.xlsx", description="Filename suggested to the client"
    )

    @field_validator("filename")
    @classmethod
    def validate_filename(cls, v: str) -> str:
        """Reject path separators and force the .xlsx extension."""
        v = v.strip()
        if not v or "/" in v or "\\" in v:
            raise ValueError("filename must be a plain file name")
        if not v.lower().endswith(".xlsx"):
            v = f"{v}.xlsx"
        return v

    @model_validator(mode="after")
    def validate_stream_options(self) -> "ConvertRequest":
        """Streaming conversion has no title rows."""
        if self.stream and self.title_config is not None:
            raise ValueError("title_config is not supported with stream=true")
        return self


class ErrorDetail(BaseModel):
    """Error detail model for API error responses.

    Carries a human-readable message, the machine-readable error code,
    optional details and the request ID for log correlation.
    """

    detail: str = Field(..., description="Human-readable error message")
    error_code: str | None = Field(
        default=None,
        description="Machine-readable error code (e.g., 'E1001')",
    )
    details: dict | None = Field(
        default=None,
        description="Additional error details for debugging",
    )
    request_id: str | None = Field(
        default=None,
        description="Request ID for correlation with server logs",
    )
