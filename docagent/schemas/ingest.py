"""Schemas for the ingestion endpoint."""

from pydantic import BaseModel, Field


class IngestResponse(BaseModel):
    """Response after a full-refresh ingestion run."""

    documents: int = Field(..., description="Number of documents read from the document library.")
    chunks: int = Field(..., description="Number of chunks embedded and stored.")
    sources: list[str] = Field(default_factory=list, description="Document names that produced chunks.")

    model_config = {
        "json_schema_extra": {
            "examples": [{"documents": 2, "chunks": 17, "sources": ["Refund Policy.docx", "Handbook.pdf"]}]
        }
    }
