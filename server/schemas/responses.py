"""Pydantic response models (DTOs) for FastAPI endpoints."""

from pydantic import BaseModel, Field

from models.search_result import SearchResult, StrictSearchResult


class HealthResponseDTO(BaseModel):
    status: str
    timestamp: str
    version: str


class DateInfoDTO(BaseModel):
    date: str
    human: str
    keyword: str


class TimingDTO(BaseModel):
    provider_ms: int
    fetch_ms: int
    total_ms: int


class RiskDTO(BaseModel):
    level: str
    category: str
    matched_keyword: str | None = None


class SourceDTO(BaseModel):
    title: str
    url: str
    domain: str
    provider: str


class VerificationDTO(BaseModel):
    tier: str
    confidence: str
    confidence_score: float
    agreement: str
    agreeing: list[str] = Field(default_factory=list)
    disagreeing: list[str] = Field(default_factory=list)
    conflict_description: str | None = None
    domain_overlap: float | None = None
    providers_used: list[str] = Field(default_factory=list)
    llm_instruction: str = ""
    reasoning: str = ""
    total_time_ms: int = 0


class SearchResponseDTO(BaseModel):
    request_id: str
    fact: str
    top_titles: str
    source: str
    best_url: str | None = None
    domain: str
    route: str
    date_info: DateInfoDTO | None = None
    timing: TimingDTO
    prompt_tokens: int
    results_found: int
    query_used: str
    provider: str | None = None
    tier: str
    pipeline: str
    risk: RiskDTO | None = None
    verification: VerificationDTO | None = None
    sources: list[SourceDTO] = Field(default_factory=list)
    disclaimer: str | None = None
    success: bool
    error: str | None = None
    timestamp: str

    @classmethod
    def from_search_result(cls, result: SearchResult, request_id: str):
        """Convert SearchResult to DTO."""
        return cls(request_id=request_id, **result.to_dict())


class AgreementDTO(BaseModel):
    score: float
    level: str


class StrictSearchResponseDTO(BaseModel):
    request_id: str
    success: bool
    answer: str
    sources: list[SourceDTO] = Field(default_factory=list)
    confidence: str
    agreement: AgreementDTO
    disclaimer: str | None = None
    time_ms: int
    error: str | None = None

    @classmethod
    def from_strict_result(cls, result: StrictSearchResult, request_id: str):
        """Convert StrictSearchResult to DTO."""
        return cls(request_id=request_id, **result.to_dict())
