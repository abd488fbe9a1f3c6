from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


class Department(str, Enum):
    """Coarse department bucket assigned from title keywords"""
    ENGINEERING = "Engineering"
    RESEARCH = "Research"
    MANAGEMENT = "Management"
    SALES = "Sales"
    SECURITY = "Security"
    DATA = "Data"
    PRODUCT = "Product"
    OTHER = "Other"


class SkillStrategy(str, Enum):
    """How skills are inferred for a posting"""
    CONTENT = "content"  # Scan the job page text with context guards
    TITLE = "title"  # Map the title to a role archetype


class ScrapeState(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    TIMED_OUT = "timed_out"


class SalaryRange(BaseModel):
    """Salary band in thousands of USD"""
    raw: str
    min: int
    max: int

    @model_validator(mode="after")
    def check_order(self):
        if self.min > self.max:
            raise ValueError(f"salary min {self.min} is greater than max {self.max}")
        return self

    @property
    def midpoint(self) -> float:
        return (self.min + self.max) / 2


class JobLink(BaseModel):
    """A job link discovered on a listing page, before the job page is fetched"""
    title: str
    url: str
    context: str = ""  # Text of the surrounding container (location hints live here)


class JobPosting(BaseModel):
    title: str
    url: str
    location: str = "San Francisco"
    department: Department = Department.ENGINEERING
    salary: Optional[SalaryRange] = None
    skills: List[str] = Field(default_factory=list)
    description: Optional[str] = None  # Job text, or the reason no salary was found
    company: Optional[str] = None


class SkippedJob(BaseModel):
    url: str
    title: Optional[str] = None
    error: str


class SkillStat(BaseModel):
    skill: str
    count: int


class DatasetSummary(BaseModel):
    total_jobs: int
    jobs_with_salary: int
    success_rate: float
    highest_paying_jobs: List[JobPosting] = Field(default_factory=list)
    most_common_skills: List[SkillStat] = Field(default_factory=list)


class CompanyDataset(BaseModel):
    """One scrape run for one company. Never modified after it is written."""
    company: str
    source_url: Optional[str] = None
    scraped_at: str
    rules_version: str
    skill_strategy: SkillStrategy = SkillStrategy.TITLE
    jobs: List[JobPosting] = Field(default_factory=list)
    summary: DatasetSummary
    skipped: List[SkippedJob] = Field(default_factory=list)


class CategoryStats(BaseModel):
    name: str
    total: int
    with_salary: int
    salary_ratio: float
    avg_min: Optional[float] = None
    avg_max: Optional[float] = None


class CompanyProfile(BaseModel):
    name: str
    total_jobs: int
    jobs_with_salary: int
    avg_salary_min: Optional[int] = None
    avg_salary_max: Optional[int] = None
    highest_salary: Optional[int] = None
    lowest_salary: Optional[int] = None
    top_skills: List[SkillStat] = Field(default_factory=list)


class SalaryComparison(BaseModel):
    winner: Optional[str] = None  # None on a tie or when either side has no salaries
    company_a_avg: Optional[int] = None
    company_b_avg: Optional[int] = None
    difference: Optional[int] = None


class SkillOverlap(BaseModel):
    common: List[str] = Field(default_factory=list)
    unique_to_a: List[str] = Field(default_factory=list)
    unique_to_b: List[str] = Field(default_factory=list)


class RoleBucket(BaseModel):
    role: str
    company_a_count: int
    company_b_count: int
    company_a_avg_max: Optional[int] = None
    company_b_avg_max: Optional[int] = None


class CompanyComparison(BaseModel):
    company_a: CompanyProfile
    company_b: CompanyProfile
    salary: SalaryComparison
    skills: SkillOverlap
    roles: List[RoleBucket] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)


class EstimatedJob(BaseModel):
    """Title-only quick analysis result. Salary is an estimate, not scraped."""
    title: str
    url: Optional[str] = None
    level: str
    department: Department
    location: str = "San Francisco"
    estimated_salary: SalaryRange


class RuleSetInfo(BaseModel):
    version: str
    name: str
    changelog: List[str] = Field(default_factory=list)
    default: bool = False


class ScrapeStatusResponse(BaseModel):
    company: str
    state: ScrapeState
    elapsed_seconds: Optional[float] = None
