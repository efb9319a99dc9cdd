"""Configuration for the Cloud Monitoring exporter"""
from pathlib import Path
from typing import List, Optional, Literal
from pydantic import Field, validator
from pydantic_settings import BaseSettings
from metrics.models import LabelCollisionPolicy


class Config(BaseSettings):
    """Exporter configuration, read from environment variables"""
    
    # Google Cloud Monitoring
    project_id: str = Field(..., description="Google Cloud project to scrape (required)")
    metrics_type_prefixes: str = Field(
        default="compute.googleapis.com/instance/cpu",
        description="Metric type prefixes to scrape (comma-separated)"
    )
    metrics_interval: int = Field(default=300, ge=1, description="Length of the scraped time window in seconds")
    monitoring_api_url: str = Field(default="https://monitoring.googleapis.com", description="Monitoring API base URL")
    access_token: Optional[str] = Field(default=None, description="Static bearer token, Google default credentials otherwise")
    request_timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    
    # Pipeline
    collection_interval: int = Field(default=60, ge=1, description="Scrape loop period in seconds")
    max_concurrent_requests: int = Field(default=16, ge=1, description="Maximum descriptor workers running at once")
    cancel_on_error: bool = Field(default=False, description="Cancel sibling workers after the first error")
    label_collision_policy: LabelCollisionPolicy = Field(
        default=LabelCollisionPolicy.PASSTHROUGH,
        description="How duplicate label keys are handled (passthrough or rename)"
    )
    
    # Exposition
    metrics_namespace: str = Field(default="stackdriver", description="First level of the exposed metric names")
    metrics_subsystem: str = Field(default="monitoring", description="Second level of the exposed metric names")
    metrics_port: int = Field(default=9255, ge=1, le=65535, description="Metrics server port")
    metrics_host: str = Field(default="0.0.0.0", description="Metrics server host")
    prometheus_file: Optional[Path] = Field(default=None, description="Optional file mirroring the exposition")
    
    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO", description="Log level")
    log_file: Optional[Path] = Field(default=None, description="Optional log file")
    
    # Service settings
    service_name: str = Field(default="stackdriver-exporter", description="Service name")
    service_version: str = Field(default="1.0.0", description="Service version")
    
    class Config:
        env_prefix = ""
        case_sensitive = False
    
    @validator('project_id')
    def validate_project_id(cls, v):
        if not v.strip():
            raise ValueError("PROJECT_ID is required")
        return v.strip()
    
    @validator('metrics_type_prefixes')
    def validate_metrics_type_prefixes(cls, v):
        if not [item for item in v.split(',') if item.strip()]:
            raise ValueError("METRICS_TYPE_PREFIXES must name at least one prefix")
        return v
    
    @validator('log_level', pre=True)
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v
    
    @validator('prometheus_file', 'log_file')
    def ensure_parent_directories(cls, v):
        """Ensure parent directories exist for file paths"""
        if isinstance(v, Path):
            v.parent.mkdir(parents=True, exist_ok=True)
        return v
    
    @property
    def metrics_type_prefix_list(self) -> List[str]:
        """Get metric type prefixes as a list"""
        return [item.strip() for item in self.metrics_type_prefixes.split(',') if item.strip()]
